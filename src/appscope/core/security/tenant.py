"""
Tenant identity resolution.

The authentication layer (outside this package) verifies the caller's token and
stores the owning application id in a request header. `get_tenant_context`
reads it once per request; query descriptors never carry it.
"""

from fastapi import Request
from pydantic import BaseModel, ConfigDict, field_validator

from appscope.core.config import get_app_settings
from appscope.core.exceptions import MissingTenantContext
from appscope.core.root_logger import get_logger

logger = get_logger("tenant")


class TenantContext(BaseModel):
    """The resolved, opaque application id of the current caller."""

    model_config = ConfigDict(frozen=True)

    app_id: str

    @field_validator("app_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("app_id must not be blank")
        return v


def resolve_tenant(header_value: str | None) -> TenantContext:
    """
    Builds the tenant context from the raw header value.

    Outside production a configured `DEFAULT_APP_ID` stands in for a missing
    header so local development works without the authentication service.

    Raises:
        MissingTenantContext: If no application id can be resolved.
    """
    settings = get_app_settings()

    if header_value and header_value.strip():
        return TenantContext(app_id=header_value)

    if not settings.PRODUCTION and settings.DEFAULT_APP_ID:
        logger.debug(f"No {settings.APP_ID_HEADER} header, using DEFAULT_APP_ID")
        return TenantContext(app_id=settings.DEFAULT_APP_ID)

    raise MissingTenantContext()


def get_tenant_context(request: Request) -> TenantContext:
    """FastAPI dependency returning the caller's `TenantContext`."""
    settings = get_app_settings()
    return resolve_tenant(request.headers.get(settings.APP_ID_HEADER))
