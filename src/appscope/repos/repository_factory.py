"""
This module defines the `AllRepositories` class, the single access point to
every appscope repository.

Repositories are built on first access through `cached_property` and reused
for the lifetime of the `AllRepositories` instance, which is one request.
"""

from collections.abc import Generator
from functools import cached_property

from fastapi import Depends
from sqlalchemy.orm import Session

from appscope.core.security import TenantContext, get_tenant_context
from appscope.db.db_setup import generate_session
from appscope.db.models.users import Addresses, Profiles, UserRoles, Users
from appscope.schemas.user import AddressRead, ProfileRead, RoleRead, UserRead

from ._utils import NOT_SET, NotSet
from .profiles import RepositoryAddresses, RepositoryProfiles, RepositoryRoles
from .users import RepositoryUsers

PK_ID = "id"


class AllRepositories:
    """
    Centralized access layer for the appscope repositories.

    The `app_id` scopes every tenant-owned repository. `NOT_SET` means the caller
    never resolved a tenant and is rejected when a repository is built. `None`
    is accepted, but every read of a tenant-scoped entity then raises
    `MissingTenantContext`.
    """

    def __init__(self, session: Session, *, app_id: str | None | NotSet = NOT_SET) -> None:
        self.session = session
        self.app_id = app_id

    @cached_property
    def users(self) -> RepositoryUsers:
        return RepositoryUsers(self.session, PK_ID, Users, UserRead, app_id=self.app_id)

    @cached_property
    def profiles(self) -> RepositoryProfiles:
        return RepositoryProfiles(self.session, PK_ID, Profiles, ProfileRead, app_id=self.app_id)

    @cached_property
    def addresses(self) -> RepositoryAddresses:
        return RepositoryAddresses(self.session, PK_ID, Addresses, AddressRead, app_id=self.app_id)

    @cached_property
    def roles(self) -> RepositoryRoles:
        return RepositoryRoles(self.session, PK_ID, UserRoles, RoleRead, app_id=self.app_id)


def get_repositories(session: Session, app_id: str | None | NotSet = NOT_SET) -> AllRepositories:
    return AllRepositories(session, app_id=app_id)


def repositories_dependency(
    session: Session = Depends(generate_session),
    tenant: TenantContext = Depends(get_tenant_context),
) -> Generator[AllRepositories, None, None]:
    """FastAPI dependency: repositories bound to the request session and the caller's application."""
    yield get_repositories(session, app_id=tenant.app_id)
