import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from appscope.core.config import get_app_settings
from appscope.core.exceptions import MissingTenantContext, NoEntryFound, UnknownColumnError
from appscope.core.handlers import register_exception_handlers
from appscope.core.logger.config import log_config
from appscope.core.root_logger import get_logger
from appscope.core.security import TenantContext, get_tenant_context, resolve_tenant
from appscope.schemas.response import FilterQuery


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/unknown-column")
    def unknown_column():
        raise UnknownColumnError("users", "salary")

    @app.get("/missing")
    def missing():
        raise NoEntryFound("no such user")

    @app.get("/database")
    def database():
        raise SQLAlchemyError("connection refused on 10.0.0.5")

    @app.get("/tenant")
    def tenant(ctx: TenantContext = Depends(get_tenant_context)):
        return {"app_id": ctx.app_id}

    @app.post("/query")
    def query(payload: dict):
        return FilterQuery.model_validate(payload).model_dump()

    return TestClient(app)


def test_typed_error_envelope(client: TestClient):
    response = client.get("/unknown-column")

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "UnknownColumnError"
    assert body["status"] == 400
    assert "salary" in body["result"]


def test_not_found(client: TestClient):
    response = client.get("/missing")

    assert response.status_code == 404
    assert response.json()["result"] == "no such user"


def test_database_error_hides_details(client: TestClient):
    response = client.get("/database")

    assert response.status_code == 500
    assert response.json()["result"] == "Database error"


def test_descriptor_validation_error(client: TestClient):
    response = client.post("/query", json={"sortBy": ["username", "id"], "sort": ["ASC"]})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "ValidationError"
    assert isinstance(body["result"], list)


def test_tenant_from_header(client: TestClient):
    response = client.get("/tenant", headers={"app_id": "app-a"})

    assert response.status_code == 200
    assert response.json() == {"app_id": "app-a"}


def test_tenant_falls_back_outside_production(client: TestClient):
    assert client.get("/tenant").json() == {"app_id": "app-dev"}


def test_tenant_required_in_production(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(get_app_settings(), "PRODUCTION", True)

    response = client.get("/tenant")

    assert response.status_code == 401
    assert response.json()["message"] == "MissingTenantContext"


def test_resolve_tenant_strips_value():
    assert resolve_tenant("  app-a ").app_id == "app-a"


def test_blank_header_is_rejected_in_production(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(get_app_settings(), "PRODUCTION", True)

    with pytest.raises(MissingTenantContext):
        resolve_tenant("   ")


def test_blank_tenant_context():
    with pytest.raises(ValidationError):
        TenantContext(app_id=" ")


def test_logger_is_configured():
    logger = get_logger("query")

    assert logger.name == "appscope.query"
    assert log_config()["version"] == 1
