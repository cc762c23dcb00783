from fastapi import FastAPI
from fastapi.testclient import TestClient

from aether.main.exceptions import ConflictException, ExternalServiceException
from aether.main.request_context import get_request_context
from aether.server.exception_handlers import add_exception_handlers
from aether.server.main import app
from aether.server.middleware.request_context import (
    CORRELATION_ID_HEADER,
    RequestContextMiddleware,
)


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)
    add_exception_handlers(app)

    @app.get("/context")
    async def context():
        return get_request_context()

    @app.get("/conflict")
    async def conflict():
        raise ConflictException("Organization slug already exists", details={"slug": "ae"})

    @app.get("/upstream")
    async def upstream():
        raise ExternalServiceException(
            "Tenant provisioner returned status 500", details={"status_code": 500}
        )

    return app


def test_correlation_id_is_echoed():
    client = TestClient(make_app())

    response = client.get("/context", headers={CORRELATION_ID_HEADER: "req-42"})

    assert response.headers[CORRELATION_ID_HEADER] == "req-42"
    assert response.json() == {"correlation_id": "req-42"}


def test_correlation_id_is_generated():
    client = TestClient(make_app())

    response = client.get("/context")

    generated = response.headers[CORRELATION_ID_HEADER]
    assert generated
    assert response.json()["correlation_id"] == generated


def test_client_errors_carry_details():
    client = TestClient(make_app())

    response = client.get("/conflict")

    assert response.status_code == 409
    assert response.json() == {
        "message": "Organization slug already exists",
        "error_code": "CONFLICT",
        "details": {"slug": "ae"},
    }


def test_upstream_errors_hide_details():
    client = TestClient(make_app())

    response = client.get("/upstream")

    assert response.status_code == 502
    body = response.json()
    assert body["error_code"] == "EXTERNAL_SERVICE_ERROR"
    assert body["details"] is None


def test_healthz():
    client = TestClient(app)

    response = client.get("/api/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "OK"}


def test_routes_are_mounted_under_api_prefix():
    paths = {route.path for route in app.routes}

    assert "/api/v1/spaces/" in paths
    assert "/api/v1/spaces/{space_type}/{space_id}/" in paths
    assert "/api/v1/organizations/{org_id}/members/{member_id}/" in paths
