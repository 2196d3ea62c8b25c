import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from app.core.errors import (
    EXCEPTION_HANDLERS,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ProcessingError,
    UploadError,
    ValidationError,
    status_code_for,
)


@pytest.mark.parametrize("error, expected", [
    (ValidationError("x"), 400),
    (AuthenticationError("x"), 401),
    (AuthorizationError("x"), 403),
    (NotFoundError("x"), 404),
    (ConflictError("x"), 409),
    (ProcessingError("x"), 500),
    (UploadError("x"), 502),
    (PersistenceError("x"), 500),
])
def test_status_codes(error, expected):
    assert status_code_for(error) == expected


def _app():
    app = FastAPI(exception_handlers=EXCEPTION_HANDLERS)

    @app.get("/conflict")
    def conflict():
        raise ConflictError("Stale version", data={"current_version": 3})

    @app.get("/processing")
    def processing():
        raise ProcessingError("ffmpeg exited with code 1 at /tmp/status_video_x")

    @app.get("/items")
    def items(limit: int = Query(10, ge=1)):
        return {"limit": limit}

    return TestClient(app)


def test_client_errors_expose_message_and_data():
    response = _app().get("/conflict")

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Stale version", "data": {"current_version": 3}}


def test_server_errors_hide_internal_detail():
    response = _app().get("/processing")

    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong on our end."
    assert "ffmpeg" not in response.text


def test_request_validation_errors_are_400():
    response = _app().get("/items?limit=0")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


def test_unknown_route_keeps_envelope():
    response = _app().get("/nowhere")

    assert response.status_code == 404
    assert response.json()["success"] is False
