"""Tests for the upload form OpenAPI patch."""

from unittest.mock import MagicMock

import orjson
import pytest

from uploader.middlewares.base import BaseMiddleware, MiddlewareHandler
from uploader.middlewares.files import UPLOAD_FORM_SCHEMA, FileUploadOpenAPIMiddleware, patch_upload_forms


@pytest.fixture
def upload_endpoints(monkeypatch):
    endpoints = {"/file_uploader/upload"}
    monkeypatch.setattr("uploader.middlewares.files.FILE_UPLOAD_ENDPOINTS", endpoints)
    return endpoints


def openapi_document() -> dict:
    return {
        "openapi": "3.1.0",
        "paths": {
            "/file_uploader/upload": {"post": {"summary": "upload"}},
            "/health": {"get": {"summary": "health"}},
        },
    }


def test_patch_sets_multipart_body() -> None:
    document = patch_upload_forms(openapi_document(), {"/file_uploader/upload"})

    body = document["paths"]["/file_uploader/upload"]["post"]["requestBody"]
    assert body["required"] is True
    assert body["content"]["multipart/form-data"]["schema"] == UPLOAD_FORM_SCHEMA
    assert "requestBody" not in document["paths"]["/health"]["get"]


def test_patch_ignores_unknown_endpoints() -> None:
    document = patch_upload_forms(openapi_document(), {"/elsewhere"})
    assert document == openapi_document()


class TestFileUploadOpenAPIMiddleware:
    def test_only_openapi_endpoint(self) -> None:
        assert FileUploadOpenAPIMiddleware().endpoints == frozenset({"/openapi.json"})

    def test_after_patches_document(self, upload_endpoints) -> None:
        response = MagicMock()
        response.description = orjson.dumps(openapi_document()).decode()

        result = FileUploadOpenAPIMiddleware().after(response)

        document = orjson.loads(result.description)
        assert "requestBody" in document["paths"]["/file_uploader/upload"]["post"]

    def test_after_leaves_non_json_alone(self, upload_endpoints) -> None:
        response = MagicMock()
        response.description = "not json"

        assert FileUploadOpenAPIMiddleware().after(response).description == "not json"

    def test_after_without_upload_routes(self, monkeypatch) -> None:
        monkeypatch.setattr("uploader.middlewares.files.FILE_UPLOAD_ENDPOINTS", set())
        response = MagicMock()
        response.description = "{}"

        assert FileUploadOpenAPIMiddleware().after(response).description == "{}"


class TestMiddlewareHandler:
    def test_subclass_must_implement_a_hook(self) -> None:
        with pytest.raises(TypeError, match="at least one"):

            class Empty(BaseMiddleware):
                pass

    def test_register_hooks_declared_endpoints(self) -> None:
        app = MagicMock()
        handler = MiddlewareHandler(app).register(FileUploadOpenAPIMiddleware())

        assert len(handler.middlewares) == 1
        app.before_request.assert_called_once_with("/openapi.json")
        app.after_request.assert_called_once_with("/openapi.json")
        app.get_all_routes.assert_not_called()

    def test_register_without_endpoints_uses_all_routes(self) -> None:
        class Passthrough(BaseMiddleware):
            def before(self, request):
                return request

            def after(self, response):
                return response

        app = MagicMock()
        app.get_all_routes.return_value = [("GET", "/health", None), ("POST", "/upload", None)]

        MiddlewareHandler(app).register(Passthrough())

        assert {call.args[0] for call in app.before_request.call_args_list} == {"/health", "/upload"}
        assert {call.args[0] for call in app.after_request.call_args_list} == {"/health", "/upload"}
