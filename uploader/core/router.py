"""Router with multipart form injection, error mapping and response handling."""

import inspect
import time
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from asgi_correlation_id import correlation_id
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from uploader.core.errors import ClientUploadError, PayloadTooLargeError, UploadError
from uploader.core.logger import LogIcon, logger
from uploader.core.settings import Settings
from uploader.pipeline.multipart import MultipartForm, iter_body, parse_boundary

FILE_UPLOAD_ENDPOINTS: set[str] = set()

REQUEST_ID_HEADER = "x-request-id"
TEXT_PLAIN = "text/plain; charset=utf-8"


def parse_endpoint_signature(sig: inspect.Signature) -> set[str]:
    """Return the names of parameters annotated with MultipartForm."""
    return {name for name, param in sig.parameters.items() if param.annotation is MultipartForm}


def resolve_request_id(request: Request) -> str:
    """Use the caller's X-Request-ID when it is usable, else a fresh one."""
    request_id = request.headers.get(REQUEST_ID_HEADER)
    if request_id and request_id.isascii() and request_id.replace("-", "").isalnum() and len(request_id) <= 64:
        return request_id
    return uuid.uuid4().hex


def read_body(request: Request) -> bytes:
    body = request.body
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body or b"")


def parse_request_form(
    form_params: set[str],
    request: Request,
    kwargs: dict[str, Any],
    settings: Settings,
) -> None:
    """Build a MultipartForm over the request body for each form parameter."""
    if not form_params:
        return

    boundary, charset = parse_boundary(request.headers.get("content-type"))
    body = read_body(request)
    if len(body) > settings.max_body_size:
        raise PayloadTooLargeError(
            f"request body of {len(body)} bytes exceeds the {settings.MAX_FILE_SIZE_MB} MB upload limit"
        )

    for param_name in form_params:
        kwargs[param_name] = MultipartForm(iter_body(body, settings.CHUNK_SIZE), boundary, charset)


def error_response(ex: UploadError) -> Response:
    """Convert a pipeline error into a plain-text error response."""
    if isinstance(ex, ClientUploadError):
        logger.warning("Upload refused", icon=LogIcon.WARNING, status=ex.status_code, error=str(ex))
    else:
        logger.error("Upload failed", icon=LogIcon.ERROR, status=ex.status_code, error=str(ex))
    return Response(
        status_code=ex.status_code,
        headers={"content-type": TEXT_PLAIN},
        description=str(ex),
    )


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": TEXT_PLAIN},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(original_method: Callable, settings: Settings, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            form_params = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters
            full_path = f"{router_prefix}{endpoint}".replace("//", "/")

            if form_params:
                FILE_UPLOAD_ENDPOINTS.add(full_path)

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                token = correlation_id.set(resolve_request_id(request))
                started = time.perf_counter()
                try:
                    try:
                        parse_request_form(form_params, request, h_kwargs, settings)

                        # Pass request to handler only if it declared it
                        if has_request_param:
                            h_kwargs["request"] = request

                        response = parse_response(await handler(**h_kwargs))
                    except UploadError as ex:
                        response = error_response(ex)
                    logger.info(
                        "Request handled",
                        icon=LogIcon.LATENCY,
                        endpoint=full_path,
                        status=response.status_code,
                        elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
                    )
                    return response
                finally:
                    correlation_id.reset(token)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request" or name in form_params:
                    continue
                new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter that injects multipart forms and maps UploadError to responses."""

    def __init__(self, *args, settings: Settings, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._settings = settings
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._settings, self._prefix)
                setattr(self, method_name, wrapped_method)
