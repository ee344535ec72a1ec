"""
HTTP proxy for the browser front end.
Exposes model listing, generation and reference image upload endpoints.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web
from pydantic import ValidationError as PydanticValidationError

from config import MAX_UPLOAD_BYTES
from imagegen.clients.fal_client import AsyncFalClient
from imagegen.error_mapping import normalize_error
from imagegen.exceptions.generation_exceptions import ImageGenError, ValidationError
from imagegen.models.image_models import ErrorResponse, GenerationRequest, UploadRequest, UploadResult
from imagegen.registry import Capability
from imagegen.service import ImageGenerationService
from imagegen.uploads import upload_data_url
from utils.logging_config import get_logger

logger = get_logger(__name__)

SERVICE_KEY = web.AppKey("service", ImageGenerationService)


def error_response(message: str, status: int) -> web.Response:
    body = ErrorResponse(error=message, status_code=status)
    return web.json_response(body.model_dump(by_alias=True), status=status)


def _first_validation_message(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


async def _read_json(request: web.Request) -> dict:
    try:
        data = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render every failure as an `{error, statusCode}` response"""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ImageGenError as e:
        level = logger.warning if e.status_code < 500 else logger.error
        level(f"{request.method} {request.path} -> {e.status_code}: {e.message}")
        return error_response(e.message, e.status_code)
    except PydanticValidationError as e:
        message = _first_validation_message(e)
        logger.warning(f"{request.method} {request.path} -> 400: {message}")
        return error_response(message, 400)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        err = normalize_error(None, None, e)
        return error_response(err.error, err.status_code)


async def health_check(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def list_models(request: web.Request) -> web.Response:
    registry = request.app[SERVICE_KEY].registry
    capability = request.query.get("capability")
    if capability:
        try:
            models = registry.list_by_capability(Capability(capability))
        except ValueError:
            raise ValidationError(f"Unknown capability: {capability}")
    else:
        models = registry.list_models()
    return web.json_response({"models": [m.to_public_dict() for m in models]})


async def generate(request: web.Request) -> web.Response:
    data = await _read_json(request)
    if not str(data.get("prompt") or "").strip() or not str(data.get("modelId") or "").strip():
        raise ValidationError("prompt and modelId are required")

    generation_request = GenerationRequest.model_validate(data)
    result = await request.app[SERVICE_KEY].generate_request(generation_request)
    return web.json_response(result.model_dump(by_alias=True))


async def upload(request: web.Request) -> web.Response:
    data = await _read_json(request)
    if not isinstance(data.get("dataUrl"), str) or not data["dataUrl"]:
        raise ValidationError("dataUrl is required")

    upload_request = UploadRequest.model_validate(data)
    url = await upload_data_url(request.app[SERVICE_KEY].upload, upload_request.data_url)
    return web.json_response(UploadResult(url=url).model_dump())


async def _close_client(app: web.Application) -> None:
    await app[SERVICE_KEY].client.aclose()


def create_app(service: Optional[ImageGenerationService] = None) -> web.Application:
    """Build the proxy application; a default fal-backed service is created if none is given."""
    # Base64 inflates the payload by a third
    app = web.Application(
        middlewares=[error_middleware],
        client_max_size=MAX_UPLOAD_BYTES * 4 // 3 + 1024,
    )
    app[SERVICE_KEY] = service or ImageGenerationService(AsyncFalClient())

    app.router.add_get("/health", health_check)
    app.router.add_get("/api/models", list_models)
    app.router.add_post("/api/generate", generate)
    app.router.add_post("/api/upload", upload)
    app.on_cleanup.append(_close_client)
    return app
