"""Generation and upload entry points used by the HTTP proxy"""
from typing import List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from imagegen.clients.fal_client import AsyncFalClient, ProviderResponse
from imagegen.exceptions.generation_exceptions import (
    EmptyResultError,
    ProviderError,
    UploadError,
    ValidationError,
)
from imagegen.models.image_models import GenerationRequest, GenerationResult, ProviderImage
from imagegen.normalizer import build_payload
from imagegen.registry import ModelDescriptor, ModelRegistry, model_registry
from utils.logging_config import get_logger

logger = get_logger(__name__)


def map_result(descriptor: ModelDescriptor, response: ProviderResponse) -> GenerationResult:
    """Pick the first generated image; an empty image list is a failure."""
    images = response.data.get("images")
    if not isinstance(images, list) or not images:
        raise EmptyResultError()

    first = images[0]
    if not isinstance(first, dict) or not first.get("url"):
        raise EmptyResultError("Provider returned an image without a URL")
    try:
        image = ProviderImage(**first)
    except PydanticValidationError as e:
        logger.error(f"Malformed image entry from provider: {e}")
        raise ProviderError("Provider returned a malformed result", 502) from e

    seed = response.data.get("seed")
    return GenerationResult(
        image_url=image.url,
        width=image.width,
        height=image.height,
        seed=seed if isinstance(seed, int) and not isinstance(seed, bool) else None,
        model_name=descriptor.name,
        request_id=response.request_id,
    )


class ImageGenerationService:
    def __init__(self, client: AsyncFalClient, registry: ModelRegistry = model_registry):
        self.client = client
        self.registry = registry

    async def generate(
        self,
        model_id: str,
        prompt: str,
        aspect_ratio: Optional[str] = None,
        reference_image_urls: Optional[Sequence[str]] = None,
        negative_prompt: Optional[str] = None,
    ) -> GenerationResult:
        prompt = (prompt or "").strip()
        model_id = (model_id or "").strip()
        if not prompt or not model_id:
            raise ValidationError("prompt and modelId are required")

        request = GenerationRequest(
            model_id=model_id,
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            reference_image_urls=list(reference_image_urls or []),
            negative_prompt=negative_prompt,
        )
        return await self.generate_request(request)

    async def generate_request(self, request: GenerationRequest) -> GenerationResult:
        descriptor = self.registry.get(request.model_id)

        urls = self._limit_references(descriptor, request.reference_image_urls)
        if urls != request.reference_image_urls:
            request = request.model_copy(update={"reference_image_urls": urls})

        payload = build_payload(request, descriptor)
        logger.info(
            f"Generating with {descriptor.id} ({descriptor.endpoint}), "
            f"fields={sorted(payload)}"
        )

        response = await self.client.subscribe(descriptor.endpoint, payload)
        try:
            return map_result(descriptor, response)
        except EmptyResultError:
            logger.error(f"{descriptor.id} job {response.request_id} returned no images")
            raise

    @staticmethod
    def _limit_references(descriptor: ModelDescriptor, urls: List[str]) -> List[str]:
        if descriptor.reference_image is None:
            return urls
        limit = descriptor.reference_image.max_images
        if len(urls) > limit:
            logger.info(f"{descriptor.id} accepts {limit} reference image(s), dropping {len(urls) - limit}")
            return urls[:limit]
        return urls

    async def upload(self, data: bytes, mime_type: str) -> str:
        if not data:
            raise UploadError("Empty upload", 400)
        return await self.client.upload(data, mime_type)


__all__ = ["ImageGenerationService", "map_result"]
