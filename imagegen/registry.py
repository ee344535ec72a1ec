"""Static registry of provider image models and their request shapes.

Each descriptor holds everything the normalizer needs to translate a uniform
request into that model's job payload, so adding a model means adding one
entry to MODELS.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from imagegen.exceptions.generation_exceptions import ModelNotFoundError, RegistryError
from utils.logging_config import get_logger

logger = get_logger(__name__)


class Capability(Enum):
    """Generation modes a model accepts."""
    TEXT_TO_IMAGE = "text-to-image"
    IMAGE_TO_IMAGE = "image-to-image"
    BOTH = "both"

    @property
    def includes_text_to_image(self) -> bool:
        return self in (Capability.TEXT_TO_IMAGE, Capability.BOTH)

    @property
    def includes_image_to_image(self) -> bool:
        return self in (Capability.IMAGE_TO_IMAGE, Capability.BOTH)


@dataclass(frozen=True)
class ReferenceImageSpec:
    """Where a model takes its reference image(s) and how many."""
    field_name: str
    is_array_field: bool = False
    max_images: int = 1


@dataclass(frozen=True)
class SizeEncoding:
    """Replaces the `aspect_ratio` field for models that want sizes instead of ratios."""
    field_name: str
    ratio_to_value: Mapping[str, str] = field(default_factory=dict)

    def encode(self, aspect_ratio: str) -> str:
        # Unmapped ratios pass through untouched
        return self.ratio_to_value.get(aspect_ratio, aspect_ratio)


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    name: str
    endpoint: str
    capability: Capability
    supported_aspect_ratios: Tuple[str, ...]
    default_aspect_ratio: str
    supports_negative_prompt: bool = False
    reference_image: Optional[ReferenceImageSpec] = None
    size_encoding: Optional[SizeEncoding] = None
    description: str = ""
    cost_per_image: str = ""

    def to_public_dict(self) -> Dict[str, object]:
        """Descriptor fields a front end needs to render model options."""
        return {
            "id": self.id,
            "name": self.name,
            "capability": self.capability.value,
            "description": self.description,
            "costPerImage": self.cost_per_image,
            "aspectRatios": list(self.supported_aspect_ratios),
            "defaultAspectRatio": self.default_aspect_ratio,
            "supportsNegativePrompt": self.supports_negative_prompt,
            "maxReferenceImages": self.reference_image.max_images if self.reference_image else 0,
        }


def validate_descriptor(descriptor: ModelDescriptor) -> None:
    """Raise RegistryError if a single descriptor is inconsistent."""
    if not descriptor.supported_aspect_ratios:
        raise RegistryError(f"Model '{descriptor.id}' has no supported aspect ratios")
    if len(set(descriptor.supported_aspect_ratios)) != len(descriptor.supported_aspect_ratios):
        raise RegistryError(f"Model '{descriptor.id}' lists an aspect ratio twice")
    if descriptor.default_aspect_ratio not in descriptor.supported_aspect_ratios:
        raise RegistryError(
            f"Model '{descriptor.id}' default aspect ratio "
            f"'{descriptor.default_aspect_ratio}' is not supported"
        )
    if descriptor.capability.includes_image_to_image and descriptor.reference_image is None:
        raise RegistryError(f"Model '{descriptor.id}' accepts reference images but has no reference field")
    if descriptor.reference_image is not None and descriptor.reference_image.max_images < 1:
        raise RegistryError(f"Model '{descriptor.id}' must accept at least one reference image")


class ModelRegistry:
    """Read-only, ordered collection of model descriptors keyed by id."""

    def __init__(self, descriptors: Iterable[ModelDescriptor]):
        self._models: Tuple[ModelDescriptor, ...] = tuple(descriptors)
        by_id: Dict[str, ModelDescriptor] = {}
        for descriptor in self._models:
            validate_descriptor(descriptor)
            if descriptor.id in by_id:
                raise RegistryError(f"Duplicate model id: {descriptor.id}")
            by_id[descriptor.id] = descriptor
        self._by_id = by_id

    def lookup(self, model_id: str) -> Optional[ModelDescriptor]:
        return self._by_id.get(model_id)

    def get(self, model_id: str) -> ModelDescriptor:
        descriptor = self._by_id.get(model_id)
        if descriptor is None:
            logger.warning(f"Unknown model requested: {model_id!r}")
            raise ModelNotFoundError(model_id)
        return descriptor

    def list_by_capability(self, capability: Capability) -> List[ModelDescriptor]:
        """Models whose capability is `capability` or BOTH, in registry order."""
        return [m for m in self._models if m.capability in (capability, Capability.BOTH)]

    def list_models(self) -> List[ModelDescriptor]:
        return list(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._by_id


FLUX_RATIOS = ("21:9", "16:9", "4:3", "3:2", "1:1", "2:3", "3:4", "9:16", "9:21")
COMMON_RATIOS = ("16:9", "4:3", "1:1", "3:4", "9:16")

MODELS: Tuple[ModelDescriptor, ...] = (
    # --- Text-to-Image ---
    ModelDescriptor(
        id="flux-pro-ultra",
        name="FLUX Pro 1.1 Ultra",
        endpoint="fal-ai/flux-pro/v1.1-ultra",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        description="Best quality FLUX model. 4MP max resolution.",
        cost_per_image="$0.06",
    ),
    ModelDescriptor(
        id="flux-pro",
        name="FLUX Pro 1.1",
        endpoint="fal-ai/flux-pro/v1.1",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        description="High quality FLUX, slightly lower resolution than Ultra.",
        cost_per_image="$0.05",
    ),
    ModelDescriptor(
        id="flux-dev",
        name="FLUX Dev",
        endpoint="fal-ai/flux/dev",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        description="Good balance of quality and cost. 12B params.",
        cost_per_image="$0.025",
    ),
    ModelDescriptor(
        id="flux-schnell",
        name="FLUX Schnell",
        endpoint="fal-ai/flux/schnell",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        description="Ultra-fast (~1 second). Great for testing.",
        cost_per_image="$0.003",
    ),
    ModelDescriptor(
        id="nano-banana-pro",
        name="Nano Banana Pro",
        endpoint="fal-ai/nano-banana-pro",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        supports_negative_prompt=True,
        description="Google's latest. Excellent character consistency and typography.",
        cost_per_image="$0.15",
    ),
    ModelDescriptor(
        id="recraft-v3",
        name="Recraft V3",
        endpoint="fal-ai/recraft-v3",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=COMMON_RATIOS,
        default_aspect_ratio="16:9",
        size_encoding=SizeEncoding(
            field_name="image_size",
            ratio_to_value={
                "16:9": "landscape_16_9",
                "4:3": "landscape_4_3",
                "1:1": "square_hd",
                "3:4": "portrait_4_3",
                "9:16": "portrait_16_9",
            },
        ),
        description="Best for text/typography in images. Vector art support.",
        cost_per_image="$0.04",
    ),
    ModelDescriptor(
        id="grok-imagine",
        name="Grok Imagine Image",
        endpoint="xai/grok-imagine-image",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=COMMON_RATIOS,
        default_aspect_ratio="1:1",
        description="xAI's highly aesthetic image generation model.",
        cost_per_image="~$0.07",
    ),
    ModelDescriptor(
        id="flux-2-flex",
        name="FLUX 2 Flex",
        endpoint="fal-ai/flux-2-flex",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=FLUX_RATIOS,
        default_aspect_ratio="16:9",
        description="Latest FLUX 2. Adjustable steps, enhanced typography.",
        cost_per_image="~$0.05",
    ),
    ModelDescriptor(
        id="gpt-image-1",
        name="GPT Image 1",
        endpoint="fal-ai/gpt-image-1/text-to-image/byok",
        capability=Capability.TEXT_TO_IMAGE,
        supported_aspect_ratios=("1:1", "3:2", "2:3", "4:3", "3:4"),
        default_aspect_ratio="1:1",
        size_encoding=SizeEncoding(
            field_name="image_size",
            ratio_to_value={
                "1:1": "1024x1024",
                "3:2": "1536x1024",
                "2:3": "1024x1536",
                "4:3": "1536x1024",
                "3:4": "1024x1536",
            },
        ),
        description="OpenAI's image model. Fixed pixel sizes instead of ratios.",
        cost_per_image="BYOK",
    ),

    # --- Image-to-Image / Edit ---
    ModelDescriptor(
        id="flux-kontext",
        name="FLUX Kontext Pro",
        endpoint="fal-ai/flux-pro/kontext",
        capability=Capability.IMAGE_TO_IMAGE,
        supported_aspect_ratios=COMMON_RATIOS,
        default_aspect_ratio="1:1",
        reference_image=ReferenceImageSpec(field_name="image_url"),
        description="Reference image + prompt. Targeted edits and scene transformations.",
        cost_per_image="~$0.08",
    ),
    ModelDescriptor(
        id="nano-banana-pro-edit",
        name="Nano Banana Pro (Edit)",
        endpoint="fal-ai/nano-banana-pro/edit",
        capability=Capability.IMAGE_TO_IMAGE,
        supported_aspect_ratios=COMMON_RATIOS,
        default_aspect_ratio="1:1",
        supports_negative_prompt=True,
        reference_image=ReferenceImageSpec(field_name="image_urls", is_array_field=True, max_images=4),
        description="Google's model with image editing. Provide image + instructions.",
        cost_per_image="$0.15",
    ),
    ModelDescriptor(
        id="grok-imagine-edit",
        name="Grok Imagine (Edit)",
        endpoint="xai/grok-imagine-image/edit",
        capability=Capability.IMAGE_TO_IMAGE,
        supported_aspect_ratios=COMMON_RATIOS,
        default_aspect_ratio="1:1",
        reference_image=ReferenceImageSpec(field_name="image_url"),
        description="Edit images precisely with xAI's Grok Imagine model.",
        cost_per_image="~$0.07",
    ),
)


# Global registry instance
model_registry = ModelRegistry(MODELS)
