"""Translate a uniform GenerationRequest into a provider job payload"""
from typing import Any, Dict

from imagegen.models.image_models import GenerationRequest
from imagegen.registry import ModelDescriptor

# Fixed by the transport contract
OUTPUT_FORMAT = "jpeg"
NUM_IMAGES = 1


def build_payload(request: GenerationRequest, descriptor: ModelDescriptor) -> Dict[str, Any]:
    """
    Build the job payload for `descriptor` from `request`.

    The descriptor alone decides field names and shapes. Reference images
    are only sent when the descriptor names a reference field, so images
    supplied to a text-only model are dropped rather than rejected. The
    caller resolves the descriptor and truncates reference images to
    `max_images` beforehand.
    """
    payload: Dict[str, Any] = {"prompt": request.prompt}

    if request.aspect_ratio:
        if descriptor.size_encoding is not None:
            payload[descriptor.size_encoding.field_name] = descriptor.size_encoding.encode(request.aspect_ratio)
        else:
            payload["aspect_ratio"] = request.aspect_ratio

    reference = descriptor.reference_image
    if request.reference_image_urls and reference is not None:
        if reference.is_array_field:
            payload[reference.field_name] = list(request.reference_image_urls)
        else:
            # Scalar fields take exactly one reference
            payload[reference.field_name] = request.reference_image_urls[0]

    # Never send an empty negative prompt
    if request.negative_prompt and descriptor.supports_negative_prompt:
        payload["negative_prompt"] = request.negative_prompt

    payload["output_format"] = OUTPUT_FORMAT
    payload["num_images"] = NUM_IMAGES
    return payload
