"""
Imagegen core

Model registry, request normalization and the fal.ai client behind the proxy.

Usage:
    from imagegen import ImageGenerationService, AsyncFalClient
    service = ImageGenerationService(AsyncFalClient())
    result = await service.generate("flux-dev", "a lighthouse at dusk", aspect_ratio="16:9")
"""

__version__ = "1.0.0"

from .clients.fal_client import AsyncFalClient
from .registry import Capability, ModelDescriptor, ModelRegistry, model_registry
from .service import ImageGenerationService

__all__ = ['AsyncFalClient', 'Capability', 'ModelDescriptor', 'ModelRegistry', 'model_registry',
           'ImageGenerationService']
