"""Custom exceptions for image generation and uploads"""
from typing import Optional


class ImageGenError(Exception):
    """Base exception carrying a user-facing message and an HTTP status code"""
    default_status = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status
        super().__init__(self.message)

    def to_response(self):
        from imagegen.models.image_models import ErrorResponse
        return ErrorResponse(error=self.message, status_code=self.status_code)


class ValidationError(ImageGenError):
    """Caller-correctable request problem (missing prompt, bad input)"""
    default_status = 400


class ModelNotFoundError(ValidationError):
    """The requested model id is not in the registry"""

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Unknown model: {model_id}")


class UploadError(ImageGenError):
    """Storage service rejected or failed an upload"""
    pass


class ProviderError(ImageGenError):
    """Generation call to the inference provider failed"""
    pass


class EmptyResultError(ImageGenError):
    """Provider call succeeded but returned no images"""

    def __init__(self, message: str = "No images generated", status_code: Optional[int] = None):
        super().__init__(message, status_code)


class RegistryError(ImageGenError):
    """Model registry violates one of its invariants"""
    pass
