"""Pydantic models for image generation requests and responses"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GenerationRequest(BaseModel):
    """Uniform generation request, independent of the provider model"""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_id: str = Field(alias="modelId", min_length=1)
    prompt: str = Field(min_length=1)
    aspect_ratio: Optional[str] = Field(default=None, alias="aspectRatio")
    reference_image_urls: List[str] = Field(default_factory=list, alias="referenceImageUrls")
    negative_prompt: Optional[str] = Field(default=None, alias="negativePrompt")

    @model_validator(mode="before")
    @classmethod
    def _accept_single_reference(cls, data: Any) -> Any:
        # Older clients send one `referenceImageUrl` instead of a list
        if isinstance(data, dict) and data.get("referenceImageUrl") and not data.get("referenceImageUrls"):
            data = dict(data)
            data["referenceImageUrls"] = [data.pop("referenceImageUrl")]
        return data

    @field_validator("model_id", "prompt", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("aspect_ratio", "negative_prompt", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProviderImage(BaseModel):
    """One entry of the provider's `images` list"""
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    content_type: Optional[str] = None


class GenerationResult(BaseModel):
    """Normalized generation result returned to callers"""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    image_url: str = Field(alias="imageUrl")
    width: Optional[int] = None
    height: Optional[int] = None
    seed: Optional[int] = None
    model_name: str = Field(alias="model")
    request_id: Optional[str] = Field(default=None, alias="requestId")


class UploadRequest(BaseModel):
    """Reference image upload sent as a base64 data URL"""
    model_config = ConfigDict(populate_by_name=True)

    data_url: str = Field(alias="dataUrl", min_length=1)


class UploadResult(BaseModel):
    """Durable URL of an uploaded reference image"""
    url: str


class ErrorResponse(BaseModel):
    """Uniform error shape: a non-empty message and an HTTP status code"""
    model_config = ConfigDict(populate_by_name=True)

    error: str
    status_code: int = Field(default=500, alias="statusCode")
