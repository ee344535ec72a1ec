"""Reference image uploads: data URL decoding and concurrent upload tracking"""
import asyncio
import base64
import binascii
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from imagegen.exceptions.generation_exceptions import ImageGenError, UploadError, ValidationError
from utils.logging_config import get_logger

logger = get_logger(__name__)

DATA_URL_RE = re.compile(r"^data:(.+?);base64,(.+)$", re.DOTALL)

Uploader = Callable[[bytes, str], Awaitable[str]]


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """Split a `data:<mime>;base64,<payload>` URL into (bytes, mime type)."""
    if not data_url or not isinstance(data_url, str):
        raise ValidationError("dataUrl is required")

    match = DATA_URL_RE.match(data_url.strip())
    if not match:
        raise ValidationError("Invalid data URL format")

    mime_type, encoded = match.group(1), match.group(2)
    try:
        data = base64.b64decode(encoded, validate=False)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid data URL format")
    return data, mime_type


class UploadState(Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    FAILED = "failed"


@dataclass
class UploadedImage:
    """One tracked reference image; `id` is assigned at creation and never changes."""
    id: str
    preview: Optional[str] = None
    durable_url: Optional[str] = None
    error: Optional[str] = None
    state: UploadState = UploadState.PENDING

    @property
    def uploading(self) -> bool:
        return self.state is UploadState.PENDING


@dataclass
class _Entry:
    image: UploadedImage
    task: Optional["asyncio.Task[None]"] = field(default=None, repr=False)


class UploadTracker:
    """
    Tracks concurrent reference image uploads for one generation form.

    Entries are keyed by an id assigned when the upload starts, so two
    uploads of identical files stay distinct. A completion only lands on its
    own entry, and only while that entry is still tracked and pending: an
    upload removed before it finishes cannot reappear, and one failed upload
    leaves its siblings untouched.
    """

    def __init__(self, uploader: Uploader, max_images: int = 1):
        self._uploader = uploader
        self.max_images = max_images
        self._entries: Dict[str, _Entry] = {}

    def start(self, data: bytes, mime_type: str, preview: Optional[str] = None) -> UploadedImage:
        if len(self._entries) >= self.max_images:
            raise ValidationError(f"At most {self.max_images} reference image(s) allowed")

        image = UploadedImage(id=uuid.uuid4().hex, preview=preview)
        entry = _Entry(image=image)
        self._entries[image.id] = entry
        entry.task = asyncio.ensure_future(self._run(image.id, data, mime_type))
        logger.debug(f"Upload {image.id} started ({mime_type}, {len(data)} bytes)")
        return image

    async def _run(self, image_id: str, data: bytes, mime_type: str) -> None:
        try:
            url = await self._uploader(data, mime_type)
        except asyncio.CancelledError:
            logger.debug(f"Upload {image_id} cancelled")
            raise
        except ImageGenError as e:
            self._fail(image_id, e.message)
        except Exception as e:
            logger.exception(f"Upload {image_id} crashed")
            self._fail(image_id, str(e) or "Upload failed")
        else:
            self._complete(image_id, url)

    def _pending_entry(self, image_id: str) -> Optional[_Entry]:
        entry = self._entries.get(image_id)
        if entry is None or entry.image.state is not UploadState.PENDING:
            return None
        return entry

    def _complete(self, image_id: str, url: str) -> None:
        entry = self._pending_entry(image_id)
        if entry is None:
            logger.debug(f"Dropping late result for removed upload {image_id}")
            return
        entry.image.durable_url = url
        entry.image.state = UploadState.UPLOADED

    def _fail(self, image_id: str, message: str) -> None:
        entry = self._pending_entry(image_id)
        if entry is None:
            return
        logger.warning(f"Upload {image_id} failed: {message}")
        entry.image.error = message
        entry.image.state = UploadState.FAILED

    def remove(self, image_id: str) -> bool:
        """Stop tracking an image, aborting its upload if still in flight."""
        entry = self._entries.pop(image_id, None)
        if entry is None:
            return False
        if entry.task is not None and not entry.task.done():
            entry.task.cancel()
        return True

    def get(self, image_id: str) -> Optional[UploadedImage]:
        entry = self._entries.get(image_id)
        return entry.image if entry else None

    @property
    def images(self) -> List[UploadedImage]:
        return [entry.image for entry in self._entries.values()]

    @property
    def uploading(self) -> bool:
        return any(image.uploading for image in self.images)

    def ready_urls(self) -> List[str]:
        """Durable URLs of finished uploads, in the order they were started."""
        return [image.durable_url for image in self.images
                if image.state is UploadState.UPLOADED and image.durable_url]

    async def wait(self) -> None:
        """Wait for every in-flight upload; failures stay on their own entries."""
        tasks = [entry.task for entry in self._entries.values()
                 if entry.task is not None and not entry.task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


async def upload_data_url(uploader: Uploader, data_url: str) -> str:
    """Decode a data URL and upload its bytes, returning the durable URL."""
    data, mime_type = decode_data_url(data_url)
    if not data:
        raise UploadError("Empty upload", 400)
    return await uploader(data, mime_type)
