"""
Tests for data URL decoding and concurrent upload tracking
"""

import asyncio
import base64
import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from imagegen.exceptions.generation_exceptions import UploadError, ValidationError
from imagegen.uploads import UploadState, UploadTracker, decode_data_url, upload_data_url


class ControlledUploader:
    """Uploader whose calls finish only when the test resolves them."""

    def __init__(self):
        self.calls = []

    async def __call__(self, data: bytes, mime_type: str) -> str:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((data, mime_type, future))
        return await future

    def resolve(self, index: int, url: str) -> None:
        self.calls[index][2].set_result(url)

    def reject(self, index: int, error: Exception) -> None:
        self.calls[index][2].set_exception(error)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestDecodeDataUrl(unittest.TestCase):

    def test_decodes_base64_payload(self):
        raw = b"\xff\xd8\xffjpeg"
        data, mime = decode_data_url("data:image/jpeg;base64," + base64.b64encode(raw).decode())
        self.assertEqual(data, raw)
        self.assertEqual(mime, "image/jpeg")

    def test_rejects_malformed_urls(self):
        for bad in ("", "not a data url", "data:image/png,rawbytes", "https://example.com/a.png"):
            with self.subTest(bad=bad):
                with self.assertRaises(ValidationError):
                    decode_data_url(bad)

    def test_rejects_non_string(self):
        with self.assertRaises(ValidationError):
            decode_data_url(None)


class TestUploadDataUrl(unittest.IsolatedAsyncioTestCase):

    async def test_uploads_decoded_bytes(self):
        seen = []

        async def uploader(data, mime_type):
            seen.append((data, mime_type))
            return "https://v3.fal.media/files/x.png"

        url = await upload_data_url(uploader, "data:image/png;base64," + base64.b64encode(b"png").decode())
        self.assertEqual(url, "https://v3.fal.media/files/x.png")
        self.assertEqual(seen, [(b"png", "image/png")])


class TestUploadTracker(unittest.IsolatedAsyncioTestCase):

    async def test_identical_files_tracked_separately(self):
        uploader = ControlledUploader()
        tracker = UploadTracker(uploader, max_images=2)

        first = tracker.start(b"same", "image/png", preview="blob:1")
        second = tracker.start(b"same", "image/png", preview="blob:1")
        self.assertNotEqual(first.id, second.id)
        self.assertTrue(tracker.uploading)

        await settle()
        uploader.resolve(1, "https://cdn/second.png")
        uploader.resolve(0, "https://cdn/first.png")
        await tracker.wait()

        self.assertEqual(tracker.get(first.id).durable_url, "https://cdn/first.png")
        self.assertEqual(tracker.get(second.id).durable_url, "https://cdn/second.png")
        self.assertEqual(tracker.ready_urls(), ["https://cdn/first.png", "https://cdn/second.png"])
        self.assertFalse(tracker.uploading)

    async def test_removed_upload_does_not_reappear(self):
        uploader = ControlledUploader()
        tracker = UploadTracker(uploader, max_images=2)

        first = tracker.start(b"one", "image/png")
        second = tracker.start(b"two", "image/png")
        await settle()

        self.assertTrue(tracker.remove(first.id))
        uploader.resolve(1, "https://cdn/two.png")
        await tracker.wait()
        await settle()

        self.assertEqual([image.id for image in tracker.images], [second.id])
        self.assertIsNone(tracker.get(first.id))
        self.assertEqual(tracker.ready_urls(), ["https://cdn/two.png"])
        # The first upload was aborted in flight
        self.assertTrue(uploader.calls[0][2].cancelled())

    async def test_late_completion_after_removal_is_ignored(self):
        tracker = UploadTracker(ControlledUploader(), max_images=2)
        first = tracker.start(b"one", "image/png")
        second = tracker.start(b"two", "image/png")
        tracker.remove(first.id)

        # A completion that slipped past cancellation must not resurrect the entry
        tracker._complete(first.id, "https://cdn/one.png")

        self.assertIsNone(tracker.get(first.id))
        self.assertEqual([image.id for image in tracker.images], [second.id])
        tracker.remove(second.id)

    async def test_one_failure_leaves_siblings_intact(self):
        uploader = ControlledUploader()
        tracker = UploadTracker(uploader, max_images=3)

        a = tracker.start(b"a", "image/png")
        b = tracker.start(b"b", "image/png")
        c = tracker.start(b"c", "image/png")
        await settle()

        uploader.reject(1, UploadError("File too large", 413))
        uploader.resolve(0, "https://cdn/a.png")
        uploader.resolve(2, "https://cdn/c.png")
        await tracker.wait()

        self.assertEqual(tracker.get(a.id).state, UploadState.UPLOADED)
        self.assertEqual(tracker.get(b.id).state, UploadState.FAILED)
        self.assertEqual(tracker.get(b.id).error, "File too large")
        self.assertEqual(tracker.get(c.id).state, UploadState.UPLOADED)
        self.assertEqual(tracker.ready_urls(), ["https://cdn/a.png", "https://cdn/c.png"])

    async def test_state_never_moves_backward(self):
        uploader = ControlledUploader()
        tracker = UploadTracker(uploader, max_images=1)
        image = tracker.start(b"a", "image/png")
        await settle()
        uploader.resolve(0, "https://cdn/a.png")
        await tracker.wait()

        tracker._fail(image.id, "late failure")
        self.assertEqual(tracker.get(image.id).state, UploadState.UPLOADED)
        self.assertIsNone(tracker.get(image.id).error)

    async def test_max_images_enforced(self):
        tracker = UploadTracker(ControlledUploader(), max_images=1)
        image = tracker.start(b"a", "image/png")
        with self.assertRaises(ValidationError):
            tracker.start(b"b", "image/png")

        tracker.remove(image.id)
        replacement = tracker.start(b"b", "image/png")
        self.assertEqual([i.id for i in tracker.images], [replacement.id])
        tracker.remove(replacement.id)

    async def test_remove_unknown_id(self):
        tracker = UploadTracker(ControlledUploader())
        self.assertFalse(tracker.remove("missing"))


if __name__ == '__main__':
    unittest.main()
