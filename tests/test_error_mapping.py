"""
Tests for provider error body normalization
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from imagegen.error_mapping import (
    GENERATION_FAILED,
    UPLOAD_FAILED,
    DetailList,
    DetailMessage,
    MessageField,
    UnrecognizedBody,
    classify_error_body,
    normalize_error,
)
from imagegen.exceptions.generation_exceptions import ProviderError


class TestClassifyErrorBody(unittest.TestCase):

    def test_variants(self):
        self.assertIsInstance(classify_error_body({"detail": "nope"}), DetailMessage)
        self.assertIsInstance(classify_error_body({"detail": [{"msg": "x"}]}), DetailList)
        self.assertIsInstance(classify_error_body({"message": "nope"}), MessageField)
        self.assertIsInstance(classify_error_body({"foo": 1}), UnrecognizedBody)
        self.assertIsInstance(classify_error_body(None), UnrecognizedBody)
        self.assertIsInstance(classify_error_body("plain text"), UnrecognizedBody)

    def test_json_string_body_is_decoded(self):
        body = classify_error_body('{"detail": "Unauthorized"}')
        self.assertEqual(body, DetailMessage("Unauthorized"))


class TestNormalizeError(unittest.TestCase):

    def test_validation_list_joined(self):
        err = normalize_error(422, {"detail": [{"msg": "prompt too long"}, {"msg": "bad ratio"}]})
        self.assertEqual(err.error, "prompt too long; bad ratio")
        self.assertEqual(err.status_code, 422)

    def test_validation_entry_without_msg_rendered_as_json(self):
        err = normalize_error(422, {"detail": [{"msg": "bad ratio"}, {"loc": ["body", "seed"]}]})
        self.assertEqual(err.error, 'bad ratio; {"loc":["body","seed"]}')

    def test_string_detail_used_verbatim(self):
        err = normalize_error(401, {"detail": "Invalid API key", "message": "ignored"})
        self.assertEqual(err.error, "Invalid API key")
        self.assertEqual(err.status_code, 401)

    def test_detail_wins_over_transport_error(self):
        err = normalize_error(400, {"detail": "bad input"}, RuntimeError("transport"))
        self.assertEqual(err.error, "bad input")

    def test_message_field_fallback(self):
        err = normalize_error(503, {"message": "Service unavailable"})
        self.assertEqual(err.error, "Service unavailable")

    def test_transport_error_fallback(self):
        err = normalize_error(None, None, ConnectionError("connection reset"))
        self.assertEqual(err.error, "connection reset")
        self.assertEqual(err.status_code, 500)

    def test_unrecognized_body_defaults(self):
        err = normalize_error(None, {"weird": True})
        self.assertEqual(err.error, GENERATION_FAILED)
        self.assertEqual(err.status_code, 500)

    def test_upload_default(self):
        err = normalize_error(None, None, default=UPLOAD_FAILED)
        self.assertEqual(err.error, "Upload failed")

    def test_empty_transport_message_falls_to_default(self):
        err = normalize_error(502, "", RuntimeError(""))
        self.assertEqual(err.error, GENERATION_FAILED)
        self.assertEqual(err.status_code, 502)

    def test_non_numeric_status_defaults(self):
        self.assertEqual(normalize_error("teapot").status_code, 500)
        self.assertEqual(normalize_error(True).status_code, 500)
        self.assertEqual(normalize_error("429").status_code, 429)

    def test_exception_to_response(self):
        response = ProviderError("quota exceeded", 429).to_response()
        self.assertEqual(response.model_dump(by_alias=True), {"error": "quota exceeded", "statusCode": 429})


if __name__ == '__main__':
    unittest.main()
