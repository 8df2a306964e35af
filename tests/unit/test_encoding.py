"""Tests for request encoding and validation."""

import json

import pytest
from hypothesis import given

from logship.encoding import (
    CONTENT_TYPE_RECORD,
    CONTENT_TYPE_TEXT,
    LogRequest,
    encode_message,
    encode_record,
    encode_text,
    validate,
)
from logship.errors import EncodingError, ValidationError
from tests.strategies import messages, records

URL = "https://logs-01.loggly.com/inputs/abc123"


class TestValidate:
    """Tests for send preconditions."""

    def test_valid_message_and_token(self):
        validate("hello", "abc123")  # Should not raise

    def test_none_message_rejected(self):
        with pytest.raises(ValidationError, match="Invalid parameter"):
            validate(None, "abc123")

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_rejected(self, token):
        with pytest.raises(ValidationError, match="token required"):
            validate("hello", token)

    def test_empty_string_message_is_allowed(self):
        """Only a missing message is invalid; an empty string is a message."""
        validate("", "abc123")


class TestEncodeText:
    """Tests for plain-text encoding."""

    def test_text_request(self):
        request = encode_text("hello", URL)

        assert request.method == "POST"
        assert request.url == URL
        assert request.body == b"hello"
        assert request.headers == {"Content-Type": "text/plain"}

    def test_text_is_utf8(self):
        request = encode_text("héllo ✓", URL)
        assert request.body == "héllo ✓".encode()

    @given(message=messages)
    def test_body_is_utf8_of_message(self, message):
        request = encode_message(message, URL)
        assert request.body == message.encode("utf-8")
        assert request.content_type == CONTENT_TYPE_TEXT


class TestEncodeRecord:
    """Tests for structured record encoding."""

    def test_record_request(self):
        request = encode_record({"level": "error", "msg": "boom"}, URL)

        assert request.body == b'{"level":"error","msg":"boom"}'
        assert request.headers == {"Content-Type": "application/x-www-form-urlencoded"}

    def test_cyclic_record_raises_encoding_error(self):
        record = {"a": 1}
        record["self"] = record

        with pytest.raises(EncodingError) as exc_info:
            encode_record(record, URL)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_non_serializable_value_raises_encoding_error(self):
        with pytest.raises(EncodingError, match="not JSON serializable"):
            encode_record({"when": object()}, URL)

    @given(record=records)
    def test_body_decodes_to_record(self, record):
        request = encode_message(record, URL)
        assert json.loads(request.body.decode("utf-8")) == record
        assert request.content_type == CONTENT_TYPE_RECORD


class TestEncodeMessage:
    """Tests for payload-kind dispatch."""

    def test_unsupported_type_rejected(self):
        with pytest.raises(ValidationError, match="Unsupported message type"):
            encode_message(42, URL)

    def test_requests_compare_by_value(self):
        """The same input always produces an identical request."""
        assert encode_message("x", URL) == encode_message("x", URL)
        assert isinstance(encode_message({"a": 1}, URL), LogRequest)
