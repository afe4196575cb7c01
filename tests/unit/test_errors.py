"""
Unit tests for the error model and entity decoding.
"""

import json

import pytest

from pivotal_client.models import Comment, Story
from pivotal_client.runtime.codec import decode_entity, decode_list
from pivotal_client.runtime.errors import (
    APIError,
    DecodeError,
    ErrorCode,
    ErrorPayload,
    NotFoundError,
    TrackerError,
    TransportError,
    TransportTimeoutError,
    decode_error_payload,
    error_from_fragment,
    error_from_response,
)


class TestErrorHierarchy:
    """Tests for the exception classes."""

    @pytest.mark.parametrize("error", [
        TransportError("down"),
        TransportTimeoutError("slow"),
        APIError("bad", status_code=400),
        DecodeError("garbled"),
        NotFoundError(),
    ])
    def test_all_are_tracker_errors(self, error):
        assert isinstance(error, TrackerError)

    def test_codes(self):
        assert TransportError("x").code == ErrorCode.NETWORK_ERROR
        assert TransportTimeoutError("x").code == ErrorCode.TIMEOUT
        assert APIError("x", status_code=403).code == ErrorCode.API_ERROR
        assert APIError("x", status_code=503).code == ErrorCode.SERVER_ERROR
        assert DecodeError("x").code == ErrorCode.DECODE_ERROR
        assert NotFoundError().code == ErrorCode.NOT_FOUND

    def test_str_and_dict(self):
        cause = ValueError("boom")
        error = TrackerError("failed", ErrorCode.INTERNAL, details={"url": "me"}, cause=cause)

        assert str(error) == "[INTERNAL] failed | Details: {'url': 'me'} | Caused by: boom"
        assert error.to_dict() == {
            "code": 2,
            "message": "failed",
            "details": {"url": "me"},
            "cause": "boom",
        }


class TestErrorPayload:
    """Tests for server error bodies."""

    def test_decode_from_bytes(self):
        body = json.dumps({
            "code": "invalid_parameter",
            "kind": "error",
            "error": "One or more request parameters was missing or invalid.",
            "general_problem": "this endpoint requires at least one of the following parameters: filter",
            "validation_errors": [{"field": "filter", "problem": "is required"}],
        }).encode("utf-8")

        payload = decode_error_payload(body)

        assert payload.code == "invalid_parameter"
        assert payload.validation_errors[0].field == "filter"
        assert "filter: is required" in payload.describe()

    @pytest.mark.parametrize("data", [b"not json", "[1, 2]", 42, None])
    def test_not_an_error_body(self, data):
        assert decode_error_payload(data) is None

    def test_describe_falls_back_to_code(self):
        assert ErrorPayload(code="unauthorized").describe() == "unauthorized"
        assert ErrorPayload().describe() == "unknown error"

    def test_error_from_response_with_payload(self):
        content = b'{"code": "unauthenticated", "kind": "error", "error": "Invalid authentication credentials were presented."}'
        error = error_from_response(403, content, "Forbidden")
        assert error.status_code == 403
        assert error.error_code == "unauthenticated"
        assert error.message == "HTTP 403: Invalid authentication credentials were presented."

    def test_error_from_response_without_body(self):
        error = error_from_response(500, b"", "Internal Server Error")
        assert error.payload is None
        assert error.error_code is None
        assert error.message == "HTTP 500: Internal Server Error"

    def test_error_from_fragment(self):
        error = error_from_fragment({"kind": "error", "code": "unfound_resource", "error": "gone"})
        assert isinstance(error, APIError)
        assert error.status_code is None
        assert error.message == "gone"

    @pytest.mark.parametrize("fragment", [{"kind": "story", "id": 1}, [], "error", None])
    def test_regular_fragments(self, fragment):
        assert error_from_fragment(fragment) is None


class TestDecode:
    """Tests for decoding fragments into entities."""

    def test_entity(self):
        story = decode_entity(Story, {"id": 3, "name": "Ship it", "unknown_field": True})
        assert story.id == 3
        assert story.name == "Ship it"

    def test_entity_without_id(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_entity(Story, {"name": "no id"})
        assert exc_info.value.code == ErrorCode.UNEXPECTED_SHAPE

    def test_entity_without_id_allowed(self):
        assert decode_entity(Story, {"name": "draft"}, require_id=False).id == 0

    def test_entity_from_array(self):
        with pytest.raises(DecodeError):
            decode_entity(Story, [{"id": 3}])

    def test_entity_with_wrong_field_types(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_entity(Story, {"id": "not-a-number"})
        assert exc_info.value.cause is not None

    def test_entity_error_object(self):
        with pytest.raises(APIError):
            decode_entity(Story, {"kind": "error", "code": "unfound_resource"})

    def test_list(self):
        comments = decode_list(Comment, [{"id": 1, "story_id": 3}, {"id": 2, "story_id": 3}])
        assert [c.id for c in comments] == [1, 2]

    def test_empty_list(self):
        assert decode_list(Comment, []) == []

    def test_list_from_object(self):
        with pytest.raises(DecodeError):
            decode_list(Comment, {"id": 1})

    def test_list_with_bad_element(self):
        with pytest.raises(DecodeError):
            decode_list(Comment, [{"id": 1}, "text"])
