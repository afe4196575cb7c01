"""
Entity decoding.

Converts decoded JSON fragments into typed models, rejecting fragments whose
shape does not match the target so that a mismatched fragment never yields a
zero-valued entity.
"""

from __future__ import annotations
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .errors import DecodeError, ErrorCode, error_from_fragment

M = TypeVar("M", bound=BaseModel)


def decode_entity(model: Type[M], data: Any, require_id: bool = True) -> M:
    """
    Decode a single JSON object into a model.

    Args:
        model: Target model class
        data: Decoded JSON fragment
        require_id: Reject objects whose ``id`` is missing or zero

    Returns:
        Model instance

    Raises:
        APIError: If the fragment is a server error object
        DecodeError: If the fragment does not have the expected shape
    """
    error = error_from_fragment(data)
    if error is not None:
        raise error
    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object for {model.__name__}, got {type(data).__name__}",
            ErrorCode.UNEXPECTED_SHAPE,
        )
    try:
        entity = model.model_validate(data)
    except PydanticValidationError as e:
        raise DecodeError(f"Invalid {model.__name__}: {e.error_count()} validation error(s)", cause=e)
    if require_id and not getattr(entity, "id", None):
        raise DecodeError(
            f"Decoded {model.__name__} has no id",
            ErrorCode.UNEXPECTED_SHAPE,
            details={"keys": sorted(data)},
        )
    return entity


def decode_list(model: Type[M], data: Any, require_id: bool = True) -> List[M]:
    """
    Decode a JSON array into a list of models.

    An empty array decodes to an empty list.

    Raises:
        APIError: If the fragment is a server error object
        DecodeError: If the fragment is not an array or any element is invalid
    """
    error = error_from_fragment(data)
    if error is not None:
        raise error
    if not isinstance(data, list):
        raise DecodeError(
            f"Expected a JSON array of {model.__name__}, got {type(data).__name__}",
            ErrorCode.UNEXPECTED_SHAPE,
        )
    return [decode_entity(model, item, require_id) for item in data]


__all__ = [
    "decode_entity",
    "decode_list",
]
