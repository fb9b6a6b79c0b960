"""Decoders turning one encoded batch into an identifier -> data mapping."""

import json
from collections.abc import Mapping
from typing import Any, Callable, Union

from .models import BatchDecodeError

BatchDecoder = Callable[[Any], Mapping[str, Any]]


def decode_json_batch(raw: Union[str, bytes, bytearray, Mapping]) -> dict[str, Any]:
    """
    Decode a JSON object such as ``{"1": "hello", "2": [1, 2]}``.

    Already-decoded mappings are passed through as a dict.

    Raises:
        BatchDecodeError: If the text is not JSON or not a JSON object
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, (str, bytes, bytearray)):
        raise BatchDecodeError(f"Cannot decode batch of type {type(raw).__name__}", raw)

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise BatchDecodeError(f"Invalid JSON batch: {e}", raw) from e

    if not isinstance(decoded, dict):
        raise BatchDecodeError(
            f"Batch must be a JSON object, got {type(decoded).__name__}", raw
        )
    return decoded
