"""Deterministic request fingerprints used for offline dedup.

The fingerprint is the base64 encoding of a canonical JSON document built
from url, method and payload. It is reversible, not a hash: dedup only needs
deterministic equality, and being able to decode an entry is handy when
inspecting a stored queue.
"""

import base64
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize a value so that equal data always yields equal text.

    Keys are sorted and separators are compact, so dict ordering and
    formatting differences do not leak into the result.

    Raises:
        TypeError: If the value is not JSON-serializable
        ValueError: If the value contains NaN or infinity
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def fingerprint(url: str, method: str, payload: Any) -> str:
    """Compute the fingerprint of a pending request.

    Args:
        url: Target endpoint
        method: HTTP method (plain string or HttpMethod)
        payload: JSON-serializable request body

    Returns:
        ASCII fingerprint string, identical for identical inputs
    """
    document = canonical_json({"url": url, "method": str(method), "body": payload})
    return base64.b64encode(document.encode("utf-8")).decode("ascii")


def decode_fingerprint(value: str) -> dict[str, Any]:
    """Recover the canonical ``{url, method, body}`` document of a fingerprint.

    Raises:
        ValueError: If the value is not a fingerprint produced by this module
    """
    try:
        document = json.loads(base64.b64decode(value, validate=True).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"Not a request fingerprint: {e}") from e

    if not isinstance(document, dict) or set(document) != {"url", "method", "body"}:
        raise ValueError("Not a request fingerprint: unexpected document shape")
    return document
