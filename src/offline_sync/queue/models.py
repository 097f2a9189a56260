"""Data model for queued write requests."""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any

from offline_sync.exceptions import RestoreError
from offline_sync.queue.fingerprint import fingerprint


class HttpMethod(str, Enum):
    """Write methods accepted by the queue."""

    POST = "POST"
    PUT = "PUT"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Parse a method name case-insensitively.

        Raises:
            ValueError: If the method is not POST or PUT
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(
                f"Unsupported method {value!r}; expected one of "
                f"{', '.join(m.value for m in cls)}"
            ) from None


@dataclass(frozen=True)
class PendingRequest:
    """A write request waiting in the queue."""

    url: str
    method: HttpMethod
    payload: Any
    fingerprint: str

    @classmethod
    def create(cls, url: str, method: "str | HttpMethod", payload: Any) -> "PendingRequest":
        """Build a request and compute its fingerprint.

        The payload is deep-copied so later changes by the caller do not
        alter the queued entry.

        Raises:
            ValueError: If the method is unsupported or the payload has NaN
            TypeError: If the payload is not JSON-serializable
        """
        http_method = HttpMethod.parse(method)
        return cls(
            url=url,
            method=http_method,
            payload=copy.deepcopy(payload),
            fingerprint=fingerprint(url, http_method.value, payload),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for persistence."""
        return {
            "url": self.url,
            "method": self.method.value,
            "payload": self.payload,
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PendingRequest":
        """Deserialize a persisted record.

        Raises:
            RestoreError: If the record is malformed
        """
        if not isinstance(data, dict):
            raise RestoreError(f"Queue entry must be an object, got {type(data).__name__}")

        missing = {"url", "method", "payload", "fingerprint"} - set(data)
        if missing:
            raise RestoreError(f"Queue entry missing fields: {', '.join(sorted(missing))}")

        url = data["url"]
        entry_fingerprint = data["fingerprint"]
        if not isinstance(url, str) or not isinstance(entry_fingerprint, str):
            raise RestoreError("Queue entry url and fingerprint must be strings")

        try:
            method = HttpMethod.parse(data["method"])
        except ValueError as e:
            raise RestoreError(str(e)) from e

        return cls(
            url=url,
            method=method,
            payload=data["payload"],
            fingerprint=entry_fingerprint,
        )
