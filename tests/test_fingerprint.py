"""Tests for request fingerprints and the request model."""

import pytest

from offline_sync.exceptions import RestoreError
from offline_sync.queue import HttpMethod, PendingRequest, decode_fingerprint, fingerprint


class TestFingerprint:
    """Fingerprints are deterministic and sensitive to every input."""

    def test_same_input_same_fingerprint(self):
        """Repeated calls with identical arguments agree."""
        payload = {"title": "x", "body": "x", "userId": 1}
        first = fingerprint("/posts", "POST", payload)

        for _ in range(5):
            assert fingerprint("/posts", "POST", dict(payload)) == first

    def test_key_order_does_not_matter(self):
        """Canonicalization removes dict ordering differences."""
        a = fingerprint("/posts", "POST", {"title": "x", "body": "y", "userId": 1})
        b = fingerprint("/posts", "POST", {"userId": 1, "body": "y", "title": "x"})

        assert a == b

    def test_nested_key_order_does_not_matter(self):
        a = fingerprint("/posts", "PUT", {"meta": {"a": 1, "b": [1, 2]}, "id": 3})
        b = fingerprint("/posts", "PUT", {"id": 3, "meta": {"b": [1, 2], "a": 1}})

        assert a == b

    @pytest.mark.parametrize(
        "other",
        [
            ("/posts", "POST", {"title": "y", "body": "x", "userId": 1}),
            ("/posts/1", "POST", {"title": "x", "body": "x", "userId": 1}),
            ("/posts", "PUT", {"title": "x", "body": "x", "userId": 1}),
            ("/posts", "POST", {"title": "x", "body": "x", "userId": "1"}),
        ],
    )
    def test_differing_input_differing_fingerprint(self, other):
        """Changing url, method or payload changes the fingerprint."""
        base = fingerprint("/posts", "POST", {"title": "x", "body": "x", "userId": 1})

        assert fingerprint(*other) != base

    def test_list_order_matters(self):
        """Lists are data, not sets: reordering is a different request."""
        assert fingerprint("/p", "POST", [1, 2]) != fingerprint("/p", "POST", [2, 1])

    def test_enum_and_string_method_agree(self):
        assert fingerprint("/p", HttpMethod.PUT, {}) == fingerprint("/p", "PUT", {})

    def test_fingerprint_is_ascii(self):
        value = fingerprint("/p", "POST", {"title": "café ☕"})

        assert value.isascii()

    def test_decode_roundtrip(self):
        """The encoding is reversible."""
        value = fingerprint("/posts", "POST", {"title": "x", "userId": 1})

        assert decode_fingerprint(value) == {
            "url": "/posts",
            "method": "POST",
            "body": {"title": "x", "userId": 1},
        }

    def test_decode_rejects_garbage(self):
        with pytest.raises(ValueError):
            decode_fingerprint("not base64!!")

    def test_unserializable_payload_raises(self):
        with pytest.raises(TypeError):
            fingerprint("/p", "POST", {"when": object()})

    def test_nan_payload_raises(self):
        with pytest.raises(ValueError):
            fingerprint("/p", "POST", {"value": float("nan")})


class TestPendingRequest:
    """Creation and (de)serialization of queue entries."""

    def test_create_normalizes_method(self):
        request = PendingRequest.create("/posts", "post", {"title": "x"})

        assert request.method is HttpMethod.POST
        assert request.fingerprint == fingerprint("/posts", "POST", {"title": "x"})

    def test_create_rejects_other_methods(self):
        with pytest.raises(ValueError, match="Unsupported method"):
            PendingRequest.create("/posts", "DELETE", {})

    def test_create_copies_payload(self):
        """Mutating the caller's payload does not change the queued entry."""
        payload = {"title": "x", "tags": ["a"]}
        request = PendingRequest.create("/posts", "POST", payload)

        payload["title"] = "changed"
        payload["tags"].append("b")

        assert request.payload == {"title": "x", "tags": ["a"]}

    def test_dict_roundtrip(self):
        request = PendingRequest.create("/posts/1", "PUT", {"title": "x", "userId": 1})

        assert PendingRequest.from_dict(request.to_dict()) == request

    @pytest.mark.parametrize(
        "record",
        [
            "not a dict",
            {"url": "/p", "method": "POST", "payload": {}},
            {"url": 1, "method": "POST", "payload": {}, "fingerprint": "x"},
            {"url": "/p", "method": "PATCH", "payload": {}, "fingerprint": "x"},
        ],
    )
    def test_from_dict_rejects_malformed(self, record):
        with pytest.raises(RestoreError):
            PendingRequest.from_dict(record)
