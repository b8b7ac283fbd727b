"""Tests for deterministic hashing helpers."""

from folio.core.hashing import canonical_json, compute_content_hash, fingerprint


class TestHashing:
    def test_content_hash_is_full_sha256(self):
        assert compute_content_hash("") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_canonical_json_sorts_keys(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_canonical_json_keeps_unicode(self):
        assert canonical_json({"t": "café"}) == '{"t":"café"}'

    def test_fingerprint_ignores_key_order(self):
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})
