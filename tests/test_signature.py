import hashlib

import pytest

from bethub.services.core.signature import (
    SignatureEngine,
    canonical_params,
    sign,
    signing_string,
    verify,
)

SECRET = "s3cr3t"


class TestSign:
    def test_matches_manual_md5(self):
        params = {"b": "2", "a": "1"}
        expected = hashlib.md5(b"a=1&b=2&key=s3cr3t").hexdigest().upper()
        assert sign(params, SECRET) == expected

    def test_key_order_does_not_matter(self):
        assert sign({"x": "1", "y": "2", "a": "3"}, SECRET) == sign({"a": "3", "y": "2", "x": "1"}, SECRET)

    def test_uppercase_hex_128_bit(self):
        digest = sign({"a": "1"}, SECRET)
        assert len(digest) == 32
        assert digest == digest.upper()

    def test_secret_field_name_changes_digest(self):
        params = {"pid": "p", "method": "REGISTER"}
        assert signing_string(params, SECRET, "apikey").endswith("&apikey=s3cr3t")
        assert sign(params, SECRET, "apikey") != sign(params, SECRET, "key")

    def test_bytewise_ordering(self):
        # заглавные буквы идут раньше строчных
        assert signing_string({"b": "1", "B": "2"}, SECRET) == "B=2&b=1&key=s3cr3t"


class TestCanonicalParams:
    def test_drops_sign_and_empty_values(self):
        payload = {"a": "1", "b": "", "c": None, "sign": "XYZ", "d": 0}
        assert canonical_params(payload) == {"a": "1", "d": "0"}

    def test_declared_fields_only(self):
        payload = {"a": "1", "extra": "ignored"}
        assert canonical_params(payload, ["a", "missing"]) == {"a": "1"}


class TestVerify:
    params = {
        "mchOrderNo": "ORD-77",
        "amount": "10000",
        "status": "2",
        "payOrderId": "P-9",
    }

    def test_roundtrip(self):
        assert verify(self.params, SECRET, sign(self.params, SECRET))

    @pytest.mark.parametrize("field", ["mchOrderNo", "amount", "status", "payOrderId"])
    def test_single_character_flip_rejected(self, field):
        digest = sign(self.params, SECRET)
        tampered = dict(self.params)
        value = tampered[field]
        tampered[field] = value[:-1] + ("0" if value[-1] != "0" else "1")
        assert not verify(tampered, SECRET, digest)

    def test_case_sensitive(self):
        assert not verify(self.params, SECRET, sign(self.params, SECRET).lower())

    def test_wrong_secret_rejected(self):
        assert not verify(self.params, "other", sign(self.params, SECRET))

    @pytest.mark.parametrize("provided", [None, ""])
    def test_missing_signature_rejected(self, provided):
        assert not verify(self.params, SECRET, provided)

    def test_empty_optional_fields_ignored(self):
        digest = sign(self.params, SECRET)
        payload = {**self.params, "param1": "", "param2": None, "sign": digest}
        assert verify(payload, SECRET, digest)


class TestSignatureEngine:
    def test_signed_adds_sign_field(self):
        engine = SignatureEngine(SECRET, secret_field="apikey")
        payload = engine.signed({"pid": "P1", "ver": "1.0", "method": "REGISTER", "ip": ""})
        assert "ip" not in payload
        assert payload["sign"] == sign({"pid": "P1", "ver": "1.0", "method": "REGISTER"}, SECRET, "apikey")
        assert engine.verify(payload, payload["sign"])

    def test_repr_hides_secret(self):
        assert SECRET not in repr(SignatureEngine(SECRET))
