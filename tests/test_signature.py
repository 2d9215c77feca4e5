import base64
import hashlib
import hmac
import json

import pytest

from storefront.application.signature import (
    SignatureVerifier,
    canonical_body,
    sign_payment,
    verify_payment_signature,
)
from storefront.domain.errors import InternalError, InvalidSignatureError, UnauthorizedError

BODY = json.dumps({"id": 42, "title": "Grape Brewy"}).encode()

def test_canonical_body_is_compact_json():
    assert canonical_body(b'{ "a": 1,  "b": [1, 2] }') == b'{"a":1,"b":[1,2]}'
    assert canonical_body({"name": "Café"}) == '{"name":"Café"}'.encode("utf-8")

def test_canonical_body_keeps_non_json_bytes():
    assert canonical_body(b"not json") == b"not json"

def test_hex_signature_matches_hmac_sha256():
    verifier = SignatureVerifier("key", "secret")
    expected = hmac.new(b"secret", canonical_body(BODY), hashlib.sha256).hexdigest()
    assert verifier.sign(BODY) == expected

def test_base64_signature_encoding():
    verifier = SignatureVerifier("key", "secret")
    digest = hmac.new(b"secret", canonical_body(BODY), hashlib.sha256).digest()
    assert verifier.sign(BODY, encoding="base64") == base64.b64encode(digest).decode()

def test_correct_signature_verifies():
    verifier = SignatureVerifier("key", "secret")
    verifier.verify_webhook(BODY, "key", verifier.sign(BODY))

@pytest.mark.parametrize("api_key,signature", [(None, "sig"), ("key", None), ("", "")])
def test_missing_headers_are_rejected(api_key, signature):
    with pytest.raises(UnauthorizedError) as exc:
        SignatureVerifier("key", "secret").verify_webhook(BODY, api_key, signature)
    assert exc.value.message == "Missing authentication headers"

def test_wrong_api_key_is_rejected():
    verifier = SignatureVerifier("key", "secret")
    with pytest.raises(UnauthorizedError) as exc:
        verifier.verify_webhook(BODY, "other", verifier.sign(BODY))
    assert exc.value.message == "Invalid API key"

def test_altered_body_fails_verification():
    verifier = SignatureVerifier("key", "secret")
    signature = verifier.sign(BODY)
    tampered = BODY.replace(b"42", b"43")
    with pytest.raises(UnauthorizedError) as exc:
        verifier.verify_webhook(tampered, "key", signature)
    assert exc.value.message == "Invalid HMAC signature"

def test_signature_from_another_secret_fails():
    signature = SignatureVerifier("key", "other-secret").sign(BODY)
    with pytest.raises(UnauthorizedError):
        SignatureVerifier("key", "secret").verify_webhook(BODY, "key", signature)

def test_missing_secret_is_an_internal_error():
    with pytest.raises(InternalError):
        SignatureVerifier("key", "").verify_webhook(BODY, "key", "abc")

def test_payment_signature_round_trip():
    signature = sign_payment("order_1", "pay_1", "s3cret")
    verify_payment_signature("order_1", "pay_1", signature, "s3cret")
    with pytest.raises(InvalidSignatureError):
        verify_payment_signature("order_1", "pay_2", signature, "s3cret")

def test_payment_signature_uses_pipe_separator():
    expected = hmac.new(b"s3cret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert sign_payment("order_1", "pay_1", "s3cret") == expected
