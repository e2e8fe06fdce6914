from __future__ import annotations

import time

import jwt
import pytest

from qualityedu.core.errors import (
    ConfigError,
    InvalidSignature,
    MalformedToken,
    TokenError,
    TokenExpired,
)
from qualityedu.services.token_service import ALGORITHM, TokenCodec

SECRET = "unit-test-secret-with-at-least-32-bytes"
NOW = 1_700_000_000


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET, ttl_seconds=3600)


def _issue(codec: TokenCodec, **overrides: object) -> str:
    kwargs: dict = {
        "subject": "ana@example.com",
        "principal_id": "p-1",
        "principal_type": "STUDENT",
    }
    kwargs.update(overrides)
    return codec.issue(**kwargs)


def test_issue_then_decode_returns_claims(codec: TokenCodec) -> None:
    now = int(time.time())
    token = _issue(codec, display={"firstName": "Ana"}, now=now)
    claims = codec.decode(token)
    assert claims.subject == "ana@example.com"
    assert claims.principal_id == "p-1"
    assert claims.principal_type == "STUDENT"
    assert claims.issued_at == now
    assert claims.expires_at == now + 3600
    assert claims.get("firstName") == "Ana"
    assert claims.get("missing", "fallback") == "fallback"


def test_display_claims_cannot_override_reserved(codec: TokenCodec) -> None:
    token = _issue(codec, display={"sub": "evil@example.com", "principalType": "SUPERVISOR"})
    claims = codec.decode(token)
    assert claims.subject == "ana@example.com"
    assert claims.principal_type == "STUDENT"


def test_issue_uses_hs256(codec: TokenCodec) -> None:
    header = jwt.get_unverified_header(_issue(codec))
    assert header["alg"] == ALGORITHM == "HS256"


def test_expired_token_raises_token_expired(codec: TokenCodec) -> None:
    token = _issue(codec, ttl=10, now=NOW)
    with pytest.raises(TokenExpired):
        codec.decode(token)


def test_wrong_key_raises_invalid_signature(codec: TokenCodec) -> None:
    other = TokenCodec("a-completely-different-secret-of-32-bytes", ttl_seconds=60)
    with pytest.raises(InvalidSignature):
        codec.decode(_issue(other))


@pytest.mark.parametrize("token", ["", "abc", "a.b.c", "only.two"])
def test_garbage_raises_malformed(codec: TokenCodec, token: str) -> None:
    with pytest.raises(MalformedToken):
        codec.decode(token)


def test_alg_none_is_rejected(codec: TokenCodec) -> None:
    now = int(time.time())
    token = jwt.encode(
        {"sub": "x@example.com", "iat": now, "exp": now + 60}, key=None, algorithm="none"
    )
    with pytest.raises(TokenError):
        codec.decode(token)


def test_missing_sub_is_malformed(codec: TokenCodec) -> None:
    now = int(time.time())
    token = jwt.encode({"iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(MalformedToken):
        codec.decode(token)


def test_absent_principal_claims_decode_as_none(codec: TokenCodec) -> None:
    now = int(time.time())
    token = jwt.encode({"sub": "x@example.com", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    claims = codec.decode(token)
    assert claims.principal_id is None
    assert claims.principal_type is None


def test_is_valid(codec: TokenCodec) -> None:
    assert codec.is_valid(_issue(codec)) is True
    assert codec.is_valid("nope") is False


def test_is_valid_false_once_expired(codec: TokenCodec) -> None:
    assert codec.is_valid(_issue(codec, ttl=10, now=NOW)) is False


def test_non_positive_ttl_on_issue_rejected(codec: TokenCodec) -> None:
    with pytest.raises(ValueError):
        _issue(codec, ttl=0)


def test_codec_rejects_short_secret() -> None:
    with pytest.raises(ConfigError):
        TokenCodec("short", ttl_seconds=60)


def test_codec_rejects_non_positive_ttl() -> None:
    with pytest.raises(ConfigError):
        TokenCodec(SECRET, ttl_seconds=0)
