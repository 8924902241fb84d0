"""HS256 identity tokens: ``create_token`` and ``decode_token``.

The login service upstream issues tokens; Ringside only verifies them.
``create_token`` is kept for tests and operator scripts. Claims are
``sub`` (user id), ``role``, ``iat``, ``exp`` and ``iss``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "ringside"
SUPPORTED_ALGORITHM = "HS256"

_HEADER = {"alg": SUPPORTED_ALGORITHM, "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    role: str
    exp: datetime


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    expires_hours: int = 24,
) -> str:
    """Sign a token for *subject*. A negative *expires_hours* yields an expired token."""
    if algorithm != SUPPORTED_ALGORITHM:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    claims = {
        "sub": subject,
        "role": role,
        "iat": issued,
        "exp": issued + int(expires_hours * 3600),
        "iss": ISSUER,
    }
    signing_input = _segment(_HEADER) + b"." + _segment(claims)
    return (signing_input + b"." + _b64url(_sign(signing_input, secret))).decode("ascii")


def decode_token(token: str, secret: str, algorithm: str = SUPPORTED_ALGORITHM) -> Optional[TokenPayload]:
    """Verify *token* and return its payload, or ``None`` if it is unusable.

    Unusable means malformed, wrongly signed, expired, issued by someone
    else, or a non-HS256 algorithm was requested.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        return None

    try:
        header_b64, claims_b64, signature_b64 = token.encode("ascii").split(b".")
        signature = _unb64url(signature_b64)
        if not hmac.compare_digest(_sign(header_b64 + b"." + claims_b64, secret), signature):
            return None
        header = json.loads(_unb64url(header_b64))
        claims = json.loads(_unb64url(claims_b64))
    except (ValueError, UnicodeEncodeError):
        # Covers wrong segment count, bad base64 and bad JSON.
        return None

    if header.get("alg") != SUPPORTED_ALGORITHM or claims.get("iss") != ISSUER:
        return None

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or time.time() > exp:
        return None

    return TokenPayload(
        sub=str(claims.get("sub", "")),
        role=str(claims.get("role", "")),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def _segment(obj: dict) -> bytes:
    return _b64url(json.dumps(obj, separators=(",", ":")).encode())


def _b64url(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _unb64url(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
