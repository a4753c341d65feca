"""JWT access token creation and validation (ES256).

This service only validates bearer tokens; issuing them belongs to the
identity provider, whose EC public key is read from JWT_PUBLIC_KEY_FILE.
Without that file an ephemeral key pair is generated on import, and
``create_access_token`` signs with it for local development
(scripts/demo_grading_flow.py) and for tests.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)


def load_public_key(path: str) -> ec.EllipticCurvePublicKey:
    """Read the identity provider's PEM-encoded P-256 public key."""
    key = serialization.load_pem_public_key(Path(path).read_bytes())
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError(f"{path} does not hold an EC public key")
    return key


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
_private_key: ec.EllipticCurvePrivateKey | None
if SETTINGS.jwt_public_key_file:
    _private_key = None
    _public_key = load_public_key(SETTINGS.jwt_public_key_file)
else:
    if SETTINGS.is_prod:
        logger.warning(
            "JWT_PUBLIC_KEY_FILE is not set; only locally minted tokens will validate"
        )
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "lms-identity"
AUDIENCE = "lms-service"
ACCESS_TOKEN_TTL_MIN = 15

DEFAULT_ROLES = ["staff"]


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    org_id: str | None = None,
) -> str:
    """Build and sign a JWT access token.

    Claims: sub, iss, aud, exp, iat, jti, roles and (for tenant members)
    org_id.
    """
    if _private_key is None:
        raise RuntimeError("Token issuance is disabled when JWT_PUBLIC_KEY_FILE is set")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or list(DEFAULT_ROLES),
    }
    if org_id is not None:
        payload["org_id"] = org_id
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256 to prevent alg:none and alg-switching attacks.
    Validates exp, iss, and aud automatically via PyJWT options.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
