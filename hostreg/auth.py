# hostreg/auth.py
import os
from typing import Optional

import jwt

from hostreg.utils import now_ts

SECRET = os.environ.get("HOSTREG_SECRET") or None
ALGORITHM = "HS256"


def issue_token(hostname: str, nonce: str, secret: str, lifetime_seconds: Optional[int] = None) -> str:
    """Sign a proof that the bearer made the POST that minted ``nonce``."""
    issued = now_ts()
    payload = {"sub": hostname, "jti": nonce, "iat": issued}
    if lifetime_seconds:
        payload["exp"] = issued + lifetime_seconds
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Optional[dict]:
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None


def verify_owner(token: str, hostname: str, secret: str) -> Optional[str]:
    claims = decode_token(token, secret)
    if not claims or claims.get("sub") != hostname:
        return None
    return claims.get("jti")


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
