"""
JWT utilities and the authenticated principal dependency.

Functions
---------
create_access_token(data: dict) -> str
    Creates a signed JWT access token with an expiration (`exp`) claim.
verify_token(token: str) -> str | None
    Verify a JWT's signature & expiration and return the subject (`sub`) if valid.
get_current_principal(...) -> Principal
    FastAPI dependency resolving the acting `Principal` from the
    ``Authorization: Bearer`` header or the ``token`` cookie.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import Cookie, Header, HTTPException
from jose import jwt, JWTError

from simta.database.config.config import settings
from simta.database.core.funcs import get_principal
from simta.workflow.principal import Principal

logger = logging.getLogger(__name__)


def create_access_token(data: dict) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    data : dict
        Claims to embed in the token. ``sub`` must hold the user id.

    Returns
    -------
    str
        Encoded JWT string.

    Notes
    ----------
    - Adds an `exp` (expiration) claim calculated from ACCESS_TOKEN_EXPIRE_MINUTES.
    - Uses `settings.SECRET_KEY` and `settings.ALGORITHM` for signing.
    """
    expiration_time = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    encoding = data.copy()
    # exp is a NumericDate (seconds since epoch)
    expires = int(datetime.now().timestamp()) + (int(expiration_time) * 60)
    encoding.update({"exp": expires})
    return jwt.encode(encoding, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[str]:
    """
    Verify a JWT and return its subject.

    Returns
    ----------
    str | None
        The `sub` claim if the token is valid, otherwise None (invalid
        signature, expired, malformed).
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload.get("sub")
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        return None


def get_current_principal(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Cookie(None),
) -> Principal:
    """
    Resolve the acting principal of a request.

    Raises
    ------
    HTTPException
        401 when no valid token is presented or the user no longer exists,
        403 when the account is not active.
    """
    raw = None
    if authorization and authorization.lower().startswith("bearer "):
        raw = authorization[7:].strip()
    elif token:
        raw = token
    if not raw:
        raise HTTPException(status_code=401, detail="Token tidak ditemukan. Silakan login.")

    subject = verify_token(raw)
    if not subject:
        raise HTTPException(status_code=401, detail="Token tidak valid atau sudah kedaluwarsa")

    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise HTTPException(status_code=401, detail="Token tidak valid atau sudah kedaluwarsa")

    principal = get_principal(user_id=user_id)
    if principal is None:
        raise HTTPException(status_code=401, detail="User tidak ditemukan")
    if not principal.is_active:
        raise HTTPException(status_code=403, detail="Akun Anda tidak aktif. Hubungi admin.")
    return principal
