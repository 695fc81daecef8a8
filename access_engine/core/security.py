from jose import JWTError, jwt
from access_engine.config import settings
from access_engine.core.exceptions import UnauthorizedException

ALGORITHM = "HS256"


def decode_jwt(token: str) -> dict:
    """
    Decode and validate a JWT issued by the auth provider (shared SECRET_KEY).

    Args:
        token: JWT access token from Authorization header

    Returns:
        Decoded claims; 'sub' and 'exp' are guaranteed present

    Raises:
        UnauthorizedException: If token invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {str(e)}")

    # jose only checks exp when present
    if payload.get("exp") is None:
        raise UnauthorizedException("Token missing expiration")
    if not payload.get("sub"):
        raise UnauthorizedException("Token missing user identifier")
    return payload


def tenant_id_from_claims(claims: dict) -> int:
    """
    Acting tenant selected by the 'tenant_id' claim.

    Raises:
        UnauthorizedException: If the claim is missing or not an integer
    """
    tenant_id = claims.get("tenant_id")
    if tenant_id is None:
        raise UnauthorizedException("Token missing tenant identifier")
    try:
        return int(tenant_id)
    except (TypeError, ValueError):
        raise UnauthorizedException("Token has malformed tenant identifier")
