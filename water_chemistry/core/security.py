from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from .config import settings

bearer = HTTPBearer(auto_error=False)

DEMO_OWNER_ID = "demo_user"


def require_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> str:
    """Returns the owner id (the token's `sub` claim) of the calling user."""
    # Auth OFF mode (demo mode)
    if not settings.AUTH_ENABLED:
        return DEMO_OWNER_ID

    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            creds.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    owner_id = payload.get("sub")
    if not owner_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return str(owner_id)
