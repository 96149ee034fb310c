from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from ...config import settings
from ...domain.entities import Role

bearer = HTTPBearer()


def get_claims(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    try:
        payload = jwt.decode(creds.credentials, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload


def get_current_role(claims: dict = Depends(get_claims)) -> Role:
    try:
        return Role(str(claims.get("role", "")).upper())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unknown role")


def require_admin(claims: dict = Depends(get_claims)) -> dict:
    # роль выдаёт identity-сервис при логине и кладёт в токен
    if str(claims.get("role", "")).upper() != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin required")
    return claims


def get_user_email(claims: dict = Depends(get_claims)) -> str:
    return claims["sub"]
