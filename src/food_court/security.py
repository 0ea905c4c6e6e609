"""
Проверка bearer-токенов. Токены выпускает внешний сервис авторизации,
здесь только декодирование и роли.
"""
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from food_court.config import settings

ROLE_CUSTOMER = "customer"
ROLE_RESTAURANT = "restaurant"
ROLE_ADMIN = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    id: str
    role: str


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        claims = decode_token(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or expired token: {exc}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = claims.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")
    return Principal(id=str(subject), role=claims.get("role", ROLE_CUSTOMER))


def require_role(*roles: str):
    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this role")
        return principal

    return dependency


require_customer = require_role(ROLE_CUSTOMER)
require_restaurant = require_role(ROLE_RESTAURANT)
require_admin = require_role(ROLE_ADMIN)
