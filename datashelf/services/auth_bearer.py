from typing import Any

import jwt
from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

from datashelf.settings import settings


class JWTPayload(BaseModel):
    """JWT payload model."""

    sub: str
    exp: int
    aud: str
    iss: str
    iat: int = 0
    username: str = ""
    email: str = ""
    name: str = ""


def credentials_exception() -> HTTPException:
    """Error raised for any token that does not verify."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(jwtoken: str) -> JWTPayload:
    """Verify the JWT token."""
    try:
        return JWTPayload.model_validate(decode_jwt(jwtoken))
    except ValidationError as e:
        raise credentials_exception() from e


def decode_jwt(token: str) -> Any:
    """Decode the JWT token, expiry is checked by PyJWT."""
    try:
        return jwt.decode(
            jwt=token,
            key=settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "sub", "aud", "iss"]},
        )
    except jwt.PyJWTError as e:
        raise credentials_exception() from e
