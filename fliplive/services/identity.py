"""Bearer credential verification."""

from typing import Protocol

import jwt
from loguru import logger
from pydantic import BaseModel

from fliplive.app_config import get_app_environ_config


class IdentityResult(BaseModel):
    valid: bool
    user_id: str | None = None
    error: str | None = None


class IdentityVerifier(Protocol):
    async def verify(self, credential: str) -> IdentityResult: ...


class JwtIdentityVerifier:
    """Verifies signed JWTs issued by the identity provider.

    The user id is read from `user_id`, `userId` or `sub`, in that order.
    """

    def __init__(self, secret: str | None = None, algorithm: str | None = None):
        app_config = get_app_environ_config()
        self.secret = secret or app_config.AUTH_JWT_SECRET
        self.algorithm = algorithm or app_config.AUTH_JWT_ALGORITHM

    async def verify(self, credential: str) -> IdentityResult:
        if not self.secret:
            logger.error("AUTH_JWT_SECRET is not configured, rejecting credential")
            return IdentityResult(valid=False, error="identity verification not configured")

        try:
            payload = jwt.decode(credential, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return IdentityResult(valid=False, error="token expired")
        except jwt.InvalidTokenError as e:
            logger.debug("invalid token: {}", e)
            return IdentityResult(valid=False, error="invalid token")

        user_id = payload.get("user_id") or payload.get("userId") or payload.get("sub")
        if not user_id:
            return IdentityResult(valid=False, error="token has no user id")

        return IdentityResult(valid=True, user_id=str(user_id))


_identity_verifier: JwtIdentityVerifier | None = None


def get_identity_verifier() -> JwtIdentityVerifier:
    global _identity_verifier
    if _identity_verifier is None:
        _identity_verifier = JwtIdentityVerifier()
    return _identity_verifier
