from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from fliplive.services.identity import IdentityVerifier, get_identity_verifier
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: str


def get_verifier() -> IdentityVerifier:
    return get_identity_verifier()


def _bearer_credential(request: Request) -> str | None:
    authorization = request.headers.get("Authorization") or ""
    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        return None
    return credential.strip()


async def get_current_user(
    request: Request, verifier: IdentityVerifier = Depends(get_verifier)
) -> User:
    # Do not log request headers here (may include secrets like Authorization).
    credential = _bearer_credential(request)
    if not credential:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Missing bearer token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    result = await verifier.verify(credential)
    if not result.valid or not result.user_id:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg=result.error or "Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {}", result.user_id)
    return User(user_id=result.user_id)


CurrentUser = Annotated[User, Depends(get_current_user)]
