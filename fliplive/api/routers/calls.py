from fastapi import APIRouter, Depends, Query, Request

from fliplive.api.dependency import CurrentUser
from fliplive.api.schemas.base import CwOut
from fliplive.api.schemas.calls import CallIdIn, CreateCallIn
from fliplive.services.call_registry import CallRecord, CallRegistry
from fliplive.services.events import get_event_publisher
from fliplive.shared.api.utils import get_redis_major_client
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter(prefix="/calls")


def get_call_registry(request: Request) -> CallRegistry:
    return CallRegistry(redis=get_redis_major_client(request), events=get_event_publisher())


@router.post("/create")
async def create_call(
    body: CreateCallIn,
    user: CurrentUser,
    registry: CallRegistry = Depends(get_call_registry),
) -> CwOut[CallRecord]:
    """Ring the given participants."""
    result = await registry.create_call(
        caller_id=user.user_id,
        participants=body.participants,
        call_type=body.call_type,
        chat_id=body.chat_id,
    )
    return CwOut[CallRecord](results=result)


@router.get("/get")
async def get_call(
    user: CurrentUser,
    call_id: str = Query(..., description="Call ID"),
    registry: CallRegistry = Depends(get_call_registry),
) -> CwOut[CallRecord]:
    result = await registry.get_call(call_id)
    if result is None or not result.involves(user.user_id):
        raise AppError(
            errcode=AppErrorCode.E_CALL_NOT_FOUND,
            errmesg=f"Call not found or expired: {call_id}",
            status_code=HttpStatusCode.NOT_FOUND,
        )
    return CwOut[CallRecord](results=result)


@router.post("/join")
async def join_call(
    body: CallIdIn,
    user: CurrentUser,
    registry: CallRegistry = Depends(get_call_registry),
) -> CwOut[CallRecord]:
    result = await registry.join_call(body.call_id, user.user_id)
    return CwOut[CallRecord](results=result)


@router.post("/end")
async def end_call(
    body: CallIdIn,
    user: CurrentUser,
    registry: CallRegistry = Depends(get_call_registry),
) -> CwOut[str]:
    await registry.end_call(body.call_id, user.user_id)
    return CwOut[str](results="OK")
