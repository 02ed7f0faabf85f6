from pydantic import BaseModel, Field

from fliplive.services.call_registry import CallType


class CreateCallIn(BaseModel):
    participants: list[str] = Field(min_length=1, description="Users to ring")
    call_type: CallType = Field(default=CallType.AUDIO, description="audio or video")
    chat_id: str | None = Field(default=None, description="Chat the call belongs to")


class CallIdIn(BaseModel):
    call_id: str = Field(description="Call ID")
