from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class MessageCreate(BaseModel):
    session_id: int
    text: str = Field(..., max_length=5000)


class Message(BaseModel):
    id: int
    session_id: int
    sender_id: int
    text: str = ""
    message_type: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageSendResponse(BaseModel):
    message: str
    message_data: Message
