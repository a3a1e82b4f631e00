from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field


class ReplyPreview(BaseModel):
    """Reply as shown inside the thread listing"""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    text: str
    created_on: str


class ReplyResponse(ReplyPreview):
    thread_id: int
    reported: bool = False


class ThreadSummary(BaseModel):
    """Thread as shown in the board listing"""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    board: str
    text: str
    created_on: str
    bumped_on: str
    replies: List[ReplyPreview] = Field(default_factory=list)


class ThreadResponse(ThreadSummary):
    reported: bool = False
    replies: List[ReplyResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    INCORRECT_PASSWORD = "incorrect_password"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of a board mutation that can fail without raising.

    ``message`` is the plain-text body sent back to the client.
    """
    kind: OutcomeKind
    message: str

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, message: str = "success") -> "Outcome":
        return cls(OutcomeKind.SUCCESS, message)

    @classmethod
    def incorrect_password(cls) -> "Outcome":
        return cls(OutcomeKind.INCORRECT_PASSWORD, "incorrect password")

    @classmethod
    def not_found(cls, message: str) -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND, message)

    @classmethod
    def error(cls, detail: str) -> "Outcome":
        return cls(OutcomeKind.ERROR, detail)

    def __str__(self) -> str:
        return self.message
