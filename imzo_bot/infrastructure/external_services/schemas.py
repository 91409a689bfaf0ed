"""Imzo AI wire payloads."""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _Reply(_Payload):
    """Backend reply: a JSON null in a text field reads as empty text."""

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and cls.model_fields[info.field_name].annotation is str:
            return ""
        return value


# Login
class LoginRequest(_Payload):
    login: str
    password: str


class LoginResponse(_Reply):
    message: str = ""
    token: str = ""


# Ask
class AskRequest(_Payload):
    chat_room_id: str
    request: str


class AskAccepted(_Reply):
    """200 from /ask: immediate answer and/or a job id for the deferred one."""

    id: str = ""
    message: str = ""

    @property
    def job_id(self) -> Optional[str]:
        job_id = self.id.strip()
        return job_id or None

    @property
    def immediate_answer(self) -> Optional[str]:
        answer = self.message.strip()
        return answer or None


class AskRejected(_Reply):
    """400 from /ask: the backend declined the question."""

    message: str = ""
    status: Optional[Union[str, int]] = None


AskResult = Union[AskAccepted, AskRejected]


# Final
class FinalAnswer(_Reply):
    # the backend spells the field "responce"
    response: str = Field(default="", alias="responce")
