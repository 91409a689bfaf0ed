"""Pending question value object."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PendingQuestion:
    """A submitted question whose answer is still being computed by the backend."""

    chat_id: int
    job_id: str
    auth_token: str = field(repr=False)
    deadline: float
    question: str = ""
