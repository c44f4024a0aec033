# models.py
# Data contracts for the ReAct control loop.
# No business logic lives here. Pure schema and validation.

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StepType(str, Enum):
    THOUGHT = "thought"
    ACTION = "action"
    OBSERVATION = "observation"
    FINAL = "final"
    ERROR = "error"


class AgentStatus(str, Enum):
    IDLE = "idle"
    THINKING = "thinking"
    ACTING = "acting"
    DONE = "done"
    ERROR = "error"


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Step(BaseModel):
    """Immutable trace entry. Created by the ledger, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="Monotonic index within the session.")
    type: StepType
    content: str
    tool: str | None = None
    args: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=_now)
    duration_ms: int | None = Field(default=None, description="Tool wall-clock time.")


class ToolCall(BaseModel):
    """A single tool invocation recovered from model output."""

    thought: str = ""
    tool: str = Field(..., min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    role: Role
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class SessionSnapshot(BaseModel):
    """Read-only view of the live session for trace renderers."""

    steps: list[Step] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.IDLE
    iteration: int = 0
    elapsed_ms: int = 0
