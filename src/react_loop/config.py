# config.py
# Loop tunables. Defaults match small, locally-run models.
#
# Environment overrides (read after load_dotenv):
#   REACT_MAX_ITERATIONS, REACT_TOOL_TIMEOUT, REACT_MAX_CONTEXT_CHARS

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

HARD_MAX_ITERATIONS = 8


class LoopConfig(BaseModel):
    max_iterations: int = Field(default=HARD_MAX_ITERATIONS, ge=1, le=HARD_MAX_ITERATIONS)
    tool_timeout: float = Field(default=30.0, gt=0, description="Seconds per tool call.")
    max_context_chars: int = Field(default=12_000, gt=0, description="~3k tokens.")
    max_loop_repeats: int = Field(default=3, ge=2)
    recent_count: int = Field(default=4, ge=0, description="Messages kept verbatim when compacting.")
    summary_entry_chars: int = Field(default=200, gt=0)
    observation_chars: int = Field(default=2_000, gt=0)
    action_arg_chars: int = Field(default=80, gt=0)


_ENV_FIELDS = {
    "REACT_MAX_ITERATIONS": "max_iterations",
    "REACT_TOOL_TIMEOUT": "tool_timeout",
    "REACT_MAX_CONTEXT_CHARS": "max_context_chars",
}


def load_config() -> LoopConfig:
    """Build a LoopConfig from defaults plus any REACT_* environment overrides."""
    load_dotenv()
    overrides = {
        field: os.environ[var]
        for var, field in _ENV_FIELDS.items()
        if os.environ.get(var)
    }
    return LoopConfig.model_validate(overrides)


DEFAULT_CONFIG = LoopConfig()
