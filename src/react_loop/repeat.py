# repeat.py
# Stuck-cycle detection over the action history.

import json
from typing import Iterable

from react_loop.models import Step, StepType

MAX_LOOP_REPEATS = 3


def action_signature(step: Step) -> str:
    """Deterministic (tool, args) key. sort_keys is non-negotiable."""
    args = json.dumps(step.args or {}, sort_keys=True, ensure_ascii=False, default=str)
    return f"{step.tool}:{args}"


def detect_loop(steps: Iterable[Step], repeats: int = MAX_LOOP_REPEATS) -> bool:
    """
    True when the last `repeats` action steps share one signature.

    Callers pass the history with the candidate action already appended,
    so the check runs before the repeated call is executed.
    """
    actions = [s for s in steps if s.type is StepType.ACTION]
    if len(actions) < repeats:
        return False
    recent = {action_signature(a) for a in actions[-repeats:]}
    return len(recent) == 1
