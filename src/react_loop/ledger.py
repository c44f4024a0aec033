# ledger.py
# Append-only step trace for one session.

from typing import Any, Callable, Iterator

from react_loop.models import Step, StepType

StepObserver = Callable[[Step], None]


class StepLedger:
    """
    Ordered, append-only record of everything the loop has done.

    Steps get monotonic ids starting at 0 and are frozen on creation.
    There is no removal or reordering; a new session gets a new ledger.
    """

    def __init__(self, observer: StepObserver | None = None) -> None:
        self._steps: list[Step] = []
        self._observer = observer

    def append(
        self,
        type: StepType,
        content: str,
        *,
        tool: str | None = None,
        args: dict[str, Any] | None = None,
        duration_ms: int | None = None,
    ) -> Step:
        step = Step(
            id=len(self._steps),
            type=type,
            content=content,
            tool=tool,
            args=args,
            duration_ms=duration_ms,
        )
        self._steps.append(step)
        if self._observer is not None:
            self._observer(step)
        return step

    def last(self, type: StepType) -> Step | None:
        for step in reversed(self._steps):
            if step.type is type:
                return step
        return None

    @property
    def steps(self) -> list[Step]:
        """Shallow copy in append order."""
        return list(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(list(self._steps))

    def __len__(self) -> int:
        return len(self._steps)
