# toolkit.py
# Capability set injected into each loop run, and the static tool catalogue.
#
# Every capability is optional. The catalogue (TOOL_SPECS) is fixed; a
# toolkit only decides which of those names are live for a given run.

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

AsyncTool = Callable[[str], Awaitable[str]]
SyncTool = Callable[[str], str]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownToolError(Exception):
    """Raised when the model names a tool outside the catalogue."""


class ToolUnavailableError(Exception):
    """Raised when the tool is catalogued but absent from this toolkit."""


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    name: str
    attr: str
    aliases: tuple[str, ...]
    description: str
    example_args: str


TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec("webSearch", "web_search", ("query", "q"),
                 "search the live web", '{"query": "search terms"}'),
        ToolSpec("ragSearch", "rag_search", ("query", "q"),
                 "search user's uploaded documents", '{"query": "search terms"}'),
        ToolSpec("python", "python", ("code", "script"),
                 "execute Python code", '{"code": "python code here"}'),
        ToolSpec("memorySave", "memory_save", ("content", "text"),
                 "persist information", '{"content": "text to save"}'),
        ToolSpec("memoryRecall", "memory_recall", ("query", "q"),
                 "recall saved info", '{"query": "search terms"}'),
    )
}

TOOL_NAMES: list[str] = list(TOOL_SPECS)


def bind_argument(spec: ToolSpec, args: dict[str, Any]) -> str:
    """First truthy alias value, coerced to str. Empty string if none."""
    for alias in spec.aliases:
        value = args.get(alias)
        if value:
            return value if isinstance(value, str) else str(value)
    return ""


# ---------------------------------------------------------------------------
# Toolkit
# ---------------------------------------------------------------------------


@dataclass
class Toolkit:
    """
    Partially populated capability set.

    memory_recall is synchronous; every other capability is a coroutine
    function taking a single string.

    Example:
        toolkit = Toolkit(web_search=my_search, memory_recall=store.recall)
        toolkit.available()  # ["webSearch", "memoryRecall"]
    """

    web_search: AsyncTool | None = None
    rag_search: AsyncTool | None = None
    python: AsyncTool | None = None
    memory_save: AsyncTool | None = None
    memory_recall: SyncTool | None = None

    def available(self) -> list[str]:
        """Catalogue names whose capability is present, in catalogue order."""
        return [name for name, spec in TOOL_SPECS.items() if getattr(self, spec.attr) is not None]

    def resolve(self, name: str, args: dict[str, Any]) -> Callable[[], Awaitable[str]]:
        """
        Bind `name` and its argument alias into a zero-arg coroutine factory.

        Raises UnknownToolError or ToolUnavailableError.
        """
        spec = TOOL_SPECS.get(name)
        if spec is None:
            raise UnknownToolError(name)
        fn = getattr(self, spec.attr)
        if fn is None:
            raise ToolUnavailableError(name)
        value = bind_argument(spec, args)

        async def call() -> str:
            result = fn(value)
            if inspect.isawaitable(result):
                result = await result
            return result

        return call
