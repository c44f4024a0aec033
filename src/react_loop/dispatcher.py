# dispatcher.py
# Tool execution under a deadline and an external cancellation signal.
#
# execute_tool() never raises. Every outcome, including failure, becomes an
# observation string the model can read back on its next turn.

import asyncio
import logging
from typing import Any, Awaitable, Callable

from react_loop.toolkit import TOOL_NAMES, Toolkit, ToolUnavailableError, UnknownToolError

logger = logging.getLogger(__name__)

TOOL_TIMEOUT = 30.0
CANCELLED = "[Cancelled]"
EMPTY_RESULT = "Tool returned empty result."


class ToolTimeoutError(Exception):
    """Raised when a tool outlives its deadline."""


class ToolCancelledError(Exception):
    """Raised when the session is cancelled while a tool is running."""


async def _race(
    call: Callable[[], Awaitable[str]],
    name: str,
    cancel: asyncio.Event,
    timeout: float,
) -> Any:
    """
    Await whichever settles first: the tool, the deadline, or `cancel`.

    Both losing branches are cancelled and awaited before returning, so no
    task, timer handle, or unretrieved exception outlives the call.
    """
    tool_task = asyncio.ensure_future(call())
    cancel_task = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {tool_task, cancel_task},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (tool_task, cancel_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(tool_task, cancel_task, return_exceptions=True)

    if cancel_task in done:
        raise ToolCancelledError(name)
    if tool_task not in done:
        raise ToolTimeoutError(f'Tool "{name}" timed out after {timeout:g}s')
    return tool_task.result()


async def execute_tool(
    name: str,
    args: dict[str, Any],
    toolkit: Toolkit,
    cancel: asyncio.Event,
    timeout: float = TOOL_TIMEOUT,
) -> str:
    """Run one tool call and return a non-empty observation string."""
    if cancel.is_set():
        return CANCELLED

    try:
        call = toolkit.resolve(name, args)
    except UnknownToolError:
        return f'[Error] Unknown tool "{name}". Available: {", ".join(TOOL_NAMES)}'
    except ToolUnavailableError:
        return f"[Error] {name} is not currently available. Try a different approach."

    try:
        result = await _race(call, name, cancel, timeout)
    except ToolCancelledError:
        logger.info("Tool %s cancelled", name)
        return CANCELLED
    except ToolTimeoutError as exc:
        logger.warning("%s", exc)
        return f"[Error] {exc}"
    except Exception as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        return f"[Error] {name} failed: {str(exc) or type(exc).__name__}"

    if result is None:
        return EMPTY_RESULT
    text = result if isinstance(result, str) else str(result)
    return text if text.strip() else EMPTY_RESULT
