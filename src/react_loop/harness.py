# harness.py
# ReAct loop controller.
#
# The controller is the kernel. The model is a passive responder: this
# class owns all control flow, session state, and cancellation. Tools never
# talk to the model directly.
#
# Control flow, per iteration:
#   budget context → generate → strip reasoning → parse
#   → no call?  final answer
#   → repeat?   corrective message, skip execution
#   → otherwise thought/action steps → execute tool → observation → loop
#
# All terminal output is delegated to display.py via the on_step observer.

import asyncio
import json
import logging
import os
import time
from typing import Any, Awaitable, Callable

from dotenv import load_dotenv
from openai import AsyncOpenAI

from react_loop.budget import budget_context
from react_loop.config import DEFAULT_CONFIG, LoopConfig
from react_loop.dispatcher import execute_tool
from react_loop.ledger import StepLedger, StepObserver
from react_loop.models import (
    AgentStatus,
    Message,
    Role,
    SessionSnapshot,
    Step,
    StepType,
    ToolCall,
)
from react_loop.parser import parse_tool_call, strip_reasoning
from react_loop.repeat import detect_loop
from react_loop.toolkit import TOOL_SPECS, Toolkit

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]
Generator = Callable[[list[dict[str, str]], TokenCallback | None], Awaitable[str]]


# ---------------------------------------------------------------------------
# System Prompts
# ---------------------------------------------------------------------------

AGENT_PROMPT = """\
{base}

You are an autonomous AI agent. You MUST solve problems step-by-step by using tools.

AVAILABLE TOOLS: {tool_list}

TO USE A TOOL, you must output EXACTLY this JSON format on its own line:
{{"tool": "TOOL_NAME", "args": {{"key": "value"}}}}
{reference}{examples}
CRITICAL RULES:
1. You MUST think first, then call exactly ONE tool per turn
2. After receiving a tool result, either call another tool OR give your FINAL answer
3. Your FINAL answer must contain NO JSON tool calls — just plain text
4. Never put a tool call and a final answer in the same turn
5. If a tool errors, try a different approach — do NOT retry the same call
6. Do NOT skip tools — if a tool is available and relevant, USE IT\
"""

_EXAMPLES = {
    "webSearch": (
        'User asks "what is the population of France?"\n'
        "I need to search for the current population of France.\n"
        '{"tool": "webSearch", "args": {"query": "population of France 2025"}}'
    ),
    "python": (
        'User asks "calculate 17 * 23 + 5"\n'
        "Let me use Python to compute this accurately.\n"
        '{"tool": "python", "args": {"code": "result = 17 * 23 + 5\\nprint(result)"}}'
    ),
}

REPEAT_CORRECTION = (
    "You're repeating the same tool call. "
    "Please give your FINAL ANSWER now based on what you already know."
)
NO_ANSWER = (
    "Reached the step limit without finding an answer. "
    "Try rephrasing or breaking into smaller questions."
)
STOPPED = "Agent was stopped."


def build_agent_prompt(base: str, available: list[str]) -> str:
    """Augment `base` with the tool protocol. Only `available` tools are advertised."""
    tool_list = ", ".join(available) if available else "none (answer from your own knowledge)"

    reference = ""
    if available:
        lines = [
            f"• {name} — {TOOL_SPECS[name].description}. Args: {TOOL_SPECS[name].example_args}"
            for name in available
        ]
        reference = "\nTool reference:\n" + "\n".join(lines) + "\n"

    examples = ""
    shown = [name for name in available if name in _EXAMPLES]
    if shown:
        blocks = [f"EXAMPLE {i} — {_EXAMPLES[name]}" for i, name in enumerate(shown, 1)]
        examples = "\n" + "\n\n".join(blocks) + "\n"

    return AGENT_PROMPT.format(
        base=base, tool_list=tool_list, reference=reference, examples=examples
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _describe_action(call: ToolCall, max_len: int) -> str:
    """Render `tool(key: value, …)` for the trace."""
    parts: list[str] = []
    for key, value in call.args.items():
        text = value if isinstance(value, str) else json.dumps(value, default=str)
        if len(text) > max_len:
            text = text[:max_len] + "…"
        parts.append(f"{key}: {text}")
    return f"{call.tool}({', '.join(parts)})"


def _truncate(text: str, max_len: int) -> str:
    if len(text) > max_len:
        return text[:max_len] + "\n··· [truncated]"
    return text


def _tool_result_message(tool: str, duration_ms: int, observation: str) -> Message:
    return Message(
        role=Role.USER,
        content=(
            f"Tool result ({tool}, {duration_ms}ms):\n{observation}\n\n"
            "Use this information to either call another tool or provide your final answer."
        ),
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class CancelToken:
    """One-shot cooperative cancellation flag for a single session."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def event(self) -> asyncio.Event:
        return self._event


class Session:
    """Mutable state of one loop run. Only the controller writes to it."""

    def __init__(self, observer: StepObserver | None = None) -> None:
        self.token = CancelToken()
        self.ledger = StepLedger(observer)
        self.status = AgentStatus.IDLE
        self.iteration = 0
        self.elapsed_ms = 0
        self._started = time.perf_counter()

    def touch(self) -> None:
        self.elapsed_ms = round((time.perf_counter() - self._started) * 1000)

    def record(self, type: StepType, content: str, **fields: Any) -> Step:
        step = self.ledger.append(type, content, **fields)
        self.touch()
        return step

    def set_status(self, status: AgentStatus) -> None:
        self.status = status
        self.touch()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            steps=self.ledger.steps,
            status=self.status,
            iteration=self.iteration,
            elapsed_ms=self.elapsed_ms,
        )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class LoopController:
    """
    Owns at most one active session and drives it through the ReAct loop.

    Starting a run cancels whatever session was active before it. Separate
    controller instances share nothing.

    Example:
        controller = LoopController(on_step=display.render_step)
        answer = await controller.run_loop(
            "What is 17 * 23?", toolkit, openrouter_generator(MODEL), "Be concise."
        )
    """

    def __init__(
        self,
        config: LoopConfig = DEFAULT_CONFIG,
        on_step: StepObserver | None = None,
    ) -> None:
        self.config = config
        self.enabled = False
        self._on_step = on_step
        self._session = Session()

    # ------------------------------------------------------------------
    # Session ownership
    # ------------------------------------------------------------------

    @property
    def session(self) -> SessionSnapshot:
        """Live view of the current session for trace renderers."""
        return self._session.snapshot()

    @property
    def steps(self) -> list[Step]:
        return self._session.ledger.steps

    @property
    def status(self) -> AgentStatus:
        return self._session.status

    @property
    def iteration(self) -> int:
        return self._session.iteration

    @property
    def elapsed_ms(self) -> int:
        return self._session.elapsed_ms

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def start(self) -> Session:
        """Cancel the active session and install a fresh one."""
        self._session.token.cancel()
        session = Session(lambda step: self._notify(session, step))
        self._session = session
        return session

    def cancel(self, token: CancelToken | None = None) -> None:
        (token or self._session.token).cancel()

    def abort(self) -> None:
        """Cancel the active session. Returns immediately; the loop winds down on its own."""
        self._session.token.cancel()
        self._session.set_status(AgentStatus.DONE)

    def reset(self) -> None:
        """Cancel the active session and discard all of its state."""
        self._session.token.cancel()
        self._session = Session()

    def _notify(self, session: Session, step: Step) -> None:
        if self._on_step is not None and session is self._session:
            self._on_step(step)

    # ------------------------------------------------------------------
    # Terminal paths
    # ------------------------------------------------------------------

    def _finish(self, session: Session, answer: str) -> str:
        session.record(StepType.FINAL, answer)
        session.set_status(AgentStatus.DONE)
        logger.info("Loop finished after %d iteration(s)", session.iteration)
        return answer

    def _cancelled_answer(self, session: Session) -> str:
        last = session.ledger.last(StepType.OBSERVATION)
        if last is not None:
            return f"Stopped by user. Partial result:\n\n{last.content}"
        return STOPPED

    def _exhausted_answer(self, session: Session) -> str:
        last = session.ledger.last(StepType.OBSERVATION)
        if last is not None:
            return (
                f"Reached step limit ({self.config.max_iterations}). "
                f"Here's what I found:\n\n{last.content}"
            )
        return NO_ANSWER

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run_loop(
        self,
        query: str,
        toolkit: Toolkit,
        generate: Generator,
        system_prompt: str,
    ) -> str:
        """
        Drive the ReAct loop until a final answer, cancellation, or the
        iteration cap.

        Returns a non-empty string in all cases. Only a generator failure
        ends the run early, as an "Agent error: …" string.
        """
        cfg = self.config
        session = self.start()
        token = session.token
        session.set_status(AgentStatus.THINKING)

        available = toolkit.available()
        messages: list[Message] = [
            Message(role=Role.SYSTEM, content=build_agent_prompt(system_prompt, available)),
            Message(role=Role.USER, content=query),
        ]
        logger.debug("Starting loop with tools: %s", available or "none")

        try:
            for index in range(cfg.max_iterations):
                if token.cancelled:
                    break

                session.iteration = index + 1
                session.set_status(AgentStatus.THINKING)
                logger.debug("Iteration %d/%d", session.iteration, cfg.max_iterations)

                budgeted = budget_context(messages, cfg)

                try:
                    raw = await generate([m.as_dict() for m in budgeted], None)
                except Exception as exc:
                    if token.cancelled:
                        break
                    logger.error("Generation failed: %s", exc)
                    session.record(StepType.ERROR, f"LLM generation failed: {exc}")
                    session.set_status(AgentStatus.ERROR)
                    return f"Agent error: {exc}"

                if token.cancelled:
                    break

                output = strip_reasoning(raw or "")
                call = parse_tool_call(output)

                if call is None:
                    return self._finish(session, output or self._exhausted_answer(session))

                candidate = Step(
                    id=len(session.ledger),
                    type=StepType.ACTION,
                    content="",
                    tool=call.tool,
                    args=call.args,
                )
                if detect_loop([*session.ledger, candidate], cfg.max_loop_repeats):
                    logger.info("Repeat detected for %s; skipping execution", call.tool)
                    session.record(
                        StepType.ERROR,
                        f"Loop detected: calling {call.tool} with same args "
                        f"{cfg.max_loop_repeats}x. Breaking to give answer.",
                    )
                    messages.append(Message(role=Role.ASSISTANT, content=output))
                    messages.append(Message(role=Role.USER, content=REPEAT_CORRECTION))
                    continue

                if token.cancelled:
                    break

                if call.thought:
                    session.record(StepType.THOUGHT, call.thought)
                session.record(
                    StepType.ACTION,
                    _describe_action(call, cfg.action_arg_chars),
                    tool=call.tool,
                    args=call.args,
                )
                session.set_status(AgentStatus.ACTING)
                logger.debug("Executing %s %s", call.tool, call.args)

                started = time.perf_counter()
                observation = await execute_tool(
                    call.tool, call.args, toolkit, token.event, cfg.tool_timeout
                )
                duration_ms = round((time.perf_counter() - started) * 1000)

                if token.cancelled:
                    break

                observation = _truncate(observation, cfg.observation_chars)
                session.record(StepType.OBSERVATION, observation, duration_ms=duration_ms)

                messages.append(Message(role=Role.ASSISTANT, content=output))
                messages.append(_tool_result_message(call.tool, duration_ms, observation))

            if token.cancelled:
                logger.info("Loop cancelled at iteration %d", session.iteration)
                return self._finish(session, self._cancelled_answer(session))

            return self._finish(session, self._exhausted_answer(session))
        finally:
            session.touch()


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


def openrouter_generator(model: str) -> Generator:
    """
    Build a generator backed by any OpenRouter-supported model.

    Streams when an on_token callback is supplied; the full text is
    returned either way.
    """
    load_dotenv()
    client = AsyncOpenAI(
        base_url="https://openrouter.ai/api/v1",
        api_key=os.getenv("OPENROUTER_API_KEY"),
    )

    async def generate(messages: list[dict[str, str]], on_token: TokenCallback | None = None) -> str:
        if on_token is None:
            response = await client.chat.completions.create(model=model, messages=messages)
            return (response.choices[0].message.content or "").strip()

        chunks: list[str] = []
        stream = await client.chat.completions.create(model=model, messages=messages, stream=True)
        async for chunk in stream:
            if not chunk.choices:
                continue
            token = chunk.choices[0].delta.content or ""
            if token:
                chunks.append(token)
                on_token(token)
        return "".join(chunks).strip()

    return generate
