# parser.py
# Tool-call recovery from loosely structured model output.
#
# Small local models rarely emit clean JSON. Recovery runs in two phases:
#
#   1. Locate a candidate. CANDIDATE_STRATEGIES are tried in order and the
#      first hit wins:  line scan → embedded regex sweep → fenced block.
#   2. Decode the candidate. Strict JSON first, then progressively more
#      permissive rewrites, then a plain regex extraction of the tool name
#      and the well-known argument aliases.
#
# Nothing in this module raises. None means "no tool call": the caller
# treats the text as the final answer.

import json
import re
from typing import Any, Callable

from react_loop.models import ToolCall

# (thought, candidate)
Candidate = tuple[str, str]

_REASONING_RE = re.compile(r"<(think|thinking)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_EMBEDDED_RE = re.compile(
    r'\{[^{}]*"tool"\s*:\s*"[^"]+"\s*,\s*"args"\s*:\s*\{[^}]*\}[^{}]*\}'
)
_FENCED_RE = re.compile(r"```(?:\w+)?[ \t]*\n?(.*?)\n?```", re.DOTALL)
_TOOL_RE = re.compile(r"""["']tool["']\s*:\s*["']([^"']+)["']""")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_INNER_APOSTROPHE_RE = re.compile(r'(\w)"(\w)')

# Canonical argument key → regex matching it or any of its aliases.
_ARG_ALIAS_RES: dict[str, re.Pattern] = {
    "query": re.compile(r"""["'](?:query|q)["']\s*:\s*["']([^"']+)["']"""),
    "code": re.compile(r"""["'](?:code|script)["']\s*:\s*["']([^"']+)["']"""),
    "content": re.compile(r"""["'](?:content|text)["']\s*:\s*["']([^"']+)["']"""),
}


# ---------------------------------------------------------------------------
# Pre-processing
# ---------------------------------------------------------------------------


def strip_reasoning(text: str) -> str:
    """Remove <think>…</think> blocks some models emit, then trim."""
    return _REASONING_RE.sub("", text).strip()


# ---------------------------------------------------------------------------
# Candidate strategies
# ---------------------------------------------------------------------------


def find_line_candidate(text: str) -> Candidate | None:
    """First line that opens with `{` and mentions tool. Prior lines are thought."""
    thought_lines: list[str] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith("```"):
            continue
        if stripped.startswith("{") and "tool" in stripped:
            return "\n".join(thought_lines).strip(), stripped
        thought_lines.append(line)
    return None


def find_embedded_candidate(text: str) -> Candidate | None:
    """A {"tool": ..., "args": {...}} object buried mid-paragraph."""
    match = _EMBEDDED_RE.search(text)
    if not match:
        return None
    return text[: match.start()].strip(), match.group(0)


def find_fenced_candidate(text: str) -> Candidate | None:
    """The body of the first ``` block, if it mentions a tool key."""
    match = _FENCED_RE.search(text)
    if not match:
        return None
    inner = match.group(1).strip()
    if '"tool"' not in inner and "'tool'" not in inner:
        return None
    return text[: text.index("```")].strip(), inner


CANDIDATE_STRATEGIES: list[Callable[[str], Candidate | None]] = [
    find_line_candidate,
    find_embedded_candidate,
    find_fenced_candidate,
]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _rewrites(candidate: str) -> list[str]:
    """Strict first, most permissive last."""
    swapped = candidate.replace("'", '"')
    return [
        candidate,
        swapped,
        _INNER_APOSTROPHE_RE.sub(r"\1'\2", swapped),
        _TRAILING_COMMA_RE.sub(r"\1", candidate),
        _TRAILING_COMMA_RE.sub(r"\1", swapped),
    ]


def decode_lenient(candidate: str) -> tuple[str, dict[str, Any]] | None:
    """Return (tool, args) from the first rewrite that parses to a tool object."""
    for attempt in _rewrites(candidate):
        try:
            parsed = json.loads(attempt, strict=False)
        except (json.JSONDecodeError, ValueError, RecursionError):
            continue
        if not isinstance(parsed, dict):
            continue
        tool = parsed.get("tool")
        if isinstance(tool, str) and tool.strip():
            args = parsed.get("args")
            return tool.strip(), args if isinstance(args, dict) else {}
    return None


def extract_by_regex(candidate: str) -> tuple[str, dict[str, Any]] | None:
    """Last resort: pull the tool name and known argument aliases by pattern."""
    tool_match = _TOOL_RE.search(candidate)
    if not tool_match or not tool_match.group(1).strip():
        return None
    args: dict[str, Any] = {}
    for key, pattern in _ARG_ALIAS_RES.items():
        match = pattern.search(candidate)
        if match:
            args[key] = match.group(1)
    return tool_match.group(1).strip(), args


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_tool_call(text: str) -> ToolCall | None:
    """
    Recover a single tool call from model output.

    Returns None when the text holds no recognisable call, which the
    controller interprets as the final answer.
    """
    if not isinstance(text, str) or not text:
        return None

    found: Candidate | None = None
    for strategy in CANDIDATE_STRATEGIES:
        found = strategy(text)
        if found:
            break
    if not found:
        return None

    thought, candidate = found
    decoded = decode_lenient(candidate) or extract_by_regex(candidate)
    if decoded is None:
        return None

    tool, args = decoded
    return ToolCall(thought=thought, tool=tool, args=args)
