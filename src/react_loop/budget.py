# budget.py
# Context window budgeting.
#
# Small models (1-3B) have 2-4K token windows. Characters stand in for
# tokens. Over budget, the system prompt and the original query survive
# verbatim, the most recent messages survive verbatim, and everything in
# between collapses into one summary message.

from react_loop.config import DEFAULT_CONFIG, LoopConfig
from react_loop.models import Message, Role

SUMMARY_HEADER = "[Previous context summary]"
SUMMARY_FOOTER = "[End summary — focus on the most recent information below]"


def total_chars(messages: list[Message]) -> int:
    return sum(len(m.content) for m in messages)


def _summarize(messages: list[Message], entry_chars: int) -> Message:
    lines: list[str] = []
    for m in messages:
        label = "Agent" if m.role is Role.ASSISTANT else "Tool"
        content = m.content
        if len(content) > entry_chars:
            content = content[:entry_chars] + "..."
        lines.append(f"[{label}] {content}")
    body = "\n".join(lines)
    return Message(role=Role.USER, content=f"{SUMMARY_HEADER}\n{body}\n{SUMMARY_FOOTER}")


def budget_context(
    messages: list[Message], config: LoopConfig = DEFAULT_CONFIG
) -> list[Message]:
    """
    Fit `messages` into config.max_context_chars.

    Under budget the very same list object is returned. Over budget a new,
    strictly shorter list of at most 2 + 1 + config.recent_count messages
    is returned whenever anything past the first two messages has content.
    """
    before = total_chars(messages)
    if before <= config.max_context_chars:
        return messages

    head = messages[:2]
    rest = messages[2:]
    keep = min(config.recent_count, len(rest))
    old = rest[: len(rest) - keep]
    recent = rest[len(rest) - keep :]

    if old:
        result = [*head, _summarize(old, config.summary_entry_chars), *recent]
        if total_chars(result) < before:
            return result

    # The summary markers outweigh the short entries they replace, or there
    # is no middle to compress. Drop it, then the oldest recent messages.
    while recent and total_chars(head) + total_chars(recent) >= before:
        recent = recent[1:]
    return [*head, *recent]
