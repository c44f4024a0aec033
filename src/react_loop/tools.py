# tools.py
# Default capabilities for the CLI demo.
# The controller never imports this module; run.py wires a Toolkit from it.

import asyncio
import re

from react_loop.toolkit import Toolkit

_WORD_RE = re.compile(r"\w+")


def _search_sync(query: str, max_results: int) -> str:
    from ddgs import DDGS

    query = query.strip()
    if not query:
        return "Error: no query provided."

    try:
        hits = [*DDGS().text(query, max_results=max_results)]
    except Exception as e:
        return f"Search failed: {e}"

    if not hits:
        return "No results found."

    return "\n\n".join(
        f"[{hit.get('title') or 'Untitled'}]\n{hit.get('body', '')}\nSource: {hit.get('href', '')}"
        for hit in hits
    )


async def web_search(query: str, max_results: int = 4) -> str:
    """DuckDuckGo text search, off the event loop."""
    return await asyncio.to_thread(_search_sync, query, max_results)


class MemoryStore:
    """In-process note store backing memorySave / memoryRecall."""

    def __init__(self, limit: int = 3) -> None:
        self._notes: list[str] = []
        self._limit = limit

    async def save(self, content: str) -> str:
        content = content.strip()
        if not content:
            return "Error: no content provided."
        self._notes.append(content)
        return f"Saved to memory ({len(self._notes)} item(s) stored)."

    def recall(self, query: str) -> str:
        terms = {w.lower() for w in _WORD_RE.findall(query)}
        if not terms:
            return "Error: no query provided."

        scored = []
        for index, note in enumerate(self._notes):
            words = {w.lower() for w in _WORD_RE.findall(note)}
            score = len(terms & words)
            if score:
                scored.append((score, index, note))
        if not scored:
            return "No matching memories."

        # Highest overlap first, newest first on ties.
        scored.sort(key=lambda item: (-item[0], -item[1]))
        return "\n".join(f"- {note}" for _, _, note in scored[: self._limit])

    def __len__(self) -> int:
        return len(self._notes)


def default_toolkit(memory: MemoryStore | None = None) -> Toolkit:
    memory = memory or MemoryStore()
    return Toolkit(
        web_search=web_search,
        memory_save=memory.save,
        memory_recall=memory.recall,
    )
