import asyncio

import pytest
from unittest.mock import patch

from react_loop.dispatcher import execute_tool
from react_loop.tools import MemoryStore, _search_sync, default_toolkit, web_search

# ---------------------------------------------------------------------------
# Web search
# ---------------------------------------------------------------------------

@patch("ddgs.DDGS")
def test_search_success(mock_ddgs_cls):
    mock_instance = mock_ddgs_cls.return_value
    mock_instance.text.return_value = [
        {"title": "Result 1", "body": "Body 1", "href": "http://1.com"}
    ]

    result = _search_sync("test", 4)
    assert "Result 1" in result
    assert "Body 1" in result
    assert "http://1.com" in result
    mock_instance.text.assert_called_once_with("test", max_results=4)

@patch("ddgs.DDGS")
def test_search_hit_without_title(mock_ddgs_cls):
    mock_ddgs_cls.return_value.text.return_value = [{"title": "", "body": "B", "href": "H"}]
    assert _search_sync("q", 4) == "[Untitled]\nB\nSource: H"

@patch("ddgs.DDGS")
def test_search_empty_query(mock_ddgs_cls):
    result = _search_sync("   ", 4)
    assert "Error: no query provided" in result
    mock_ddgs_cls.assert_not_called()

@patch("ddgs.DDGS")
def test_search_no_results(mock_ddgs_cls):
    mock_ddgs_cls.return_value.text.return_value = []
    assert "No results found" in _search_sync("ghost", 4)

@patch("ddgs.DDGS")
def test_search_exception(mock_ddgs_cls):
    mock_ddgs_cls.return_value.text.side_effect = Exception("Network timeout")
    assert "Search failed: Network timeout" in _search_sync("crash", 4)

@pytest.mark.asyncio
@patch("ddgs.DDGS")
async def test_web_search_runs_off_loop(mock_ddgs_cls):
    mock_ddgs_cls.return_value.text.return_value = [{"title": "T", "body": "B", "href": "H"}]
    result = await web_search("anything")
    assert result.startswith("[T]")

# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_memory_save_and_recall():
    store = MemoryStore()
    assert "1 item(s)" in await store.save("My favourite editor is Helix")
    await store.save("The cat is called Miso")

    assert store.recall("which editor do I like") == "- My favourite editor is Helix"
    assert store.recall("cat name") == "- The cat is called Miso"
    assert store.recall("weather") == "No matching memories."
    assert len(store) == 2

@pytest.mark.asyncio
async def test_memory_rejects_blank_input():
    store = MemoryStore()
    assert "Error" in await store.save("   ")
    assert "Error" in store.recall("?!")
    assert len(store) == 0

@pytest.mark.asyncio
async def test_default_toolkit_through_dispatcher():
    store = MemoryStore()
    toolkit = default_toolkit(store)
    assert toolkit.available() == ["webSearch", "memorySave", "memoryRecall"]

    saved = await execute_tool("memorySave", {"text": "deadline is Friday"}, toolkit, asyncio.Event())
    recalled = await execute_tool("memoryRecall", {"q": "deadline"}, toolkit, asyncio.Event())

    assert saved.startswith("Saved to memory")
    assert recalled == "- deadline is Friday"
    assert "not currently available" in await execute_tool("python", {}, toolkit, asyncio.Event())
