import pytest

from react_loop.parser import (
    decode_lenient,
    extract_by_regex,
    find_embedded_candidate,
    find_fenced_candidate,
    find_line_candidate,
    parse_tool_call,
    strip_reasoning,
)

# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

def test_parse_thought_then_json_line():
    text = 'I should search.\n{"tool": "webSearch", "args": {"query": "x"}}'
    call = parse_tool_call(text)
    assert call is not None
    assert call.thought == "I should search."
    assert call.tool == "webSearch"
    assert call.args == {"query": "x"}

def test_parse_plain_prose_is_final_answer():
    assert parse_tool_call("Paris is the capital of France.") is None

def test_parse_missing_args_defaults_to_empty():
    call = parse_tool_call('{"tool": "memoryRecall"}')
    assert call.tool == "memoryRecall"
    assert call.args == {}

def test_parse_non_object_args_defaults_to_empty():
    call = parse_tool_call('{"tool": "python", "args": "print(1)"}')
    assert call.args == {}

# ---------------------------------------------------------------------------
# Candidate strategies
# ---------------------------------------------------------------------------

def test_line_candidate_skips_fence_lines():
    text = 'Let me compute.\n```json\n{"tool": "python", "args": {"code": "print(2)"}}\n```'
    thought, candidate = find_line_candidate(text)
    assert thought == "Let me compute."
    assert candidate.startswith('{"tool"')

def test_line_candidate_skips_any_fence_language():
    text = "Running it.\n```python\n{\"tool\": \"python\", \"args\": {\"code\": \"1\"}}\n```"
    call = parse_tool_call(text)
    assert call.thought == "Running it."
    assert call.tool == "python"

def test_embedded_candidate_mid_paragraph():
    text = 'Sure, calling {"tool": "webSearch", "args": {"query": "rust"}} now.'
    assert find_line_candidate(text) is None
    thought, candidate = find_embedded_candidate(text)
    assert thought == "Sure, calling"
    assert candidate == '{"tool": "webSearch", "args": {"query": "rust"}}'

def test_parse_embedded_call():
    call = parse_tool_call('Okay then {"tool": "ragSearch", "args": {"query": "invoice"}} thanks')
    assert call.tool == "ragSearch"
    assert call.thought == "Okay then"
    assert call.args == {"query": "invoice"}

def test_fenced_candidate_multiline_json():
    text = (
        "I will save this.\n"
        "```json\n"
        "  {\n"
        "    'tool': 'memorySave',\n"
        "    'args': {'content': 'likes tea'}\n"
        "  }\n"
        "```"
    )
    thought, candidate = find_fenced_candidate(text)
    assert thought == "I will save this."
    call = parse_tool_call(text)
    assert call.tool == "memorySave"
    assert call.args == {"content": "likes tea"}
    assert call.thought == "I will save this."

def test_fenced_candidate_requires_tool_key():
    assert find_fenced_candidate("```python\nprint('hi')\n```") is None

# ---------------------------------------------------------------------------
# Lenient decoding
# ---------------------------------------------------------------------------

def test_single_quoted_json():
    call = parse_tool_call("{'tool': 'python', 'args': {'code': 'print(1)'}}")
    assert call is not None
    assert call.tool == "python"
    assert call.args == {"code": "print(1)"}

def test_inner_apostrophe_restored():
    decoded = decode_lenient("{'tool': 'webSearch', 'args': {'query': 'world's tallest tree'}}")
    assert decoded == ("webSearch", {"query": "world's tallest tree"})

def test_trailing_comma_removed():
    decoded = decode_lenient('{"tool": "webSearch", "args": {"query": "x",},}')
    assert decoded == ("webSearch", {"query": "x"})

def test_decode_rejects_empty_tool():
    assert decode_lenient('{"tool": "", "args": {}}') is None

# ---------------------------------------------------------------------------
# Regex fallback
# ---------------------------------------------------------------------------

def test_regex_fallback_on_broken_json():
    call = parse_tool_call('{"tool": "webSearch", "args": {"q": "llama 3" oops')
    assert call is not None
    assert call.tool == "webSearch"
    assert call.args == {"query": "llama 3"}

def test_regex_fallback_aliases():
    decoded = extract_by_regex('{"tool": "python", "script": "x = 1", "text": "note" !!')
    assert decoded == ("python", {"code": "x = 1", "content": "note"})

def test_unrecoverable_candidate_returns_none():
    assert parse_tool_call("{tooling is hard to get right}") is None

# ---------------------------------------------------------------------------
# Robustness
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "text",
    [
        "",
        "{",
        "}{",
        "```",
        "```json\n```",
        '{"tool": 5}',
        '{"tool": null, "args": {}}',
        "[1, 2, 3]",
        "{'tool'}",
        '{"tool": "   "}',
        "\n\n\n",
        "{\"tool\": \"x\", \"args\": {\"query\": \"" + "a" * 5000,
        '{"tool": "python", "args": ' + "[" * 100_000,
        "{" * 100_000,
    ],
)
def test_never_raises_and_tool_is_non_empty(text):
    call = parse_tool_call(text)
    assert call is None or (isinstance(call.tool, str) and call.tool.strip())

def test_strip_reasoning():
    raw = "<think>I should use a tool\nmaybe</think>\nThe answer is 4."
    assert strip_reasoning(raw) == "The answer is 4."
    assert strip_reasoning("<THINKING>x</THINKING> ok") == "ok"
