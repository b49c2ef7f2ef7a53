import pytest

from conftest import StubAdapter, run

from biolens.history import History
from biolens.interpreter import (
    DEFAULT_MESSAGE,
    UNAVAILABLE_MESSAGE,
    CommandInterpreter,
    LLMError,
    interpret_reply,
)
from biolens.interpreter.prompt_builders import build_command_prompt, format_state
from biolens.interpreter.response import Candidate, PlainText, parse_reply, validate_updates
from biolens.schemas import Style
from biolens.state import VisualState


# ------------------------------------------------------------
# Reply parsing (no model involved)
# ------------------------------------------------------------

def test_invalid_values_are_dropped_and_valid_ones_kept():
    raw = '{"updates":{"style":"not-a-real-style","showWater":true},"message":"ok"}'
    result = interpret_reply(raw)

    assert result.updates == {"showWater": True}
    assert result.message == "ok"


def test_non_json_reply_is_returned_verbatim():
    raw = "Sure! I made it blue."
    result = interpret_reply(raw)

    assert result.updates == {}
    assert result.message == "Sure! I made it blue."


def test_json_array_is_treated_as_plain_text():
    assert isinstance(parse_reply('["style", "surface"]'), PlainText)


def test_code_fenced_reply_is_parsed():
    raw = '```json\n{"updates": {"style": "surface"}, "message": "Surface on."}\n```'
    parsed = parse_reply(raw)

    assert isinstance(parsed, Candidate)
    assert interpret_reply(raw).updates == {"style": "surface"}


def test_fence_on_the_same_line_as_json_is_parsed():
    raw = '```json {"updates": {"style": "surface"}, "message": "Surface on."} ```'
    result = interpret_reply(raw)

    assert result.updates == {"style": "surface"}
    assert result.message == "Surface on."


def test_closing_fence_right_after_json_is_parsed():
    raw = '```json\n{"updates": {"style": "surface"}, "message": "Surface on."}```'
    result = interpret_reply(raw)

    assert result.updates == {"style": "surface"}
    assert result.message == "Surface on."


def test_missing_message_falls_back_to_default():
    result = interpret_reply('{"updates": {"colorMode": "hydrophobicity"}}')

    assert result.updates == {"colorMode": "hydrophobicity"}
    assert result.message == DEFAULT_MESSAGE


def test_blank_message_falls_back_to_default():
    result = interpret_reply('{"updates": {}, "message": "   "}')
    assert result.message == DEFAULT_MESSAGE


def test_unknown_keys_and_string_booleans_are_dropped():
    updates = validate_updates(
        {"opacity": 0.5, "showHetero": "true", "tint": "#ABCDEF", "colorMode": "uniform"}
    )
    assert updates == {"tint": "#abcdef", "colorMode": "uniform"}


def test_non_object_updates_are_ignored():
    result = interpret_reply('{"updates": ["style"], "message": "Done."}')
    assert result.updates == {}
    assert result.message == "Done."


# ------------------------------------------------------------
# Prompt
# ------------------------------------------------------------

def test_prompt_contains_state_history_and_request():
    state = VisualState(style=Style.PUTTY, show_water=True, structure_id="4HHB")
    prompt = build_command_prompt(state, "  make it blue ", "User: hi\nAssistant: hello")

    assert "style: putty" in prompt
    assert "showWater: true" in prompt
    assert "structureId: 4HHB" in prompt
    assert "User: hi" in prompt
    assert prompt.endswith("make it blue")


def test_format_state_renders_missing_structure_as_none():
    assert "structureId: none" in format_state(VisualState())


# ------------------------------------------------------------
# CommandInterpreter
# ------------------------------------------------------------

def test_interpret_returns_validated_updates(interpreter: CommandInterpreter, stub_adapter: StubAdapter):
    stub_adapter.replies.append('{"updates": {"style": "surface", "showWater": true}, "message": "Surface with water."}')

    result = run(interpreter.interpret("show the surface and water", VisualState()))

    assert result.updates == {"style": "surface", "showWater": True}
    assert result.message == "Surface with water."
    assert stub_adapter.calls[0]["stage"] == "command"
    assert "show the surface and water" in stub_adapter.calls[0]["payload"]


def test_interpret_records_both_turns(interpreter: CommandInterpreter, stub_adapter: StubAdapter):
    stub_adapter.replies.extend(["Hello there.", '{"updates": {}, "message": "Nothing to change."}'])

    run(interpreter.interpret("hi", VisualState()))
    run(interpreter.interpret("anything else?", VisualState()))

    assert interpreter.history.as_messages() == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "Hello there."},
        {"role": "user", "content": "anything else?"},
        {"role": "assistant", "content": "Nothing to change."},
    ]
    # second prompt carries the first exchange
    assert "Assistant: Hello there." in stub_adapter.calls[1]["payload"]


def test_interpret_degrades_when_service_fails(interpreter: CommandInterpreter, stub_adapter: StubAdapter):
    stub_adapter.replies.append(LLMError("Stage 'command' failed after 3 attempts."))

    result = run(interpreter.interpret("color by chain", VisualState()))

    assert result.updates == {}
    assert result.message == UNAVAILABLE_MESSAGE
    assert interpreter.history.as_messages()[-1] == {"role": "assistant", "content": UNAVAILABLE_MESSAGE}


def test_interpret_degrades_on_unexpected_transport_error(stub_adapter: StubAdapter):
    stub_adapter.replies.append(OSError("connection reset"))
    interp = CommandInterpreter(stub_adapter, history=History(), unavailable_message="offline")  # type: ignore[arg-type]

    result = run(interp.interpret("make it blue", VisualState()))

    assert result.message == "offline"
    assert result.updates == {}


def test_interpret_rejects_empty_text(interpreter: CommandInterpreter, stub_adapter: StubAdapter):
    with pytest.raises(ValueError):
        run(interpreter.interpret("   ", VisualState()))
    assert stub_adapter.calls == []


def test_last_debug_keeps_prompt_and_attempts(interpreter: CommandInterpreter, stub_adapter: StubAdapter):
    stub_adapter.replies.append('{"updates": {"showHetero": false}, "message": "Ligands hidden."}')

    run(interpreter.interpret("hide ligands", VisualState()))

    debug = interpreter.last_debug
    assert "# User Request" in debug["prompt"]
    assert debug["attempts"][0]["success"] is True
    assert debug["updates"] == {"showHetero": False}
