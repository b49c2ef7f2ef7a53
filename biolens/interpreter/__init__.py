# biolens/interpreter/__init__.py

"""
1) Adapter ---------- How to talk to the model
2) Prompt Builders -- How to describe the viewer to it
3) Prompt Texts ----- What instructions to give
4) Response --------- How to trust (or not) what comes back
5) Interpreter ------ One command, one round trip


adapter.py
Transport + normalization. Nothing else knows about Ollama; everything else
calls adapter.request_text(...).

prompt_builders.py
Converts the current VisualState (and recent conversation) into plain
key/value prompt text.

prompt_texts.py
The system instruction asking for a single JSON object {updates, message}.

response.py
raw text -> PlainText | Candidate -> Interpretation.
Unknown keys and out-of-vocabulary values are dropped, never applied.
A reply that is not JSON is shown to the user as-is.

interpreter.py
CommandInterpreter.interpret(text, state). Service failures become a fixed
fallback message; it never raises for them.
"""

from .adapter import LLMAdapter, LLMError
from .interpreter import CommandInterpreter, InterpreterError, UNAVAILABLE_MESSAGE
from .response import DEFAULT_MESSAGE, interpret_reply

__all__ = [
    "LLMAdapter",
    "LLMError",
    "CommandInterpreter",
    "InterpreterError",
    "UNAVAILABLE_MESSAGE",
    "DEFAULT_MESSAGE",
    "interpret_reply",
]
