"""
Macro expansion.

A macro call takes one string and carves it into one capture per parameter,
left to right, with a cursor into the input:

- A Builtin pattern is a predicate. The capture grows one character at a
  time while the predicate accepts it; the first character that makes it
  fail is left for the next parameter.
- A String pattern is literal text. If the input at the cursor starts with
  it, the capture is the literal and the cursor moves past it. Otherwise the
  capture is empty and the rest of the input is dropped.

Each capture is bound as a String in a child of the macro's captured
environment, and the body is evaluated there.
"""

from typing import Callable, List, Tuple
import logging

from .environment import Environment
from .values import Value, String, Builtin, Macro, Return, is_error
from ..ast import Block


logger = logging.getLogger(__name__)

Capture = Tuple[str, str]


def match_predicate(predicate: Builtin, text: str, cursor: int) -> int:
    """Return the end of the longest prefix from `cursor` the predicate accepts."""
    end = cursor
    while end < len(text):
        if is_error(predicate.fn(String(text[cursor:end + 1]))):
            break
        end += 1
    return end


def match_literal(literal: str, text: str, cursor: int) -> int:
    """Return the end of `literal` if it starts at `cursor`, else -1."""
    candidate = ""
    end = cursor
    while len(candidate) < len(literal) and end < len(text):
        candidate += text[end]
        end += 1
    return end if candidate == literal else -1


def decompose(macro: Macro, text: str) -> List[Capture]:
    """Split `text` into (parameter name, captured text) pairs."""
    captures: List[Capture] = []
    cursor = 0
    for param, pattern in zip(macro.parameters, macro.patterns):
        if isinstance(pattern, Builtin):
            end = match_predicate(pattern, text, cursor)
            capture = text[cursor:end]
            cursor = end
        else:
            end = match_literal(pattern.value, text, cursor)
            if end < 0:
                capture = ""
                cursor = len(text)
            else:
                capture = pattern.value
                cursor = end
        captures.append((param.name, capture))
    logger.debug("macro %s captured %r", macro.inspect(), captures)
    return captures


def expand(macro: Macro, text: str,
           evaluate: Callable[[Block, Environment], Value]) -> Value:
    """
    Bind the captures of `text` and evaluate the macro body.

    `evaluate` runs a block in an environment; a Return from the body is
    unwrapped like a function result.
    """
    scope = macro.env.child_scope("macro")
    for name, capture in decompose(macro, text):
        scope.bind(name, String(capture))
    result = evaluate(macro.body, scope)
    if isinstance(result, Return):
        return result.value
    return result
