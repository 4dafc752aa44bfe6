"""
Built-in function registry for the Monkey interpreter.

Builtins are consulted only after a name fails to resolve through the
environment chain, so user bindings shadow them. Each builtin checks its own
argument count and kinds and reports problems as Error values.

The validators `int`, `ident`, `idents` and `space` double as macro-pattern
predicates (see monkey.runtime.macros): they return their argument on
success and an Error otherwise.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, TYPE_CHECKING
import logging
import re

from .values import (
    Value, Integer, String, Array, Builtin,
    NULL, new_error, wrap_int64,
)
from ..ast import quote_string
from ..errors import MonkeyError

if TYPE_CHECKING:
    from .environment import Environment


logger = logging.getLogger(__name__)

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

VALIDATOR_PATTERNS = {
    "ident": re.compile(r"[A-Za-z_]+"),
    "idents": re.compile(r"[A-Za-z_ ]+"),
    "space": re.compile(r"[ \t\n\r]+"),
}


@dataclass
class BuiltinFunction:
    """
    A built-in function and its implementation.

    When `needs_env` is set the implementation receives the calling
    environment as its first argument.
    """
    name: str
    implementation: Callable[..., Value]
    doc: str = ""
    needs_env: bool = False


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name; `resolve` turns a name into the
    runtime value an identifier evaluates to.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._constants: Dict[str, Value] = {}
        self._values: Dict[str, Builtin] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func
        self._values.pop(func.name, None)

    def register_constant(self, name: str, value: Value) -> None:
        self._constants[name] = value

    def names(self) -> List[str]:
        return sorted([*self._functions, *self._constants])

    def resolve(self, name: str, env: "Environment") -> Optional[Value]:
        """
        Return the value bound to a builtin name, or None if there is none.

        Builtins that need the calling environment are bound to `env`;
        every other builtin resolves to the same Builtin value each time.
        """
        if name in self._constants:
            return self._constants[name]
        func = self._functions.get(name)
        if func is None:
            return None
        if func.needs_env:
            return Builtin(name, partial(func.implementation, env))
        if name not in self._values:
            self._values[name] = Builtin(name, func.implementation)
        return self._values[name]

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self.register_constant("null", NULL)
        self._register_sequence_functions()
        self._register_text_functions()
        self._register_validator_functions()
        self._register_io_functions()

    # --- Sequence Functions ---

    def _register_sequence_functions(self) -> None:
        """Register len, head, last, tail and push."""

        def _len(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if isinstance(arg, String):
                return Integer(len(arg.value))
            if isinstance(arg, Array):
                return Integer(len(arg.elements))
            return new_error("argument to `len` not supported, got %s", arg.type)

        def _head(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if isinstance(arg, Array):
                return arg.elements[0] if arg.elements else NULL
            if isinstance(arg, String):
                return String(arg.value[0]) if arg.value else NULL
            return new_error("head is not implemented for %s", arg.type)

        def _last(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if isinstance(arg, Array):
                return arg.elements[-1] if arg.elements else NULL
            if isinstance(arg, String):
                return String(arg.value[-1]) if arg.value else NULL
            return new_error("last is not implemented for %s", arg.type)

        def _tail(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if isinstance(arg, Array):
                return Array(arg.elements[1:])
            if isinstance(arg, String):
                return String(arg.value[1:]) if arg.value else NULL
            return new_error("tail is not implemented for %s", arg.type)

        def _push(*args: Value) -> Value:
            if len(args) != 2:
                return new_error("wrong number of arguments. got=%d, want=2", len(args))
            arr, item = args
            if isinstance(arr, Array):
                return Array([*arr.elements, item])
            return new_error("push is not implemented for %s", arr.type)

        sequence_funcs = [
            ("len", _len, "Number of characters in a string or elements in an array."),
            ("head", _head, "First element of an array or first character of a string."),
            ("last", _last, "Last element of an array or last character of a string."),
            ("tail", _tail, "Everything but the first element or character."),
            ("push", _push, "New array with a value appended."),
        ]
        for name, impl, doc in sequence_funcs:
            self.register(BuiltinFunction(name, impl, doc))

    # --- Text Functions ---

    def _register_text_functions(self) -> None:
        """Register string, echo and raw."""

        def _join(args) -> str:
            return "".join(a.inspect() for a in args)

        def _string(*args: Value) -> Value:
            return String(_join(args))

        def _echo(*args: Value) -> Value:
            print(_join(args))
            return NULL

        def _raw(*args: Value) -> Value:
            return String(quote_string(_join(args)))

        self.register(BuiltinFunction("string", _string, "Concatenate the text of all arguments."))
        self.register(BuiltinFunction("echo", _echo, "Print the text of all arguments."))
        self.register(BuiltinFunction("raw", _raw, "Text of all arguments as a quoted literal."))

    # --- Validators / Macro Predicates ---

    def _register_validator_functions(self) -> None:
        """Register int, ident, idents and space."""

        def _int(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if isinstance(arg, Integer):
                return arg
            if isinstance(arg, String):
                if INTEGER_PATTERN.fullmatch(arg.value):
                    number = int(arg.value)
                    if wrap_int64(number) == number:
                        return Integer(number)
                return new_error("could not parse %s as integer", quote_string(arg.value))
            return new_error("argument to `int` not supported yet, got %s", arg.type)

        self.register(BuiltinFunction("int", _int, "Parse a string as an integer."))

        def _make_validator(name: str, pattern: "re.Pattern[str]") -> Callable[..., Value]:
            def _validate(*args: Value) -> Value:
                if len(args) != 1:
                    return new_error("wrong number of arguments for %s. got=%d, want=1",
                                     name, len(args))
                arg = args[0]
                if isinstance(arg, String) and pattern.fullmatch(arg.value):
                    return arg
                return new_error("argument to `%s` not matched, got %s", name, arg.type)
            return _validate

        for name, pattern in VALIDATOR_PATTERNS.items():
            self.register(BuiltinFunction(
                name, _make_validator(name, pattern),
                f"Return the argument if it is a string matching {pattern.pattern} in full.",
            ))

    # --- I/O and Evaluation ---

    def _register_io_functions(self) -> None:
        """Register read and eval."""

        def _read(*args: Value) -> Value:
            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if not isinstance(arg, String):
                return new_error("argument to `read` not supported yet, got %s", arg.type)
            try:
                with open(arg.value, encoding="utf-8") as f:
                    return String(f.read())
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("read(%r) failed: %s", arg.value, e)
                return new_error("could not read file %s", arg.value)

        def _eval(env: "Environment", *args: Value) -> Value:
            # Re-enters the whole pipeline in the caller's environment
            from .interpreter import run

            if len(args) != 1:
                return new_error("wrong number of arguments. got=%d, want=1", len(args))
            arg = args[0]
            if not isinstance(arg, String):
                return new_error("argument to `eval` not supported yet, got %s", arg.type)
            logger.debug("eval re-entry in %r", env)
            try:
                return run(arg.value, env)
            except MonkeyError as e:
                return new_error("could not evaluate input: %s", e.diagnostic.message)

        self.register(BuiltinFunction("read", _read, "Contents of a file as a string."))
        self.register(BuiltinFunction("eval", _eval, "Evaluate source text in the calling scope.",
                                      needs_env=True))


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global builtin registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
