"""
Runtime values for the Monkey interpreter.

Every value the evaluator produces is an instance of one of the Value
subclasses below. Return and Error are control-flow signals: the evaluator
intercepts them at statement-sequence and call boundaries, so they never end
up stored in arrays, hashes or bindings.

Booleans and null are the module-level singletons TRUE, FALSE and NULL;
compare them with `is`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, TYPE_CHECKING

from ..ast import Block, Identifier

if TYPE_CHECKING:
    from .environment import Environment


INT64_MASK = (1 << 64) - 1
INT64_SIGN = 1 << 63


def wrap_int64(n: int) -> int:
    """Wrap a Python int to signed 64-bit two's complement."""
    n &= INT64_MASK
    return n - (1 << 64) if n & INT64_SIGN else n


class ObjectType(Enum):
    """Runtime type tags; the names appear in error messages."""
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    NULL = "NULL"
    ARRAY = "ARRAY"
    HASH = "HASH"
    FUNCTION = "FUNCTION"
    MACRO = "MACRO"
    BUILTIN = "BUILTIN"
    RETURN = "RETURN"
    ERROR = "ERROR"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class HashKey:
    """
    Key used to index a Hash.

    Built only from Integer, Boolean and String values; the type tag keeps
    `1` and `"1"` (and `1` and `true`) apart.
    """
    type: ObjectType
    value: Any


class Value:
    """Base class for runtime values."""
    type: ClassVar[ObjectType]

    def inspect(self) -> str:
        raise NotImplementedError

    def hash_key(self) -> Optional[HashKey]:
        """Return the HashKey for this value, or None if it cannot be a key."""
        return None

    def __str__(self) -> str:
        return self.inspect()


@dataclass(eq=False)
class Integer(Value):
    type: ClassVar[ObjectType] = ObjectType.INTEGER
    value: int

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value)


@dataclass(eq=False)
class Boolean(Value):
    type: ClassVar[ObjectType] = ObjectType.BOOLEAN
    value: bool

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value)


@dataclass(eq=False)
class String(Value):
    type: ClassVar[ObjectType] = ObjectType.STRING
    value: str

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value)


class Null(Value):
    type: ClassVar[ObjectType] = ObjectType.NULL

    def inspect(self) -> str:
        return "null"

    def __repr__(self) -> str:
        return "Null()"


@dataclass(eq=False)
class Array(Value):
    type: ClassVar[ObjectType] = ObjectType.ARRAY
    elements: List[Value] = field(default_factory=list)

    def inspect(self) -> str:
        return "[" + ", ".join(e.inspect() for e in self.elements) + "]"


@dataclass(frozen=True)
class HashPair:
    key: Value
    value: Value


@dataclass(eq=False)
class Hash(Value):
    type: ClassVar[ObjectType] = ObjectType.HASH
    pairs: Dict[HashKey, HashPair] = field(default_factory=dict)

    def inspect(self) -> str:
        items = (f"{p.key.inspect()}: {p.value.inspect()}" for p in self.pairs.values())
        return "{" + ", ".join(items) + "}"


@dataclass(eq=False)
class Function(Value):
    """A user function closing over the environment it was defined in."""
    type: ClassVar[ObjectType] = ObjectType.FUNCTION
    parameters: List[Identifier]
    body: Block
    env: "Environment" = field(repr=False)

    def inspect(self) -> str:
        return "<fn(" + ", ".join(p.name for p in self.parameters) + ")>"


@dataclass(eq=False)
class Macro(Value):
    """
    A text macro.

    `patterns` run parallel to `parameters`; each is a String (literal text
    to consume) or a Builtin (predicate a capture must satisfy).
    """
    type: ClassVar[ObjectType] = ObjectType.MACRO
    parameters: List[Identifier]
    patterns: List[Value]
    body: Block
    env: "Environment" = field(repr=False)

    def inspect(self) -> str:
        return "<macro(" + ", ".join(p.name for p in self.parameters) + ")>"


@dataclass(eq=False)
class Builtin(Value):
    """A native function taking evaluated arguments and returning a Value."""
    type: ClassVar[ObjectType] = ObjectType.BUILTIN
    name: str
    fn: Callable[..., Value] = field(repr=False)

    def inspect(self) -> str:
        return f"<builtin {self.name}>"


@dataclass(eq=False)
class Return(Value):
    type: ClassVar[ObjectType] = ObjectType.RETURN
    value: Value

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass(eq=False)
class Error(Value):
    type: ClassVar[ObjectType] = ObjectType.ERROR
    message: str

    def inspect(self) -> str:
        return self.message


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool(value: bool) -> Boolean:
    """Map a Python bool onto the TRUE/FALSE singletons."""
    return TRUE if value else FALSE


def new_error(fmt: str, *args: Any) -> Error:
    """Create an Error value from a %-style format string."""
    return Error(fmt % args if args else fmt)


def is_error(value: Optional[Value]) -> bool:
    return value is not None and value.type == ObjectType.ERROR


def is_signal(value: Optional[Value]) -> bool:
    """True for Return and Error, which stop evaluation of the enclosing expression."""
    return value is not None and value.type in (ObjectType.RETURN, ObjectType.ERROR)
