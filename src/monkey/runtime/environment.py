"""
Lexical environments for the Monkey interpreter.

Environments form a chain via `parent`. Function calls and macro expansion
evaluate in a child of the environment captured when the function or macro
was defined, which is what makes closures see their defining scope.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .values import Value


@dataclass(eq=False)
class Environment:
    """
    A single scope containing name bindings.

    Lookups walk the parent chain; bindings always go into this scope and
    never write through to a parent.
    """
    variables: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Environment"] = None
    name: str = "global"  # For debugging

    def lookup(self, name: str) -> Optional[Value]:
        """Look up a name in this scope or parent scopes; None if unbound."""
        scope = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return None

    def bind(self, name: str, value: Value) -> Value:
        """Bind a name in this scope (shadowing any parent binding)."""
        self.variables[name] = value
        return value

    def child_scope(self, name: str = "call") -> "Environment":
        """Create a new scope whose parent is this one."""
        return Environment(parent=self, name=name)

    def contains(self, name: str) -> bool:
        return self.lookup(name) is not None

    def depth(self) -> int:
        """Number of scopes between this one and the root."""
        count = 0
        scope = self.parent
        while scope is not None:
            count += 1
            scope = scope.parent
        return count

    def __repr__(self) -> str:
        return f"Environment(name={self.name!r}, names={sorted(self.variables)}, depth={self.depth()})"
