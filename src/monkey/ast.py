"""
Abstract Syntax Tree (AST) node definitions for the Monkey language.

The AST represents the structure of a parsed program, which is then
evaluated by monkey.runtime.interpreter. Every node renders back to source
text with str(); infix and prefix expressions are fully parenthesised so the
rendering shows how the parser grouped them.
"""

from dataclasses import dataclass
from typing import Optional, List, Tuple, Any
from abc import ABC
from .tokens import SourceSpan


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Identifier(Expression):
    """A variable or builtin name reference."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class IntegerLiteral(Expression):
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class BooleanLiteral(Expression):
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass
class StringLiteral(Expression):
    value: str

    def __str__(self) -> str:
        return quote_string(self.value)


@dataclass
class TemplateString(Expression):
    """A template literal: literal text interleaved with identifier lookups."""
    parts: List[Expression]  # StringLiteral or Identifier

    def __str__(self) -> str:
        out = []
        for part in self.parts:
            if isinstance(part, Identifier):
                out.append("{" + part.name + "}")
            else:
                text = part.value.replace("\\", "\\\\")
                out.append(text.replace("`", "\\`").replace("{", "\\{").replace("}", "\\}"))
        return "`" + "".join(out) + "`"


@dataclass
class ArrayLiteral(Expression):
    elements: List[Expression]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass
class HashLiteral(Expression):
    """A hash literal; pairs keep source order."""
    pairs: List[Tuple[Expression, Expression]]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


@dataclass
class PrefixExpression(Expression):
    """A prefix operation (!x, -n)."""
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass
class InfixExpression(Expression):
    """A binary operation (a + b, x & y)."""
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class IfExpression(Expression):
    condition: Expression
    consequence: "Block"
    alternative: Optional["Block"] = None

    def __str__(self) -> str:
        text = f"if {self.condition} {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass
class FunctionLiteral(Expression):
    parameters: List[Identifier]
    body: "Block"

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


@dataclass
class MacroLiteral(Expression):
    """
    A macro definition: macro(name: pattern, ...) { body }.

    `parameters` and `patterns` are parallel lists; each pattern must
    evaluate to a String (literal text) or a Builtin (predicate).
    """
    parameters: List[Identifier]
    patterns: List[Expression]
    body: "Block"

    def __str__(self) -> str:
        params = ", ".join(f"{p}: {pat}" for p, pat in zip(self.parameters, self.patterns))
        return f"macro({params}) {self.body}"


@dataclass
class CallExpression(Expression):
    """A call (e.g., add(1, 2))."""
    function: Expression
    arguments: List[Expression]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass
class IndexExpression(Expression):
    """Index access (e.g., list[0])."""
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class LetStatement(Statement):
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"


@dataclass
class ReturnStatement(Statement):
    value: Expression

    def __str__(self) -> str:
        return f"return {self.value};"


@dataclass
class ExpressionStatement(Statement):
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass
class Block(Statement):
    """A braced statement sequence."""
    statements: List[Statement]

    def __str__(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + " ".join(str(s) for s in self.statements) + " }"


# =============================================================================
# Top-Level
# =============================================================================

@dataclass
class Program(AstNode):
    """The root node: a whole source file or REPL line."""
    statements: List[Statement]

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)


_STRING_ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\n': '\\n',
    '\t': '\\t',
    '\r': '\\r',
    '\0': '\\0',
}


def quote_string(text: str) -> str:
    """Render `text` as a double-quoted literal the lexer reads back unchanged."""
    out = []
    for ch in text:
        if ch in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7f:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'
