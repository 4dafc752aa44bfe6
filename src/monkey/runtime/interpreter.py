"""
Tree-walking interpreter for Monkey programs.

Evaluates AST nodes to runtime values. Failures are Error values, never
exceptions: any Error stops the enclosing statement sequence and is returned
unchanged up to the program boundary. Return values travel the same way
until a function call or the program unwraps them.
"""

from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Union
import logging

from .values import (
    Value, Integer, Boolean, String, Array, Hash, HashPair, Function, Macro,
    Builtin, Return, Error,
    TRUE, FALSE, NULL, native_bool, new_error, is_signal, wrap_int64,
)
from .environment import Environment
from .builtins import BuiltinRegistry, get_builtin_registry
from . import macros
from ..lexer import tokenize
from ..parser import parse

from ..ast import (
    AstNode, AstVisitor, Program, Block,
    LetStatement, ReturnStatement, ExpressionStatement,
    Expression, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    TemplateString, ArrayLiteral, HashLiteral, PrefixExpression, InfixExpression,
    IfExpression, FunctionLiteral, MacroLiteral, CallExpression, IndexExpression,
)


logger = logging.getLogger(__name__)


def _int_divide(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _int_modulo(a: int, b: int) -> int:
    """Remainder with the sign of the dividend."""
    return a - b * _int_divide(a, b)


INTEGER_ARITHMETIC: Dict[str, Callable[[int, int], int]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _int_divide,
    "%": _int_modulo,
}

INTEGER_COMPARISONS: Dict[str, Callable[[int, int], bool]] = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}

# Longest string `*` may build
MAX_STRING_LENGTH = 1 << 28

BOOLEAN_OPERATORS: Dict[str, Callable[[bool, bool], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "&": lambda a, b: a and b,
    "|": lambda a, b: a or b,
}


class Interpreter(AstVisitor):
    """
    Tree-walking interpreter.

    Evaluates AST nodes by dispatching to `visit_<NodeClass>` methods. The
    environment the current node evaluates in is `self.env`; calls and
    macro expansions swap it for the duration of the body.
    """

    def __init__(self, env: Optional[Environment] = None,
                 builtins: Optional[BuiltinRegistry] = None):
        self.env = env if env is not None else Environment()
        self.builtins = builtins if builtins is not None else get_builtin_registry()

    @contextmanager
    def _scope(self, env: Environment):
        """Evaluate within `env`, restoring the previous environment afterwards."""
        old_env = self.env
        self.env = env
        try:
            yield env
        finally:
            self.env = old_env

    def evaluate(self, node: AstNode) -> Value:
        return node.accept(self)

    def evaluate_in(self, node: AstNode, env: Environment) -> Value:
        with self._scope(env):
            return node.accept(self)

    def generic_visit(self, node: AstNode) -> Value:
        return new_error("Not implemented eval for %s!", node.__class__.__name__)

    def _evaluate_all(self, expressions: List[Expression]) -> Union[List[Value], Value]:
        """Evaluate expressions left to right, stopping at the first Return or Error."""
        values = []
        for expr in expressions:
            value = self.evaluate(expr)
            if is_signal(value):
                return value
            values.append(value)
        return values

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_Program(self, node: Program) -> Value:
        result: Value = NULL
        for stmt in node.statements:
            result = self.evaluate(stmt)
            if isinstance(result, Return):
                return result.value
            if isinstance(result, Error):
                return result
        return result

    def visit_Block(self, node: Block) -> Value:
        result: Value = NULL
        for stmt in node.statements:
            result = self.evaluate(stmt)
            if isinstance(result, (Return, Error)):
                return result
        return result

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> Value:
        return self.evaluate(node.expression)

    def visit_LetStatement(self, node: LetStatement) -> Value:
        value = self.evaluate(node.value)
        if is_signal(value):
            return value
        return self.env.bind(node.name.name, value)

    def visit_ReturnStatement(self, node: ReturnStatement) -> Value:
        value = self.evaluate(node.value)
        if is_signal(value):
            return value
        return Return(value)

    # =========================================================================
    # Literals
    # =========================================================================

    def visit_IntegerLiteral(self, node: IntegerLiteral) -> Value:
        return Integer(node.value)

    def visit_BooleanLiteral(self, node: BooleanLiteral) -> Value:
        return native_bool(node.value)

    def visit_StringLiteral(self, node: StringLiteral) -> Value:
        return String(node.value)

    def visit_TemplateString(self, node: TemplateString) -> Value:
        parts = []
        for part in node.parts:
            value = self.evaluate(part)
            if is_signal(value):
                return value
            parts.append(value.inspect())
        return String("".join(parts))

    def visit_ArrayLiteral(self, node: ArrayLiteral) -> Value:
        elements = self._evaluate_all(node.elements)
        if not isinstance(elements, list):
            return elements
        return Array(elements)

    def visit_HashLiteral(self, node: HashLiteral) -> Value:
        pairs = {}
        for key_expr, value_expr in node.pairs:
            key = self.evaluate(key_expr)
            if is_signal(key):
                return key
            hash_key = key.hash_key()
            if hash_key is None:
                return new_error("unusable as hash key: %s", key.type)
            value = self.evaluate(value_expr)
            if is_signal(value):
                return value
            pairs[hash_key] = HashPair(key, value)
        return Hash(pairs)

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> Value:
        return Function(node.parameters, node.body, self.env)

    def visit_MacroLiteral(self, node: MacroLiteral) -> Value:
        patterns = self._evaluate_all(node.patterns)
        if not isinstance(patterns, list):
            return patterns
        for pattern in patterns:
            if not isinstance(pattern, (String, Builtin)):
                return new_error("macro pattern must be STRING or BUILTIN, got %s", pattern.type)
        return Macro(node.parameters, patterns, node.body, self.env)

    # =========================================================================
    # Names
    # =========================================================================

    def visit_Identifier(self, node: Identifier) -> Value:
        value = self.env.lookup(node.name)
        if value is not None:
            return value
        value = self.builtins.resolve(node.name, self.env)
        if value is not None:
            return value
        return new_error("identifier not found: %s", node.name)

    # =========================================================================
    # Operators
    # =========================================================================

    def visit_PrefixExpression(self, node: PrefixExpression) -> Value:
        right = self.evaluate(node.right)
        if is_signal(right):
            return right

        if node.operator == "!":
            if isinstance(right, Integer):
                return native_bool(right.value <= 0)
            if isinstance(right, Boolean):
                return FALSE if right is TRUE else TRUE
        elif node.operator == "-":
            if isinstance(right, Integer):
                return Integer(wrap_int64(-right.value))
        return new_error("Not implemented %s for %s", node.operator, right.type)

    def visit_InfixExpression(self, node: InfixExpression) -> Value:
        left = self.evaluate(node.left)
        if is_signal(left):
            return left
        right = self.evaluate(node.right)
        if is_signal(right):
            return right

        op = node.operator
        result: Optional[Value] = None
        if isinstance(left, Integer) and isinstance(right, Integer):
            result = self._integer_infix(op, left.value, right.value)
        elif isinstance(left, Boolean) and isinstance(right, Boolean):
            if op in BOOLEAN_OPERATORS:
                result = native_bool(BOOLEAN_OPERATORS[op](left.value, right.value))
        elif isinstance(left, String) and isinstance(right, String):
            result = self._string_infix(op, left.value, right.value)
        elif isinstance(left, Integer) and isinstance(right, String):
            result = self._mixed_infix(op, str(left.value) + right.value, right.value, left.value)
        elif isinstance(left, String) and isinstance(right, Integer):
            result = self._mixed_infix(op, left.value + str(right.value), left.value, right.value)
        elif op == "==":
            result = native_bool(left is right)
        elif op == "!=":
            result = native_bool(left is not right)

        if result is None:
            return new_error("Operation %s between %s and %s not implemented!",
                             op, left.type, right.type)
        return result

    def _integer_infix(self, op: str, a: int, b: int) -> Optional[Value]:
        if op in INTEGER_COMPARISONS:
            return native_bool(INTEGER_COMPARISONS[op](a, b))
        if op not in INTEGER_ARITHMETIC:
            return None
        if b == 0 and op == "/":
            return new_error("division by zero")
        if b == 0 and op == "%":
            return new_error("modulo by zero")
        return Integer(wrap_int64(INTEGER_ARITHMETIC[op](a, b)))

    def _string_infix(self, op: str, a: str, b: str) -> Optional[Value]:
        if op == "+":
            return String(a + b)
        if op == "-":
            return String(a.replace(b, "") if b else a)
        if op == "==":
            return native_bool(a == b)
        if op == "!=":
            return native_bool(a != b)
        return None

    def _mixed_infix(self, op: str, joined: str, text: str, count: int) -> Optional[Value]:
        """String/Integer pairs in either order: `+` joins, `*` repeats."""
        if op == "+":
            return String(joined)
        if op == "*":
            if len(text) * max(count, 0) > MAX_STRING_LENGTH:
                return new_error("string repetition too large: %d characters", len(text) * count)
            return String(text * count)
        return None

    # =========================================================================
    # Control Flow
    # =========================================================================

    def visit_IfExpression(self, node: IfExpression) -> Value:
        condition = self.evaluate(node.condition)
        if is_signal(condition):
            return condition

        if isinstance(condition, Boolean):
            taken = condition is TRUE
        elif isinstance(condition, Integer):
            taken = condition.value > 0
        else:
            return NULL

        if taken:
            return self.evaluate(node.consequence)
        if node.alternative is not None:
            return self.evaluate(node.alternative)
        return NULL

    # =========================================================================
    # Calls and Indexing
    # =========================================================================

    def visit_CallExpression(self, node: CallExpression) -> Value:
        callee = self.evaluate(node.function)
        if is_signal(callee):
            return callee

        if isinstance(callee, Builtin):
            args = self._evaluate_all(node.arguments)
            if not isinstance(args, list):
                return args
            return callee.fn(*args)

        if isinstance(callee, Function):
            return self._call_function(callee, node.arguments)

        if isinstance(callee, Macro):
            return self._call_macro(callee, node.arguments)

        return new_error("%s callable not supported yet", callee.type)

    def _call_function(self, fn: Function, arguments: List[Expression]) -> Value:
        missing = len(fn.parameters) - len(arguments)
        if missing > 0:
            return new_error("function %s is missing %d parameters", fn.inspect(), missing)

        args = self._evaluate_all(arguments)
        if not isinstance(args, list):
            return args

        scope = fn.env.child_scope("call")
        for param, arg in zip(fn.parameters, args):
            scope.bind(param.name, arg)

        result = self.evaluate_in(fn.body, scope)
        if isinstance(result, Return):
            return result.value
        return result

    def _call_macro(self, macro: Macro, arguments: List[Expression]) -> Value:
        if len(arguments) != 1:
            return new_error("wrong number of arguments. got=%d, want=1 string template",
                             len(arguments))
        arg = self.evaluate(arguments[0])
        if is_signal(arg):
            return arg
        if not isinstance(arg, String):
            return new_error("argument to macro must be STRING, got %s", arg.type)
        return macros.expand(macro, arg.value, self.evaluate_in)

    def visit_IndexExpression(self, node: IndexExpression) -> Value:
        left = self.evaluate(node.left)
        if is_signal(left):
            return left

        if not isinstance(left, (Array, String, Hash)):
            return new_error("indexing not supported for %s yet", left.type)

        index = self.evaluate(node.index)
        if is_signal(index):
            return index

        if isinstance(left, Hash):
            hash_key = index.hash_key()
            if hash_key is None:
                return new_error("indexing by %s is not yet supported", index.type)
            pair = left.pairs.get(hash_key)
            return pair.value if pair is not None else NULL

        if not isinstance(index, Integer):
            return new_error("indexing by %s is not yet supported", index.type)
        items = left.elements if isinstance(left, Array) else left.value
        if not 0 <= index.value < len(items):
            return NULL
        item = items[index.value]
        return String(item) if isinstance(left, String) else item


def evaluate(node: AstNode, env: Optional[Environment] = None) -> Value:
    """
    Evaluate a parsed node (usually a Program) in `env`.

    A fresh root environment is used when none is given.
    """
    return Interpreter(env).evaluate(node)


def run(source: str, env: Optional[Environment] = None,
        filename: Optional[str] = None) -> Value:
    """
    Lex, parse and evaluate source text in one call.

        from monkey.runtime import run

        result = run('let add = fn(a, b) { a + b }; add(2, 3)')
        print(result.inspect())   # 5

    Args:
        source: Monkey source code
        env: Environment to evaluate in (a fresh root environment if omitted)
        filename: Optional filename for error messages

    Returns:
        The value of the last statement, or the Error that stopped evaluation

    Raises:
        LexerError, ParserError: If the source does not lex or parse
    """
    logger.debug("running %s in %r", filename or "<input>", env)
    tokens = tokenize(source, filename)
    program = parse(tokens, filename, source)
    return evaluate(program, env)
