"""
Monkey - a small dynamically-typed language with a tree-walking interpreter.

This package provides:
- Lexer: Tokenizes Monkey source code
- Parser: Builds an AST from tokens
- Runtime: Evaluates programs (object model, environments, builtins, macros)
- Config/REPL: The `monkey` command-line front end

Usage:
    from monkey import tokenize, parse, evaluate, Environment

    tokens = tokenize('let double = fn(x) { x * 2 }; double(21)')
    program = parse(tokens)
    result = evaluate(program, Environment())
    print(result.inspect())   # 42
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    TemplateFragment,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Identifier,
    IntegerLiteral,
    BooleanLiteral,
    StringLiteral,
    TemplateString,
    ArrayLiteral,
    HashLiteral,
    PrefixExpression,
    InfixExpression,
    IfExpression,
    FunctionLiteral,
    MacroLiteral,
    CallExpression,
    IndexExpression,
    # Statements
    Statement,
    LetStatement,
    ReturnStatement,
    ExpressionStatement,
    Block,
    Program,
)

from .errors import (
    MonkeyError,
    LexerError,
    ParserError,
    ConfigError,
    Diagnostic,
    ErrorSeverity,
)

from .runtime import (
    Environment,
    Interpreter,
    evaluate,
    run,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'TemplateFragment',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',

    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Identifier',
    'IntegerLiteral',
    'BooleanLiteral',
    'StringLiteral',
    'TemplateString',
    'ArrayLiteral',
    'HashLiteral',
    'PrefixExpression',
    'InfixExpression',
    'IfExpression',
    'FunctionLiteral',
    'MacroLiteral',
    'CallExpression',
    'IndexExpression',
    'Statement',
    'LetStatement',
    'ReturnStatement',
    'ExpressionStatement',
    'Block',
    'Program',

    # Errors
    'MonkeyError',
    'LexerError',
    'ParserError',
    'ConfigError',
    'Diagnostic',
    'ErrorSeverity',

    # Runtime
    'Environment',
    'Interpreter',
    'evaluate',
    'run',
]
