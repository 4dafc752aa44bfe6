"""
Monkey Runtime - Tree-walking interpreter.

This module provides:
- Interpreter: Evaluates a parsed program to a runtime value
- Value and its variants: The runtime object model
- Environment: Lexical scopes with parent linkage for closures
- BuiltinRegistry: Built-in function implementations
- macros: Text-macro decomposition and expansion
"""

from .values import (
    ObjectType,
    HashKey,
    HashPair,
    Value,
    Integer,
    Boolean,
    String,
    Null,
    Array,
    Hash,
    Function,
    Macro,
    Builtin,
    Return,
    Error,
    TRUE,
    FALSE,
    NULL,
    native_bool,
    new_error,
    is_error,
    is_signal,
)

from .environment import Environment

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    evaluate,
    run,
)

__all__ = [
    # Values
    'ObjectType',
    'HashKey',
    'HashPair',
    'Value',
    'Integer',
    'Boolean',
    'String',
    'Null',
    'Array',
    'Hash',
    'Function',
    'Macro',
    'Builtin',
    'Return',
    'Error',
    'TRUE',
    'FALSE',
    'NULL',
    'native_bool',
    'new_error',
    'is_error',
    'is_signal',

    # Environment
    'Environment',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',

    # Interpreter
    'Interpreter',
    'evaluate',
    'run',
]
