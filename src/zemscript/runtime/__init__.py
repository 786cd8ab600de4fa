"""
zemscript runtime - tree-walking interpreter.

This module provides:
- Interpreter: Evaluates parsed programs
- Value: Runtime values tagged with their kind
- SymbolTable / Variable: Shared variable cells for closures and globals
- ExecutionContext: Call frames and the global table
- BuiltinRegistry: Built-in function implementations
"""

from .values import (
    Value,
    ValueKind,
    UserFunction,
    NativeFunction,
    TRUE,
    FALSE,
    number_val,
    string_val,
    bool_val,
    array_val,
    dict_val,
    function_val,
    values_equal,
    compare,
)

from .symbols import (
    Variable,
    SymbolTable,
)

from .context import (
    CallFrame,
    ExecutionContext,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    execute,
    compile_and_run,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'UserFunction',
    'NativeFunction',
    'TRUE',
    'FALSE',
    'number_val',
    'string_val',
    'bool_val',
    'array_val',
    'dict_val',
    'function_val',
    'values_equal',
    'compare',

    # Symbols
    'Variable',
    'SymbolTable',

    # Context
    'CallFrame',
    'ExecutionContext',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'execute',
    'compile_and_run',
]
