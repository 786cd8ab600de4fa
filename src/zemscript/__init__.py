"""
zemscript - a small dynamically typed scripting language.

This module provides:
- Lexer: Tokenizes source code
- Parser: Builds the AST from tokens
- Printers: S-expression and canonical source renderings of the AST
- Scope analysis: Computes the variables each function literal captures
- Interpreter: Evaluates programs with closures, arrays and dictionaries

Usage:
    from zemscript import Interpreter, compile_and_run

    interpreter = Interpreter()
    value = interpreter.eval('''
        newCounter = function() {
            i = 0;
            return function() { i = i + 1; return i; };
        };
        c = newCounter();
        c();
        x = c();
    ''')
    print(value.to_display())   # 2

    result = compile_and_run("x = 1 / 3;")
    if not result.success:
        print(result.error_message)
"""

__version__ = "0.3.0"

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_source,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    Identifier,
    Lookup,
    BinaryOp,
    UnaryOp,
    ArrayLiteral,
    DictionaryEntry,
    DictionaryLiteral,
    Parameter,
    FunctionLiteral,
    FunctionCall,
    # Statements
    Statement,
    Assignment,
    CallStatement,
    ReturnStatement,
    GlobalDeclaration,
    Block,
    IfStatement,
    WhileStatement,
    ForeachStatement,
    Program,
)

from .printer import (
    to_sexpr,
    to_source,
)

from .scope import (
    ScopeTracker,
    CaptureResult,
    analyze_function,
)

from .errors import (
    ZemError,
    LexerError,
    ParserError,
    ZemRuntimeError,
    UnsetVariableError,
    InvalidTypeError,
    TypeMismatchError,
    InvalidFunctionError,
    ArithmeticFailure,
    LookupFailure,
    CallDepthError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .config import (
    InterpreterConfig,
    load_config,
)

from .runtime import (
    # Interpreter
    Interpreter,
    ExecutionResult,
    execute,
    compile_and_run,
    # Values
    Value,
    ValueKind,
    # Symbols
    SymbolTable,
    Variable,
    # Builtins
    BuiltinRegistry,
)

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',
    'parse_source',

    # AST nodes
    'AstNode',
    'AstVisitor',
    'Expression',
    'NumberLiteral',
    'StringLiteral',
    'BooleanLiteral',
    'Identifier',
    'Lookup',
    'BinaryOp',
    'UnaryOp',
    'ArrayLiteral',
    'DictionaryEntry',
    'DictionaryLiteral',
    'Parameter',
    'FunctionLiteral',
    'FunctionCall',
    'Statement',
    'Assignment',
    'CallStatement',
    'ReturnStatement',
    'GlobalDeclaration',
    'Block',
    'IfStatement',
    'WhileStatement',
    'ForeachStatement',
    'Program',

    # Printers
    'to_sexpr',
    'to_source',

    # Scope analysis
    'ScopeTracker',
    'CaptureResult',
    'analyze_function',

    # Errors
    'ZemError',
    'LexerError',
    'ParserError',
    'ZemRuntimeError',
    'UnsetVariableError',
    'InvalidTypeError',
    'TypeMismatchError',
    'InvalidFunctionError',
    'ArithmeticFailure',
    'LookupFailure',
    'CallDepthError',
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',

    # Configuration
    'InterpreterConfig',
    'load_config',

    # Runtime/Interpreter
    'Interpreter',
    'ExecutionResult',
    'execute',
    'compile_and_run',
    'Value',
    'ValueKind',
    'SymbolTable',
    'Variable',
    'BuiltinRegistry',
]
