"""
Exceptions and diagnostics for zemscript.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors

Every error carries a ``Diagnostic`` whose span points at the source
construct that triggered it, so hosts can report a 1-based line and column.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, E401, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    related: List["Diagnostic"] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        for related in self.related:
            parts.append(f"    --> {related.span.start}: {related.message}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
            "related": [r.to_json() for r in self.related],
        }


class ZemError(Exception):
    """Base exception for all zemscript errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def span(self) -> SourceSpan:
        return self.diagnostic.span

    @property
    def line(self) -> int:
        return self.diagnostic.span.start.line

    @property
    def column(self) -> int:
        return self.diagnostic.span.start.column

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def with_source_line(self, source_line: Optional[str]) -> "ZemError":
        """Attach the offending source line if none was recorded."""
        if self.diagnostic.source_line is None:
            self.diagnostic.source_line = source_line
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(ZemError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(ZemError):
    """Error during parsing (E1xx)."""
    pass


class ZemRuntimeError(ZemError):
    """Error during evaluation (E4xx). Aborts the whole run."""
    pass


class UnsetVariableError(ZemRuntimeError):
    """Read of a name with no binding anywhere in the chain (E401)."""
    pass


class InvalidTypeError(ZemRuntimeError):
    """Operation applied to a value of the wrong kind (E402)."""
    pass


class TypeMismatchError(ZemRuntimeError):
    """Binary operation across incompatible runtime kinds (E403)."""
    pass


class InvalidFunctionError(InvalidTypeError):
    """Call target is not a function or names an undeclared function (E404)."""
    pass


class ArithmeticFailure(ZemRuntimeError):
    """Invalid exponent or division error from the decimal engine (E405)."""
    pass


class LookupFailure(ZemRuntimeError):
    """Array index out of range or missing dictionary key (E406)."""
    pass


class CallDepthError(ZemRuntimeError):
    """Function calls nested deeper than the configured limit (E407)."""
    pass


def _error(cls, code: str, message: str, span: SourceSpan,
           source_line: str = None, hints: List[str] = None) -> ZemError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=list(hints or []),
    )
    return cls(diag)


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    return _error(LexerError, "E001", f"unexpected character '{char}'", span, source_line)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    return _error(
        LexerError, "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with matching quotes"],
    )


def error_unterminated_comment(span: SourceSpan, source_line: str = None) -> LexerError:
    """E004: Unterminated multi-line comment."""
    return _error(
        LexerError, "E004", "unterminated multi-line comment (expected closing */)",
        span, source_line,
    )


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E005: Invalid escape sequence in string."""
    return _error(
        LexerError, "E005", f"invalid escape sequence '\\{seq}'", span, source_line,
        hints=["valid escape sequences: \\n, \\t, \\r, \\', \\\", \\\\, \\0"],
    )


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E006: Invalid number literal."""
    return _error(LexerError, "E006", f"invalid number literal '{text}'", span, source_line)


def error_invalid_radix_literal(text: str, radix_name: str, span: SourceSpan,
                                source_line: str = None) -> LexerError:
    """E007: Invalid hexadecimal, octal or binary literal."""
    return _error(
        LexerError, "E007", f"invalid {radix_name} literal '{text}'", span, source_line,
        hints=["prefixed literals need at least one digit: 0xFF, 0o52, 0b101"],
    )


def error_incomplete_operator(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E008: Single '&' or '|'."""
    return _error(
        LexerError, "E008", f"unexpected character '{char}'", span, source_line,
        hints=[f"did you mean '{char}{char}'?"],
    )


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return _error(ParserError, "E101", f"expected {expected}, found {found}", span, source_line)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    return _error(ParserError, "E102", f"unexpected end of file, expected {expected}", span)


def error_invalid_statement(span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Expression used where a statement is required."""
    return _error(
        ParserError, "E103", "expected assignment or call", span, source_line,
        hints=["only assignments and function calls may stand alone as statements"],
    )


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParserError:
    """E104: Left side of '=' is not assignable."""
    return _error(
        ParserError, "E104", "invalid assignment target", span, source_line,
        hints=["assign to a variable or to an element such as a[0]"],
    )


# --- Runtime error codes ---

def error_unset_variable(name: str, span: SourceSpan,
                         source_line: str = None) -> UnsetVariableError:
    """E401: Variable read before any assignment."""
    return _error(UnsetVariableError, "E401", f"variable '{name}' is not set", span, source_line)


def error_expected_type(expected: str, found: str, span: SourceSpan,
                        source_line: str = None) -> InvalidTypeError:
    """E402: A value of one kind was required and another was given."""
    return _error(InvalidTypeError, "E402", f"expected {expected}, got {found}", span, source_line)


def error_invalid_type(message: str, span: SourceSpan,
                       source_line: str = None) -> InvalidTypeError:
    """E402: Operation not supported for this kind of value."""
    return _error(InvalidTypeError, "E402", message, span, source_line)


def error_no_value(span: SourceSpan, source_line: str = None) -> InvalidTypeError:
    """E402: A call used as a value finished without producing one."""
    return _error(
        InvalidTypeError, "E402", "function call produced no value", span, source_line,
        hints=["end the function with a 'return' statement"],
    )


def error_type_mismatch(expected: str, found: str, span: SourceSpan,
                        source_line: str = None) -> TypeMismatchError:
    """E403: Both operands of a binary operation must share a kind."""
    return _error(
        TypeMismatchError, "E403",
        f"type mismatch: expected type '{expected}' but got type '{found}'",
        span, source_line,
    )


def error_invalid_function(message: str, span: SourceSpan,
                           source_line: str = None) -> InvalidFunctionError:
    """E404: Call to something that is not a function."""
    return _error(InvalidFunctionError, "E404", message, span, source_line)


def error_arithmetic(message: str, span: SourceSpan,
                     source_line: str = None) -> ArithmeticFailure:
    """E405: Arithmetic failure."""
    return _error(ArithmeticFailure, "E405", message, span, source_line)


def error_lookup(message: str, span: SourceSpan, source_line: str = None) -> LookupFailure:
    """E406: Index or key not present."""
    return _error(LookupFailure, "E406", message, span, source_line)


def error_call_depth(limit: int, span: SourceSpan, source_line: str = None) -> CallDepthError:
    """E407: Recursion limit reached."""
    return _error(
        CallDepthError, "E407", f"maximum call depth of {limit} exceeded", span, source_line,
        hints=["raise max_call_depth in the interpreter configuration"],
    )


class DiagnosticCollector:
    """Collects diagnostics reported by a host driver."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: ZemError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"\n{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"\n{self.warning_count} warning(s)")
        return "\n\n".join(parts)
