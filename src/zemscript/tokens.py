"""
Token types for the zemscript lexer.

Token type categories follow the error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    NUMBER = auto()             # 42, 0.5, 0xff, 0o52, 0b101
    STRING_LITERAL = auto()     # 'hello', "world"
    TRUE = auto()               # true
    FALSE = auto()              # false

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    IF = auto()                 # if
    ELSE = auto()               # else
    WHILE = auto()              # while
    FOREACH = auto()            # foreach
    AS = auto()                 # as
    FUNCTION = auto()           # function
    RETURN = auto()             # return
    GLOBAL = auto()             # global

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %
    CARET = auto()              # ^ (power)

    # --- String operator ---
    TILDE = auto()              # ~ (concatenation)

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # !

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COLON = auto()              # :
    SEMICOLON = auto()          # ;
    COMMA = auto()              # ,

    # --- Special ---
    EOF = auto()                # end of file


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Decimal for numbers, str for strings and names
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.STRING_LITERAL,
                         TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "foreach": TokenType.FOREACH,
    "as": TokenType.AS,
    "function": TokenType.FUNCTION,
    "return": TokenType.RETURN,
    "global": TokenType.GLOBAL,
}


# Human-readable spelling of each token type, for parser error messages
TOKEN_DESCRIPTIONS: dict[TokenType, str] = {
    TokenType.NUMBER: "number",
    TokenType.STRING_LITERAL: "string",
    TokenType.IDENTIFIER: "identifier",
    TokenType.PLUS: "'+'",
    TokenType.MINUS: "'-'",
    TokenType.STAR: "'*'",
    TokenType.SLASH: "'/'",
    TokenType.PERCENT: "'%'",
    TokenType.CARET: "'^'",
    TokenType.TILDE: "'~'",
    TokenType.LT: "'<'",
    TokenType.GT: "'>'",
    TokenType.LE: "'<='",
    TokenType.GE: "'>='",
    TokenType.EQ: "'=='",
    TokenType.NE: "'!='",
    TokenType.AND: "'&&'",
    TokenType.OR: "'||'",
    TokenType.NOT: "'!'",
    TokenType.ASSIGN: "'='",
    TokenType.LBRACE: "'{'",
    TokenType.RBRACE: "'}'",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.LBRACKET: "'['",
    TokenType.RBRACKET: "']'",
    TokenType.COLON: "':'",
    TokenType.SEMICOLON: "';'",
    TokenType.COMMA: "','",
    TokenType.EOF: "end of file",
}


def describe_token_type(token_type: TokenType) -> str:
    """Describe a token type for diagnostics."""
    if token_type in TOKEN_DESCRIPTIONS:
        return TOKEN_DESCRIPTIONS[token_type]
    return f"'{token_type.name.lower()}'"


def is_keyword(name: str) -> bool:
    """Check if a name is a reserved keyword."""
    return name in KEYWORDS
