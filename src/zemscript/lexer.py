"""
Lexer for zemscript.

Converts source text into a stream of tokens for the parser.
Supports:
- Single-line comments (//)
- Multi-line comments (/* */)
- String literals in single or double quotes, with escape sequences
- Decimal number literals of arbitrary precision
- Prefixed integer literals (0x hex, 0o octal, 0b binary)
- All keywords and operators
"""

from decimal import Decimal
from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    LexerError,
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_comment,
    error_invalid_escape_sequence,
    error_invalid_number_literal,
    error_invalid_radix_literal,
    error_incomplete_operator,
)


# prefix letter -> (base, digit set, name for diagnostics)
_RADIX_PREFIXES = {
    'x': (16, '0123456789abcdefABCDEF', 'hexadecimal'),
    'o': (8, '01234567', 'octal'),
    'b': (2, '01', 'binary'),
}

_ESCAPE_CHARS = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '0': '\0',
}


class Lexer:
    """
    Tokenizer for zemscript.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _skip_line_comment(self) -> None:
        """Skip a single-line comment (// to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_block_comment(self) -> None:
        """Skip /* ... */ comment. Block comments do not nest."""
        start = self._location()
        self._advance()  # consume '/'
        self._advance()  # consume '*'

        while not self._is_at_end():
            if self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()

        raise error_unterminated_comment(
            self._span(start),
            self.get_source_line(start.line)
        )

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, newlines and comments between tokens."""
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                self._skip_line_comment()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_block_comment()
            else:
                break

    def _scan_string(self) -> Token:
        """Scan a string literal delimited by ' or "."""
        start = self._location()
        quote = self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != quote:
            if self._peek() == '\\':
                self._advance()  # consume backslash
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_escape_sequence(self) -> str:
        """Parse an escape sequence after backslash."""
        esc_start = self._location()
        if self._is_at_end():
            raise error_invalid_escape_sequence(
                "", self._span(esc_start), self.get_source_line(esc_start.line)
            )

        ch = self._advance()
        if ch in _ESCAPE_CHARS:
            return _ESCAPE_CHARS[ch]
        raise error_invalid_escape_sequence(
            ch, self._span(esc_start), self.get_source_line(esc_start.line)
        )

    def _scan_number(self) -> Token:
        """Scan a numeric literal."""
        start = self._location()

        if self._peek() == '0' and self._peek(1).lower() in _RADIX_PREFIXES:
            return self._scan_radix_number(start)

        seen_point = False
        while self._peek().isdigit() or self._peek() == '.':
            if self._peek() == '.':
                if seen_point:
                    self._advance()
                    while self._peek().isdigit() or self._peek() == '.':
                        self._advance()
                    lexeme = self.source[start.offset:self.pos]
                    raise error_invalid_number_literal(
                        lexeme, self._span(start), self.get_source_line(start.line)
                    )
                seen_point = True
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if lexeme.endswith('.'):
            raise error_invalid_number_literal(
                lexeme, self._span(start), self.get_source_line(start.line)
            )
        return self._make_token(TokenType.NUMBER, Decimal(lexeme), start, lexeme)

    def _scan_radix_number(self, start: SourceLocation) -> Token:
        """Scan a 0x, 0o or 0b prefixed integer literal."""
        self._advance()  # consume '0'
        prefix = self._advance().lower()
        base, digits, radix_name = _RADIX_PREFIXES[prefix]

        while self._peek() in digits or self._peek().isalnum():
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        body = lexeme[2:]
        if not body or any(ch not in digits for ch in body):
            raise error_invalid_radix_literal(
                lexeme, radix_name, self._span(start), self.get_source_line(start.line)
            )
        return self._make_token(TokenType.NUMBER, Decimal(int(body, base)), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        return self._make_token(token_type, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch in '"\'':
            return self._scan_string()

        if ch.isdigit():
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)
        if ch == '<' and self._match('='):
            return self._make_token(TokenType.LE, "<=", start)
        if ch == '>' and self._match('='):
            return self._make_token(TokenType.GE, ">=", start)
        if ch == '&':
            if self._match('&'):
                return self._make_token(TokenType.AND, "&&", start)
            raise error_incomplete_operator(ch, self._span(start), self.get_source_line(start.line))
        if ch == '|':
            if self._match('|'):
                return self._make_token(TokenType.OR, "||", start)
            raise error_incomplete_operator(ch, self._span(start), self.get_source_line(start.line))

        single_char_tokens = {
            '+': TokenType.PLUS,
            '-': TokenType.MINUS,
            '*': TokenType.STAR,
            '/': TokenType.SLASH,
            '%': TokenType.PERCENT,
            '^': TokenType.CARET,
            '~': TokenType.TILDE,
            '<': TokenType.LT,
            '>': TokenType.GT,
            '=': TokenType.ASSIGN,
            '!': TokenType.NOT,
            '(': TokenType.LPAREN,
            ')': TokenType.RPAREN,
            '{': TokenType.LBRACE,
            '}': TokenType.RBRACE,
            '[': TokenType.LBRACKET,
            ']': TokenType.RBRACKET,
            ':': TokenType.COLON,
            ';': TokenType.SEMICOLON,
            ',': TokenType.COMMA,
        }

        if ch in single_char_tokens:
            return self._make_token(single_char_tokens[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, ending with EOF

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
