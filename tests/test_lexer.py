"""
Unit tests for the zemscript lexer.
"""

from decimal import Decimal

import pytest
from zemscript import tokenize, Lexer, TokenType, LexerError


def _types(source):
    return [t.type for t in tokenize(source)]


def _columns(source):
    return [t.span.start.column for t in tokenize(source) if t.type != TokenType.EOF]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        tokens = tokenize("  \t \n  \r\n")
        assert [t.type for t in tokens] == [TokenType.EOF]

    def test_simple_assignment(self):
        """Basic assignment tokenization."""
        assert _types("x = 42;") == [
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.NUMBER,
            TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_identifier_value(self):
        tokens = tokenize("foo_bar123")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "foo_bar123"

    def test_multiline_position_tracking(self):
        """Position tracking across multiple lines."""
        tokens = tokenize("x = 5;\n  y = 10;")
        y = [t for t in tokens if t.value == "y"][0]
        assert y.span.start.line == 2
        assert y.span.start.column == 3

    def test_filename_in_location(self):
        tokens = tokenize("x", filename="demo.zem")
        assert str(tokens[0].span.start) == "demo.zem:1:1"


class TestTokenColumns:
    """Column positions of every token in a line."""

    def test_expression_columns(self):
        source = "n = (3 + 12 * 2 ^ 4 >= 0) && 3 % 4 == 3;"
        assert _columns(source) == [
            1, 3, 5, 6, 8, 10, 13, 15, 17, 19, 21, 24, 25, 27, 30, 32, 34, 36, 39, 40,
        ]

    def test_adjacent_literals(self):
        """Tokens need no whitespace between them."""
        tokens = tokenize("132.567'hello'somevar")
        assert [t.type for t in tokens] == [
            TokenType.NUMBER, TokenType.STRING_LITERAL, TokenType.IDENTIFIER, TokenType.EOF,
        ]
        assert _columns("132.567'hello'somevar") == [1, 8, 15]

    def test_function_literal_columns(self):
        source = "greet = function() { println('hello'); }"
        assert _columns(source) == [1, 7, 9, 17, 18, 20, 22, 29, 30, 37, 38, 40]


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        assert _types("x = 1; // trailing\n") == [
            TokenType.IDENTIFIER, TokenType.ASSIGN, TokenType.NUMBER,
            TokenType.SEMICOLON, TokenType.EOF,
        ]

    def test_block_comment(self):
        assert _types("x /* a\n multi-line\n comment */ = 1;")[:3] == [
            TokenType.IDENTIFIER, TokenType.ASSIGN, TokenType.NUMBER,
        ]

    def test_unterminated_block_comment(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("x = 1; /* never closed")
        assert exc_info.value.code == "E004"


class TestStringLiterals:
    """Test string literal scanning."""

    def test_single_quoted(self):
        tokens = tokenize("'hello'")
        assert tokens[0].type == TokenType.STRING_LITERAL
        assert tokens[0].value == "hello"

    def test_double_quoted(self):
        assert tokenize('"it\'s"')[0].value == "it's"

    def test_escape_sequences(self):
        tokens = tokenize(r"'a\nb\tc\\d\'e'")
        assert tokens[0].value == "a\nb\tc\\d'e"

    def test_invalid_escape(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize(r"'bad \q escape'")
        assert exc_info.value.code == "E005"

    def test_unterminated_string(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("'open")
        assert exc_info.value.code == "E002"
        assert exc_info.value.column == 1


class TestNumericLiterals:
    """Test number scanning."""

    def test_integer(self):
        token = tokenize("42")[0]
        assert token.type == TokenType.NUMBER
        assert token.value == Decimal("42")

    def test_decimal_keeps_precision(self):
        token = tokenize("0.1")[0]
        assert token.value == Decimal("0.1")
        assert token.lexeme == "0.1"

    @pytest.mark.parametrize("source,expected", [
        ("0xA", 10),
        ("0xF", 15),
        ("0x3BE", 958),
        ("0xff", 255),
        ("0o52", 42),
        ("0b101", 5),
    ])
    def test_prefixed_literals(self, source, expected):
        token = tokenize(source)[0]
        assert token.value == Decimal(expected)
        assert token.lexeme == source

    def test_two_decimal_points(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("12.23.4")
        assert exc_info.value.code == "E006"

    def test_trailing_decimal_point(self):
        with pytest.raises(LexerError):
            tokenize("12.")

    def test_bad_binary_digit(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("0b102")
        assert exc_info.value.code == "E007"

    def test_empty_hex_literal(self):
        with pytest.raises(LexerError):
            tokenize("0x;")


class TestKeywords:
    """Keywords are recognised; similar identifiers are not."""

    @pytest.mark.parametrize("word,token_type", [
        ("if", TokenType.IF),
        ("else", TokenType.ELSE),
        ("while", TokenType.WHILE),
        ("foreach", TokenType.FOREACH),
        ("as", TokenType.AS),
        ("function", TokenType.FUNCTION),
        ("return", TokenType.RETURN),
        ("global", TokenType.GLOBAL),
        ("true", TokenType.TRUE),
        ("false", TokenType.FALSE),
    ])
    def test_keyword(self, word, token_type):
        assert tokenize(word)[0].type == token_type

    def test_keyword_prefix_is_identifier(self):
        assert tokenize("iffy")[0].type == TokenType.IDENTIFIER
        assert tokenize("globals")[0].type == TokenType.IDENTIFIER


class TestOperators:
    """Test operator tokens."""

    def test_two_character_operators(self):
        assert _types("<= >= == != && ||")[:-1] == [
            TokenType.LE, TokenType.GE, TokenType.EQ,
            TokenType.NE, TokenType.AND, TokenType.OR,
        ]

    def test_single_character_operators(self):
        assert _types("+ - * / % ^ ~ < > = !")[:-1] == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.PERCENT, TokenType.CARET, TokenType.TILDE, TokenType.LT,
            TokenType.GT, TokenType.ASSIGN, TokenType.NOT,
        ]

    def test_delimiters(self):
        assert _types("{ } ( ) [ ] : ; ,")[:-1] == [
            TokenType.LBRACE, TokenType.RBRACE, TokenType.LPAREN, TokenType.RPAREN,
            TokenType.LBRACKET, TokenType.RBRACKET, TokenType.COLON,
            TokenType.SEMICOLON, TokenType.COMMA,
        ]

    def test_single_ampersand(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("a & b")
        assert exc_info.value.code == "E008"
        assert "&&" in str(exc_info.value)


class TestErrorMessages:
    """Errors carry position and source line."""

    def test_unexpected_character(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("#")
        assert exc_info.value.code == "E001"

    def test_error_position(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("x = 1;\ny = @;")
        err = exc_info.value
        assert err.line == 2
        assert err.column == 5
        assert "y = @;" in str(err)


class TestLexerIterator:
    """Lexer can be used as an iterator."""

    def test_iteration_ends_with_eof(self):
        tokens = list(Lexer("a b"))
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF,
        ]
