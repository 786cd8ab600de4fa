"""
Unit tests for the zemscript parser.
"""

from decimal import Decimal

import pytest
from zemscript import (
    tokenize, parse, parse_source, to_sexpr, ParserError,
    Program, Assignment, CallStatement, ReturnStatement, GlobalDeclaration,
    IfStatement, WhileStatement, ForeachStatement, NumberLiteral, StringLiteral,
    BooleanLiteral, Identifier, Lookup, BinaryOp, UnaryOp, ArrayLiteral,
    DictionaryLiteral, FunctionLiteral, FunctionCall, TokenType,
)


def _rhs(source):
    """Right-hand side of the first statement, which must be an assignment."""
    stmt = parse_source(source).statements[0]
    assert isinstance(stmt, Assignment)
    return stmt.value


def _sexpr(source):
    return to_sexpr(parse_source(source))


# --- Statements ---

class TestStatements:
    """Test statement forms."""

    def test_assignment(self):
        """A simple assignment."""
        program = parse_source("n = 0;")
        assert isinstance(program, Program)
        assert len(program.statements) == 1
        stmt = program.statements[0]
        assert isinstance(stmt, Assignment)
        assert stmt.target.name == "n"

    def test_parse_from_tokens(self):
        program = parse(tokenize("a = 1; b = 2;"))
        assert [s.target.name for s in program.statements] == ["a", "b"]

    def test_call_statement(self):
        stmt = parse_source("println('hi');").statements[0]
        assert isinstance(stmt, CallStatement)
        assert stmt.call.function_name == "println"

    def test_lookup_assignment(self):
        stmt = parse_source("a[0] = 1;").statements[0]
        assert isinstance(stmt.target, Lookup)

    def test_return(self):
        stmt = parse_source("return 1;").statements[0]
        assert isinstance(stmt, ReturnStatement)

    def test_global_declaration(self):
        """Global takes a comma separated list of names."""
        stmt = parse_source("global x, y;").statements[0]
        assert isinstance(stmt, GlobalDeclaration)
        assert stmt.names == ["x", "y"]

    def test_if_else_if_chain(self):
        stmt = parse_source("if (a) { x = 1; } else if (b) { x = 2; } else { x = 3; }").statements[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.else_branch, IfStatement)
        assert stmt.else_branch.else_branch is not None

    def test_while(self):
        stmt = parse_source("while (i < 3) { i = i + 1; }").statements[0]
        assert isinstance(stmt, WhileStatement)
        assert len(stmt.body.statements) == 1

    def test_foreach_forms(self):
        single = parse_source("foreach (xs as x) { }").statements[0]
        pair = parse_source("foreach (d as k : v) { }").statements[0]
        assert isinstance(single, ForeachStatement)
        assert single.key is None and single.value == "x"
        assert pair.key == "k" and pair.value == "v"

    def test_empty_program(self):
        assert parse_source("").statements == []


# --- Expressions ---

class TestExpressions:
    """Test the node types produced for expressions."""

    @pytest.mark.parametrize("source,node_type", [
        ("n = 3;", NumberLiteral),
        ("n = 'hello';", StringLiteral),
        ("n = true;", BooleanLiteral),
        ("n = false;", BooleanLiteral),
        ("n = m;", Identifier),
        ("n = [1, 2];", ArrayLiteral),
        ("n = {'a' : 1};", DictionaryLiteral),
        ("n = function() { };", FunctionLiteral),
        ("n = f();", FunctionCall),
        ("n = a[1];", Lookup),
        ("n = -a;", UnaryOp),
    ])
    def test_node_types(self, source, node_type):
        assert isinstance(_rhs(source), node_type)

    @pytest.mark.parametrize("source,operator", [
        ("n = 1 + 1;", TokenType.PLUS),
        ("n = 3 - 2;", TokenType.MINUS),
        ("n = 2 * 2;", TokenType.STAR),
        ("n = 4 / 2;", TokenType.SLASH),
        ("n = 4 % 3;", TokenType.PERCENT),
        ("n = 2 ^ 2;", TokenType.CARET),
        ("n = 'a' ~ 'b';", TokenType.TILDE),
    ])
    def test_arithmetic_operators(self, source, operator):
        node = _rhs(source)
        assert isinstance(node, BinaryOp)
        assert node.operator == operator

    def test_number_literal_keeps_text(self):
        node = _rhs("n = 0x1F;")
        assert node.value == Decimal(31)
        assert node.text == "0x1F"

    def test_unary_plus_is_dropped(self):
        assert isinstance(_rhs("n = +4;"), NumberLiteral)

    def test_default_parameters(self):
        fn = _rhs("f = function(a, b = 2) { };")
        assert fn.parameter_names == ["a", "b"]
        assert fn.parameters[0].default is None
        assert isinstance(fn.parameters[1].default, NumberLiteral)

    def test_chained_postfix(self):
        """Calls and lookups chain left to right."""
        node = _rhs("x = obj['greet']()(1)[2];")
        assert isinstance(node, Lookup)
        assert isinstance(node.target, FunctionCall)
        assert isinstance(node.target.callee, FunctionCall)
        assert isinstance(node.target.callee.callee, Lookup)

    @pytest.mark.parametrize("source", [
        "n = 2 + 2 - 2 + 2;",
        "n = 2 * 2 / 2 * 2;",
        "n = 2 ^ 2 ^ 2;",
        "n = true && true && false || false || true;",
    ])
    def test_operator_chains(self, source):
        assert parse_source(source) is not None


# --- S-expressions ---

class TestPrecedence:
    """Operator precedence, checked through the S-expression form."""

    @pytest.mark.parametrize("source,expected", [
        ("n = 1 - -2;", "(set! n (- 1 (- 2)))"),
        ("n = 2 + 2 * 3;", "(set! n (+ 2 (* 2 3)))"),
        ("n = 2 - 4 / 2;", "(set! n (- 2 (/ 4 2)))"),
        ("n = 2 + 1 * 2 ^ 2;", "(set! n (+ 2 (* 1 (^ 2 2))))"),
        ("n = 2 ^ -2;", "(set! n (^ 2 (- 2)))"),
        ("n = -2 ^ 2;", "(set! n (^ (- 2) 2))"),
        ("n = 2 ^ 3 ^ 2;", "(set! n (^ (^ 2 3) 2))"),
        ("n = a || b && c;", "(set! n (or a (and b c)))"),
        ("n = a && b || c;", "(set! n (or (and a b) c))"),
        ("n = a && b || c && d;", "(set! n (or (and a b) (and c d)))"),
        ("n = a && b || c && d || e;", "(set! n (or (and a b) (or (and c d) e)))"),
        ("n = !a && b;", "(set! n (and (not a) b))"),
        ("n = a && !b;", "(set! n (and a (not b)))"),
        ("n = (2 + 2) * 3;", "(set! n (* (+ 2 2) 3))"),
        ("n = !(a && b);", "(set! n (not (and a b)))"),
        ("n = !a == b;", "(set! n (not (== a b)))"),
        ("n = 'a' ~ b || c;", "(set! n (~ 'a' (or b c)))"),
        ("n = 1 + 1 <= 2 || 3 * 2 > 5 && 5 * 1 > 4;",
         "(set! n (or (<= (+ 1 1) 2) (and (> (* 3 2) 5) (> (* 5 1) 4))))"),
    ])
    def test_precedence(self, source, expected):
        assert _sexpr(source) == expected


class TestSExpressions:
    """S-expression rendering of statements and literals."""

    def test_control_structures(self):
        assert _sexpr("if (cond) { then(); } else { somethingElse(); }") == \
            "(if cond ((then)) ((somethingElse)))"
        assert _sexpr("while (cond) { body(); }") == "(while cond ((body)))"
        assert _sexpr("foreach (on_var as element) { process(element); }") == \
            "(foreach on_var element ((process element)))"
        assert _sexpr("foreach (on_var as key : value) { process(key, value); }") == \
            "(foreach on_var (key value) ((process key value)))"

    def test_function(self):
        assert _sexpr("add = function(a, b) { return a + b; };") == \
            "(set! add (function (a b) ((return (+ a b)))))"

    def test_default_parameter(self):
        assert _sexpr("f = function(y = x) { return y; };") == \
            "(set! f (function ((set! y x)) ((return y))))"

    def test_containers_and_lookup(self):
        assert _sexpr("d = {'k' : [1, 2]}; v = d['k'];") == \
            "(set! d (dict ('k' (array 1 2)))) (set! v (lookup d 'k'))"

    def test_global(self):
        assert _sexpr("global x, y;") == "(global x y)"

    def test_call_with_expression_callee(self):
        assert _sexpr("f()();") == "((f))"


# --- Errors ---

class TestParserErrors:
    """Syntax errors are reported with positions."""

    def test_missing_semicolon(self):
        with pytest.raises(ParserError) as exc_info:
            parse_source("x = 1")
        assert exc_info.value.code == "E102"

    def test_unexpected_token(self):
        with pytest.raises(ParserError) as exc_info:
            parse_source("x = ;")
        err = exc_info.value
        assert err.code == "E101"
        assert err.line == 1
        assert err.column == 5

    def test_expression_statement_rejected(self):
        """A bare expression is not a statement."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("x;")
        assert exc_info.value.code == "E103"
        assert "expected assignment or call" in str(exc_info.value)

    def test_invalid_assignment_target(self):
        with pytest.raises(ParserError) as exc_info:
            parse_source("f() = 1;")
        assert exc_info.value.code == "E104"

    def test_foreach_requires_as(self):
        with pytest.raises(ParserError):
            parse_source("foreach (xs x) { }")

    def test_relations_do_not_chain(self):
        with pytest.raises(ParserError):
            parse_source("x = 1 < 2 < 3;")

    def test_error_quotes_source_line(self):
        with pytest.raises(ParserError) as exc_info:
            parse_source("a = 1;\nb = (2;\n")
        assert exc_info.value.line == 2
        assert "b = (2;" in str(exc_info.value)

    def test_unclosed_block(self):
        with pytest.raises(ParserError) as exc_info:
            parse_source("while (true) { x = 1;")
        assert exc_info.value.code == "E102"
