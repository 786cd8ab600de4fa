"""
Recursive descent parser for zemscript.

Converts a token stream into an Abstract Syntax Tree (AST).
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, describe_token_type
from .ast import (
    # Expressions
    Expression, NumberLiteral, StringLiteral, BooleanLiteral, Identifier,
    Lookup, BinaryOp, UnaryOp, ArrayLiteral, DictionaryEntry, DictionaryLiteral,
    Parameter, FunctionLiteral, FunctionCall,
    # Statements
    Statement, Assignment, CallStatement, ReturnStatement, GlobalDeclaration,
    Block, IfStatement, WhileStatement, ForeachStatement, Program,
)
from .errors import (
    ParserError,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_statement,
    error_invalid_assignment_target,
)


class Parser:
    """
    Recursive descent parser for zemscript.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    Expression precedence, lowest first:
        Lowest:  ~            (concatenation, right-associative)
                 ||           (right-associative)
                 &&           (right-associative)
                 !            (applies to a whole relation)
                 == != < <= > >=   (non-associative)
                 + -
                 * / %
                 ^            (left-associative)
        Highest: unary - +
    """

    RELATIONAL = (
        TokenType.EQ, TokenType.NE,
        TokenType.LT, TokenType.LE,
        TokenType.GT, TokenType.GE,
    )

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source
        self.pos = 0
        self._lines = source.splitlines() if source else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str = None) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected or describe_token_type(token_type))

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        found = repr(token.lexeme) if token.lexeme else describe_token_type(token.type)
        raise error_unexpected_token(
            expected, found, token.span, self._source_line(token.span.start.line)
        )

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a single statement."""
        if self._check(TokenType.RETURN):
            return self._parse_return_statement()
        if self._check(TokenType.IF):
            return self._parse_if_statement()
        if self._check(TokenType.WHILE):
            return self._parse_while_statement()
        if self._check(TokenType.FOREACH):
            return self._parse_foreach_statement()
        if self._check(TokenType.GLOBAL):
            return self._parse_global_declaration()
        return self._parse_assignment_or_call()

    def _parse_assignment_or_call(self) -> Statement:
        """Parse ``target = value;`` or ``callee(args);``."""
        start = self._current()
        expr = self._parse_postfix_expr()

        if self._match(TokenType.ASSIGN):
            if not isinstance(expr, (Identifier, Lookup)):
                raise error_invalid_assignment_target(
                    expr.span, self._source_line(expr.span.start.line)
                )
            value = self._parse_expression()
            self._consume(TokenType.SEMICOLON)
            return Assignment(span=self._span_from(start), target=expr, value=value)

        if not isinstance(expr, FunctionCall):
            if self._check(TokenType.SEMICOLON):
                raise error_invalid_statement(
                    expr.span, self._source_line(expr.span.start.line)
                )
            self._error("'=' or '('")
        self._consume(TokenType.SEMICOLON)
        return CallStatement(span=self._span_from(start), call=expr)

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse ``return expression;``."""
        start = self._advance()  # consume 'return'
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON)
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_condition(self) -> Expression:
        """Parse a parenthesised condition."""
        self._consume(TokenType.LPAREN)
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN)
        return condition

    def _parse_if_statement(self) -> IfStatement:
        """Parse ``if (cond) block (else (if | block))?``."""
        start = self._advance()  # consume 'if'
        condition = self._parse_condition()
        then_branch = self._parse_block()

        else_branch = None
        if self._match(TokenType.ELSE):
            if self._check(TokenType.IF):
                else_branch = self._parse_if_statement()
            else:
                else_branch = self._parse_block()

        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_while_statement(self) -> WhileStatement:
        """Parse ``while (cond) block``."""
        start = self._advance()  # consume 'while'
        condition = self._parse_condition()
        body = self._parse_block()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_foreach_statement(self) -> ForeachStatement:
        """Parse ``foreach (source as value)`` or ``foreach (source as key : value)``."""
        start = self._advance()  # consume 'foreach'
        self._consume(TokenType.LPAREN)
        source = self._parse_expression()
        self._consume(TokenType.AS, "'as'")
        key = None
        value = self._consume(TokenType.IDENTIFIER, "loop variable").value
        if self._match(TokenType.COLON):
            key = value
            value = self._consume(TokenType.IDENTIFIER, "loop variable").value
        self._consume(TokenType.RPAREN)
        body = self._parse_block()
        return ForeachStatement(
            span=self._span_from(start),
            source=source,
            key=key,
            value=value,
            body=body,
        )

    def _parse_global_declaration(self) -> GlobalDeclaration:
        """Parse ``global name (, name)*;``."""
        start = self._advance()  # consume 'global'
        names = [self._consume(TokenType.IDENTIFIER, "variable name").value]
        while self._match(TokenType.COMMA):
            names.append(self._consume(TokenType.IDENTIFIER, "variable name").value)
        self._consume(TokenType.SEMICOLON)
        return GlobalDeclaration(span=self._span_from(start), names=names)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE)
        statements = []

        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_statement())

        self._consume(TokenType.RBRACE)
        return Block(span=self._span_from(start), statements=statements)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression (lowest precedence: concatenation)."""
        return self._parse_concat_expr()

    def _binary(self, left: Expression, op: Token, right: Expression) -> BinaryOp:
        return BinaryOp(
            span=SourceSpan(left.span.start, right.span.end),
            left=left,
            operator=op.type,
            right=right,
        )

    def _parse_concat_expr(self) -> Expression:
        """concat := or ('~' concat)?"""
        left = self._parse_or_expr()
        op = self._match(TokenType.TILDE)
        if op:
            return self._binary(left, op, self._parse_concat_expr())
        return left

    def _parse_or_expr(self) -> Expression:
        """or := and ('||' or)?"""
        left = self._parse_and_expr()
        op = self._match(TokenType.OR)
        if op:
            return self._binary(left, op, self._parse_or_expr())
        return left

    def _parse_and_expr(self) -> Expression:
        """and := not ('&&' and)?"""
        left = self._parse_not_expr()
        op = self._match(TokenType.AND)
        if op:
            return self._binary(left, op, self._parse_and_expr())
        return left

    def _parse_not_expr(self) -> Expression:
        """not := '!' relation | relation"""
        op = self._match(TokenType.NOT)
        if op:
            operand = self._parse_relation()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand,
            )
        return self._parse_relation()

    def _parse_relation(self) -> Expression:
        """relation := sum (relop sum)?"""
        left = self._parse_sum()
        op = self._match(*self.RELATIONAL)
        if op:
            return self._binary(left, op, self._parse_sum())
        return left

    def _parse_sum(self) -> Expression:
        """sum := term (('+'|'-') term)*"""
        expr = self._parse_term()
        while self._check_any(TokenType.PLUS, TokenType.MINUS):
            op = self._advance()
            expr = self._binary(expr, op, self._parse_term())
        return expr

    def _parse_term(self) -> Expression:
        """term := factor (('*'|'/'|'%') factor)*"""
        expr = self._parse_factor()
        while self._check_any(TokenType.STAR, TokenType.SLASH, TokenType.PERCENT):
            op = self._advance()
            expr = self._binary(expr, op, self._parse_factor())
        return expr

    def _parse_factor(self) -> Expression:
        """factor := sign ('^' sign)*"""
        expr = self._parse_sign()
        while self._check(TokenType.CARET):
            op = self._advance()
            expr = self._binary(expr, op, self._parse_sign())
        return expr

    def _parse_sign(self) -> Expression:
        """sign := ('-'|'+')? postfix"""
        if self._check(TokenType.MINUS):
            op = self._advance()
            operand = self._parse_postfix_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand,
            )
        self._match(TokenType.PLUS)
        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse postfix expressions (calls and indexing)."""
        expr = self._parse_primary_expr()

        while True:
            if self._check(TokenType.LPAREN):
                expr = self._parse_call(expr)
            elif self._match(TokenType.LBRACKET):
                key = self._parse_expression()
                self._consume(TokenType.RBRACKET)
                expr = Lookup(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    target=expr,
                    key=key,
                )
            else:
                break

        return expr

    def _parse_call(self, callee: Expression) -> FunctionCall:
        """Parse function call arguments."""
        args = self._parse_arguments()
        return FunctionCall(
            span=SourceSpan(callee.span.start, self.tokens[self.pos - 1].span.end),
            callee=callee,
            arguments=args,
        )

    def _parse_arguments(self) -> List[Expression]:
        """Parse a parenthesised argument list."""
        self._consume(TokenType.LPAREN)
        args = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                args.append(self._parse_expression())
        self._consume(TokenType.RPAREN)
        return args

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, names, grouped, containers, functions)."""
        token = self._current()

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(span=token.span, value=token.value, text=token.lexeme)

        if token.type == TokenType.STRING_LITERAL:
            self._advance()
            return StringLiteral(span=token.span, value=token.value)

        if token.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BooleanLiteral(span=token.span, value=token.type == TokenType.TRUE)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN)
            return expr

        if token.type == TokenType.LBRACKET:
            return self._parse_array_literal()

        if token.type == TokenType.LBRACE:
            return self._parse_dict_literal()

        if token.type == TokenType.FUNCTION:
            return self._parse_function_literal()

        self._error("expression")

    def _parse_array_literal(self) -> ArrayLiteral:
        """Parse ``[expr, ...]``."""
        start = self._advance()  # consume '['
        elements = []
        if not self._check(TokenType.RBRACKET):
            elements.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                elements.append(self._parse_expression())
        self._consume(TokenType.RBRACKET)
        return ArrayLiteral(span=self._span_from(start), elements=elements)

    def _parse_dict_literal(self) -> DictionaryLiteral:
        """Parse ``{key : value, ...}``."""
        start = self._advance()  # consume '{'
        entries = []
        if not self._check(TokenType.RBRACE):
            entries.append(self._parse_dict_entry())
            while self._match(TokenType.COMMA):
                entries.append(self._parse_dict_entry())
        self._consume(TokenType.RBRACE)
        return DictionaryLiteral(span=self._span_from(start), entries=entries)

    def _parse_dict_entry(self) -> DictionaryEntry:
        key = self._parse_expression()
        self._consume(TokenType.COLON)
        value = self._parse_expression()
        return DictionaryEntry(
            span=SourceSpan(key.span.start, value.span.end),
            key=key,
            value=value,
        )

    def _parse_function_literal(self) -> FunctionLiteral:
        """Parse ``function (params) block``."""
        start = self._advance()  # consume 'function'
        self._consume(TokenType.LPAREN)
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._match(TokenType.COMMA):
                parameters.append(self._parse_parameter())
        self._consume(TokenType.RPAREN)
        body = self._parse_block()
        return FunctionLiteral(span=self._span_from(start), parameters=parameters, body=body)

    def _parse_parameter(self) -> Parameter:
        """Parse a function parameter."""
        start = self._current()
        name = self._consume(TokenType.IDENTIFIER, "parameter name").value

        default = None
        if self._match(TokenType.ASSIGN):
            default = self._parse_expression()

        return Parameter(span=self._span_from(start), name=name, default=default)

    # =========================================================================
    # Program Parsing
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse a complete script."""
        start = self._current()
        statements = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
        return Program(span=self._span_from(start), statements=statements)


def parse(tokens: List[Token], filename: Optional[str] = None,
          source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code, used to quote lines in errors

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """Tokenize and parse source text in one step."""
    from .lexer import tokenize
    return parse(tokenize(source, filename), filename, source)
