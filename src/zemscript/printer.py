"""
AST printers.

Two renderings are provided:

- ``to_sexpr`` gives a compact S-expression form, e.g. ``(set! n (+ 2 (* 2 3)))``.
  It makes precedence and nesting explicit and is handy in tests and for the
  ``sexpr`` CLI command.
- ``to_source`` gives canonical source text. Binary operations are fully
  parenthesised, so re-parsing the output rebuilds the same tree and printing
  it again gives identical text.
"""

from typing import List

from .ast import (
    AstNode, AstVisitor, Program, Block, Assignment, CallStatement,
    ReturnStatement, GlobalDeclaration, IfStatement, WhileStatement,
    ForeachStatement, NumberLiteral, StringLiteral, BooleanLiteral,
    Identifier, Lookup, BinaryOp, UnaryOp, ArrayLiteral, DictionaryLiteral,
    FunctionLiteral, FunctionCall, Parameter,
)
from .tokens import TokenType


SEXPR_OPERATORS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.CARET: "^",
    TokenType.TILDE: "~",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
    TokenType.AND: "and",
    TokenType.OR: "or",
    TokenType.NOT: "not",
}

SOURCE_OPERATORS = dict(SEXPR_OPERATORS)
SOURCE_OPERATORS.update({
    TokenType.AND: "&&",
    TokenType.OR: "||",
    TokenType.NOT: "!",
})

_STRING_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\0": "\\0",
}


def quote_string(text: str) -> str:
    """Quote a string the way the lexer reads it back."""
    return "'" + "".join(_STRING_ESCAPES.get(ch, ch) for ch in text) + "'"


class SExpressionPrinter(AstVisitor):
    """Render an AST as an S-expression."""

    def visit_Program(self, node: Program) -> str:
        return " ".join(stmt.accept(self) for stmt in node.statements)

    def visit_Block(self, node: Block) -> str:
        return "(" + " ".join(stmt.accept(self) for stmt in node.statements) + ")"

    def visit_Assignment(self, node: Assignment) -> str:
        return f"(set! {node.target.accept(self)} {node.value.accept(self)})"

    def visit_CallStatement(self, node: CallStatement) -> str:
        return node.call.accept(self)

    def visit_ReturnStatement(self, node: ReturnStatement) -> str:
        return f"(return {node.value.accept(self)})"

    def visit_GlobalDeclaration(self, node: GlobalDeclaration) -> str:
        return "(global " + " ".join(node.names) + ")"

    def visit_IfStatement(self, node: IfStatement) -> str:
        parts = ["if", node.condition.accept(self), node.then_branch.accept(self)]
        if node.else_branch is not None:
            parts.append(node.else_branch.accept(self))
        return "(" + " ".join(parts) + ")"

    def visit_WhileStatement(self, node: WhileStatement) -> str:
        return f"(while {node.condition.accept(self)} {node.body.accept(self)})"

    def visit_ForeachStatement(self, node: ForeachStatement) -> str:
        binding = node.value if node.key is None else f"({node.key} {node.value})"
        return f"(foreach {node.source.accept(self)} {binding} {node.body.accept(self)})"

    def visit_NumberLiteral(self, node: NumberLiteral) -> str:
        return node.text

    def visit_StringLiteral(self, node: StringLiteral) -> str:
        return quote_string(node.value)

    def visit_BooleanLiteral(self, node: BooleanLiteral) -> str:
        return "true" if node.value else "false"

    def visit_Identifier(self, node: Identifier) -> str:
        return node.name

    def visit_Lookup(self, node: Lookup) -> str:
        return f"(lookup {node.target.accept(self)} {node.key.accept(self)})"

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        op = SEXPR_OPERATORS[node.operator]
        return f"({op} {node.left.accept(self)} {node.right.accept(self)})"

    def visit_UnaryOp(self, node: UnaryOp) -> str:
        return f"({SEXPR_OPERATORS[node.operator]} {node.operand.accept(self)})"

    def visit_ArrayLiteral(self, node: ArrayLiteral) -> str:
        return "(" + " ".join(["array"] + [e.accept(self) for e in node.elements]) + ")"

    def visit_DictionaryLiteral(self, node: DictionaryLiteral) -> str:
        entries = [f"({e.key.accept(self)} {e.value.accept(self)})" for e in node.entries]
        return "(" + " ".join(["dict"] + entries) + ")"

    def visit_Parameter(self, node: Parameter) -> str:
        if node.default is None:
            return node.name
        return f"(set! {node.name} {node.default.accept(self)})"

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> str:
        params = " ".join(p.accept(self) for p in node.parameters)
        return f"(function ({params}) {node.body.accept(self)})"

    def visit_FunctionCall(self, node: FunctionCall) -> str:
        callee = node.function_name or node.callee.accept(self)
        return "(" + " ".join([callee] + [a.accept(self) for a in node.arguments]) + ")"


class SourcePrinter(AstVisitor):
    """Render an AST as canonical source text."""

    def __init__(self, indent: str = "    "):
        self.indent = indent
        self.level = 0

    def _pad(self) -> str:
        return self.indent * self.level

    def _lines(self, statements: List) -> List[str]:
        return [self._pad() + stmt.accept(self) for stmt in statements]

    def visit_Program(self, node: Program) -> str:
        return "\n".join(self._lines(node.statements))

    def visit_Block(self, node: Block) -> str:
        if not node.statements:
            return "{}"
        self.level += 1
        body = self._lines(node.statements)
        self.level -= 1
        return "{\n" + "\n".join(body) + "\n" + self._pad() + "}"

    def visit_Assignment(self, node: Assignment) -> str:
        return f"{node.target.accept(self)} = {node.value.accept(self)};"

    def visit_CallStatement(self, node: CallStatement) -> str:
        return node.call.accept(self) + ";"

    def visit_ReturnStatement(self, node: ReturnStatement) -> str:
        return f"return {node.value.accept(self)};"

    def visit_GlobalDeclaration(self, node: GlobalDeclaration) -> str:
        return "global " + ", ".join(node.names) + ";"

    def visit_IfStatement(self, node: IfStatement) -> str:
        text = f"if ({node.condition.accept(self)}) {node.then_branch.accept(self)}"
        if node.else_branch is not None:
            text += f" else {node.else_branch.accept(self)}"
        return text

    def visit_WhileStatement(self, node: WhileStatement) -> str:
        return f"while ({node.condition.accept(self)}) {node.body.accept(self)}"

    def visit_ForeachStatement(self, node: ForeachStatement) -> str:
        binding = node.value if node.key is None else f"{node.key} : {node.value}"
        return f"foreach ({node.source.accept(self)} as {binding}) {node.body.accept(self)}"

    def visit_NumberLiteral(self, node: NumberLiteral) -> str:
        return node.text

    def visit_StringLiteral(self, node: StringLiteral) -> str:
        return quote_string(node.value)

    def visit_BooleanLiteral(self, node: BooleanLiteral) -> str:
        return "true" if node.value else "false"

    def visit_Identifier(self, node: Identifier) -> str:
        return node.name

    def _postfix_target(self, node: AstNode) -> str:
        # a prefix operator would otherwise bind looser than the call/index
        if isinstance(node, UnaryOp):
            return f"({node.accept(self)})"
        return node.accept(self)

    def visit_Lookup(self, node: Lookup) -> str:
        return f"{self._postfix_target(node.target)}[{node.key.accept(self)}]"

    def _operand(self, node: AstNode, operator: TokenType) -> str:
        text = node.accept(self)
        # '!' takes a whole relation, so it must be grouped under tighter operators
        if (isinstance(node, UnaryOp) and node.operator == TokenType.NOT
                and operator not in (TokenType.AND, TokenType.OR, TokenType.TILDE)):
            return f"({text})"
        return text

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        op = SOURCE_OPERATORS[node.operator]
        left = self._operand(node.left, node.operator)
        right = self._operand(node.right, node.operator)
        return f"({left} {op} {right})"

    def visit_UnaryOp(self, node: UnaryOp) -> str:
        operand = node.operand.accept(self)
        if isinstance(node.operand, UnaryOp):
            operand = f"({operand})"
        return f"{SOURCE_OPERATORS[node.operator]}{operand}"

    def visit_ArrayLiteral(self, node: ArrayLiteral) -> str:
        return "[" + ", ".join(e.accept(self) for e in node.elements) + "]"

    def visit_DictionaryLiteral(self, node: DictionaryLiteral) -> str:
        entries = [f"{e.key.accept(self)}: {e.value.accept(self)}" for e in node.entries]
        return "{" + ", ".join(entries) + "}"

    def visit_Parameter(self, node: Parameter) -> str:
        if node.default is None:
            return node.name
        return f"{node.name} = {node.default.accept(self)}"

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> str:
        params = ", ".join(p.accept(self) for p in node.parameters)
        return f"function({params}) {node.body.accept(self)}"

    def visit_FunctionCall(self, node: FunctionCall) -> str:
        args = ", ".join(a.accept(self) for a in node.arguments)
        return f"{self._postfix_target(node.callee)}({args})"


def to_sexpr(node: AstNode) -> str:
    """Render a node as an S-expression."""
    return node.accept(SExpressionPrinter())


def to_source(node: AstNode) -> str:
    """Render a node as canonical source text."""
    return node.accept(SourcePrinter())
