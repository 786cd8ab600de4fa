"""
Abstract Syntax Tree (AST) node definitions for zemscript.

Every construct in the language is a statement that also yields a value,
so the tree distinguishes expressions from statements only by where the
parser accepts them. Nodes are built once by the parser and never mutated;
the scope resolver and the interpreter only read them.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List, Union, Any
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class NumberLiteral(Expression):
    """A number literal; ``text`` keeps the spelling used in the source."""
    value: Decimal
    text: str


@dataclass
class StringLiteral(Expression):
    """A string literal."""
    value: str


@dataclass
class BooleanLiteral(Expression):
    """``true`` or ``false``."""
    value: bool


@dataclass
class Identifier(Expression):
    """A variable reference."""
    name: str


@dataclass
class Lookup(Expression):
    """Indexed access, ``target[key]``."""
    target: Expression
    key: Expression


@dataclass
class BinaryOp(Expression):
    """A binary operation (arithmetic, comparison, logic or concatenation)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """Negation (``-x``) or logical not (``!x``)."""
    operator: TokenType
    operand: Expression


@dataclass
class ArrayLiteral(Expression):
    """An array literal, ``[1, 2, 3]``."""
    elements: List[Expression] = field(default_factory=list)


@dataclass
class DictionaryEntry(AstNode):
    """A single ``key : value`` pair in a dictionary literal."""
    key: Expression
    value: Expression


@dataclass
class DictionaryLiteral(Expression):
    """A dictionary literal, ``{'a' : 1}``."""
    entries: List[DictionaryEntry] = field(default_factory=list)


@dataclass
class Parameter(AstNode):
    """A function parameter with an optional default expression."""
    name: str
    default: Optional[Expression] = None


@dataclass
class FunctionLiteral(Expression):
    """An anonymous function, ``function(a, b = 1) { ... }``."""
    parameters: List[Parameter]
    body: "Block"

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]


@dataclass
class FunctionCall(Expression):
    """A call; the callee is any expression, so ``f()()`` nests calls."""
    callee: Expression
    arguments: List[Expression] = field(default_factory=list)

    @property
    def function_name(self) -> Optional[str]:
        """Name of the called variable, if the callee is a plain name."""
        if isinstance(self.callee, Identifier):
            return self.callee.name
        return None


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class Assignment(Statement):
    """``target = value;`` where target is a name or a lookup."""
    target: Union[Identifier, Lookup]
    value: Expression


@dataclass
class CallStatement(Statement):
    """A function call used as a statement, ``f(x);``."""
    call: FunctionCall


@dataclass
class ReturnStatement(Statement):
    """``return value;``"""
    value: Expression


@dataclass
class GlobalDeclaration(Statement):
    """``global a, b;``"""
    names: List[str]


@dataclass
class Block(AstNode):
    """A brace-delimited list of statements."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class IfStatement(Statement):
    """``if (cond) { ... } else ...``; else_branch is a Block or another IfStatement."""
    condition: Expression
    then_branch: Block
    else_branch: Optional[Union[Block, "IfStatement"]] = None


@dataclass
class WhileStatement(Statement):
    """``while (cond) { ... }``"""
    condition: Expression
    body: Block


@dataclass
class ForeachStatement(Statement):
    """
    ``foreach (source as value) { ... }`` or ``foreach (source as key : value) { ... }``.

    ``key`` is None for the single-variable form.
    """
    source: Expression
    key: Optional[str]
    value: str
    body: Block


@dataclass
class Program(AstNode):
    """The root of a parsed script."""
    statements: List[Statement] = field(default_factory=list)
