"""
Capture analysis for function literals.

Before a function literal becomes a runtime function, its body is walked once
to work out which variables it must capture from the enclosing environment.
Each function body gets a ``ScopeTracker`` holding four name sets:

- ``global_names``: names declared ``global`` here or in an enclosing function.
  They always resolve through the global table, never through a capture.
- ``outer``: names visible from enclosing function scopes.
- ``local``: names introduced inside this body (parameters and first writes).
- ``upvalues``: the subset of ``outer`` that this body, or a nested body that
  did not resolve the name itself, reads or writes.

Classification of a use, in priority order:

1. a global name needs no capture;
2. a local name needs no capture;
3. a name in ``outer`` is recorded as an upvalue (for writes too: assigning
   to an enclosing variable updates the shared cell, it does not shadow it);
4. otherwise a read is left unresolved (it may fail at run time) and a write
   introduces a new local.

``analyze_function`` is the entry point. Given the enclosing context it
returns an immutable ``CaptureResult`` and leaves the AST untouched.
"""

import logging
from dataclasses import dataclass
from typing import AbstractSet, Iterable, Optional

from .ast import (
    AstVisitor, Program, Block, Assignment, CallStatement, ReturnStatement,
    GlobalDeclaration, IfStatement, WhileStatement, ForeachStatement,
    NumberLiteral, StringLiteral, BooleanLiteral, Identifier, Lookup,
    BinaryOp, UnaryOp, ArrayLiteral, DictionaryLiteral, FunctionLiteral,
    FunctionCall,
)

logger = logging.getLogger(__name__)


class ScopeTracker:
    """Name-set accumulator for one function body."""

    def __init__(self, parent: Optional["ScopeTracker"] = None):
        if parent is None:
            self.global_names: set = set()
            self.outer: set = set()
        else:
            self.global_names = set(parent.global_names)
            self.outer = parent.outer | parent.local
        self.local: set = set()
        self.upvalues: set = set()

    @classmethod
    def enclosing(cls, visible: Iterable[str] = (),
                  global_names: Iterable[str] = ()) -> "ScopeTracker":
        """
        Build a tracker standing in for the environment a literal is evaluated in.

        ``visible`` are the names bound in that environment; a child of the
        returned tracker sees them as ``outer``.
        """
        tracker = cls()
        tracker.local = set(visible)
        tracker.global_names = set(global_names)
        return tracker

    def child(self) -> "ScopeTracker":
        return ScopeTracker(self)

    def mark_local(self, name: str) -> None:
        self.local.add(name)

    def mark_global(self, name: str) -> None:
        self.global_names.add(name)

    def read_variable(self, name: str) -> None:
        if name in self.global_names or name in self.local:
            return
        if name in self.outer:
            self.upvalues.add(name)

    def write_variable(self, name: str) -> None:
        if name in self.global_names or name in self.local:
            return
        if name in self.outer:
            self.upvalues.add(name)
        else:
            self.local.add(name)

    def end_scope(self, child: "ScopeTracker") -> None:
        """Propagate a finished child's captures that this scope does not own."""
        for name in child.upvalues:
            if name not in self.local:
                self.upvalues.add(name)

    def __repr__(self) -> str:
        return (f"ScopeTracker(global={sorted(self.global_names)}, outer={sorted(self.outer)}, "
                f"local={sorted(self.local)}, upvalues={sorted(self.upvalues)})")


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of analysing one function literal."""
    upvalues: AbstractSet[str]
    locals: AbstractSet[str]
    global_names: AbstractSet[str]


class ScopeResolver(AstVisitor):
    """Walks a function body, feeding every variable use into a tracker."""

    def __init__(self, tracker: ScopeTracker):
        self.tracker = tracker

    def resolve(self, node) -> None:
        if node is not None:
            node.accept(self)

    def resolve_function(self, node: FunctionLiteral) -> ScopeTracker:
        """Analyse ``node`` in a child of the current tracker and merge it back."""
        parent = self.tracker
        scope = parent.child()
        self.tracker = scope
        try:
            for param in node.parameters:
                # defaults run in the call table, after earlier parameters are bound
                self.resolve(param.default)
                scope.mark_local(param.name)
            self.resolve(node.body)
        finally:
            self.tracker = parent
        parent.end_scope(scope)
        return scope

    def visit_Program(self, node: Program) -> None:
        for stmt in node.statements:
            self.resolve(stmt)

    def visit_Block(self, node: Block) -> None:
        for stmt in node.statements:
            self.resolve(stmt)

    def visit_Assignment(self, node: Assignment) -> None:
        self.resolve(node.value)
        if isinstance(node.target, Identifier):
            self.tracker.write_variable(node.target.name)
        else:
            self.resolve(node.target)

    def visit_CallStatement(self, node: CallStatement) -> None:
        self.resolve(node.call)

    def visit_ReturnStatement(self, node: ReturnStatement) -> None:
        self.resolve(node.value)

    def visit_GlobalDeclaration(self, node: GlobalDeclaration) -> None:
        for name in node.names:
            self.tracker.mark_global(name)

    def visit_IfStatement(self, node: IfStatement) -> None:
        self.resolve(node.condition)
        self.resolve(node.then_branch)
        self.resolve(node.else_branch)

    def visit_WhileStatement(self, node: WhileStatement) -> None:
        self.resolve(node.condition)
        self.resolve(node.body)

    def visit_ForeachStatement(self, node: ForeachStatement) -> None:
        self.resolve(node.source)
        if node.key is not None:
            self.tracker.write_variable(node.key)
        self.tracker.write_variable(node.value)
        self.resolve(node.body)

    def visit_NumberLiteral(self, node: NumberLiteral) -> None:
        pass

    def visit_StringLiteral(self, node: StringLiteral) -> None:
        pass

    def visit_BooleanLiteral(self, node: BooleanLiteral) -> None:
        pass

    def visit_Identifier(self, node: Identifier) -> None:
        self.tracker.read_variable(node.name)

    def visit_Lookup(self, node: Lookup) -> None:
        self.resolve(node.target)
        self.resolve(node.key)

    def visit_BinaryOp(self, node: BinaryOp) -> None:
        self.resolve(node.left)
        self.resolve(node.right)

    def visit_UnaryOp(self, node: UnaryOp) -> None:
        self.resolve(node.operand)

    def visit_ArrayLiteral(self, node: ArrayLiteral) -> None:
        for element in node.elements:
            self.resolve(element)

    def visit_DictionaryLiteral(self, node: DictionaryLiteral) -> None:
        for entry in node.entries:
            self.resolve(entry.key)
            self.resolve(entry.value)

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> None:
        self.resolve_function(node)

    def visit_FunctionCall(self, node: FunctionCall) -> None:
        self.resolve(node.callee)
        for arg in node.arguments:
            self.resolve(arg)


def analyze_function(node: FunctionLiteral, outer: Iterable[str] = (),
                     global_names: Iterable[str] = ()) -> CaptureResult:
    """
    Compute what a function literal captures.

    Args:
        node: The function literal to analyse
        outer: Names bound in the environment the literal is evaluated in
        global_names: Names already declared global in that environment

    Returns:
        CaptureResult with the upvalues to capture, the body's locals, and
        every name global inside the body (inherited plus declared)
    """
    parent = ScopeTracker.enclosing(outer, global_names)
    scope = ScopeResolver(parent).resolve_function(node)
    result = CaptureResult(
        upvalues=frozenset(scope.upvalues),
        locals=frozenset(scope.local),
        global_names=frozenset(scope.global_names),
    )
    logger.debug("capture analysis at %s: %s", node.span.start, scope)
    return result
