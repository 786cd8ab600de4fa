"""
Tree-walking interpreter for zemscript.

Evaluates a parsed ``Program`` statement by statement. Every statement
yields a value: an assignment yields the assigned value, a block yields the
value of its last statement, and a program yields the value of its last
top-level statement.

Variables live in ``SymbolTable`` cells. Each function call runs against a
fresh table chained to the function's closure table; function literals
capture only the outer cells their body actually uses, as computed by
``zemscript.scope.analyze_function``.
"""

from dataclasses import dataclass
from typing import List, Optional, TextIO
import logging
import sys

from .values import (
    Value, ValueKind, UserFunction, NativeFunction, TRUE, FALSE,
    number_val, string_val, bool_val, array_val, dict_val, function_val,
    add, subtract, multiply, divide, remainder, power, negate,
    values_equal, compare, array_index,
)
from .symbols import SymbolTable
from .context import ExecutionContext
from .builtins import BuiltinRegistry, get_builtin_registry

from ..ast import (
    AstNode, Program, Statement, Block, Assignment, CallStatement,
    ReturnStatement, GlobalDeclaration, IfStatement, WhileStatement,
    ForeachStatement, Expression, NumberLiteral, StringLiteral, BooleanLiteral,
    Identifier, Lookup, BinaryOp, UnaryOp, ArrayLiteral, DictionaryLiteral,
    FunctionLiteral, FunctionCall,
)
from ..config import InterpreterConfig
from ..errors import (
    Diagnostic, ZemError,
    error_invalid_type, error_invalid_function, error_lookup, error_no_value,
)
from ..scope import analyze_function
from ..tokens import SourceLocation, SourceSpan, TokenType

logger = logging.getLogger(__name__)

# Python stack frames used by one script-level call, for sizing the recursion limit
_PY_FRAMES_PER_CALL = 30

_ARITHMETIC = {
    TokenType.PLUS, TokenType.MINUS, TokenType.STAR,
    TokenType.SLASH, TokenType.PERCENT, TokenType.CARET,
}

_ORDERING = {
    TokenType.LT: lambda c: c < 0,
    TokenType.LE: lambda c: c <= 0,
    TokenType.GT: lambda c: c > 0,
    TokenType.GE: lambda c: c >= 0,
}

_HOST_SPAN = SourceSpan(SourceLocation(1, 1, 0, "<host>"), SourceLocation(1, 1, 0, "<host>"))


@dataclass
class ExecutionResult:
    """Result of running a script."""
    success: bool
    value: Optional[Value] = None
    error_message: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def display(self) -> Optional[str]:
        """Display string of the final value, if there is one."""
        if self.value is None:
            return None
        return self.value.to_display()


class Interpreter:
    """
    Tree-walking interpreter for zemscript.

    The global table persists across ``eval``/``run`` calls on one instance,
    so a host can feed a script in pieces.

    Script calls recurse on the Python stack, so construction raises the
    process-wide ``sys.setrecursionlimit`` far enough for
    ``config.max_call_depth`` nested calls. The limit is only ever raised,
    never lowered or restored, and the change outlives the instance.
    """

    def __init__(self, config: InterpreterConfig = None,
                 registry: BuiltinRegistry = None, output: TextIO = None):
        """
        Initialize the interpreter.

        Args:
            config: Limits and start-up options (defaults apply when omitted)
            registry: Built-in functions to bind into the global table
            output: Stream for print/println when no registry is given
        """
        self.config = config or InterpreterConfig()
        if registry is None:
            registry = BuiltinRegistry(output) if output is not None else get_builtin_registry()
        self.registry = registry
        self.context = ExecutionContext(max_call_depth=self.config.max_call_depth)
        if self.config.load_builtins:
            self._load_builtins()
        self._ensure_recursion_limit()

    def _load_builtins(self) -> None:
        for func in self.registry.functions():
            self.context.global_table.set(func.name, func.to_value())

    def _ensure_recursion_limit(self) -> None:
        needed = self.config.max_call_depth * _PY_FRAMES_PER_CALL + 1000
        if sys.getrecursionlimit() < needed:
            logger.debug("raising recursion limit to %d", needed)
            sys.setrecursionlimit(needed)

    # =========================================================================
    # Host API
    # =========================================================================

    def eval(self, source: str, filename: Optional[str] = None) -> Optional[Value]:
        """
        Parse and run source text.

        Returns:
            The value of the last top-level statement

        Raises:
            ZemError: On any lexer, parser or runtime failure
        """
        from ..parser import parse_source
        program = parse_source(source, filename)
        return self.run(program, source)

    def run(self, program: Program, source: str = "") -> Optional[Value]:
        """Run an already parsed program against this interpreter's globals."""
        ctx = self.context
        ctx.set_source(source)
        ctx.reset_frames()
        try:
            return self._execute_statements(program.statements)
        except ZemError as e:
            ctx.annotate(e)
            raise
        finally:
            ctx.reset_frames()

    def evaluate(self, node: AstNode) -> Optional[Value]:
        """Evaluate any node in the current frame."""
        if isinstance(node, Expression):
            return self._evaluate(node)
        if isinstance(node, Program):
            return self._execute_statements(node.statements)
        return self._execute_statement(node)

    def get_variable(self, name: str) -> Value:
        """Read a global variable."""
        return self.context.global_table.get(name, _HOST_SPAN)

    def set_variable(self, name: str, value: Value) -> None:
        """Assign a global variable."""
        self.context.global_table.set(name, value)

    def call(self, name: str, *args: Value) -> Optional[Value]:
        """Call a global function by name with already evaluated arguments."""
        cell = self.context.global_table.cell(name)
        if cell is None or not cell.is_set:
            raise error_invalid_function(f"call to undeclared function '{name}'", _HOST_SPAN)
        return self.call_function(cell.value, list(args), _HOST_SPAN, name)

    def call_function(self, function: Value, args: List[Value], span: SourceSpan,
                      name: Optional[str] = None) -> Optional[Value]:
        """
        Invoke a function value.

        Native functions get the argument list directly. User functions run
        in a new frame whose table shares the closure's cells; parameters are
        bound to fresh cells, and omitted ones take their default, evaluated
        in that new table.

        Returns:
            The returned value, else the body's trailing value (None for an
            empty body)
        """
        if not function.is_function:
            raise error_invalid_function(f"call to invalid function: {function.kind_name} is not callable", span)

        fn = function.data
        label = name or fn.name or "<anonymous>"
        if isinstance(fn, NativeFunction):
            logger.debug("call native %s with %d argument(s)", label, len(args))
            return fn(args, span)

        if len(args) > fn.arity:
            raise error_invalid_function(
                f"{label}() takes {fn.arity} argument(s) but {len(args)} were given", span
            )

        table = SymbolTable.child_of(self.context.global_table, fn.closure)
        logger.debug("call %s with %d argument(s) at depth %d", label, len(args), self.context.depth + 1)
        with self.context.enter_frame(table, set(fn.global_names), label, span) as frame:
            for i, param in enumerate(fn.parameters):
                if i < len(args):
                    table.define(param.name, args[i])
                elif param.default is not None:
                    table.define(param.name, self._evaluate(param.default))
                else:
                    table.define(param.name, None)

            result = self._execute_block(fn.body)
            if frame.should_return:
                result = frame.return_value
        return result

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: List[Statement]) -> Optional[Value]:
        result = None
        frame = self.context.frame
        for stmt in statements:
            result = self._execute_statement(stmt)
            if frame.should_return:
                return frame.return_value
        return result

    def _execute_statement(self, stmt: AstNode) -> Optional[Value]:
        """Execute a statement."""
        if isinstance(stmt, Assignment):
            return self._execute_assignment(stmt)
        elif isinstance(stmt, CallStatement):
            return self._eval_function_call(stmt.call)
        elif isinstance(stmt, ReturnStatement):
            return self._execute_return(stmt)
        elif isinstance(stmt, GlobalDeclaration):
            return self._execute_global(stmt)
        elif isinstance(stmt, IfStatement):
            return self._execute_if(stmt)
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt)
        elif isinstance(stmt, ForeachStatement):
            return self._execute_foreach(stmt)
        elif isinstance(stmt, Block):
            return self._execute_block(stmt)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_block(self, block: Block) -> Optional[Value]:
        """Blocks share the enclosing table."""
        return self._execute_statements(block.statements)

    def _execute_assignment(self, stmt: Assignment) -> Value:
        target = stmt.target
        if isinstance(target, Identifier):
            if isinstance(stmt.value, FunctionLiteral):
                value = self._eval_function_literal(stmt.value, target.name)
            else:
                value = self._evaluate(stmt.value)
            self.context.table.set(target.name, value)
            return value

        value = self._evaluate(stmt.value)
        container = self._evaluate(target.target)
        key = self._evaluate(target.key)
        if container.kind == ValueKind.ARRAY:
            container.data[array_index(container, key, target.key.span)] = value
        elif container.kind == ValueKind.DICTIONARY:
            container.data[key] = value
        else:
            raise error_invalid_type(f"cannot assign into a {container.kind_name}", target.target.span)
        return value

    def _execute_return(self, stmt: ReturnStatement) -> Value:
        value = self._evaluate(stmt.value)
        self.context.frame.signal_return(value)
        return value

    def _execute_global(self, stmt: GlobalDeclaration) -> None:
        """
        Declare names global for the rest of the enclosing function.

        Inside a function the global cell is shared into the current table,
        so later assignments write through to it.
        """
        frame = self.context.frame
        for name in stmt.names:
            frame.global_names.add(name)
            if not frame.table.is_global:
                frame.table.import_global(name)
                logger.debug("%s: imported global '%s'", frame.function_name, name)
        return None

    def _execute_if(self, stmt: IfStatement) -> Optional[Value]:
        condition = self._evaluate(stmt.condition).to_boolean(stmt.condition.span)
        if condition:
            return self._execute_block(stmt.then_branch)
        if stmt.else_branch is not None:
            return self._execute_statement(stmt.else_branch)
        return FALSE

    def _execute_while(self, stmt: WhileStatement) -> Optional[Value]:
        result = None
        frame = self.context.frame
        while self._evaluate(stmt.condition).to_boolean(stmt.condition.span):
            result = self._execute_block(stmt.body)
            if frame.should_return:
                break
        return result

    def _execute_foreach(self, stmt: ForeachStatement) -> Optional[Value]:
        """
        Loop variables are assigned in the current table, not a fresh scope,
        so closures created in the body all see the final binding.
        """
        source = self._evaluate(stmt.source)
        table = self.context.table
        frame = self.context.frame
        result = None

        if source.kind == ValueKind.ARRAY:
            if stmt.key is not None:
                raise error_invalid_type("foreach with 'key : value' requires a dictionary", stmt.source.span)
            for element in list(source.data):
                table.set(stmt.value, element)
                result = self._execute_block(stmt.body)
                if frame.should_return:
                    break
            return result

        if source.kind == ValueKind.DICTIONARY:
            if stmt.key is None:
                raise error_invalid_type("foreach over a dictionary requires 'key : value'", stmt.source.span)
            for key, value in list(source.data.items()):
                table.set(stmt.key, key)
                table.set(stmt.value, value)
                result = self._execute_block(stmt.body)
                if frame.should_return:
                    break
            return result

        raise error_invalid_type(
            f"foreach expects an array or dictionary, got {source.kind_name}", stmt.source.span
        )

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, NumberLiteral):
            return number_val(expr.value)
        elif isinstance(expr, StringLiteral):
            return string_val(expr.value)
        elif isinstance(expr, BooleanLiteral):
            return bool_val(expr.value)
        elif isinstance(expr, Identifier):
            return self.context.table.get(expr.name, expr.span)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr)
        elif isinstance(expr, Lookup):
            return self._eval_lookup(expr)
        elif isinstance(expr, ArrayLiteral):
            return array_val([self._evaluate(e) for e in expr.elements])
        elif isinstance(expr, DictionaryLiteral):
            return self._eval_dict_literal(expr)
        elif isinstance(expr, FunctionLiteral):
            return self._eval_function_literal(expr)
        elif isinstance(expr, FunctionCall):
            result = self._eval_function_call(expr)
            if result is None:
                raise error_no_value(expr.span)
            return result
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_binary_op(self, op: BinaryOp) -> Value:
        """Evaluate a binary operation."""
        # Short-circuit for logical operators
        if op.operator == TokenType.AND:
            if not self._evaluate(op.left).to_boolean(op.left.span):
                return FALSE
            return bool_val(self._evaluate(op.right).to_boolean(op.right.span))
        elif op.operator == TokenType.OR:
            if self._evaluate(op.left).to_boolean(op.left.span):
                return TRUE
            return bool_val(self._evaluate(op.right).to_boolean(op.right.span))

        left = self._evaluate(op.left)
        right = self._evaluate(op.right)

        if op.operator == TokenType.TILDE:
            return string_val(left.to_display() + right.to_display())
        if op.operator in _ARITHMETIC:
            return self._arithmetic(op, left.to_number(op.left.span), right.to_number(op.right.span))
        if op.operator == TokenType.EQ:
            return bool_val(values_equal(left, right, op.span))
        if op.operator == TokenType.NE:
            return bool_val(not values_equal(left, right, op.span))
        if op.operator in _ORDERING:
            return bool_val(_ORDERING[op.operator](compare(left, right, op.span)))
        raise RuntimeError(f"Unknown binary operator: {op.operator}")

    def _arithmetic(self, op: BinaryOp, a, b) -> Value:
        if op.operator == TokenType.PLUS:
            return number_val(add(a, b))
        elif op.operator == TokenType.MINUS:
            return number_val(subtract(a, b))
        elif op.operator == TokenType.STAR:
            return number_val(multiply(a, b))
        elif op.operator == TokenType.SLASH:
            return number_val(divide(a, b, op.span))
        elif op.operator == TokenType.PERCENT:
            return number_val(remainder(a, b, op.span))
        return number_val(power(a, b, op.span, self.config.max_exponent))

    def _eval_unary_op(self, op: UnaryOp) -> Value:
        """Evaluate a unary operation."""
        operand = self._evaluate(op.operand)
        if op.operator == TokenType.MINUS:
            return number_val(negate(operand.to_number(op.operand.span)))
        elif op.operator == TokenType.NOT:
            return bool_val(not operand.to_boolean(op.operand.span))
        raise RuntimeError(f"Unknown unary operator: {op.operator}")

    def _eval_lookup(self, lookup: Lookup) -> Value:
        """Evaluate ``target[key]``."""
        container = self._evaluate(lookup.target)
        key = self._evaluate(lookup.key)
        if container.kind == ValueKind.ARRAY:
            return container.data[array_index(container, key, lookup.key.span)]
        if container.kind == ValueKind.DICTIONARY:
            if key not in container.data:
                raise error_lookup(f"key {key.to_display()!r} not found in dictionary", lookup.key.span)
            return container.data[key]
        raise error_invalid_type(f"cannot index into a {container.kind_name}", lookup.target.span)

    def _eval_dict_literal(self, dct: DictionaryLiteral) -> Value:
        """Evaluate a dict literal; later duplicate keys win."""
        result = {}
        for entry in dct.entries:
            key = self._evaluate(entry.key)
            result[key] = self._evaluate(entry.value)
        return dict_val(result)

    def _eval_function_literal(self, node: FunctionLiteral, name: Optional[str] = None) -> Value:
        """
        Create a closure.

        Capture analysis runs against the current environment: the names of
        the current table (none when running at top level, where everything
        is global) and the names declared global in this frame.
        """
        ctx = self.context
        frame = ctx.frame
        outer = () if frame.table.is_global else frame.table.names()
        capture = analyze_function(node, outer, frame.global_names)

        closure = SymbolTable.closure_of(ctx.global_table, frame.table, capture.upvalues)
        for global_name in frame.global_names:
            closure.import_global(global_name)

        logger.debug(
            "closure %s captures %s (globals %s)",
            name or "<anonymous>", sorted(capture.upvalues), sorted(capture.global_names),
        )
        return function_val(UserFunction(
            name=name,
            parameters=node.parameters,
            body=node.body,
            closure=closure,
            global_names=capture.global_names,
            span=node.span,
        ))

    def _eval_function_call(self, call: FunctionCall) -> Optional[Value]:
        """Evaluate a function call; arguments are evaluated left to right."""
        name = call.function_name
        if name is not None:
            cell = self.context.table.cell(name)
            if cell is None or not cell.is_set:
                raise error_invalid_function(f"call to undeclared function '{name}'", call.callee.span)
            callee = cell.value
        else:
            callee = self._evaluate(call.callee)

        if not callee.is_function:
            raise error_invalid_function(
                f"call to invalid function: {callee.kind_name} is not callable", call.callee.span
            )
        args = [self._evaluate(arg) for arg in call.arguments]
        return self.call_function(callee, args, call.span, name)


# Convenience function for simple execution
def execute(program: Program, source: str = "",
            config: InterpreterConfig = None) -> ExecutionResult:
    """
    Run a parsed program in a fresh interpreter.

    Runtime failures are reported in the result rather than raised.
    """
    interpreter = Interpreter(config)
    try:
        value = interpreter.run(program, source)
    except ZemError as e:
        return ExecutionResult(success=False, error_message=str(e), diagnostic=e.diagnostic)
    return ExecutionResult(success=True, value=value)


def compile_and_run(source: str, filename: Optional[str] = None,
                    config: InterpreterConfig = None) -> ExecutionResult:
    """
    High-level API to parse and run source code in one call.

        from zemscript import compile_and_run

        result = compile_and_run('''
            fact = function(n) { if (n <= 1) { return 1; } return n * fact(n - 1); };
            x = fact(6);
        ''')

        if result.success:
            print(result.display)
        else:
            print(result.error_message)

    Args:
        source: Script source code
        filename: Optional filename for diagnostics
        config: Optional interpreter configuration

    Returns:
        ExecutionResult with the final value or the failure diagnostic
    """
    from ..parser import parse_source

    try:
        program = parse_source(source, filename)
    except ZemError as e:
        return ExecutionResult(success=False, error_message=str(e), diagnostic=e.diagnostic)

    return execute(program, source, config)
