"""
Execution context for the zemscript interpreter.

Holds the global table, the stack of call frames and the state needed to
attach source lines to runtime diagnostics.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .symbols import SymbolTable
from .values import Value
from ..errors import ZemError, error_call_depth
from ..tokens import SourceSpan


@dataclass
class CallFrame:
    """
    One activation: the table statements run against plus the return signal.

    ``global_names`` are the names resolved through the global table while
    this frame is active; ``global`` declarations add to it.
    """
    table: SymbolTable
    global_names: Set[str]
    function_name: Optional[str] = None

    _should_return: bool = False
    _return_value: Optional[Value] = None

    def signal_return(self, value: Value) -> None:
        """Signal an early return from the current function."""
        self._should_return = True
        self._return_value = value

    @property
    def should_return(self) -> bool:
        """Check if early return was signaled."""
        return self._should_return

    @property
    def return_value(self) -> Optional[Value]:
        """Get the return value if early return was signaled."""
        return self._return_value

    def clear_return(self) -> None:
        """Clear the return signal (used after handling return)."""
        self._should_return = False
        self._return_value = None


@dataclass
class ExecutionContext:
    """
    The full execution state of one interpreter.

    Tracks:
    - The global symbol table and the names declared global at top level
    - The call frame stack (the bottom frame runs top-level statements)
    - Source lines for error messages
    """
    global_table: SymbolTable = field(default_factory=SymbolTable.create_global)
    global_names: Set[str] = field(default_factory=set)
    max_call_depth: int = 200
    source_lines: List[str] = field(default_factory=list)
    frames: List[CallFrame] = field(default_factory=list)

    def __post_init__(self):
        if not self.frames:
            self.frames.append(CallFrame(self.global_table, self.global_names, None))

    @property
    def frame(self) -> CallFrame:
        """The active call frame."""
        return self.frames[-1]

    @property
    def table(self) -> SymbolTable:
        """The symbol table of the active frame."""
        return self.frames[-1].table

    @property
    def depth(self) -> int:
        """Number of function calls in progress."""
        return len(self.frames) - 1

    @contextmanager
    def enter_frame(self, table: SymbolTable, global_names: Set[str],
                    function_name: Optional[str] = None, span: Optional[SourceSpan] = None):
        """
        Context manager to run a function body in a new frame.

        Usage:
            with ctx.enter_frame(call_table, set(fn.global_names), fn.name, span):
                ...

        Raises:
            CallDepthError: If max_call_depth calls are already active
        """
        if self.depth >= self.max_call_depth:
            raise error_call_depth(self.max_call_depth, span)
        frame = CallFrame(table, global_names, function_name)
        self.frames.append(frame)
        try:
            yield frame
        finally:
            self.frames.pop()

    def reset_frames(self) -> None:
        """Drop all frames except the top-level one and clear its return signal."""
        del self.frames[1:]
        self.frames[0].clear_return()

    def set_source(self, source: str) -> None:
        self.source_lines = source.split('\n') if source else []

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a source line for error messages."""
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return None

    def annotate(self, error: ZemError) -> ZemError:
        """Attach the offending source line to an error raised during evaluation."""
        if error.span is not None:
            error.with_source_line(self.get_source_line(error.span.start.line))
        return error
