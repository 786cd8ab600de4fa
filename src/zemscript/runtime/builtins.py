"""
Built-in function registry for the zemscript interpreter.

Maps script-visible names to Python implementations. Every implementation
takes ``(args, span)`` and returns a ``Value``; failures are raised as the
usual runtime errors, tagged with the span of the call.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, TextIO
import logging
import sys

from .values import (
    Value, ValueKind, NativeFunction,
    number_val, string_val, array_val, function_val, array_index,
)
from ..errors import error_expected_type, error_invalid_function, error_invalid_type, error_lookup
from ..tokens import SourceLocation, SourceSpan

logger = logging.getLogger(__name__)

_HOST_SPAN = SourceSpan(SourceLocation(1, 1, 0, "<host>"), SourceLocation(1, 1, 0, "<host>"))


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and arity.

    ``arity`` of None accepts any number of arguments.
    """
    name: str
    implementation: Callable[[List[Value], SourceSpan], Value]
    arity: Optional[int] = None
    doc: str = ""

    def to_value(self) -> Value:
        """Wrap as a callable script value."""
        return function_val(NativeFunction(self.name, self.implementation, self.arity, self.doc))


def _require(value: Value, span: SourceSpan, *kinds: ValueKind) -> Value:
    if value.kind not in kinds:
        expected = " or ".join(k.value for k in kinds)
        raise error_expected_type(expected, value.kind_name, span)
    return value


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Output functions write to ``output``, or to ``sys.stdout`` at call time
    when no stream was given.
    """

    def __init__(self, output: Optional[TextIO] = None):
        self._output = output
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        if func.name in self._functions:
            logger.debug("replacing builtin %s", func.name)
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def functions(self) -> List[BuiltinFunction]:
        return [self._functions[name] for name in self.names()]

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_output_functions()
        self._register_container_functions()
        self._register_conversion_functions()
        self._register_math_functions()

    # --- Output ---

    def _register_output_functions(self) -> None:

        def _write(args: List[Value], end: str) -> Value:
            text = "".join(arg.to_display() for arg in args)
            self.output.write(text + end)
            return string_val(text)

        def _print(args: List[Value], span: SourceSpan) -> Value:
            return _write(args, "")

        def _println(args: List[Value], span: SourceSpan) -> Value:
            return _write(args, "\n")

        self.register(BuiltinFunction("print", _print, None, "Write values without a newline."))
        self.register(BuiltinFunction("println", _println, None, "Write values and a newline."))

    # --- Containers ---

    def _register_container_functions(self) -> None:

        def _len(args: List[Value], span: SourceSpan) -> Value:
            value = _require(args[0], span, ValueKind.STRING, ValueKind.ARRAY, ValueKind.DICTIONARY)
            return number_val(len(value.data))

        def _keys(args: List[Value], span: SourceSpan) -> Value:
            dictionary = _require(args[0], span, ValueKind.DICTIONARY)
            return array_val(list(dictionary.data.keys()))

        def _values(args: List[Value], span: SourceSpan) -> Value:
            dictionary = _require(args[0], span, ValueKind.DICTIONARY)
            return array_val(list(dictionary.data.values()))

        def _append(args: List[Value], span: SourceSpan) -> Value:
            array = _require(args[0], span, ValueKind.ARRAY)
            array.data.append(args[1])
            return array

        def _remove(args: List[Value], span: SourceSpan) -> Value:
            container, key = args
            _require(container, span, ValueKind.ARRAY, ValueKind.DICTIONARY)
            if container.kind == ValueKind.ARRAY:
                return container.data.pop(array_index(container, key, span))
            if key not in container.data:
                raise error_lookup(f"key {key.to_display()!r} not found in dictionary", span)
            return container.data.pop(key)

        self.register(BuiltinFunction("len", _len, 1, "Length of a string, array or dictionary."))
        self.register(BuiltinFunction("keys", _keys, 1, "Array of a dictionary's keys."))
        self.register(BuiltinFunction("values", _values, 1, "Array of a dictionary's values."))
        self.register(BuiltinFunction("append", _append, 2, "Append to an array in place."))
        self.register(BuiltinFunction("remove", _remove, 2, "Remove an array index or dictionary key."))

    # --- Conversion ---

    def _register_conversion_functions(self) -> None:

        def _str(args: List[Value], span: SourceSpan) -> Value:
            return string_val(args[0].to_display())

        def _num(args: List[Value], span: SourceSpan) -> Value:
            value = _require(args[0], span, ValueKind.NUMBER, ValueKind.STRING)
            if value.kind == ValueKind.NUMBER:
                return value
            try:
                number = Decimal(value.data.strip())
            except InvalidOperation:
                raise error_invalid_type(f"cannot convert {value.data!r} to a number", span) from None
            if not number.is_finite():
                raise error_invalid_type(f"cannot convert {value.data!r} to a number", span)
            return number_val(number)

        def _typeof(args: List[Value], span: SourceSpan) -> Value:
            return string_val(args[0].kind_name)

        self.register(BuiltinFunction("str", _str, 1, "Display string of any value."))
        self.register(BuiltinFunction("num", _num, 1, "Parse a string as a number."))
        self.register(BuiltinFunction("typeof", _typeof, 1, "Kind name of a value."))

    # --- Math ---

    def _register_math_functions(self) -> None:

        def _rounded(rounding: str):
            def impl(args: List[Value], span: SourceSpan) -> Value:
                result = args[0].to_number(span).to_integral_value(rounding=rounding)
                return number_val(result)
            return impl

        def _abs(args: List[Value], span: SourceSpan) -> Value:
            return number_val(args[0].to_number(span).copy_abs())

        self.register(BuiltinFunction("abs", _abs, 1, "Absolute value."))
        self.register(BuiltinFunction("floor", _rounded(ROUND_FLOOR), 1, "Round towards negative infinity."))
        self.register(BuiltinFunction("ceil", _rounded(ROUND_CEILING), 1, "Round towards positive infinity."))
        self.register(BuiltinFunction("round", _rounded(ROUND_HALF_UP), 1, "Round half away from zero."))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the default built-in function registry (writes to stdout)."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(name: str, args: List[Value], span: SourceSpan = None) -> Value:
    """
    Call a built-in function by name.

    Raises InvalidFunctionError if no builtin has that name.
    """
    span = span or _HOST_SPAN
    registry = get_builtin_registry()
    func = registry.get_function(name)
    if func is None:
        raise error_invalid_function(f"call to undeclared function '{name}'", span)
    return func.to_value().data(args, span)
