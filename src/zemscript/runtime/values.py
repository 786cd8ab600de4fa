"""
Runtime values for the zemscript interpreter.

Every runtime value is a ``Value`` pairing raw Python data with a
``ValueKind`` tag:

    NUMBER      decimal.Decimal (exact, arbitrary precision)
    STRING      str
    BOOLEAN     bool
    ARRAY       list of Value (mutable in place)
    DICTIONARY  dict of Value -> Value (mutable in place)
    FUNCTION    UserFunction or NativeFunction

Numbers, strings and booleans compare and hash by content; arrays,
dictionaries and functions by identity. The only implicit conversion is
``to_display``, used by printing and by the ``~`` operator.
"""

from dataclasses import dataclass
from decimal import Decimal, Context, MAX_PREC, MAX_EMAX, MIN_EMIN
from enum import Enum
from fractions import Fraction
from typing import Any, Callable, Dict, FrozenSet, List, Optional, TYPE_CHECKING

from ..errors import (
    error_expected_type, error_invalid_type, error_type_mismatch, error_arithmetic,
    error_lookup, error_invalid_function,
)
from ..printer import quote_string
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from ..ast import Block, Parameter
    from .symbols import SymbolTable


DEFAULT_MAX_EXPONENT = 99999

# Wide enough that add, subtract, multiply and remainder never round
EXACT_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


class ValueKind(Enum):
    """Runtime kinds; the values are the names used in messages."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    DICTIONARY = "dictionary"
    FUNCTION = "function"


_BY_CONTENT = (ValueKind.NUMBER, ValueKind.STRING, ValueKind.BOOLEAN)


@dataclass(eq=False)
class Value:
    """
    A runtime value with its kind.

    The `data` field holds the Python representation.
    The `kind` field selects the operations that apply to it.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind.value})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind != other.kind:
            return False
        if self.kind in _BY_CONTENT:
            return self.data == other.data
        return self.data is other.data

    def __hash__(self) -> int:
        if self.kind in _BY_CONTENT:
            return hash((self.kind, self.data))
        return hash((self.kind, id(self.data)))

    @property
    def kind_name(self) -> str:
        return self.kind.value

    @property
    def is_number(self) -> bool:
        return self.kind == ValueKind.NUMBER

    @property
    def is_function(self) -> bool:
        return self.kind == ValueKind.FUNCTION

    def to_number(self, span: SourceSpan) -> Decimal:
        """Return the Decimal, or raise InvalidTypeError for any other kind."""
        if self.kind != ValueKind.NUMBER:
            raise error_expected_type(ValueKind.NUMBER.value, self.kind_name, span)
        return self.data

    def to_boolean(self, span: SourceSpan) -> bool:
        """Return the bool, or raise InvalidTypeError for any other kind."""
        if self.kind != ValueKind.BOOLEAN:
            raise error_expected_type(ValueKind.BOOLEAN.value, self.kind_name, span)
        return self.data

    def to_display(self) -> str:
        """Display string for any value."""
        return _display(self, set())


def _display(value: Value, seen: set) -> str:
    kind = value.kind
    if kind == ValueKind.NUMBER:
        return format(value.data, 'f')
    if kind == ValueKind.STRING:
        return value.data
    if kind == ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if kind == ValueKind.FUNCTION:
        name = value.data.name
        return f"<function {name}>" if name else "<function>"

    # containers may contain themselves
    if id(value.data) in seen:
        return "[...]" if kind == ValueKind.ARRAY else "{...}"
    seen = seen | {id(value.data)}
    if kind == ValueKind.ARRAY:
        return "[" + ", ".join(_nested(v, seen) for v in value.data) + "]"
    entries = [f"{_nested(k, seen)}: {_nested(v, seen)}" for k, v in value.data.items()]
    return "{" + ", ".join(entries) + "}"


def _nested(value: Value, seen: set) -> str:
    if value.kind == ValueKind.STRING:
        return quote_string(value.data)
    return _display(value, seen)


# =============================================================================
# Functions
# =============================================================================

@dataclass(eq=False)
class UserFunction:
    """
    A function defined in script code.

    ``closure`` holds the captured cells; ``global_names`` are the names the
    body resolves through the global table.
    """
    name: Optional[str]
    parameters: List["Parameter"]
    body: "Block"
    closure: "SymbolTable"
    global_names: FrozenSet[str] = frozenset()
    span: Optional[SourceSpan] = None

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(eq=False)
class NativeFunction:
    """
    A function implemented in Python.

    ``implementation`` is called as ``implementation(args, span)``.
    ``arity`` of None accepts any number of arguments.
    """
    name: str
    implementation: Callable[[List[Value], SourceSpan], Value]
    arity: Optional[int] = None
    doc: str = ""

    def __call__(self, args: List[Value], span: SourceSpan) -> Value:
        if self.arity is not None and len(args) != self.arity:
            raise error_invalid_function(
                f"{self.name}() takes {self.arity} argument(s) but {len(args)} were given", span
            )
        return self.implementation(args, span)


# =============================================================================
# Constructors
# =============================================================================

def number_val(n: Any) -> Value:
    """Create a number value from a Decimal, int or numeric string."""
    if isinstance(n, float):
        n = str(n)
    return Value(_unsigned_zero(Decimal(n)), ValueKind.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def bool_val(b: bool) -> Value:
    """Return the shared TRUE or FALSE value."""
    return TRUE if b else FALSE


def array_val(items: Optional[List[Value]] = None) -> Value:
    """Wrap a list of values; the list itself becomes the array storage."""
    return Value(items if items is not None else [], ValueKind.ARRAY)


def dict_val(items: Optional[Dict[Value, Value]] = None) -> Value:
    """Wrap a dict of values; the dict itself becomes the dictionary storage."""
    return Value(items if items is not None else {}, ValueKind.DICTIONARY)


def function_val(function: Any) -> Value:
    """Wrap a UserFunction or NativeFunction."""
    return Value(function, ValueKind.FUNCTION)


TRUE = Value(True, ValueKind.BOOLEAN)
FALSE = Value(False, ValueKind.BOOLEAN)


# =============================================================================
# Number arithmetic
# =============================================================================

def _unsigned_zero(d: Decimal) -> Decimal:
    # numbers have no negative zero; keep the scale so 0.00 stays 0.00
    return d.copy_abs() if d.is_zero() else d


def add(a: Decimal, b: Decimal) -> Decimal:
    return _unsigned_zero(EXACT_CONTEXT.add(a, b))


def subtract(a: Decimal, b: Decimal) -> Decimal:
    return _unsigned_zero(EXACT_CONTEXT.subtract(a, b))


def multiply(a: Decimal, b: Decimal) -> Decimal:
    return _unsigned_zero(EXACT_CONTEXT.multiply(a, b))


def negate(a: Decimal) -> Decimal:
    return _unsigned_zero(EXACT_CONTEXT.minus(a))


def remainder(a: Decimal, b: Decimal, span: SourceSpan) -> Decimal:
    """Truncating remainder; a non-zero result takes the sign of ``a``."""
    if b == 0:
        raise error_arithmetic("division by zero", span)
    return _unsigned_zero(EXACT_CONTEXT.remainder(a, b))


def divide(a: Decimal, b: Decimal, span: SourceSpan) -> Decimal:
    """
    Exact quotient.

    The result must have a finite decimal expansion, i.e. the reduced
    denominator may only contain the factors 2 and 5. Its scale is the
    dividend's scale minus the divisor's, widened as far as the exact
    quotient needs, so ``6.0 / 2`` is ``3.0`` and ``1 / 8`` is ``0.125``.

    Raises:
        ArithmeticFailure: On division by zero or a non-terminating quotient
    """
    if b == 0:
        raise error_arithmetic("division by zero", span)
    quotient = Fraction(a) / Fraction(b)
    denominator = quotient.denominator
    twos = fives = 0
    while denominator % 2 == 0:
        denominator //= 2
        twos += 1
    while denominator % 5 == 0:
        denominator //= 5
        fives += 1
    if denominator != 1:
        raise error_arithmetic(
            f"non-terminating decimal expansion for {format(a, 'f')} / {format(b, 'f')}", span
        )
    places = max(twos, fives)
    scaled = quotient.numerator * (10 ** places // quotient.denominator)
    exact = EXACT_CONTEXT.scaleb(Decimal(scaled), -places)

    preferred = a.as_tuple().exponent - b.as_tuple().exponent
    shortest = exact.normalize(EXACT_CONTEXT).as_tuple().exponent
    target = min(preferred, shortest)
    # moving to a smaller exponent only appends zeros, so this never rounds
    return EXACT_CONTEXT.quantize(exact, Decimal((0, (1,), target)))


def power(base: Decimal, exponent: Decimal, span: SourceSpan,
          max_exponent: int = DEFAULT_MAX_EXPONENT) -> Decimal:
    """
    Raise ``base`` to a non-negative integral ``exponent``.

    Raises:
        ArithmeticFailure: If the exponent is fractional, negative, or larger
            than ``max_exponent``
    """
    if exponent != exponent.to_integral_value():
        raise error_arithmetic(f"exponent must be an integer, got {format(exponent, 'f')}", span)
    if exponent < 0:
        raise error_arithmetic(
            f"exponent must be non-negative, got {format(exponent, 'f')}", span
        )
    if exponent > max_exponent:
        raise error_arithmetic(
            f"exponent {format(exponent, 'f')} is out of range (limit {max_exponent})", span
        )
    n = int(exponent)

    # integer power of the coefficient, then shift the decimal point back
    exp = base.as_tuple().exponent
    mantissa = int(EXACT_CONTEXT.scaleb(base, -exp))
    return EXACT_CONTEXT.scaleb(Decimal(mantissa ** n), exp * n)


# =============================================================================
# Comparison
# =============================================================================

def values_equal(a: Value, b: Value, span: SourceSpan) -> bool:
    """
    Equality for ``==`` and ``!=``.

    Raises:
        TypeMismatchError: If the operands are of different kinds
    """
    if a.kind != b.kind:
        raise error_type_mismatch(a.kind_name, b.kind_name, span)
    return a == b


def compare(a: Value, b: Value, span: SourceSpan) -> int:
    """
    Order two numbers or two strings; returns -1, 0 or 1.

    Raises:
        TypeMismatchError: If the operands are of different kinds
        InvalidTypeError: If the kind has no ordering
    """
    if a.kind != b.kind:
        raise error_type_mismatch(a.kind_name, b.kind_name, span)
    if a.kind not in (ValueKind.NUMBER, ValueKind.STRING):
        raise error_invalid_type(f"cannot order values of type {a.kind_name}", span)
    if a.data < b.data:
        return -1
    if a.data > b.data:
        return 1
    return 0


# =============================================================================
# Containers
# =============================================================================

def array_index(array: Value, key: Value, span: SourceSpan) -> int:
    """
    Convert ``key`` to a valid index into ``array``.

    Raises:
        InvalidTypeError: If the key is not a number
        LookupFailure: If the key is fractional or out of range
    """
    number = key.to_number(span)
    if number != number.to_integral_value():
        raise error_lookup(f"array index must be an integer, got {format(number, 'f')}", span)
    if not 0 <= number < len(array.data):
        raise error_lookup(
            f"array index {format(number, 'f')} out of range for length {len(array.data)}", span
        )
    return int(number)
