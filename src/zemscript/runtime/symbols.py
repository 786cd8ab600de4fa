"""
Runtime symbol tables.

A table maps variable names to ``Variable`` cells. Cells, not values, are
what tables share: a closure table and the table it was captured from hold
the same cell object, so an assignment through either one is visible to the
other. The same mechanism makes ``global`` declarations write through to the
global table.

Tables come in three flavours:

- the global table, created once per interpreter;
- a child table (``child_of``) that inherits every cell of a non-global parent;
- a closure table (``closure_of``) that inherits only the captured names.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, TYPE_CHECKING

from ..errors import error_unset_variable
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from .values import Value


@dataclass(eq=False)
class Variable:
    """
    A mutable storage cell for one variable.

    Cells compare by identity. ``value`` is None only for a name declared
    ``global`` that has never been assigned.
    """
    name: str
    value: Optional["Value"] = None

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def __repr__(self) -> str:
        return f"Variable({self.name!r}, {self.value!r})"


class SymbolTable:
    """Mapping from names to shared variable cells."""

    def __init__(self, global_table: Optional["SymbolTable"] = None):
        self.global_table = global_table
        self._cells: Dict[str, Variable] = {}

    @classmethod
    def create_global(cls) -> "SymbolTable":
        """Create the process-wide global table."""
        return cls()

    @classmethod
    def child_of(cls, global_table: "SymbolTable", parent: "SymbolTable") -> "SymbolTable":
        """
        Create a table sharing every cell of ``parent``.

        Nothing is copied from the global table; globals stay reachable
        through delegation instead.
        """
        table = cls(global_table)
        if not parent.is_global:
            table._cells.update(parent._cells)
        return table

    @classmethod
    def closure_of(cls, global_table: "SymbolTable", parent: "SymbolTable",
                   upvalues: Iterable[str]) -> "SymbolTable":
        """
        Create a table sharing only the cells named in ``upvalues``.

        Names not bound in ``parent`` are skipped; reading them later fails
        as an ordinary unset variable.
        """
        table = cls(global_table)
        if not parent.is_global:
            for name in upvalues:
                cell = parent._cells.get(name)
                if cell is not None:
                    table._cells[name] = cell
        return table

    @property
    def is_global(self) -> bool:
        return self.global_table is None

    def names(self) -> FrozenSet[str]:
        """Names bound directly in this table."""
        return frozenset(self._cells)

    def cell(self, name: str) -> Optional[Variable]:
        """Find the cell for ``name`` here or, failing that, in the global table."""
        cell = self._cells.get(name)
        if cell is None and self.global_table is not None:
            cell = self.global_table._cells.get(name)
        return cell

    def get(self, name: str, span: SourceSpan) -> "Value":
        """
        Read a variable.

        Raises:
            UnsetVariableError: If no cell holds a value for ``name``
        """
        cell = self.cell(name)
        if cell is None or not cell.is_set:
            raise error_unset_variable(name, span)
        return cell.value

    def set(self, name: str, value: "Value") -> Variable:
        """Assign through an existing local cell, or create one in this table."""
        cell = self._cells.get(name)
        if cell is None:
            cell = Variable(name, value)
            self._cells[name] = cell
        else:
            cell.value = value
        return cell

    def define(self, name: str, value: Optional["Value"]) -> Variable:
        """Bind ``name`` to a fresh cell, replacing any inherited one."""
        cell = Variable(name, value)
        self._cells[name] = cell
        return cell

    def import_global(self, name: str) -> Variable:
        """
        Share the global cell for ``name`` with this table.

        The global cell is created, unset, if the name was never assigned.
        """
        root = self if self.is_global else self.global_table
        cell = root._cells.get(name)
        if cell is None:
            cell = Variable(name)
            root._cells[name] = cell
        self._cells[name] = cell
        return cell

    def __contains__(self, name: str) -> bool:
        return name in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        kind = "global" if self.is_global else "local"
        return f"SymbolTable({kind}, {sorted(self._cells)})"
