"""
Query Results

A QueryResult wraps the fully materialized row set of one statement
execution and exposes it in three shapes:

- OutputShape.OBJECT: Row objects (attribute and key access, immutable)
- OutputShape.ARRAY: lists of column values in column order
- OutputShape.ASSOC: dicts of column name -> value

Single-row access follows one cursor rule everywhere: without an offset the
row under the cursor is returned and the cursor advances; with an offset
that row is returned and the cursor stays put. Missing rows come back as
the falsy ``NOT_FOUND`` sentinel, never as None, so a NULL column value can
be told apart from a lookup failure.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from sprydb.adapters.base import AdapterResult


class OutputShape(str, Enum):
    """Row representations a retrieval call may request."""

    OBJECT = "object"
    ARRAY = "array"
    ASSOC = "assoc"


class _Sentinel(Enum):
    NOT_FOUND = "NOT_FOUND"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return self.value


#: Returned when a requested row or column does not exist.
NOT_FOUND = _Sentinel.NOT_FOUND


class Row(Mapping):
    """
    An immutable result row.

    Values are reachable by column name (``row["id"]``), as attributes
    (``row.id``) and positionally through ``values_tuple``. When a statement
    returns two columns with the same name, name-based access sees the last
    one while ``values_tuple`` keeps both.

    Attribute access falls back to columns only when no Mapping method has
    that name: a column called ``keys``, ``values``, ``items`` or ``get`` is
    reached with ``row["values"]``, since ``row.values`` is the method.
    """

    __slots__ = ("_columns", "_values", "_mapping")

    def __init__(self, columns: Sequence[str] = (), values: Sequence[Any] = ()):
        if len(columns) != len(values):
            raise ValueError(f"Row has {len(values)} values for {len(columns)} columns")
        object.__setattr__(self, "_columns", tuple(columns))
        object.__setattr__(self, "_values", tuple(values))
        object.__setattr__(self, "_mapping", dict(zip(columns, values)))

    def __getitem__(self, key: str) -> Any:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._mapping[name]
        except KeyError:
            raise AttributeError(f"Row has no column {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Row objects are immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Row objects are immutable")

    def __reduce__(self):
        return (Row, (self._columns, self._values))

    @property
    def values_tuple(self) -> Tuple[Any, ...]:
        """Column values in column order."""
        return self._values

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._mapping.items())
        return f"Row({fields})"


ShapedRow = Union[Row, List[Any], Dict[str, Any]]

#: Value retrieval helpers return for a failed query, per shape.
EMPTY_SHAPES: Dict[OutputShape, Callable[[], ShapedRow]] = {
    OutputShape.OBJECT: Row,
    OutputShape.ARRAY: list,
    OutputShape.ASSOC: dict,
}


class QueryResult:
    """
    The materialized result set of one statement execution.

    Args:
        execution: AdapterResult returned by the adapter
    """

    def __init__(self, execution: AdapterResult):
        self._columns = tuple(execution.columns)
        self._rows = tuple(Row(self._columns, values) for values in execution.rows)
        self._row_count = execution.row_count
        self._cursor = 0

        self._shapes: Dict[OutputShape, Callable[..., Any]] = {
            OutputShape.OBJECT: self.as_object,
            OutputShape.ARRAY: self.as_array,
            OutputShape.ASSOC: self.as_assoc,
        }

    # -------------------------------------------------------------------------
    # Cursor access
    # -------------------------------------------------------------------------

    def _select(self, offset: Optional[int]) -> Union[Row, _Sentinel]:
        if offset is None:
            if self._cursor >= len(self._rows):
                return NOT_FOUND
            row = self._rows[self._cursor]
            self._cursor += 1
            return row

        if not 0 <= offset < len(self._rows):
            return NOT_FOUND
        return self._rows[offset]

    def _accessor(self, shape: Union[OutputShape, str]) -> Callable[..., Any]:
        return self._shapes[OutputShape(shape)]

    def row(self, offset: Optional[int] = None, shape: Union[OutputShape, str] = OutputShape.OBJECT) -> Any:
        """
        Return one row in the requested shape.

        Without ``offset`` the row under the cursor is returned and the
        cursor advances by one. With ``offset`` that row is returned and the
        cursor does not move. ``NOT_FOUND`` if the row does not exist.
        """
        return self._accessor(shape)(False, offset)

    def all(self, shape: Union[OutputShape, str] = OutputShape.OBJECT) -> List[Any]:
        """Return every row in the requested shape. The cursor does not move."""
        return self._accessor(shape)(True)

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def as_object(self, all_rows: bool = False, offset: Optional[int] = None) -> Any:
        """Row objects; see row() for the cursor rule."""
        if all_rows:
            return list(self._rows)
        return self._select(offset)

    def as_array(self, all_rows: bool = False, offset: Optional[int] = None) -> Any:
        """Lists of column values; see row() for the cursor rule."""
        if all_rows:
            return [list(row.values_tuple) for row in self._rows]
        row = self._select(offset)
        return list(row.values_tuple) if row is not NOT_FOUND else NOT_FOUND

    def as_assoc(self, all_rows: bool = False, offset: Optional[int] = None) -> Any:
        """Dicts of column name -> value; see row() for the cursor rule."""
        if all_rows:
            return [dict(row) for row in self._rows]
        row = self._select(offset)
        return dict(row) if row is not NOT_FOUND else NOT_FOUND

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def row_count(self) -> int:
        """
        Rows affected (INSERT/UPDATE/DELETE) or returned (SELECT).

        Engines that report no count for a SELECT fall back to the number of
        materialized rows.
        """
        if self._row_count is None or self._row_count < 0:
            return len(self._rows)
        return self._row_count

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    @property
    def cursor(self) -> int:
        return self._cursor

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"<QueryResult rows={len(self._rows)} cursor={self._cursor}>"
