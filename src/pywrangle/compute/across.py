"""Apply the same transformation to multiple columns.

When the same operation has to be performed on many columns,
like rounding all the numeric columns or computing the mean
of every measure, writing one expression per column is tedious
and error prone.

:func:`across` describes the operation once, together with
the columns it has to be applied to, and is expanded to one
expression per column when the schema of the data is known:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> schema = pa.schema([("name", pa.string()), ("height", pa.float64()), ("mass", pa.float64())])
>>> list(across(where(pa.types.is_floating), pc.round).expressions(schema))
['height', 'mass']
>>> list(across(["height", "mass"], {"min": pc.min, "max": pc.max}).expressions(schema))
['height_min', 'height_max', 'mass_min', 'mass_max']
>>> list(across(starts_with("h"), pc.round, names="rounded_{col}").expressions(schema))
['rounded_height']

Columns can be selected by name or by a *selector*: a function
that receives a :class:`pyarrow.Field` and returns ``True``
for the fields that have to be selected.

The names of the resulting columns are generated from a template
where ``{col}`` is replaced by the column name and ``{fn}`` by
the name of the function. When a single function is provided
the default template is ``{col}``, so the columns are replaced
by their transformed version, when multiple functions are provided
the default template is ``{col}_{fn}``.
"""

import re
from collections.abc import Mapping
from typing import Callable, Iterable

import pyarrow as pa

from .base import ColumnRef, Expression
from .expressions import FunctionCallExpression

Selector = Callable[[pa.Field], bool]
ColumnsSelection = str | Iterable[str] | Selector


def everything() -> Selector:
    """Select all columns."""
    return lambda field: True


def starts_with(prefix: str) -> Selector:
    """Select the columns whose name starts with ``prefix``."""
    return lambda field: field.name.startswith(prefix)


def ends_with(suffix: str) -> Selector:
    """Select the columns whose name ends with ``suffix``."""
    return lambda field: field.name.endswith(suffix)


def contains(text: str) -> Selector:
    """Select the columns whose name contains ``text``."""
    return lambda field: text in field.name


def matches(pattern: str) -> Selector:
    """Select the columns whose name matches the ``pattern`` regular expression."""
    regex = re.compile(pattern)
    return lambda field: regex.search(field.name) is not None


def where(predicate: Callable[[pa.DataType], bool]) -> Selector:
    """Select the columns whose type satisfies the predicate.

    Predicates from :mod:`pyarrow.types` are a natural fit,
    for example ``where(pyarrow.types.is_integer)``.
    """
    return lambda field: bool(predicate(field.type))


def resolve_columns(columns: ColumnsSelection, schema: pa.Schema) -> list[str]:
    """Get the names of the selected columns in the schema.

    :param columns: A column name, a list of names, or a selector.
    :param schema: The schema to select the columns from.
    """
    if isinstance(columns, str):
        columns = [columns]
    if callable(columns):
        return [field.name for field in schema if columns(field)]

    columns = list(columns)
    for name in columns:
        if name not in schema.names:
            raise ValueError(f"Can't select column '{name}', it doesn't exist")
    return columns


class Across:
    """Transformation of multiple columns by one or more functions.

    The functions receive the data of a column and are
    expected to return new data. They can be
    :mod:`pyarrow.compute` functions or any callable
    working on :class:`pyarrow.Array`.
    """

    def __init__(
        self,
        columns: ColumnsSelection,
        funcs: Callable | Mapping[str, Callable],
        names: str | None = None,
    ) -> None:
        """
        :param columns: The columns to transform, names or a selector.
        :param funcs: A function or a ``{name: function}`` mapping.
        :param names: The template of the resulting column names.
        """
        if isinstance(funcs, Mapping):
            self.funcs = dict(funcs)
            default_names = "{col}_{fn}"
        elif callable(funcs):
            self.funcs = {getattr(funcs, "__name__", "fn"): funcs}
            default_names = "{col}"
        else:
            raise ValueError(f"across expects a function or a mapping of functions, got {funcs!r}")
        self.columns = columns
        self.names = names or default_names

    def __str__(self) -> str:
        return f"Across({self.columns}, fns={list(self.funcs)}, names={self.names!r})"

    __repr__ = __str__

    def resolve(
        self, schema: pa.Schema, exclude: Iterable[str] = ()
    ) -> dict[str, tuple[str, Callable]]:
        """Expand the selection to ``{new_name: (column, function)}``.

        :param schema: The schema of the data the transformation is applied to.
        :param exclude: Columns that must never be selected,
                        like the grouping keys of an aggregation.
        """
        exclude = set(exclude)
        resolved: dict[str, tuple[str, Callable]] = {}
        for column in resolve_columns(self.columns, schema):
            if column in exclude:
                continue
            for fn_name, func in self.funcs.items():
                try:
                    name = self.names.format(col=column, fn=fn_name)
                except (KeyError, IndexError) as err:
                    raise ValueError(
                        f"Invalid names template {self.names!r}, "
                        "only {col} and {fn} are supported"
                    ) from err
                if name in resolved:
                    raise ValueError(
                        f"across would create column '{name}' more than once, "
                        "provide a names template that includes {fn}"
                    )
                resolved[name] = (column, func)
        return resolved

    def expressions(self, schema: pa.Schema, exclude: Iterable[str] = ()) -> dict[str, Expression]:
        """Expand the selection to ``{new_name: Expression}``."""
        return {
            name: FunctionCallExpression(func, ColumnRef(column))
            for name, (column, func) in self.resolve(schema, exclude).items()
        }


def across(
    columns: ColumnsSelection,
    funcs: Callable | Mapping[str, Callable],
    names: str | None = None,
) -> Across:
    """Apply ``funcs`` to each of the selected ``columns``.

    See :class:`Across` for the details.
    """
    return Across(columns, funcs, names)
