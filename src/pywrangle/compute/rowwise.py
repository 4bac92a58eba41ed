"""Query plan nodes that compute aggregations row by row.

Aggregations usually work down the columns: the sum of a column
is the sum of the values of all its rows. Sometimes the need
is instead to aggregate across the columns, like computing for
each student the mean of the marks stored in one column per exam.

The trick is to treat each row as a group on its own, containing
only that row, and compute the aggregation within it.
:func:`c_across` gathers the values of the selected columns of
the row into a single array and reduces it with a function:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> from pywrangle.compute import PyArrowTableDataSource
>>> marks = PyArrowTableDataSource(pa.record_batch({
...     "student": ["Ann", "Bob"], "w1": [7, 9], "w2": [8, 5], "w3": [9, None]
... }))
>>> node = RowwiseNode({"best": c_across(["w1", "w2", "w3"], pc.max)}, marks, id_columns=["student"])
>>> next(node.batches()).to_pydict()
{'student': ['Ann', 'Bob'], 'best': [9, 9]}

Computing row by row means calling the function once per row,
which is far slower than a single vectorized call on whole columns.
When a vectorized equivalent exists, like ``pc.max_element_wise``
for the example above, it should be preferred on large data.
"""

import logging
from typing import Any, Callable

import pyarrow as pa

from .across import ColumnsSelection, resolve_columns
from .base import Expression, QueryPlanNode, values_to_array, with_column
from .rownames import rowname_columns

logger = logging.getLogger(__name__)


class CAcrossExpression(Expression):
    """Combine the values of multiple columns of a row and reduce them.

    Meant to be applied to a batch containing a single row,
    the values of the selected columns are gathered in
    a :class:`pyarrow.Array` which is passed to the function.
    Arrow takes care of finding a common type for the values,
    like promoting integers to floats.
    """

    def __init__(self, columns: ColumnsSelection, func: Callable) -> None:
        """
        :param columns: The columns to combine, names or a selector.
        :param func: The function reducing the combined values.
        """
        self.columns = columns
        self.func = func

    def __str__(self) -> str:
        return f"CAcross({self.columns}, {getattr(self.func, '__name__', self.func)})"

    def apply(self, batch: pa.RecordBatch) -> Any:
        if batch.num_rows != 1:
            raise ValueError("c_across can only be applied to one row at the time")
        names = resolve_columns(self.columns, batch.schema)
        values = pa.array([batch.column(name)[0].as_py() for name in names])
        if values.type == pa.null() and names:
            # A row of nulls, keep the type of the columns.
            values = values.cast(batch.schema.field(names[0]).type)
        return self.func(values)


def c_across(columns: ColumnsSelection, func: Callable) -> CAcrossExpression:
    """Reduce with ``func`` the values of ``columns`` in each row."""
    return CAcrossExpression(columns, func)


class RowwiseNode(QueryPlanNode):
    """Compute expressions treating each row as a separate group.

    Each row of the batches is sliced into a one-row batch,
    the expressions are applied to it and the single value
    they return becomes the value of the row in the new column.

    When ``id_columns`` are provided only those columns are kept
    together with the computed ones, like summarising each row.
    Otherwise the computed columns are added to all the existing ones.
    """

    def __init__(
        self,
        aggregations: dict[str, Expression],
        child: QueryPlanNode,
        id_columns: list[str] | None = None,
    ) -> None:
        """
        :param aggregations: The new columns as ``{name: expression}``.
        :param child: The node emitting the rows to aggregate.
        :param id_columns: The columns identifying the rows to keep in the result.
        """
        self.aggregations = aggregations
        self.child = child
        self.id_columns = id_columns

    def __str__(self) -> str:
        return f"RowwiseNode(aggregations={self.aggregations}, id_columns={self.id_columns}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        for batch in self.child.batches():
            results: dict[str, list[Any]] = {name: [] for name in self.aggregations}
            for row_index in range(batch.num_rows):
                row = batch.slice(row_index, 1)
                for name, expr in self.aggregations.items():
                    results[name].append(expr.apply(row))
            logger.debug("Computed %d columns for %d rows", len(results), batch.num_rows)

            if self.id_columns is not None:
                batch = batch.select(
                    list(dict.fromkeys(self.id_columns + rowname_columns(batch.schema)))
                )
            for name, values in results.items():
                batch = with_column(batch, name, values_to_array(values))
            yield batch
