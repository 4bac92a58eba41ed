"""Query plan nodes that implement filtering of rows.

A common request when wrangling data is to keep only
the rows that respect a specific condition.
An example is the ``WHERE`` condition in SQL queries.

This module implements the basic filtering capabilities.
"""

import pyarrow.compute as pc

from .base import QueryPlanNode, collect_batch
from .expressions import Expression


class FilterNode(QueryPlanNode):
    """Filter data based on a predicate expression.

    The filter expects an expression that when applied
    to the batch of data being filtered returns ``true``
    or ``false`` for each row in the data to mark which
    rows have to be preserved and which rows have to be discarded.
    Rows for which the predicate is null are discarded.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from pywrangle.compute import col, lit, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"values": [1, 2, 3, 4, 5]})
    >>> predicate = FunctionCallExpression(pc.greater, col("values"), lit(3))
    >>> # predicate is a function that returns true for values greater than 3
    >>> predicate.apply(data).to_pylist()
    [False, False, False, True, True]
    >>> next(FilterNode(predicate, PyArrowTableDataSource(data)).batches()).to_pydict()
    {'values': [4, 5]}

    Filtering on a window expression, like keeping the rows
    with the top ranks, loads all rows before filtering them.
    """

    def __init__(self, expression: Expression, child: QueryPlanNode) -> None:
        """
        :param expression: The predicate expression to filter with.
        :param child: The node emitting the data to be filtered.
        """
        self.expression = expression
        self.child = child

    def __str__(self) -> str:
        return f"FilterNode(filter={self.expression}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the filtering to the child node.

        For each recordbatch yielded by the child node,
        apply the expression and get back a mask
        (an array of only true/false values).

        Based on the mask filter the rows of the batch
        and return only those matching the filter.
        """
        if self.expression.is_window():
            child_batches = [collect_batch(self.child)]
        else:
            child_batches = self.child.batches()

        for batch in child_batches:
            mask = self.expression.apply(batch)
            yield batch.filter(pc.fill_null(mask, False))
