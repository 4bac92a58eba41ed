"""Query plan nodes that treat the rows of two tables as sets.

Set operations compare whole rows: two rows are equal when
all their columns have the same values. For this reason
the two tables must have the same columns, even though
they don't need to be in the same order.

* ``intersect`` the rows existing in both tables.
* ``union`` the rows existing in any of the two tables.
* ``union_all`` all the rows of both tables, duplicates included.
* ``setdiff`` the rows of the left table that are not in the right table.
* ``symdiff`` the rows that exist in only one of the two tables.

Apart from ``union_all``, the result never contains
duplicated rows. Rows are emitted in the order they are
first met, left table first.

>>> import pyarrow as pa
>>> from pywrangle.compute import PyArrowTableDataSource
>>> x = PyArrowTableDataSource(pa.record_batch({"a": [1, 2, 2, 3]}))
>>> y = PyArrowTableDataSource(pa.record_batch({"a": [3, 4]}))
>>> next(SetOperationNode("setdiff", x, y).batches()).to_pydict()
{'a': [1, 2]}
>>> next(SetOperationNode("union", x, y).batches()).to_pydict()
{'a': [1, 2, 3, 4]}
"""

import logging
from typing import Any

import pyarrow as pa

from .base import QueryPlanNode, collect_batch, table_to_batch
from .rownames import drop_rownames

logger = logging.getLogger(__name__)


class IncompatibleTablesError(ValueError):
    """The two tables don't have the same columns."""


def row_tuples(batch: pa.RecordBatch) -> list[tuple[Any, ...]]:
    """Get the values of each row as a tuple."""
    columns = [column.to_pylist() for column in batch.columns]
    return list(zip(*columns))


def _unique_indices(rows: list[tuple], exclude: set | None = None, seen: set | None = None) -> list[int]:
    """Indices of the first occurrence of each row not in ``exclude``.

    ``seen`` is updated with the emitted rows, so that it can be shared
    across multiple calls to avoid emitting twice the same row.
    """
    exclude = exclude or set()
    seen = set() if seen is None else seen
    indices = []
    for idx, row in enumerate(rows):
        if row in seen or row in exclude:
            continue
        seen.add(row)
        indices.append(idx)
    return indices


class SetOperationNode(QueryPlanNode):
    """Combine the rows of two tables as if they were sets.

    Both children are fully loaded in memory, then each
    row is converted to a tuple of python values so that
    rows can be compared and hashed as a whole.

    The right table is reordered to have the columns in
    the same order of the left table and cast to the same types,
    so that the resulting rows can be concatenated.
    Row names are not part of the rows and are dropped.
    """

    OPERATIONS = ("intersect", "union", "union_all", "setdiff", "symdiff")

    def __init__(self, operation: str, left_child: QueryPlanNode, right_child: QueryPlanNode) -> None:
        """
        :param operation: One of ``intersect``, ``union``, ``union_all``, ``setdiff``, ``symdiff``.
        :param left_child: The first table.
        :param right_child: The second table.
        """
        if operation not in self.OPERATIONS:
            raise ValueError(
                f"Unsupported set operation {operation!r}, expected one of {self.OPERATIONS}"
            )
        self.operation = operation
        self.left_child = left_child
        self.right_child = right_child

    def __str__(self) -> str:
        return f"SetOperationNode({self.operation}, left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        left_rb = drop_rownames(collect_batch(self.left_child))
        right_rb = self._conform(
            left_rb.schema, drop_rownames(collect_batch(self.right_child))
        )

        if self.operation == "union_all":
            yield self._concat(left_rb, right_rb)
            return

        left_rows = row_tuples(left_rb)
        right_rows = row_tuples(right_rb)

        if self.operation == "intersect":
            left_idx = _unique_indices(
                left_rows, exclude=set(left_rows) - set(right_rows)
            )
            right_idx = []
        elif self.operation == "setdiff":
            left_idx = _unique_indices(left_rows, exclude=set(right_rows))
            right_idx = []
        elif self.operation == "symdiff":
            left_idx = _unique_indices(left_rows, exclude=set(right_rows))
            right_idx = _unique_indices(right_rows, exclude=set(left_rows))
        else:
            seen: set = set()
            left_idx = _unique_indices(left_rows, seen=seen)
            right_idx = _unique_indices(right_rows, seen=seen)

        logger.debug(
            "%s kept %d left rows and %d right rows",
            self.operation,
            len(left_idx),
            len(right_idx),
        )
        yield self._concat(
            left_rb.take(pa.array(left_idx, type=pa.int64())),
            right_rb.take(pa.array(right_idx, type=pa.int64())),
        )

    def _conform(self, schema: pa.Schema, batch: pa.RecordBatch) -> pa.RecordBatch:
        """Reorder and cast the columns of the batch to match the schema."""
        if sorted(schema.names) != sorted(batch.schema.names):
            missing = set(schema.names) ^ set(batch.schema.names)
            raise IncompatibleTablesError(
                f"{self.operation} requires both tables to have the same columns, "
                f"mismatching columns: {', '.join(sorted(missing))}"
            )
        return table_to_batch(pa.table(batch.select(schema.names)).cast(schema))

    def _concat(self, first: pa.RecordBatch, second: pa.RecordBatch) -> pa.RecordBatch:
        second = pa.RecordBatch.from_arrays(second.columns, schema=first.schema)
        return table_to_batch(pa.Table.from_batches([first, second]))
