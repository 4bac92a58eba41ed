"""Query plan nodes that make row identifiers explicit.

Some tables identify their rows with *row names*, labels that
are not part of the data itself but are attached to each row,
like the index of a :class:`pandas.DataFrame`.

Arrow tables have no concept of row names, but when a pandas
DataFrame is converted to Arrow its index is preserved as a
column and described in the schema metadata, so that it can
be restored when converting back to pandas.

Row names are convenient for looking up rows, but they get
in the way of most operations: they can't be used as join
keys or grouping columns and are lost by many transformations.
The safest thing to do is to turn them in a regular column:

>>> import pandas as pd
>>> import pyarrow as pa
>>> from pywrangle.compute import PyArrowTableDataSource
>>> cars = pd.DataFrame({"mpg": [21.0, 22.8]}, index=["Mazda RX4", "Datsun 710"])
>>> source = PyArrowTableDataSource(pa.Table.from_pandas(cars))
>>> next(RowNamesToColumnNode("model", source).batches()).to_pydict()
{'model': ['Mazda RX4', 'Datsun 710'], 'mpg': [21.0, 22.8]}

Tables without row names are numbered starting from ``1``.

The other nodes treat the columns holding the row names as
hidden: they are carried along when other columns are selected,
but they never take part in comparisons between rows, like
joins, set operations or the search of duplicated rows.
"""

from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode


def index_columns(schema: pa.Schema) -> list[Any]:
    """The description of the row names stored in the schema by pandas.

    Each entry is either the name of the column holding
    the row names, or a dictionary describing a range of integers.
    """
    metadata = schema.pandas_metadata
    if not metadata:
        return []
    return list(metadata.get("index_columns", []))


def rowname_columns(schema: pa.Schema) -> list[str]:
    """The columns of the schema that hold the row names."""
    return [
        name for name in index_columns(schema)
        if isinstance(name, str) and name in schema.names
    ]


def data_columns(schema: pa.Schema) -> list[str]:
    """The columns of the schema that are not row names."""
    hidden = rowname_columns(schema)
    return [name for name in schema.names if name not in hidden]


def drop_rownames(batch: pa.RecordBatch) -> pa.RecordBatch:
    """Remove the row names of a batch.

    Both the columns holding them and the pandas metadata
    describing them are removed, other metadata is preserved.

    >>> import pandas as pd
    >>> table = pa.Table.from_pandas(pd.DataFrame({"x": [1]}, index=["a"]))
    >>> batch = drop_rownames(table.to_batches()[0])
    >>> batch.schema.names, batch.schema.pandas_metadata
    (['x'], None)
    """
    metadata = batch.schema.metadata
    if metadata is not None:
        metadata = {k: v for k, v in metadata.items() if k != b"pandas"} or None
    names = data_columns(batch.schema)
    schema = pa.schema([batch.schema.field(n) for n in names], metadata=metadata)
    return pa.RecordBatch.from_arrays([batch.column(n) for n in names], schema=schema)


class RowNamesToColumnNode(QueryPlanNode):
    """Move the row names into a new column placed first.

    The row names are always converted to strings, as labels.
    The columns that were storing the row names are dropped,
    so are the pandas metadata as the table has no index anymore.

    A :class:`pandas.RangeIndex` is not stored as a column,
    only its start and step are, so its labels are computed
    from the position of the rows. Rows removed before this node,
    like by a filter, would then shift the labels of the following ones.
    :meth:`pywrangle.dataframe.Dataframe.from_pandas` always stores
    the index as a column to preserve the original labels.
    """

    def __init__(self, var: str, child: QueryPlanNode) -> None:
        """
        :param var: The name of the new column.
        :param child: The node emitting the data with row names.
        """
        self.var = var
        self.child = child

    def __str__(self) -> str:
        return f"RowNamesToColumnNode({self.var}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        offset = 0
        for batch in self.child.batches():
            index = index_columns(batch.schema)
            stored = rowname_columns(batch.schema)
            columns = data_columns(batch.schema)
            if self.var in columns:
                raise ValueError(f"Column '{self.var}' already exists")

            if stored:
                rownames = pc.cast(batch.column(stored[0]), pa.string())
            elif index and isinstance(index[0], dict) and index[0].get("kind") == "range":
                start, step = index[0].get("start", 0), index[0].get("step", 1)
                rownames = pa.array(
                    [str(start + step * (offset + i)) for i in range(batch.num_rows)],
                    type=pa.string(),
                )
            else:
                rownames = pa.array(
                    [str(offset + i + 1) for i in range(batch.num_rows)],
                    type=pa.string(),
                )
            offset += batch.num_rows

            yield pa.RecordBatch.from_arrays(
                [rownames] + [batch.column(c) for c in columns],
                names=[self.var] + columns,
            )


class RowIdToColumnNode(QueryPlanNode):
    """Add a first column with the position of each row, starting from 1.

    >>> import pyarrow as pa
    >>> from pywrangle.compute import PyArrowTableDataSource
    >>> source = PyArrowTableDataSource(pa.record_batch({"x": ["a", "b"]}))
    >>> next(RowIdToColumnNode("id", source).batches()).to_pydict()
    {'id': [1, 2], 'x': ['a', 'b']}
    """

    def __init__(self, var: str, child: QueryPlanNode) -> None:
        """
        :param var: The name of the new column.
        :param child: The node emitting the data to number.
        """
        self.var = var
        self.child = child

    def __str__(self) -> str:
        return f"RowIdToColumnNode({self.var}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        offset = 0
        for batch in self.child.batches():
            if self.var in batch.schema.names:
                raise ValueError(f"Column '{self.var}' already exists")
            rowids = pa.array(list(range(offset + 1, offset + batch.num_rows + 1)), type=pa.int64())
            offset += batch.num_rows
            yield pa.RecordBatch.from_arrays(
                [rowids] + list(batch.columns),
                names=[self.var] + batch.schema.names,
            )
