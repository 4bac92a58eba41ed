"""Query plan nodes that compute aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data stored in datasets.

The aggregate node is in charge of computing
those aggregations and projecting them as new
columns in a query pipeline.

Typically the aggregate node will group the data
by a set of columns and then compute the aggregations

For example, given the following data::

    city, shop, n_employees
    New York, Shop A, 10
    New York, Shop B, 15
    Los Angeles, Shop C, 8
    Los Angeles, Shop D, 12
    New York, Shop E, 20

We could group by city and compute the sum of the employees
to get::

    city, total_employees
    Los Angeles, 20
    New York, 45

When no grouping column is provided, the whole table
is a single group and the result has exactly one row.
"""

import abc
import logging
from typing import Any, Callable, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from .across import Across
from .base import QueryPlanNode, as_py_value, values_to_array

__all__ = (
    "AggregateNode",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
    "FunctionAggregation",
)

logger = logging.getLogger(__name__)


def _group_sort_key(key: tuple) -> tuple:
    # Null keys are sorted after all the other values.
    return tuple((v is None, v) for v in key)


class AggregateNode(QueryPlanNode):
    """Group data and compute aggregations.

    >>> import pyarrow as pa
    >>> from pywrangle.compute import SumAggregation, PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    'city': pa.array(['New York', 'New York', 'Los Angeles', 'Los Angeles', 'New York']),
    ...    'shop': pa.array(['Shop A', 'Shop B', 'Shop C', 'Shop D', 'Shop E']),
    ...    'n_employees': pa.array([10, 15, 8, 12, 20])
    ... })
    >>> aggregate = AggregateNode(["city"], {"total_employees": SumAggregation("n_employees")}, PyArrowTableDataSource(data))
    >>> next(aggregate.batches()).to_pydict()
    {'city': ['Los Angeles', 'New York'], 'total_employees': [20, 45]}

    Groups are emitted sorted by their keys.
    Aggregations can also be provided through ``across()``,
    in which case the grouping columns are never aggregated.
    """

    def __init__(
        self,
        keys: list[str],
        aggregations: dict[str, "Aggregation"] | Iterable[dict[str, "Aggregation"] | Across],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: The columns to group by, ``[]`` to aggregate the whole data.
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation},
                             or a list of them and of ``across()`` transformations.
        :param child: The child node that will provide the data to aggregate.
        """
        if isinstance(aggregations, dict):
            aggregations = [aggregations]
        self.keys = list(keys)
        self.aggregations = list(aggregations)
        self.child = child

    def __str__(self) -> str:
        aggregations = self.aggregations[0] if len(self.aggregations) == 1 else self.aggregations
        return f"AggregateNode(keys={self.keys}, aggregations={aggregations}, {self.child})"

    def _resolve(self, schema: pa.Schema) -> dict[str, "Aggregation"]:
        resolved = {}
        for item in self.aggregations:
            if isinstance(item, Across):
                for name, (column, func) in item.resolve(schema, exclude=self.keys).items():
                    resolved[name] = FunctionAggregation(column, func)
            else:
                resolved.update(item)
        return resolved

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Compute the aggregations for each group.

        Compute separate aggregation results for each batch.
        This makes so that we need to keep in memory only one batch
        at the time, and the aggregation results, which are far smaller::

            chunks_data = {key_value: {aggr_name: [aggr_value1, aggr_value2, ...]}}

        Once all batches are consumed, the partial results of each
        group are reduced to the final result.
        """
        aggregations = None
        schema = None
        chunks_data: dict[tuple, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            if aggregations is None:
                schema = batch.schema
                aggregations = self._resolve(schema)
            for key, rows in self.group_rows(batch).items():
                group = batch.take(pa.array(rows, type=pa.int64()))
                group_data = chunks_data.setdefault(key, {})
                for name, aggregation in aggregations.items():
                    group_data.setdefault(name, []).append(
                        aggregation.compute_chunk(group)
                    )

        logger.debug("Aggregated %d groups by %s", len(chunks_data), self.keys)
        yield self.reduce_aggregations(schema, aggregations, chunks_data)

    def group_rows(self, batch: pa.RecordBatch) -> dict[tuple, list[int]]:
        """Find which rows of the batch belong to each group.

        With no grouping keys all rows belong to the same group.
        """
        if not self.keys:
            return {(): list(range(batch.num_rows))}
        groups: dict[tuple, list[int]] = {}
        columns = [batch.column(k).to_pylist() for k in self.keys]
        for row_idx, key in enumerate(zip(*columns)):
            groups.setdefault(key, []).append(row_idx)
        return groups

    def reduce_aggregations(
        self,
        schema: pa.Schema,
        aggregations: dict[str, "Aggregation"],
        chunks_data: dict[tuple, dict[str, list[Any]]],
    ) -> pa.RecordBatch:
        """Reduce the partial aggregation results to the final aggregation results.

        For example if we had 3 chunks and the chunks_data is::

            {("New York",): {"total_employees": [10, 20, 30]}}

        The result will be::

            {"city": ["New York"], "total_employees": [60]}
        """
        result_batch_data: dict[str, list[Any]] = {
            **{k: [] for k in self.keys},
            **{k: [] for k in aggregations},
        }
        for keyvalue in sorted(chunks_data, key=_group_sort_key):
            aggregated_values = chunks_data[keyvalue]
            for i, key in enumerate(self.keys):
                result_batch_data[key].append(keyvalue[i])
            for aggrname, aggregation in aggregations.items():
                result_batch_data[aggrname].append(
                    aggregation.reduce(aggregated_values[aggrname])
                )

        arrays = [
            pa.array(result_batch_data[k], type=schema.field(k).type) for k in self.keys
        ]
        for aggrname, aggregation in aggregations.items():
            array = values_to_array(result_batch_data[aggrname])
            if array.type == pa.null():
                # No group or only nulls, the type comes from aggregating no rows.
                array = array.cast(aggregation.result_type(schema))
            arrays.append(array)
        return pa.RecordBatch.from_arrays(arrays, names=list(result_batch_data))


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation is expected to implement
    a method to compute any needed intermediate results
    on a single chunk of data and then provide a reduce method
    to combine the intermediate results into a final result.
    """

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> Any: ...

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        """The type of the result, found by aggregating no rows."""
        empty = pa.RecordBatch.from_pylist([], schema=schema)
        return values_to_array([self.reduce([self.compute_chunk(empty)])]).type


class SimpleAggregation(Aggregation):
    """Provide a base implementation for simple aggregations like min,max,sum.

    Simple aggregations are those where the function applied to compute
    intermediate results for a single chunk of data is the same as the function
    applied to combine the intermediate results into the final.

    For example ``sum([1, 2, 3])`` is the same as ``sum([sum([1, 2]), 3])``.
    """

    @abc.abstractmethod
    def _aggregate(self, data: Any) -> Any: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return self._aggregate(batch.column(self.column))

    def reduce(self, chunks: list[Any]) -> pa.Scalar:
        values = [as_py_value(c) for c in chunks]
        if all(v is None for v in values):
            # The null result of the first chunk, which has the right type.
            return chunks[0]
        return self._aggregate(pa.array(values))


class SumAggregation(SimpleAggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.sum(data)


class MinAggregation(SimpleAggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.max(data)


class CountAggregation(Aggregation):
    """Compute the count of an aggregated column.

    This is based on computing the counts for each intermediate batch
    and then sum them to compute the final result.
    Null values are not counted, unless no column is provided,
    in which case the rows themselves are counted.
    """

    def __init__(self, column: str | None = None) -> None:
        super().__init__(column)

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        """Compute the count of the column in a single batch."""
        if self.column is None:
            return batch.num_rows
        return pc.count(batch.column(self.column)).as_py()

    def reduce(self, chunks: list[Any]) -> int:
        """Sum the counts of all intermediate results to the final count."""
        return sum(chunks)


class MeanAggregation(Aggregation):
    """Compute the mean of an aggregated column.

    This is based by computing count and sum of the column
    for each intermediate batch and then dividing
    the sum of all intermediate results by the count
    of all intermediate results.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        """Compute the count and sum of the column in a single batch."""
        col = batch.column(self.column)
        return (pc.count(col).as_py(), as_py_value(pc.sum(col)))

    def reduce(self, chunks: list[tuple[int, Any]]) -> float | pa.Scalar:
        """Compute the mean of the column from the intermediate sums and counts."""
        count = sum(chunk[0] for chunk in chunks)
        total = sum(chunk[1] for chunk in chunks if chunk[1] is not None)
        if count == 0:
            return pa.scalar(None, type=pa.float64())
        return total / count


class FunctionAggregation(Aggregation):
    """Aggregate a column with any function.

    As there is no way to know how to combine the partial
    results of an arbitrary function, the data of each chunk
    is retained and the function is only applied once all
    the chunks of a group have been collected.

    This is what ``across()`` relies on to aggregate the
    selected columns, so that functions like :func:`pyarrow.compute.mean`
    or :func:`pyarrow.compute.max` can be used directly.
    """

    def __init__(self, column: str, func: Callable) -> None:
        """
        :param column: The column to aggregate.
        :param func: A function reducing an array to a single value.
        """
        super().__init__(column)
        self.func = func

    def __str__(self) -> str:
        return f"FunctionAggregation({self.column}, {getattr(self.func, '__name__', self.func)})"

    __repr__ = __str__

    def compute_chunk(self, batch: pa.RecordBatch) -> pa.Array:
        return batch.column(self.column)

    def reduce(self, chunks: list[pa.Array]) -> Any:
        return self.func(pa.concat_arrays(chunks))
