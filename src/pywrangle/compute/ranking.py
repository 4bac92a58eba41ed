"""Window expressions that rank the values of a column.

Ranking is the act of assigning to each value its position
in the sorted column. The only interesting question is what
to do with ties, values that are equal and thus should
have the same position.

Three policies are provided:

* :func:`row_number` breaks ties by the position of the rows,
  so every row gets a different rank.
* :func:`min_rank` gives all the tied values the lowest rank
  they would get, and leaves a gap after them.
* :func:`dense_rank` gives all the tied values the same rank,
  but doesn't leave any gap.

>>> import pyarrow as pa
>>> batch = pa.record_batch({"x": [1, 1, 2, 2, 2, None]})
>>> row_number("x").apply(batch).to_pylist()
[1, 2, 3, 4, 5, None]
>>> min_rank("x").apply(batch).to_pylist()
[1, 1, 3, 3, 3, None]
>>> dense_rank("x").apply(batch).to_pylist()
[1, 1, 2, 2, 2, None]

Null values are never ranked, they can't be compared
with the other values so their rank is unknown.

On top of the ranks, it's frequently useful to know
where a value sits in proportion to the other values:

* :func:`percent_rank` rescales ``min_rank`` to the ``[0, 1]`` range.
* :func:`cume_dist` is the proportion of values less than or equal
  to the current one.

>>> percent_rank("x").apply(batch).to_pylist()
[0.0, 0.0, 0.5, 0.5, 0.5, None]
>>> cume_dist("x").apply(batch).to_pylist()
[0.4, 0.4, 1.0, 1.0, 1.0, None]

Last, :func:`ntile` splits the values into a number of buckets
of nearly equal size, the first buckets being the larger ones:

>>> ntile("x", 2).apply(batch).to_pylist()
[1, 1, 1, 2, 2, None]

As the rank of a value depends on all the other values,
all the ranking expressions are :class:`WindowExpression`
and are always applied to the whole table.
"""

import math

import pyarrow as pa
import pyarrow.compute as pc

from .base import ColumnRef, Expression, WindowExpression

__all__ = (
    "row_number",
    "min_rank",
    "dense_rank",
    "percent_rank",
    "cume_dist",
    "ntile",
)


class RankExpression(WindowExpression):
    """Base class for the ranking expressions.

    Takes care of resolving the ranked column and
    of computing the raw ranks through :func:`pyarrow.compute.rank`.
    """

    tiebreaker = "first"

    def __init__(self, column: str | Expression | None, descending: bool = False) -> None:
        """
        :param column: The column to rank, or an expression computing the values.
                       ``None`` ranks the rows by their position.
        :param descending: If the largest value should be ranked first.
        """
        if isinstance(column, str):
            column = ColumnRef(column)
        self.column = column
        self.descending = descending

    def __str__(self) -> str:
        direction = ", descending" if self.descending else ""
        return f"{self.__class__.__name__}({self.column}{direction})"

    def values(self, batch: pa.RecordBatch) -> pa.Array:
        """The values being ranked."""
        if self.column is None:
            return pa.array(list(range(batch.num_rows)), type=pa.int64())
        values = self.column.apply(batch)
        if isinstance(values, pa.ChunkedArray):
            values = values.combine_chunks()
        return values

    def ranks(self, values: pa.Array, tiebreaker: str | None = None) -> pa.Array:
        """Compute the int64 ranks of the values, nulls get a null rank.

        :param values: The values to rank.
        :param tiebreaker: How to rank equal values,
                           defaults to the one of the class.
        """
        ranks = pc.rank(
            values,
            sort_keys="descending" if self.descending else "ascending",
            null_placement="at_end",
            tiebreaker=tiebreaker or self.tiebreaker,
        )
        ranks = pc.cast(ranks, pa.int64())
        # pyarrow places nulls at the end and ranks them too,
        # but it makes no sense to rank an unknown value.
        return pc.if_else(pc.is_null(values), pa.scalar(None, pa.int64()), ranks)

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        return self.ranks(self.values(batch))


class RowNumber(RankExpression):
    """Rank the values breaking ties by position."""

    tiebreaker = "first"


class MinRank(RankExpression):
    """Rank the values giving ties the lowest rank."""

    tiebreaker = "min"


class DenseRank(RankExpression):
    """Rank the values giving ties the same rank without gaps."""

    tiebreaker = "dense"


class PercentRank(RankExpression):
    """Rescale the min rank to the 0 to 1 range.

    Computed as ``(min_rank - 1) / (n - 1)`` where ``n``
    is the number of non null values.
    """

    tiebreaker = "min"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        values = self.values(batch)
        ranks = pc.cast(self.ranks(values), pa.float64())
        n = pc.count(values).as_py()
        if n <= 1:
            # A lone value is both the first and the last one.
            return pc.if_else(
                pc.is_null(values), pa.scalar(None, pa.float64()), 0.0
            )
        return pc.divide(pc.subtract(ranks, 1.0), float(n - 1))


class CumeDist(RankExpression):
    """Proportion of values less than or equal to each value.

    Computed as ``max_rank / n``, as the max rank is the
    number of values that come before or are tied with the value.
    """

    tiebreaker = "max"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        values = self.values(batch)
        ranks = pc.cast(self.ranks(values), pa.float64())
        n = pc.count(values).as_py()
        if n == 0:
            return pa.nulls(len(values), type=pa.float64())
        return pc.divide(ranks, float(n))


class NTile(RankExpression):
    """Split the values in ``n`` buckets of nearly equal size.

    The buckets can't always have the same size, 10 values
    in 3 buckets can't be split evenly. In such case the first
    buckets get one additional value, so 10 values in 3 buckets
    lead to buckets of size 4, 3 and 3.

    Values are assigned to buckets following their row number,
    which means that tied values might end up in different buckets.

    Given ``len`` non null values, the first ``len % n`` buckets
    are the larger ones of size ``ceil(len / n)``, and all the
    others have size ``floor(len / n)``. Knowing at which row number
    the larger buckets end, the bucket of each row is computed by
    dividing the row number by the size of the bucket.
    """

    tiebreaker = "first"

    def __init__(
        self, column: str | Expression | None, n: int, descending: bool = False
    ) -> None:
        """
        :param column: The column whose values have to be split.
        :param n: The number of buckets.
        :param descending: If the largest values should go in the first bucket.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise ValueError(f"The number of buckets must be a positive integer, got {n!r}")
        super().__init__(column, descending)
        self.n = n

    def __str__(self) -> str:
        direction = ", descending" if self.descending else ""
        return f"NTile({self.column}, n={self.n}{direction})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        values = self.values(batch)
        row_numbers = self.ranks(values)
        length = pc.count(values).as_py()
        if length == 0:
            return pa.nulls(len(values), type=pa.int64())

        n_larger = length % self.n
        larger_size = math.ceil(length / self.n)
        smaller_size = length // self.n
        larger_threshold = larger_size * n_larger

        # Integer division of positive numbers, so it truncates like floor.
        larger_buckets = pc.divide(pc.add(row_numbers, larger_size - 1), larger_size)
        if smaller_size == 0:
            # Fewer values than buckets, each value gets its own bucket.
            return larger_buckets
        smaller_buckets = pc.add(
            pc.divide(
                pc.add(row_numbers, smaller_size - 1 - larger_threshold), smaller_size
            ),
            n_larger,
        )
        return pc.if_else(
            pc.less_equal(row_numbers, larger_threshold),
            larger_buckets,
            smaller_buckets,
        )


def row_number(column: str | Expression | None = None, descending: bool = False) -> RowNumber:
    """Rank with ties broken by position, without arguments number the rows."""
    return RowNumber(column, descending)


def min_rank(column: str | Expression, descending: bool = False) -> MinRank:
    """Rank with ties getting the lowest rank, leaves gaps after ties."""
    return MinRank(column, descending)


def dense_rank(column: str | Expression, descending: bool = False) -> DenseRank:
    """Rank with ties getting the same rank, no gaps."""
    return DenseRank(column, descending)


def percent_rank(column: str | Expression, descending: bool = False) -> PercentRank:
    """The min rank rescaled to ``[0, 1]``."""
    return PercentRank(column, descending)


def cume_dist(column: str | Expression, descending: bool = False) -> CumeDist:
    """The cumulative distribution of the values."""
    return CumeDist(column, descending)


def ntile(column: str | Expression | None, n: int, descending: bool = False) -> NTile:
    """Split the values in ``n`` nearly equal buckets."""
    return NTile(column, n, descending)
