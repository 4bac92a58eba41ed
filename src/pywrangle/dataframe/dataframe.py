"""The Dataframe object itself."""
from typing import Any, Iterable, Self

import pyarrow as pa

from ..compute import (
  AggregateNode,
  AntiJoinNode,
  CSVDataSource,
  DistinctNode,
  FilterNode,
  JoinNode,
  ProjectNode,
  PyArrowTableDataSource,
  RowIdToColumnNode,
  RowNamesToColumnNode,
  RowwiseNode,
  SemiJoinNode,
  SetOperationNode,
  SortNode,
)
from ..compute.across import Across
from ..compute.aggregate import Aggregation
from ..compute.base import QueryPlanNode
from ..compute.expressions import Expression
from ..compute.join import JoinKeys
from ..utils import tabulate


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and perform transformations over it.

  The pywrangle dataframe object is lazy, which means that
  any transformation or analysis will be applied only when the
  ``.collect()`` method will be invoked and no data is kept
  in memory until that moment (unless it already was).

  >>> import pyarrow as pa
  >>> from pywrangle.compute import min_rank
  >>> df = Dataframe(pa.table({"name": ["a", "b", "c"], "score": [10, 30, 20]}))
  >>> df.mutate(rank=min_rank("score", descending=True)).arrange("rank").to_arrow().to_pydict()
  {'name': ['b', 'c', 'a'], 'score': [30, 20, 10], 'rank': [1, 2, 3]}
  """
  def __init__(self, node_or_table: QueryPlanNode|pa.Table|pa.RecordBatch) -> None:
    """
    :param node_or_table: A compute node expected to emit
                          the data for the dataframe or a `pyarrow.Table`.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  def __str__(self) -> str:
    return tabulate.tabulate(self.to_arrow())

  @classmethod
  def open_csv(cls, filename: str) -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    """
    return cls(CSVDataSource(filename))

  @classmethod
  def from_pandas(cls, df: Any) -> Self:
    """Create a Dataframe from a :class:`pandas.DataFrame`.

    The index of the pandas DataFrame is preserved as
    row names, see :meth:`rownames_to_column`.
    It is always stored as a column, even a ``RangeIndex``,
    so that each row keeps its label when other rows are filtered out.
    """
    return cls(pa.Table.from_pandas(df, preserve_index=True))

  def filter(self, expression: Expression) -> Self:
    """Apply a filter to the data and return a new Dataframe.

    The returned dataframe will only contain the data that
    matches the filter predicate.

    :param expression: The expression representing the predicate.
                       for example `A > B`.
    """
    return self.__class__(FilterNode(expression, self.node))

  def select(self, *columns: str) -> Self:
    """Keep only the provided columns, in the provided order."""
    return self.__class__(ProjectNode(list(columns), None, self.node))

  def mutate(self, *transformations: Across, **columns: Expression) -> Self:
    """Add new columns, or replace existing ones.

    :param transformations: ``across()`` transformations to apply.
    :param columns: The new columns as ``name=expression``.
    """
    project = list(transformations)
    if columns:
      project.append(columns)
    return self.__class__(ProjectNode(None, project, self.node))

  def arrange(self, *keys: str, descending: bool | list[bool] = False) -> Self:
    """Sort the rows by the provided columns.

    :param keys: The columns to sort by.
    :param descending: One flag for all the columns or one for each column.
    """
    if isinstance(descending, bool):
      descending = [descending] * len(keys)
    return self.__class__(SortNode(list(keys), descending, self.node))

  def summarise(
    self,
    *transformations: Across,
    by: Iterable[str] = (),
    **aggregations: Aggregation,
  ) -> Self:
    """Reduce each group of rows to a single row.

    :param transformations: ``across()`` transformations to aggregate multiple columns.
    :param by: The columns to group by, none to summarise the whole data.
    :param aggregations: The new columns as ``name=Aggregation``.
    """
    items = list(transformations)
    if aggregations:
      items.append(aggregations)
    return self.__class__(AggregateNode(list(by), items, self.node))

  def _join(self, other: "Dataframe", by: JoinKeys, how: str, **options: Any) -> Self:
    return self.__class__(JoinNode(self.node, other.node, by=by, how=how, **options))

  def inner_join(self, other: "Dataframe", by: JoinKeys = None, **options: Any) -> Self:
    """Keep only the rows with a match in both dataframes.

    See :class:`pywrangle.compute.JoinNode` for the options.
    """
    return self._join(other, by, "inner", **options)

  def left_join(self, other: "Dataframe", by: JoinKeys = None, **options: Any) -> Self:
    """Keep all the rows of this dataframe, adding the matching data of ``other``."""
    return self._join(other, by, "left", **options)

  def right_join(self, other: "Dataframe", by: JoinKeys = None, **options: Any) -> Self:
    """Keep all the rows of ``other``, adding the matching data of this dataframe."""
    return self._join(other, by, "right", **options)

  def full_join(self, other: "Dataframe", by: JoinKeys = None, **options: Any) -> Self:
    """Keep all the rows of both dataframes."""
    return self._join(other, by, "full", **options)

  def semi_join(self, other: "Dataframe", by: JoinKeys = None, na_matches: str = "never") -> Self:
    """Keep the rows that have a match in ``other``, without adding columns."""
    return self.__class__(SemiJoinNode(self.node, other.node, by=by, na_matches=na_matches))

  def anti_join(self, other: "Dataframe", by: JoinKeys = None, na_matches: str = "never") -> Self:
    """Keep the rows that have no match in ``other``."""
    return self.__class__(AntiJoinNode(self.node, other.node, by=by, na_matches=na_matches))

  def intersect(self, other: "Dataframe") -> Self:
    """The distinct rows existing in both dataframes."""
    return self.__class__(SetOperationNode("intersect", self.node, other.node))

  def union(self, other: "Dataframe") -> Self:
    """The distinct rows existing in any of the dataframes."""
    return self.__class__(SetOperationNode("union", self.node, other.node))

  def union_all(self, other: "Dataframe") -> Self:
    """All the rows of both dataframes, duplicates included."""
    return self.__class__(SetOperationNode("union_all", self.node, other.node))

  def setdiff(self, other: "Dataframe") -> Self:
    """The distinct rows of this dataframe that are not in ``other``."""
    return self.__class__(SetOperationNode("setdiff", self.node, other.node))

  def symdiff(self, other: "Dataframe") -> Self:
    """The distinct rows that exist in only one of the dataframes."""
    return self.__class__(SetOperationNode("symdiff", self.node, other.node))

  def distinct(self, *keys: str, keep_all: bool = False) -> Self:
    """Remove duplicated rows, keeping the first one.

    :param keys: The columns identifying duplicates, none to compare whole rows.
    :param keep_all: Keep all columns instead of only the ``keys``.
    """
    return self.__class__(DistinctNode(list(keys), self.node, keep_all=keep_all))

  def rownames_to_column(self, var: str = "rowname") -> Self:
    """Move the row names in a new first column named ``var``."""
    return self.__class__(RowNamesToColumnNode(var, self.node))

  def rowid_to_column(self, var: str = "rowid") -> Self:
    """Add a first column named ``var`` with the row numbers."""
    return self.__class__(RowIdToColumnNode(var, self.node))

  def rowwise(self, *id_columns: str) -> "RowwiseDataframe":
    """Compute the following operations one row at the time.

    :param id_columns: The columns identifying each row,
                       kept when summarising.
    """
    return RowwiseDataframe(self, list(id_columns))

  def collect(self) -> Self:
    """Collect all data of the dataframe in memory.

    Returns a new Dataframe that has all data from the
    previous dataframe eagerly loaded in memory.
    """
    return self.__class__(self.to_arrow())

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    return pa.Table.from_batches(list(self.node.batches()))


class RowwiseDataframe:
  """A Dataframe where each row is its own group.

  Only supports the operations whose behavior changes
  when applied row by row, ``mutate`` and ``summarise``.

  >>> import pyarrow as pa
  >>> import pyarrow.compute as pc
  >>> from pywrangle.compute import c_across, starts_with
  >>> df = Dataframe(pa.table({"id": [1, 2], "w1": [3, 10], "w2": [7, 4]}))
  >>> df.rowwise("id").summarise(total=c_across(starts_with("w"), pc.sum)).to_arrow().to_pydict()
  {'id': [1, 2], 'total': [10, 14]}
  """
  def __init__(self, df: Dataframe, id_columns: list[str]) -> None:
    self.df = df
    self.id_columns = id_columns

  def mutate(self, **columns: Expression) -> Dataframe:
    """Add the columns computed for each row to all the existing ones."""
    return self.df.__class__(RowwiseNode(columns, self.df.node))

  def summarise(self, **columns: Expression) -> Dataframe:
    """Keep only the id columns and the columns computed for each row."""
    return self.df.__class__(RowwiseNode(columns, self.df.node, id_columns=self.id_columns))
