"""Query plan nodes that implement projection of columns.

A common request when wrangling data is to select specific
columns and compute new columns based on expressions.
An example is the ``SELECT`` clause in SQL queries,
or the ``mutate`` verb of dataframe libraries.

This module implements the projection capabilities.
"""

from typing import Iterable, Iterator

import pyarrow as pa

from .across import Across
from .base import Expression, QueryPlanNode, collect_batch, with_column
from .rownames import rowname_columns

Projection = dict[str, Expression] | Iterable[dict[str, Expression] | Across]


class ProjectNode(QueryPlanNode):
    """Project data by selecting specific columns and computing expressions.

    The projection expects a list of column names to select and
    the new columns to compute. The new columns can be provided
    as a dictionary of column names and expressions, or as a list
    of such dictionaries and :func:`pywrangle.compute.across` transformations.

    Projected columns are computed in order, so a projected column
    can refer to the ones that were projected before it.
    Projecting a column that already exists replaces it.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from pywrangle.compute import col, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"a": [1, 2, 3], "b": [4, 5, 6]})
    >>> next(ProjectNode(["a"], {"ab_sum": FunctionCallExpression(pc.add, col("a"), col("b"))},
    ...                  PyArrowTableDataSource(data)).batches()).to_pydict()
    {'a': [1, 2, 3], 'ab_sum': [5, 7, 9]}

    When any of the expressions is a window expression, like a rank,
    all the batches of the child are merged before the projection,
    as the result for each row depends on all the other rows.

    The columns holding the row names are always kept,
    see :mod:`pywrangle.compute.rownames`.
    """

    def __init__(
        self,
        select: list[str] | None,
        project: Projection | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param select: The list of column names to select.
                       ``None`` means select all columns.
                       ``[]`` means select only the projected columns.
        :param project: The {name: Expression} to project new columns,
                        or a list of them and of ``across()`` transformations.
        :param child: The node emitting the data to be projected.
        """
        if project is None:
            project = []
        elif isinstance(project, dict):
            project = [project]
        self.select = select
        self.project = list(project)
        self.child = child

    def __str__(self) -> str:
        project = self.project[0] if len(self.project) == 1 else self.project
        return f"ProjectNode(select={self.select}, project={project}, child={self.child})"

    def _resolve(self, schema: pa.Schema) -> dict[str, Expression]:
        """Expand the ``across()`` transformations based on the schema."""
        expressions = {}
        for item in self.project:
            if isinstance(item, Across):
                expressions.update(item.expressions(schema))
            else:
                expressions.update(item)
        return expressions

    def _needs_all_rows(self) -> bool:
        return any(
            isinstance(item, dict) and any(e.is_window() for e in item.values())
            for item in self.project
        )

    def batches(self) -> Iterator[pa.RecordBatch]:
        """Apply the projection to the child node.

        For each recordbatch yielded by the child node,
        sequentially apply the expressions to project new columns
        and then select the requested columns.
        """
        if self._needs_all_rows():
            child_batches = [collect_batch(self.child)]
        else:
            child_batches = self.child.batches()

        for batch in child_batches:
            expressions = self._resolve(batch.schema)
            for name, expr in expressions.items():
                batch = with_column(batch, name, expr.apply(batch))

            if self.select is not None:
                # in case select=[] it will only provide the project columns.
                restrict_columns = list(
                    dict.fromkeys(
                        self.select
                        + list(expressions.keys())
                        + rowname_columns(batch.schema)
                    )
                )
                batch = batch.select(restrict_columns)

            yield batch
