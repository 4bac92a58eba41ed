"""Query plan nodes that remove duplicated rows.

Data frequently contains the same row more than once,
for example because the same record was loaded twice
or because a join matched multiple rows.

:class:`DistinctNode` keeps only the first occurrence
of each row, or of each combination of values
of a subset of columns:

>>> import pyarrow as pa
>>> from pywrangle.compute import PyArrowTableDataSource
>>> data = PyArrowTableDataSource(pa.record_batch({
...     "x": [1, 1, 2, 1], "y": ["a", "b", "c", "a"]
... }))
>>> next(DistinctNode(None, child=data).batches()).to_pydict()
{'x': [1, 1, 2], 'y': ['a', 'b', 'c']}
>>> next(DistinctNode(["x"], child=data).batches()).to_pydict()
{'x': [1, 2]}
>>> next(DistinctNode(["x"], keep_all=True, child=data).batches()).to_pydict()
{'x': [1, 2], 'y': ['a', 'c']}
"""

import logging

import pyarrow as pa

from .base import QueryPlanNode
from .rownames import data_columns, rowname_columns

logger = logging.getLogger(__name__)


class DistinctNode(QueryPlanNode):
    """Keep only the first row for each distinct combination of keys.

    Batches are processed one at the time, remembering
    the keys that were already seen so that duplicates
    are detected even when they are in different batches.
    The order of the rows is preserved.

    Row names are not compared when looking for duplicates,
    each kept row retains its own row name.
    """

    def __init__(
        self,
        keys: list[str] | None,
        child: QueryPlanNode,
        keep_all: bool = False,
    ) -> None:
        """
        :param keys: The columns identifying duplicated rows,
                     ``None`` or ``[]`` to compare whole rows.
        :param child: The node emitting the data to deduplicate.
        :param keep_all: Keep all the columns instead of only the keys.
        """
        self.keys = list(keys or [])
        self.keep_all = keep_all
        self.child = child

    def __str__(self) -> str:
        return f"DistinctNode(keys={self.keys}, keep_all={self.keep_all}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        seen: set[tuple] = set()
        dropped = 0
        for batch in self.child.batches():
            keys = self.keys or data_columns(batch.schema)
            columns = [batch.column(k).to_pylist() for k in keys]
            mask = []
            for key in zip(*columns):
                mask.append(key not in seen)
                seen.add(key)
            dropped += mask.count(False)

            batch = batch.filter(pa.array(mask, type=pa.bool_()))
            if self.keys and not self.keep_all:
                batch = batch.select(
                    list(dict.fromkeys(self.keys + rowname_columns(batch.schema)))
                )
            yield batch
        logger.debug("Distinct dropped %d duplicated rows", dropped)
