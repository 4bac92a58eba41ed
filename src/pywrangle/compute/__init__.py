"""The pywrangle compute nodes

The compute package defines the in-memory
format for transformation plans and the nodes
implementing each wrangling technique.

The nodes are tightly bound to Apache Arrow,
thus they will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of their execution.

This allows to easily build pipelines like::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

The nodes themselves are in charge of their execution,
this keeps the behavior near to the node and thus makes easy to
know how a technique is actually executed without having to look around too much.

Building a plan requires to combine the nodes that we want
to be executed starting with one or more ``DataSource`` nodes as the
leafs of the plan:

>>> import pyarrow as pa
>>> data = pa.table({
...    "animals": pa.array(["Flamingo", "Horse", "Brittle stars", "Centipede"]),
...    "n_legs": pa.array([2, 4, 5, 100])
... })
>>>
>>> from pywrangle.compute import PyArrowTableDataSource, ProjectNode, min_rank
>>> # Rank the animals by their number of legs, the one with most legs first.
>>> query = ProjectNode(
...     None,
...     {"rank": min_rank("n_legs", descending=True)},
...     child=PyArrowTableDataSource(data)
... )
>>> for data in query.batches():
...     print(data.to_pydict())
{'animals': ['Flamingo', 'Horse', 'Brittle stars', 'Centipede'], 'n_legs': [2, 4, 5, 100], 'rank': [4, 3, 2, 1]}
"""

from .across import (
    across,
    contains,
    ends_with,
    everything,
    matches,
    starts_with,
    where,
)
from .aggregate import (
    AggregateNode,
    CountAggregation,
    FunctionAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from .base import ColumnRef, Literal, col, lit
from .datasources import CSVDataSource, PyArrowTableDataSource
from .distinct import DistinctNode
from .expressions import CaseWhenExpression, FunctionCallExpression, case_when
from .filtering import FilterNode
from .join import (
    AntiJoinNode,
    JoinError,
    JoinNode,
    JoinRelationshipError,
    SemiJoinNode,
)
from .ranking import (
    cume_dist,
    dense_rank,
    min_rank,
    ntile,
    percent_rank,
    row_number,
)
from .rownames import RowIdToColumnNode, RowNamesToColumnNode
from .rowwise import RowwiseNode, c_across
from .selection import ProjectNode
from .setops import IncompatibleTablesError, SetOperationNode
from .sorting import SortNode

__all__ = (
    "CSVDataSource",
    "PyArrowTableDataSource",
    "FilterNode",
    "FunctionCallExpression",
    "CaseWhenExpression",
    "case_when",
    "col",
    "lit",
    "ColumnRef",
    "Literal",
    "SortNode",
    "ProjectNode",
    "AggregateNode",
    "CountAggregation",
    "FunctionAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "SumAggregation",
    "JoinNode",
    "SemiJoinNode",
    "AntiJoinNode",
    "JoinError",
    "JoinRelationshipError",
    "SetOperationNode",
    "IncompatibleTablesError",
    "DistinctNode",
    "RowNamesToColumnNode",
    "RowIdToColumnNode",
    "RowwiseNode",
    "c_across",
    "across",
    "everything",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "where",
    "row_number",
    "min_rank",
    "dense_rank",
    "percent_rank",
    "cume_dist",
    "ntile",
)
