"""Base classes and interfaces for the wrangling nodes.

This module defines the base components that are
necessary to describe a data transformation as a tree
of nodes and execute it.
"""

import abc
from typing import Any, Generator, Iterable, Iterator

import pyarrow as pa


class QueryPlanNode(abc.ABC):
    """A node of a transformation plan.

    The plan is represented as a tree of nodes.
    Each node is a step in the transformation and
    all previous steps are children of the last one.

    For example ranking the rows of a table after
    having removed the duplicates would look like::

        PyArrowTableDataSource -> DistinctNode -> ProjectNode(min_rank)

    That would be a plan where the last step
    is the projection of the rank, and the distinct
    node is a child of the projection node.

    The number of children can be variable, some
    nodes like joins or set operations accept two
    child nodes that have to be combined together.

    Each Node accepts :class:`pyarrow.RecordBatch`
    data as its input and emits a new
    :class:`pyarrow.RecordBatch` as its output.

    For example a simple node that takes data
    and just forwards it as is after printing
    its content can be implemented as::

        class DebugDataNode(QueryPlanNode):
            def __init__(self, child):
                self.child = child

            def batches(self):
                for b in self.child.batches():
                    print(b)
                    yield b

            def __str__(self):
                return f"DebugDataNode()"
    """

    RecordBatchesGenerator = Generator[pa.RecordBatch, None, None]

    @abc.abstractmethod
    def batches(self) -> Iterator[pa.RecordBatch]:
        """Emits the batches for the next node.

        Each node is expected to be able to
        generate data that has to be provided to the next
        node in the plan.

        Usually this happens by consuming data from its
        child nodes, transforming it somehow, and yielding
        it back to the next consumer.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the node."""
        ...


def collect_batch(node: QueryPlanNode) -> pa.RecordBatch:
    """Consume all the batches of a node and merge them in a single one.

    Nodes that need to see all rows at once, like joins
    or window functions, use this to load their child data.

    Going through a Table is required because its chunks
    can be combined at no cost, while RecordBatches
    have to be concatenated one by one.
    """
    batches = list(node.batches())
    if len(batches) == 1:
        return batches[0]
    if not batches:
        raise ValueError(f"{node} emitted no data, unable to infer its schema")
    return table_to_batch(pa.Table.from_batches(batches))


def table_to_batch(table: pa.Table) -> pa.RecordBatch:
    """Combine all the chunks of a table in a single RecordBatch."""
    table = table.combine_chunks()
    if table.num_rows == 0:
        return pa.RecordBatch.from_pylist([], schema=table.schema)
    return table.to_batches()[0]


class Expression(abc.ABC):
    """Expression to apply to a RecordBatch.

    Expressions are some form of operation that
    has to be applied to the data of a :class:`pyarrow.RecordBatch`
    to create new data.

    Typical example of expressions are: A + B
    which is expected to sum column A of the RecordBatch
    to column B of the RecordBatch and return the result.

    As the engine is Column Major, applying an expression
    always results in a new column, thus in a
    :class:`pyarrow.Array` that contains the data
    for that column.
    """

    @abc.abstractmethod
    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Apply the expression to a RecordBatch.

        Expression classes must implement this method
        to dictate what will happen when an expression
        is applied.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...

    def __repr__(self) -> str:
        return str(self)

    def children(self) -> Iterable["Expression"]:
        """The expressions this expression depends on."""
        return ()

    def is_window(self) -> bool:
        """If the expression, or any of its children, needs all the rows at once."""
        return isinstance(self, WindowExpression) or any(
            child.is_window() for child in self.children()
        )


class WindowExpression(Expression):
    """Expression whose result for a row depends on all other rows.

    Ranking a value requires knowing every other value
    of the column, so applying the expression to a single
    batch of a larger table would lead to wrong results.

    Nodes that apply expressions will check for this
    class and merge all the batches of their child
    before applying it.
    """


class ColumnRef(Expression):
    """References a column in a record batch.

    When another expression or the engine need
    to operate on a specific column, we will
    need a way to reference that column and its data.

    This expression is aware of the column and when
    applied to a record batch returns the data for
    that column.
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Get the data for the column."""
        return batch.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Applying a literal always returns the same
    :class:`pyarrow.Scalar`, compute functions will
    broadcast it to the length of the other arguments.
    """

    def __init__(self, value: Any) -> None:
        """
        :param value: The python value or pyarrow scalar.
        """
        if not isinstance(value, pa.Scalar):
            value = pa.scalar(value)
        self.value = value

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        """Get the literal value."""
        return self.value

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


col = ColumnRef
lit = Literal


def with_column(batch: pa.RecordBatch, name: str, values: Any) -> pa.RecordBatch:
    """Add a column to the batch, or replace it when it already exists.

    Scalars are broadcast to the number of rows of the batch,
    so that constant values can be assigned to a column.
    The metadata of the schema, like the row names, is preserved.
    """
    if isinstance(values, pa.Scalar):
        values = pa.repeat(values, batch.num_rows)
    elif isinstance(values, pa.ChunkedArray):
        values = values.combine_chunks()
    elif not isinstance(values, pa.Array):
        values = pa.array(values)

    names = list(batch.schema.names)
    arrays = list(batch.columns)
    if name in names:
        arrays[names.index(name)] = values
    else:
        names.append(name)
        arrays.append(values)
    schema = pa.schema(
        [pa.field(n, a.type) for n, a in zip(names, arrays)],
        metadata=batch.schema.metadata,
    )
    return pa.RecordBatch.from_arrays(arrays, schema=schema)


def as_py_value(value: Any) -> Any:
    """Convert the result of an aggregation to a single python value.

    Compute functions might return a :class:`pyarrow.Scalar`
    or a single element array, while user functions might
    return python values directly.
    """
    if isinstance(value, pa.Scalar):
        return value.as_py()
    if isinstance(value, (pa.Array, pa.ChunkedArray)):
        if len(value) != 1:
            raise ValueError(f"Expected a single value, got {len(value)} values")
        return value[0].as_py()
    return value


def values_to_array(values: list[Any]) -> pa.Array:
    """Build a column out of the results of an aggregation.

    The type is inferred from the python values. When they are
    all nulls, the type of the first arrow result that has one
    is used instead, so that a column of nulls keeps its type.
    """
    array = pa.array([as_py_value(v) for v in values])
    if array.type != pa.null():
        return array
    for value in values:
        if isinstance(value, (pa.Scalar, pa.Array, pa.ChunkedArray)) and value.type != pa.null():
            return array.cast(value.type)
    return array
