"""Query plan nodes that implement join operations.

Joins combine two tables by matching the values of one or more
*key columns*. Usually a key is a **primary key** in one table,
a column that uniquely identifies each row, and a **foreign key**
in the other table, a column whose values reference the primary key.

Two families of joins exist:

* **Mutating joins** add to the rows of the left table the columns
  of the matching rows in the right table. They differ in what
  happens to the rows that have no match: ``inner`` drops them,
  ``left`` keeps the unmatched left rows, ``right`` keeps the
  unmatched right rows and ``full`` keeps both.
  Those are implemented by :class:`JoinNode`.
* **Filtering joins** keep or remove the rows of the left table
  depending on the existence of a match, without adding any column.
  ``semi`` keeps the rows that have a match, ``anti`` those that don't.
  Those are implemented by :class:`SemiJoinNode` and :class:`AntiJoinNode`.

>>> import pyarrow as pa
>>> from pywrangle.compute import PyArrowTableDataSource
>>> members = PyArrowTableDataSource(pa.record_batch({
...     "name": ["Mick", "John", "Paul"], "band": ["Stones", "Beatles", "Beatles"]
... }))
>>> instruments = PyArrowTableDataSource(pa.record_batch({
...     "name": ["John", "Paul", "Keith"], "plays": ["guitar", "bass", "guitar"]
... }))
>>> next(JoinNode(members, instruments, by="name", how="left").batches()).to_pydict()
{'name': ['Mick', 'John', 'Paul'], 'band': ['Stones', 'Beatles', 'Beatles'], 'plays': [None, 'guitar', 'bass']}
>>> next(AntiJoinNode(members, instruments, by="name").batches()).to_pydict()
{'name': ['Mick'], 'band': ['Stones']}

Keys can be provided as a single column name, as a list of names
when the keys have the same name in both tables, or as a mapping
of ``{left_column: right_column}`` when the names differ.
When no key is provided, all the columns with the same name in
both tables are used as the key (a *natural join*).
Row names are never used as keys.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode, collect_batch
from .rownames import data_columns, drop_rownames

logger = logging.getLogger(__name__)

JoinKeys = str | Iterable[str] | Mapping[str, str] | Iterable[tuple[str, str]] | None

RELATIONSHIPS = ("one-to-one", "one-to-many", "many-to-one", "many-to-many")


class JoinError(ValueError):
    """The join can't be performed with the provided keys."""


class JoinRelationshipError(JoinError):
    """The keys don't respect the declared relationship between the tables."""


def resolve_join_keys(
    by: JoinKeys, left_schema: pa.Schema, right_schema: pa.Schema
) -> list[tuple[str, str]]:
    """Normalize the join keys to a list of ``(left_column, right_column)`` pairs.

    :param by: The keys as provided by the user.
    :param left_schema: Schema of the left table, used to verify the keys.
    :param right_schema: Schema of the right table, used to verify the keys.
    """
    if by is None:
        right_names = data_columns(right_schema)
        pairs = [(n, n) for n in data_columns(left_schema) if n in right_names]
        if not pairs:
            raise JoinError(
                "No common columns to join on, provide the keys explicitly with by="
            )
        logger.debug("Joining by %s", ", ".join(n for n, _ in pairs))
    elif isinstance(by, str):
        pairs = [(by, by)]
    elif isinstance(by, Mapping):
        pairs = list(by.items())
    else:
        pairs = [(k, k) if isinstance(k, str) else tuple(k) for k in by]

    if not pairs:
        raise JoinError("At least one join key is required")
    for left_key, right_key in pairs:
        if left_key not in left_schema.names:
            raise JoinError(f"Join column '{left_key}' is missing from the left table")
        if right_key not in right_schema.names:
            raise JoinError(f"Join column '{right_key}' is missing from the right table")
    return pairs


def key_rows(batch: pa.RecordBatch, keys: list[str]) -> list[tuple[Any, ...]]:
    """Get the values of the key columns for each row as tuples."""
    columns = [batch.column(k).to_pylist() for k in keys]
    return list(zip(*columns))


def build_key_index(
    keys: list[tuple[Any, ...]], na_matches: str
) -> dict[tuple[Any, ...], list[int]]:
    """Map each key value to the indices of the rows that have it.

    When ``na_matches`` is ``"never"`` the keys containing
    nulls are not indexed, so they will never be matched.
    """
    index: dict[tuple[Any, ...], list[int]] = {}
    for row_idx, key in enumerate(keys):
        if na_matches == "never" and None in key:
            continue
        index.setdefault(key, []).append(row_idx)
    return index


def _check_na_matches(na_matches: str) -> None:
    if na_matches not in ("never", "na"):
        raise ValueError(f"na_matches must be 'never' or 'na', got {na_matches!r}")


class JoinNode(QueryPlanNode):
    """Join two data sources with a mutating join.

    The join is performed by building an index of the keys
    of the right table and probing it with the keys of the left table
    (what databases call a *hash join*).

    Supposing we have two tables::

        left:
        +----+--------+
        | id | name   |
        +----+--------+
        | 1  | Alice  |
        | 2  | Bob    |
        | 3  | Charlie|
        +----+--------+

        right:
        +----+-----+
        | id | age |
        +----+-----+
        | 3  | 25  |
        | 2  | 30  |
        | 2  | 31  |
        | 4  | 40  |
        +----+-----+

    We would perform the following steps:

    1. Build the index of the right keys, mapping each key
       to the rows where it appears::

        {3: [0], 2: [1, 2], 4: [3]}

    2. For each left row, lookup its key in the index and record
       the pairs of matching rows. When a key has more than one match
       the left row is repeated once per match. This is where duplicated
       keys lead to the Cartesian product of the matching rows.
       Left rows without a match are paired to ``None`` when
       the join has to keep them (left and full joins)::

        left_indices  = [0,    1, 1, 2]
        right_indices = [None, 1, 2, 0]

    3. Right rows that were never matched are appended paired
       to ``None`` on the left when the join has to keep them
       (right and full joins)::

        left_indices  = [0,    1, 1, 2, None]
        right_indices = [None, 1, 2, 0, 3]

    4. Take the rows of both tables at the recorded indices.
       Taking a ``None`` index emits a row of nulls.
       The two tables are now aligned and can be combined
       in a single one, keeping the key columns only once::

        +----+--------+------+
        | id | name   | age  |
        +----+--------+------+
        | 1  | Alice  | null |
        | 2  | Bob    | 30   |
        | 2  | Bob    | 31   |
        | 3  | Charlie| 25   |
        | 4  | null   | 40   |
        +----+--------+------+

    The resulting rows preserve the order of the left table,
    and for each left row its matches are in the order of the right table.
    As each row combines rows of two tables, the row names
    of the inputs are dropped.
    """

    JOIN_TYPES = ("inner", "left", "right", "full")

    def __init__(
        self,
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        by: JoinKeys = None,
        how: str = "inner",
        suffix: tuple[str, str] = (".x", ".y"),
        relationship: str | None = None,
        na_matches: str = "never",
    ) -> None:
        """
        :param left_child: The left source of data to join.
        :param right_child: The right source of data to join.
        :param by: The keys to join on, see :func:`resolve_join_keys`.
        :param how: One of ``inner``, ``left``, ``right``, ``full``.
        :param suffix: Suffixes added to the non key columns existing in both tables.
        :param relationship: The expected relationship between the keys
                             of the two tables, checked during the join.
        :param na_matches: ``"never"`` to never match null keys,
                           ``"na"`` to match null keys with null keys.
        """
        if how not in self.JOIN_TYPES:
            raise ValueError(f"Unsupported join type {how!r}, expected one of {self.JOIN_TYPES}")
        if relationship is not None and relationship not in RELATIONSHIPS:
            raise ValueError(
                f"Unsupported relationship {relationship!r}, expected one of {RELATIONSHIPS}"
            )
        if len(suffix) != 2 or suffix[0] == suffix[1]:
            raise ValueError("suffix must be two different strings")
        _check_na_matches(na_matches)

        self.left_child = left_child
        self.right_child = right_child
        self.by = by
        self.how = how
        self.suffix = tuple(suffix)
        self.relationship = relationship
        self.na_matches = na_matches

    def __str__(self) -> str:
        return f"JoinNode(how={self.how}, by={self.by}, left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Perform the join operation.

        Accumulates all rows of both children to
        perform the join operation, so it is not suitable
        for large datasets.
        """
        left_rb = drop_rownames(collect_batch(self.left_child))
        right_rb = drop_rownames(collect_batch(self.right_child))
        keys = resolve_join_keys(self.by, left_rb.schema, right_rb.schema)
        left_keys = [lk for lk, _ in keys]
        right_keys = [rk for _, rk in keys]

        right_index = build_key_index(key_rows(right_rb, right_keys), self.na_matches)

        keep_left = self.how in ("left", "full")
        keep_right = self.how in ("right", "full")
        left_indices: list[int | None] = []
        right_indices: list[int | None] = []
        right_matches = [0] * right_rb.num_rows
        max_left_matches = 0
        for left_idx, key in enumerate(key_rows(left_rb, left_keys)):
            if self.na_matches == "never" and None in key:
                matches = []
            else:
                matches = right_index.get(key, [])
            max_left_matches = max(max_left_matches, len(matches))
            for right_idx in matches:
                left_indices.append(left_idx)
                right_indices.append(right_idx)
                right_matches[right_idx] += 1
            if not matches and keep_left:
                left_indices.append(left_idx)
                right_indices.append(None)

        self._check_relationship(max_left_matches, max(right_matches, default=0))

        if keep_right:
            for right_idx, n_matches in enumerate(right_matches):
                if n_matches == 0:
                    left_indices.append(None)
                    right_indices.append(right_idx)

        logger.debug(
            "%s join of %d and %d rows produced %d rows",
            self.how,
            left_rb.num_rows,
            right_rb.num_rows,
            len(left_indices),
        )

        aligned_left = left_rb.take(pa.array(left_indices, type=pa.int64()))
        aligned_right = right_rb.take(pa.array(right_indices, type=pa.int64()))
        yield self._combine(aligned_left, aligned_right, keys)

    def _check_relationship(self, max_left_matches: int, max_right_matches: int) -> None:
        """Verify the declared relationship between the keys.

        ``max_left_matches`` is the maximum number of right rows
        matched by a single left row and ``max_right_matches`` is the
        maximum number of left rows matched by a single right row.
        """
        many_to_many = max_left_matches > 1 and max_right_matches > 1
        if self.relationship is None:
            if many_to_many:
                logger.warning(
                    "Detected an unexpected many-to-many relationship while joining by %s, "
                    "rows with duplicated keys were combined with each other. "
                    "Pass relationship='many-to-many' if this is expected.",
                    self.by,
                )
            return
        if self.relationship in ("one-to-one", "one-to-many") and max_right_matches > 1:
            raise JoinRelationshipError(
                f"Each row of the right table must match at most one row of the left table "
                f"for a {self.relationship} relationship, "
                f"but a row matched {max_right_matches} rows"
            )
        if self.relationship in ("one-to-one", "many-to-one") and max_left_matches > 1:
            raise JoinRelationshipError(
                f"Each row of the left table must match at most one row of the right table "
                f"for a {self.relationship} relationship, "
                f"but a row matched {max_left_matches} rows"
            )

    def _combine(
        self,
        left_rb: pa.RecordBatch,
        right_rb: pa.RecordBatch,
        keys: list[tuple[str, str]],
    ) -> pa.RecordBatch:
        """Combine the aligned left and right rows in a single recordbatch.

        Key columns are kept only once, with the name they have
        in the left table. For rows that only exist in the right
        table the key values come from the right table.
        """
        right_key_of = dict(keys)
        right_key_names = set(right_key_of.values())
        right_columns = [c for c in right_rb.column_names if c not in right_key_names]
        left_columns = [c for c in left_rb.column_names if c not in right_key_of]

        combined_data = {}
        for name in left_rb.column_names:
            column = left_rb.column(name)
            if name in right_key_of:
                if self.how in ("right", "full"):
                    right_values = right_rb.column(right_key_of[name])
                    column = pc.coalesce(column, pc.cast(right_values, column.type))
            elif name in right_columns:
                name = name + self.suffix[0]
            combined_data[name] = column
        for name in right_columns:
            new_col_name = name
            if name in left_columns or name in right_key_of:
                new_col_name = name + self.suffix[1]
            combined_data[new_col_name] = right_rb.column(name)
        return pa.record_batch(combined_data)


class FilteringJoinNode(QueryPlanNode):
    """Base class for the joins that filter the rows of the left table.

    The right table is fully loaded to build the set of its keys,
    while the left table is filtered one batch at the time,
    keeping the rows for which :meth:`keep` returns ``True``.

    As rows are only kept or discarded, the result never
    contains more rows than the left table, even
    when keys in the right table are duplicated.
    The rows of the left table keep their row names.
    """

    def __init__(
        self,
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        by: JoinKeys = None,
        na_matches: str = "never",
    ) -> None:
        """
        :param left_child: The source of the rows to filter.
        :param right_child: The source of the keys to look for.
        :param by: The keys to join on, see :func:`resolve_join_keys`.
        :param na_matches: ``"never"`` to never match null keys,
                           ``"na"`` to match null keys with null keys.
        """
        _check_na_matches(na_matches)
        self.left_child = left_child
        self.right_child = right_child
        self.by = by
        self.na_matches = na_matches

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(by={self.by}, left={self.left_child}, right={self.right_child})"

    def keep(self, has_match: bool) -> bool:
        raise NotImplementedError

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        right_rb = drop_rownames(collect_batch(self.right_child))
        right_index = None
        for batch in self.left_child.batches():
            if right_index is None:
                keys = resolve_join_keys(self.by, batch.schema, right_rb.schema)
                left_keys = [lk for lk, _ in keys]
                right_index = build_key_index(
                    key_rows(right_rb, [rk for _, rk in keys]), self.na_matches
                )
            mask = [
                self.keep(
                    not (self.na_matches == "never" and None in key)
                    and key in right_index
                )
                for key in key_rows(batch, left_keys)
            ]
            yield batch.filter(pa.array(mask, type=pa.bool_()))


class SemiJoinNode(FilteringJoinNode):
    """Keep the rows of the left table that have a match in the right table."""

    def keep(self, has_match: bool) -> bool:
        return has_match


class AntiJoinNode(FilteringJoinNode):
    """Keep the rows of the left table that have no match in the right table."""

    def keep(self, has_match: bool) -> bool:
        return not has_match
