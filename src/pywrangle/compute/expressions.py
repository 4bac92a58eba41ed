"""Expressions executed by the wrangling nodes.

Nodes will sometimes need to filter data or emit new
data. This will be performed by nodes that need to know
how the data must be filtered or emitted.

Filters will need a ``predicate``, so an expression that
returns ``true`` or ``false`` for each row that has to be
filtered.

Projections will need an expression that computes the rows
for the projection, for example ``A + B``.

Conditional values
==================

A frequent need when wrangling data is to build a new column
whose value depends on a set of conditions, like classifying
a numeric column into labels. Writing it as nested ``if_else``
calls gets unreadable quickly, so :func:`case_when` allows to
list the ``(condition, value)`` branches in order:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> batch = pa.record_batch({"n": [1, 5, 15, None]})
>>> size = case_when(
...     (FunctionCallExpression(pc.less, col("n"), 3), "small"),
...     (FunctionCallExpression(pc.less, col("n"), 10), "medium"),
...     default="large",
... )
>>> size.apply(batch).to_pylist()
['small', 'medium', 'large', 'large']

The first branch whose condition is true wins, even if later
branches would match too (``1`` is also less than ``10``).
A condition that is null counts as false, so the last row,
for which no comparison is possible, falls to the default.
Without a ``default`` rows that match no branch become null.
"""

from typing import Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from .base import Expression, Literal, col


def apply_expression_if_needed(
    batch: pa.RecordBatch, o: Expression | pa.Array
) -> pa.Array:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target batch.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(batch)
    return o


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to sum two columns this would be used as::

        FunctionCallExpression(pyarrow.compute.add, ColumnRef("A"), ColumnRef("B"))
    """

    def __init__(self, func: Callable, *args: Expression | Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        return f"{func_qualname}({','.join(map(str, self.args))})"

    def children(self) -> list[Expression]:
        return [arg for arg in self.args if isinstance(arg, Expression)]

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Invoke the function resolving all arguments on the recordbatch.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided recordbatch
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(batch, arg) for arg in self.args)
        return self.func(*args)


class CaseWhenExpression(Expression):
    """Pick for each row the value of the first branch that matches.

    Each branch is a ``(condition, value)`` pair, where the
    condition is an expression returning booleans and the value
    can be an expression or a literal.

    Evaluation goes through the branches in reverse order,
    starting from the default and overwriting it with the value
    of each branch where its condition is true. This way the
    first branch is the last one written and thus wins over
    any following branch.

    Supposing the branches ``n < 3 -> "small"`` and
    ``n < 10 -> "medium"`` with a ``"large"`` default::

        n    | start  | n < 10   | n < 3
        ---- | ------ | -------- | -------
        1    | large  | medium   | small
        5    | large  | medium   | medium
        15   | large  | large    | large
    """

    def __init__(
        self, branches: list[tuple[Expression, Any]], default: Any = None
    ) -> None:
        """
        :param branches: The ``(condition, value)`` pairs in priority order.
        :param default: The value for rows matching no branch,
                        ``None`` leaves them null.
        """
        if not branches:
            raise ValueError("case_when requires at least one branch")
        for branch in branches:
            if len(branch) != 2:
                raise ValueError(
                    f"case_when branches must be (condition, value) pairs, got {branch!r}"
                )
        self.branches = [
            (condition, self._as_expression(value)) for condition, value in branches
        ]
        self.default = None if default is None else self._as_expression(default)

    @staticmethod
    def _as_expression(value: Any) -> Expression:
        if isinstance(value, Expression):
            return value
        return Literal(value)

    def __str__(self) -> str:
        branches = ", ".join(f"{cond} -> {value}" for cond, value in self.branches)
        return f"CaseWhen({branches}, default={self.default})"

    def children(self) -> list[Expression]:
        children = [e for branch in self.branches for e in branch]
        if self.default is not None:
            children.append(self.default)
        return children

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Evaluate the branches on the batch and combine their values."""
        conditions = []
        for condition, _ in self.branches:
            mask = condition.apply(batch)
            # A null condition can't be true, so it must not select the branch.
            conditions.append(pc.fill_null(mask, False))
        values = [value.apply(batch) for _, value in self.branches]

        if self.default is not None:
            result = self.default.apply(batch)
        else:
            result = pa.nulls(batch.num_rows, type=values[0].type)
        if isinstance(result, pa.Scalar):
            result = pa.repeat(result, batch.num_rows)

        for mask, value in reversed(list(zip(conditions, values))):
            result = pc.if_else(mask, value, result)
        return result


def case_when(*branches: tuple[Expression, Any], default: Any = None) -> CaseWhenExpression:
    """Build a :class:`CaseWhenExpression` out of ``(condition, value)`` pairs.

    :param branches: The ``(condition, value)`` pairs, first match wins.
    :param default: The fallback value for rows matching no branch.
    """
    return CaseWhenExpression(list(branches), default=default)


__all__ = (
    "FunctionCallExpression",
    "CaseWhenExpression",
    "apply_expression_if_needed",
    "case_when",
    "col",
)
