"""The lessons of the data wrangling course.

Each :class:`Lesson` explains one technique and shows it through
a list of :class:`Example`. An example is a plain function that
builds a :class:`pywrangle.dataframe.Dataframe` and returns its
result, the body of the function is the code shown to the reader.

Lessons are listed in the order they are meant to be read:

>>> [lesson.slug for lesson in LESSONS]
['ranking', 'joins', 'filtering-joins', 'set-operations', 'across', 'case-when', 'rownames', 'distinct', 'rowwise']
>>> get_lesson("distinct").examples[0].run().to_pydict()
{'product': ['Laptop', 'Phone', 'Tablet']}
"""

import dataclasses
from typing import Callable

import pyarrow as pa
import pyarrow.compute as pc

from ..compute import (
    CountAggregation,
    FunctionCallExpression,
    across,
    c_across,
    case_when,
    col,
    cume_dist,
    dense_rank,
    min_rank,
    ntile,
    percent_rank,
    row_number,
    starts_with,
    where,
)
from ..dataframe import Dataframe
from ..utils.inspect import get_body_source
from . import datasets


@dataclasses.dataclass(frozen=True)
class Example:
    """A runnable example of a lesson.

    :param caption: What the example shows.
    :param run: Function returning the resulting table.
    """

    caption: str
    run: Callable[[], pa.Table]

    @property
    def code(self) -> str:
        """The code of the example, as shown to the reader."""
        return get_body_source(self.run)


@dataclasses.dataclass(frozen=True)
class Lesson:
    """A technique of the course, explained and demonstrated."""

    slug: str
    title: str
    prose: str
    examples: list[Example]


def _ranking_ties() -> pa.Table:
    df = Dataframe(datasets.ranking_values())
    return df.mutate(
        row_number=row_number("x"),
        min_rank=min_rank("x"),
        dense_rank=dense_rank("x"),
    ).to_arrow()


def _ranking_proportional() -> pa.Table:
    df = Dataframe(datasets.ranking_values())
    return df.mutate(
        percent_rank=percent_rank("x"),
        cume_dist=cume_dist("x"),
    ).to_arrow()


def _ranking_ntile() -> pa.Table:
    df = Dataframe(datasets.cars()).rownames_to_column("model")
    return df.mutate(bucket=ntile("mpg", 3, descending=True)).arrange("bucket").to_arrow()


def _join_inner() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.inner_join(instruments, by="name").to_arrow()


def _join_left() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.left_join(instruments, by="name").to_arrow()


def _join_right() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.right_join(instruments, by="name").to_arrow()


def _join_full() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.full_join(instruments, by="name").to_arrow()


def _join_different_names() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments2())
    return members.left_join(instruments, by={"name": "artist"}).to_arrow()


def _join_many_to_many() -> pa.Table:
    left = Dataframe(datasets.duplicated_keys_left())
    right = Dataframe(datasets.duplicated_keys_right())
    return left.inner_join(right, by="key", relationship="many-to-many").to_arrow()


def _semi_join() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.semi_join(instruments, by="name").to_arrow()


def _anti_join() -> pa.Table:
    members = Dataframe(datasets.band_members())
    instruments = Dataframe(datasets.band_instruments())
    return members.anti_join(instruments, by="name").to_arrow()


def _set_intersect() -> pa.Table:
    return Dataframe(datasets.set_x()).intersect(Dataframe(datasets.set_y())).to_arrow()


def _set_union() -> pa.Table:
    return Dataframe(datasets.set_x()).union(Dataframe(datasets.set_y())).to_arrow()


def _set_union_all() -> pa.Table:
    return Dataframe(datasets.set_x()).union_all(Dataframe(datasets.set_y())).to_arrow()


def _set_setdiff() -> pa.Table:
    return Dataframe(datasets.set_x()).setdiff(Dataframe(datasets.set_y())).to_arrow()


def _across_mutate() -> pa.Table:
    df = Dataframe(datasets.sales())
    return df.mutate(across(where(pa.types.is_floating), pc.round)).to_arrow()


def _across_summarise() -> pa.Table:
    df = Dataframe(datasets.survey())
    return df.summarise(
        across(starts_with("q"), {"mean": pc.mean, "max": pc.max}),
    ).to_arrow()


def _across_names() -> pa.Table:
    df = Dataframe(datasets.sales())
    return df.summarise(
        across(["quantity", "price"], pc.sum, names="total_{col}"),
        by=["product"],
    ).to_arrow()


def _case_when_labels() -> pa.Table:
    df = Dataframe(datasets.sales())
    return df.mutate(
        size=case_when(
            (FunctionCallExpression(pc.greater_equal, col("quantity"), 3), "large"),
            (FunctionCallExpression(pc.greater_equal, col("quantity"), 2), "medium"),
            default="small",
        )
    ).select("product", "quantity", "size").to_arrow()


def _case_when_no_default() -> pa.Table:
    df = Dataframe(datasets.sales())
    return df.mutate(
        expensive=case_when(
            (FunctionCallExpression(pc.greater, col("price"), 900), "yes"),
        )
    ).select("product", "price", "expensive").to_arrow()


def _rownames_to_column() -> pa.Table:
    return Dataframe(datasets.cars()).rownames_to_column("model").to_arrow()


def _rowid_to_column() -> pa.Table:
    return Dataframe(datasets.band_members()).rowid_to_column().to_arrow()


def _distinct_key() -> pa.Table:
    return Dataframe(datasets.sales()).distinct("product").to_arrow()


def _distinct_keep_all() -> pa.Table:
    return Dataframe(datasets.sales()).distinct("product", keep_all=True).to_arrow()


def _distinct_rows() -> pa.Table:
    return Dataframe(datasets.set_x()).distinct().to_arrow()


def _rowwise_mutate() -> pa.Table:
    df = Dataframe(datasets.survey())
    return df.rowwise().mutate(total=c_across(starts_with("q"), pc.sum)).to_arrow()


def _rowwise_summarise() -> pa.Table:
    df = Dataframe(datasets.survey())
    return df.rowwise("id").summarise(
        mean=c_across(starts_with("q"), pc.mean),
        best=c_across(["q1", "q2", "q3"], pc.max),
    ).to_arrow()


def _rowwise_versus_grouped() -> pa.Table:
    df = Dataframe(datasets.sales())
    return df.summarise(orders=CountAggregation(), by=["product"]).to_arrow()


LESSONS = [
    Lesson(
        slug="ranking",
        title="Ranking values",
        prose=(
            "Ranking functions give each value its position in the ordered column. "
            "They differ in how they deal with ties: row_number gives every row a "
            "different rank, min_rank gives tied values the lowest rank they share "
            "leaving gaps after them, dense_rank leaves no gaps. Missing values are "
            "never ranked. percent_rank and cume_dist express the rank as a proportion "
            "between 0 and 1, while ntile splits the rows into buckets of nearly equal size."
        ),
        examples=[
            Example("Three ways of breaking ties", _ranking_ties),
            Example("Proportional ranks", _ranking_proportional),
            Example("Splitting cars in three buckets, the most efficient first", _ranking_ntile),
        ],
    ),
    Lesson(
        slug="joins",
        title="Mutating joins",
        prose=(
            "Mutating joins add to a table the columns of another table, matching "
            "rows by their keys. An inner join keeps only the rows with a match in "
            "both tables, a left join keeps all rows of the first table, a right "
            "join all rows of the second and a full join all rows of both. Rows with "
            "no match get missing values in the columns of the other table. When a "
            "key appears multiple times in both tables each combination is produced, "
            "which is rarely intended and thus has to be declared explicitly."
        ),
        examples=[
            Example("Inner join", _join_inner),
            Example("Left join", _join_left),
            Example("Right join", _join_right),
            Example("Full join", _join_full),
            Example("Keys with different names", _join_different_names),
            Example("Duplicated keys on both sides", _join_many_to_many),
        ],
    ),
    Lesson(
        slug="filtering-joins",
        title="Filtering joins",
        prose=(
            "Filtering joins keep or drop the rows of a table depending on the "
            "existence of a match in another table, without adding any column. "
            "A semi join keeps the rows with a match, an anti join the rows without one. "
            "Anti joins are useful to find the rows that would be lost by an inner join."
        ),
        examples=[
            Example("Members that play an instrument", _semi_join),
            Example("Members that play no known instrument", _anti_join),
        ],
    ),
    Lesson(
        slug="set-operations",
        title="Set operations",
        prose=(
            "Set operations treat each row as an element of a set and expect both "
            "tables to have the same columns. The results contain no duplicated rows, "
            "except for union_all which keeps all rows of both tables."
        ),
        examples=[
            Example("Rows in both tables", _set_intersect),
            Example("Rows in any table", _set_union),
            Example("All rows of both tables", _set_union_all),
            Example("Rows only in the first table", _set_setdiff),
        ],
    ),
    Lesson(
        slug="across",
        title="Transforming many columns",
        prose=(
            "across applies the same function, or a set of named functions, to "
            "multiple columns. Columns can be listed by name or chosen with a "
            "selector like starts_with or where. The names of the resulting columns "
            "follow a template where {col} is the name of the column and {fn} the "
            "name of the function."
        ),
        examples=[
            Example("Rounding all decimal columns", _across_mutate),
            Example("Multiple summaries of the answers", _across_summarise),
            Example("Totals per product with a names template", _across_names),
        ],
    ),
    Lesson(
        slug="case-when",
        title="Conditional values",
        prose=(
            "case_when builds a column from a list of conditions, each with the "
            "value to use when it is true. Conditions are evaluated in order and the "
            "first one that is true wins. Rows matching no condition get the default "
            "value, or a missing value when no default is provided. A condition that "
            "can't be evaluated, because of a missing value, counts as false."
        ),
        examples=[
            Example("Sizing orders", _case_when_labels),
            Example("Without a default", _case_when_no_default),
        ],
    ),
    Lesson(
        slug="rownames",
        title="Row names",
        prose=(
            "Some tables label their rows with names that are not part of the data. "
            "Row names get in the way of most operations, so they are better turned "
            "into a regular column. Tables without row names can still number their "
            "rows in a new column."
        ),
        examples=[
            Example("Car models as a column", _rownames_to_column),
            Example("Numbering the rows", _rowid_to_column),
        ],
    ),
    Lesson(
        slug="distinct",
        title="Removing duplicates",
        prose=(
            "distinct keeps only the first row for each combination of the given "
            "columns, preserving the order in which they first appear. By default "
            "only the given columns are kept, keep_all retains all of them. Without "
            "columns whole rows are compared."
        ),
        examples=[
            Example("The products that were sold", _distinct_key),
            Example("The first sale of each product", _distinct_keep_all),
            Example("Distinct rows", _distinct_rows),
        ],
    ),
    Lesson(
        slug="rowwise",
        title="Row-wise aggregation",
        prose=(
            "Most functions work on columns. rowwise treats each row as a group of "
            "its own, so that a summary function computes its value across the "
            "columns of each row. c_across gathers the values of the selected "
            "columns of the row. Compare it with a grouped summary, which "
            "produces one row per group instead of one row per row."
        ),
        examples=[
            Example("Total score of each respondent", _rowwise_mutate),
            Example("Mean and best score of each respondent", _rowwise_summarise),
            Example("A grouped summary for comparison", _rowwise_versus_grouped),
        ],
    ),
]


def get_lesson(slug: str) -> Lesson:
    """Look up a lesson by its slug.

    :raises KeyError: when no lesson has the given slug.
    """
    for lesson in LESSONS:
        if lesson.slug == slug:
            return lesson
    raise KeyError(slug)
