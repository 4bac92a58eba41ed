"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.Table` or `pyarrow.RecordBatch` and formats it into a text table.
It will truncate long strings, format floats to 2 decimal places, and limit the number of rows to display.
The function is used to display the results of the examples in the course report.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "Product": ["Videogame", "Laptop", "Laptop"],
    ...     "Quantity": [8, 8, None],
    ...     "Price": [66.5, 38.72, 77.46],
    ... }
    >>> table = pa.RecordBatch.from_pydict(data)
    >>> print(tabulate(table))
    Product   | Quantity | Price
    --------- | -------- | -----
    Videogame | 8        | 66.50
    Laptop    | 8        | 38.72
    Laptop    | null     | 77.46

With ``markdown=True`` the table is surrounded by pipes,
so that it can be embedded in a Markdown document.
"""

from typing import Any

import pyarrow as pa


def tabulate(
    data: pa.RecordBatch | pa.Table, max_rows: int = 20, markdown: bool = False
) -> str:
    """Format a RecordBatch or Table into a text table.

    Will produce a string like::

        Product   | Quantity | Price | Total
        --------- | -------- | ----- | ------
        Videogame | 8        | 66.50 | 532.00
        Laptop    | 8        | 38.72 | 309.76
        Laptop    | 7        | 77.46 | 542.22

    :param data: The data to format.
    :param max_rows: How many rows to show at most.
    :param markdown: Produce a Markdown table.
    """
    cols = data.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in data.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes, markdown=markdown)]
    separator = [
        maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-", markdown=markdown)
    ]
    textrows = [maketablerow(row, colsizes=colsizes, markdown=markdown) for row in rows]

    table = "\n".join(header + separator + textrows)
    if data.num_rows > max_rows:
        table += f"\n... and {data.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx]), 1])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(
    cols: list[str], colsizes: list[int], fillvalue: str = " ", markdown: bool = False
) -> str:
    """Make a table row with the given column sizes."""
    row = " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    )
    if markdown:
        row = f"| {row} |"
    return row


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    This function will format floats to 2 decimal places,
    print nulls as ``null``, and truncate long strings.
    """
    if v is None:
        return "null"
    elif isinstance(v, float):
        return f"{v:.2f}"
    elif isinstance(v, bool):
        return "true" if v else "false"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
