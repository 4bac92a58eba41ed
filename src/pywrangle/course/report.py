"""Render the course as a text or Markdown report.

Each lesson is rendered with its title, its explanation and
its examples. For each example the code is shown followed
by the table it produces::

    Removing duplicates
    ===================

    distinct keeps only the first row ...

    The products that were sold
    ---------------------------

        return Dataframe(datasets.sales()).distinct("product").to_arrow()

    product
    -------
    Laptop
    Phone
    Tablet

An example that fails doesn't stop the report, the error
is rendered in place of the table and logged.
"""

import logging
import textwrap
from typing import Iterable

from ..utils.tabulate import tabulate
from .lessons import LESSONS, Example, Lesson

logger = logging.getLogger(__name__)

FORMATS = ("text", "markdown")


def render_report(
    lessons: Iterable[Lesson] | None = None, format: str = "text", max_rows: int = 20
) -> str:
    """Render the given lessons, or all of them, as a single document.

    :param lessons: The lessons to render, in order.
    :param format: ``text`` or ``markdown``.
    :param max_rows: The maximum number of rows shown for each table.
    """
    if format not in FORMATS:
        raise ValueError(f"Unsupported format {format!r}, expected one of {FORMATS}")
    if max_rows < 1:
        raise ValueError(f"max_rows must be a positive number, got {max_rows}")
    if lessons is None:
        lessons = LESSONS

    sections = [render_lesson(lesson, format, max_rows) for lesson in lessons]
    return "\n\n".join(sections) + "\n"


def render_lesson(lesson: Lesson, format: str = "text", max_rows: int = 20) -> str:
    """Render a lesson with all its examples."""
    logger.debug("Rendering lesson %s", lesson.slug)
    parts = [
        _heading(lesson.title, level=1, format=format),
        textwrap.fill(lesson.prose, width=79),
    ]
    for example in lesson.examples:
        parts.append(render_example(example, format, max_rows))
    return "\n\n".join(parts)


def render_example(example: Example, format: str = "text", max_rows: int = 20) -> str:
    """Render the code of an example and its result."""
    markdown = format == "markdown"
    if markdown:
        code = f"```python\n{example.code}\n```"
    else:
        code = textwrap.indent(example.code, "    ")

    try:
        result = tabulate(example.run(), max_rows=max_rows, markdown=markdown)
    except Exception as err:
        logger.exception("Example %r failed", example.caption)
        result = f"Error: {type(err).__name__}: {err}"

    return "\n\n".join([_heading(example.caption, level=2, format=format), code, result])


def _heading(title: str, level: int, format: str) -> str:
    if format == "markdown":
        return f"{'#' * level} {title}"
    underline = "=" if level == 1 else "-"
    return f"{title}\n{underline * len(title)}"
