"""The data wrangling course.

The course teaches how to wrangle tabular data through a sequence
of lessons, each one focused on a technique: ranking, joins,
set operations, transforming many columns, conditional values,
row names, deduplication and row-wise aggregation.

The examples of each lesson run on the small tables
provided by :mod:`pywrangle.course.datasets` and the whole
course can be rendered as a report:

>>> from pywrangle.course import get_lesson, render_report
>>> print(render_report([get_lesson("rownames")], max_rows=2))
Row names
=========
...
Car models as a column
----------------------
...
model         | mpg   | cyl | hp
------------- | ----- | --- | ---
Mazda RX4     | 21.00 | 6   | 110
Mazda RX4 Wag | 21.00 | 6   | 110
... and 4 more rows
...

The report is also available from the shell through
the ``pywrangle-course`` command.
"""

from .lessons import LESSONS, Example, Lesson, get_lesson
from .report import render_report

__all__ = ("LESSONS", "Example", "Lesson", "get_lesson", "render_report")
