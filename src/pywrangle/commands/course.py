"""Command line interface rendering the data wrangling course.

This module provides the ``pywrangle-course`` command, which runs
the examples of the lessons in :mod:`pywrangle.course` and prints
the resulting report in a text or Markdown format.

The results of the examples are printed in a tabular format
using the :mod:`pywrangle.utils.tabulate` module.
"""

import argparse
import logging

from pywrangle.course import LESSONS, get_lesson, render_report
from pywrangle.course.report import FORMATS

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Parse the command line arguments and render the course."""
    parser = argparse.ArgumentParser(description="Render the data wrangling course.")
    parser.add_argument(
        "lessons",
        nargs="*",
        metavar="LESSON",
        help="The lessons to render, all of them when none is provided.",
    )
    parser.add_argument(
        "-f", "--format", choices=FORMATS, default="text", help="The format of the report."
    )
    parser.add_argument(
        "-n",
        "--max-rows",
        type=int,
        default=20,
        help="The maximum number of rows shown for each table.",
    )
    parser.add_argument("-o", "--output", help="Write the report to a file instead of printing it.")
    parser.add_argument("--list", action="store_true", help="List the available lessons and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        for lesson in LESSONS:
            print(f"{lesson.slug:<16} {lesson.title}")
        return

    if args.max_rows < 1:
        parser.error("--max-rows must be a positive number")

    try:
        lessons = [get_lesson(slug) for slug in args.lessons] or LESSONS
    except KeyError as e:
        parser.error(f"Unknown lesson {e}, use --list to see the available lessons")

    report = render_report(lessons, format=args.format, max_rows=args.max_rows)
    if args.output:
        with open(args.output, "w") as f:
            f.write(report)
        logger.info("Report written to %s", args.output)
    else:
        print(report, end="")


if __name__ == "__main__":
    main()
