"""Shell commands exposing pywrangle functionalities.

This module contains the shell commands that can be used to interact with pywrangle.

Course
======

``pywrangle-course`` renders the lessons of the data wrangling course,
running their examples and printing the resulting tables::

    pywrangle-course joins distinct

All the lessons are rendered when none is provided, ``--list`` shows
the available ones. A Markdown version of the whole course can be
generated with::

    pywrangle-course --format markdown --output course.md

"""
