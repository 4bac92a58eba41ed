"""Dataframe library built on top of the pywrangle compute nodes.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to load data from various sources (like CSV files or databases),
explore it, apply transformations, and analyze it.

The verbs of the dataframe mirror the wrangling techniques
taught by the course: ``mutate`` with ranks and ``across()``,
joins, set operations, ``distinct``, row names and ``rowwise``.
Each verb adds a node to the plan, and no data is touched
until ``collect()`` or ``to_arrow()`` are invoked.
"""

from ..compute import col, lit
from .dataframe import Dataframe, RowwiseDataframe

__all__ = ("Dataframe", "RowwiseDataframe", "col", "lit")
