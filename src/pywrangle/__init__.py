"""pywrangle

A data wrangling course built on top of Apache Arrow, for learning and teaching purposes.

Each wrangling technique taught by the course, like ranking values,
joining tables or aggregating row by row, is implemented by a small
component written in literate programming style, so that the reader
can learn how the technique works and not only how to use it.

The platform is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Compute Engine, in charge of executing the transformations on the data.
* The Dataframe API, which provides an high level API for the compute engine.
* The Course, the lessons and their examples, rendered as a report.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute

__all__ = ("compute",)
