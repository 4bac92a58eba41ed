"""Small literal tables used by the course examples.

Each function builds a new table every time it is invoked,
so that an example can never affect the data seen by another one.

>>> band_members().to_pydict()
{'name': ['Mick', 'John', 'Paul'], 'band': ['Stones', 'Beatles', 'Beatles']}

The ``cars`` table carries its row names as a pandas index,
like most data coming from pandas would:

>>> cars().schema.pandas_metadata["index_columns"]
['__index_level_0__']
"""

import datetime

import pandas as pd
import pyarrow as pa


def band_members() -> pa.Table:
    """Members of famous bands, one row per member."""
    return pa.table({"name": ["Mick", "John", "Paul"], "band": ["Stones", "Beatles", "Beatles"]})


def band_instruments() -> pa.Table:
    """The instrument each musician plays."""
    return pa.table({"name": ["John", "Paul", "Keith"], "plays": ["guitar", "bass", "guitar"]})


def band_instruments2() -> pa.Table:
    """Same as :func:`band_instruments` but the key is named ``artist``."""
    return pa.table({"artist": ["John", "Paul", "Keith"], "plays": ["guitar", "bass", "guitar"]})


def cars() -> pa.Table:
    """A few cars with their fuel consumption, the model is the row name."""
    df = pd.DataFrame(
        {
            "mpg": [21.0, 21.0, 22.8, 21.4, 18.7, 18.1],
            "cyl": [6, 6, 4, 6, 8, 6],
            "hp": [110, 110, 93, 110, 175, 105],
        },
        index=[
            "Mazda RX4",
            "Mazda RX4 Wag",
            "Datsun 710",
            "Hornet 4 Drive",
            "Hornet Sportabout",
            "Valiant",
        ],
    )
    return pa.Table.from_pandas(df)


def sales() -> pa.Table:
    """Sales of a small shop, including a repeated and a missing quantity."""
    return pa.table(
        {
            "day": [
                datetime.date(2024, 1, 1),
                datetime.date(2024, 1, 1),
                datetime.date(2024, 1, 2),
                datetime.date(2024, 1, 2),
                datetime.date(2024, 1, 3),
                datetime.date(2024, 1, 3),
            ],
            "product": ["Laptop", "Phone", "Laptop", "Phone", "Laptop", "Tablet"],
            "quantity": [3, 5, 3, None, 1, 2],
            "price": [999.0, 499.0, 949.0, 499.0, 949.0, 299.0],
        }
    )


def survey() -> pa.Table:
    """Scores given by respondents to three questions."""
    return pa.table(
        {
            "id": [1, 2, 3, 4],
            "q1": [4, 2, 5, 3],
            "q2": [3, 2, 5, 4],
            "q3": [5, 1, 4, None],
        }
    )


def ranking_values() -> pa.Table:
    """A column with ties and a missing value, to compare ranking functions."""
    return pa.table({"x": [1, 1, 2, 2, 2, None]})


def set_x() -> pa.Table:
    """Left table of the set operations examples."""
    return pa.table({"x": [1, 1, 2, 3], "y": ["a", "a", "b", "c"]})


def set_y() -> pa.Table:
    """Right table of the set operations examples."""
    return pa.table({"x": [1, 3, 4], "y": ["a", "c", "d"]})


def duplicated_keys_left() -> pa.Table:
    """A table where the key ``key`` is repeated."""
    return pa.table({"key": [1, 2, 2, 3], "val_x": ["x1", "x2", "x3", "x4"]})


def duplicated_keys_right() -> pa.Table:
    """A table where the key ``key`` is repeated too."""
    return pa.table({"key": [1, 2, 2, 4], "val_y": ["y1", "y2", "y3", "y4"]})
