import pyarrow as pa
import pytest

from pywrangle.compute import PyArrowTableDataSource
from pywrangle.compute.distinct import DistinctNode

TEST_DATA = pa.record_batch(
    {
        "product": ["Laptop", "Phone", "Laptop", "Phone", "Tablet"],
        "quantity": [3, 5, 3, None, 2],
    }
)


@pytest.mark.parametrize(
    "keys,keep_all,expected",
    [
        (
            None,
            False,
            {
                "product": ["Laptop", "Phone", "Phone", "Tablet"],
                "quantity": [3, 5, None, 2],
            },
        ),
        (["product"], False, {"product": ["Laptop", "Phone", "Tablet"]}),
        (
            ["product"],
            True,
            {"product": ["Laptop", "Phone", "Tablet"], "quantity": [3, 5, 2]},
        ),
        (
            ["quantity", "product"],
            False,
            {
                "quantity": [3, 5, None, 2],
                "product": ["Laptop", "Phone", "Phone", "Tablet"],
            },
        ),
    ],
)
def test_distinct(keys, keep_all, expected):
    node = DistinctNode(keys, PyArrowTableDataSource(TEST_DATA), keep_all=keep_all)
    assert next(node.batches()).to_pydict() == expected


def test_distinct_across_batches():
    data = pa.Table.from_batches([TEST_DATA.slice(0, 2), TEST_DATA.slice(2)])
    node = DistinctNode(["product"], PyArrowTableDataSource(data))

    batches = list(node.batches())
    assert [b.column("product").to_pylist() for b in batches] == [
        ["Laptop", "Phone"],
        ["Tablet"],
    ]


def test_distinct_str():
    node = DistinctNode(["product"], PyArrowTableDataSource(TEST_DATA))
    assert str(node) == (
        "DistinctNode(keys=['product'], keep_all=False, "
        "PyArrowTableDataSource(columns=['product', 'quantity'], rows=5))"
    )
