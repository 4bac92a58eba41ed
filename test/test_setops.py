import pyarrow as pa
import pytest

from pywrangle.compute import PyArrowTableDataSource
from pywrangle.compute.setops import IncompatibleTablesError, SetOperationNode

X_DATA = pa.record_batch({"x": [1, 1, 2, 3], "y": ["a", "a", "b", "c"]})
Y_DATA = pa.record_batch({"x": [1, 3, 4], "y": ["a", "c", "d"]})


@pytest.fixture
def x_source():
    return PyArrowTableDataSource(X_DATA)


@pytest.fixture
def y_source():
    return PyArrowTableDataSource(Y_DATA)


@pytest.mark.parametrize(
    "operation,expected",
    [
        ("intersect", {"x": [1, 3], "y": ["a", "c"]}),
        ("union", {"x": [1, 2, 3, 4], "y": ["a", "b", "c", "d"]}),
        (
            "union_all",
            {"x": [1, 1, 2, 3, 1, 3, 4], "y": ["a", "a", "b", "c", "a", "c", "d"]},
        ),
        ("setdiff", {"x": [2], "y": ["b"]}),
        ("symdiff", {"x": [2, 4], "y": ["b", "d"]}),
    ],
)
def test_set_operations(x_source, y_source, operation, expected):
    result_batches = list(SetOperationNode(operation, x_source, y_source).batches())

    assert len(result_batches) == 1
    assert result_batches[0].to_pydict() == expected


def test_setdiff_is_not_symmetric(x_source, y_source):
    result = next(SetOperationNode("setdiff", y_source, x_source).batches())
    assert result.to_pydict() == {"x": [4], "y": ["d"]}


def test_columns_are_matched_by_name(x_source):
    reordered = PyArrowTableDataSource(pa.record_batch({"y": ["c", "z"], "x": [3, 9]}))

    result = next(SetOperationNode("intersect", x_source, reordered).batches())
    assert result.schema.names == ["x", "y"]
    assert result.to_pydict() == {"x": [3], "y": ["c"]}


def test_right_table_is_cast_to_left_types():
    left = PyArrowTableDataSource(pa.record_batch({"x": pa.array([1, 2], type=pa.int64())}))
    right = PyArrowTableDataSource(pa.record_batch({"x": pa.array([2, 3], type=pa.int32())}))

    result = next(SetOperationNode("union", left, right).batches())
    assert result.schema.field("x").type == pa.int64()
    assert result.column("x").to_pylist() == [1, 2, 3]


def test_null_values_are_equal():
    left = PyArrowTableDataSource(pa.record_batch({"x": pa.array([1, None, None])}))
    right = PyArrowTableDataSource(pa.record_batch({"x": pa.array([None])}))

    assert next(SetOperationNode("intersect", left, right).batches()).column(
        "x"
    ).to_pylist() == [None]
    assert next(SetOperationNode("setdiff", left, right).batches()).column(
        "x"
    ).to_pylist() == [1]


def test_incompatible_tables(x_source):
    other = PyArrowTableDataSource(pa.record_batch({"x": [1], "z": ["a"]}))

    with pytest.raises(IncompatibleTablesError, match="y, z"):
        next(SetOperationNode("union", x_source, other).batches())


def test_invalid_operation(x_source, y_source):
    with pytest.raises(ValueError):
        SetOperationNode("cartesian", x_source, y_source)


def test_set_operation_str(x_source, y_source):
    assert str(SetOperationNode("union", x_source, y_source)) == (
        "SetOperationNode(union, left=PyArrowTableDataSource(columns=['x', 'y'], rows=4), "
        "right=PyArrowTableDataSource(columns=['x', 'y'], rows=3))"
    )
