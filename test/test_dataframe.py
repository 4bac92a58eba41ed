import pandas as pd
import pyarrow as pa
import pyarrow.compute as pc
import pytest

from pywrangle.compute import (
    CountAggregation,
    FunctionCallExpression,
    SumAggregation,
    across,
    c_across,
    case_when,
    col,
    min_rank,
    starts_with,
)
from pywrangle.dataframe import Dataframe


@pytest.fixture
def members():
    return Dataframe(
        pa.table({"name": ["Mick", "John", "Paul"], "band": ["Stones", "Beatles", "Beatles"]})
    )


@pytest.fixture
def instruments():
    return Dataframe(
        pa.table({"name": ["John", "Paul", "Keith"], "plays": ["guitar", "bass", "guitar"]})
    )


def test_invalid_input():
    with pytest.raises(ValueError):
        Dataframe({"a": [1]})


def test_dataframe_is_lazy(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b\n1,2\n3,4\n")
    df = Dataframe.open_csv(str(path)).mutate(c=FunctionCallExpression(pc.add, col("a"), col("b")))

    path.write_text("a,b\n10,20\n")
    assert df.to_arrow().to_pydict() == {"a": [10], "b": [20], "c": [30]}


def test_collect_loads_data(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a\n1\n")
    df = Dataframe.open_csv(str(path)).collect()

    path.unlink()
    assert df.to_arrow().to_pydict() == {"a": [1]}


def test_filter_select_arrange():
    df = Dataframe(pa.table({"x": [3, 1, 2, None], "y": ["c", "a", "b", "n"]}))
    result = (
        df.filter(FunctionCallExpression(pc.greater, col("x"), 1))
        .arrange("x", descending=True)
        .select("y")
    )
    assert result.to_arrow().to_pydict() == {"y": ["c", "b"]}


def test_filter_on_rank():
    df = Dataframe(pa.table({"team": ["a", "b", "c", "d"], "score": [10, 40, 30, 20]}))
    top = df.filter(FunctionCallExpression(pc.less_equal, min_rank("score", descending=True), 2))
    assert top.to_arrow().column("team").to_pylist() == ["b", "c"]


def test_mutate_with_across_and_expressions():
    df = Dataframe(pa.table({"a": [1.4, 2.6], "b": [0.5, 1.5]}))
    result = df.mutate(
        across(["a", "b"], pc.round, names="{col}_r"),
        total=FunctionCallExpression(pc.add, col("a_r"), col("b_r")),
    )
    assert result.to_arrow().to_pydict() == {
        "a": [1.4, 2.6],
        "b": [0.5, 1.5],
        "a_r": [1.0, 3.0],
        "b_r": [0.0, 2.0],
        "total": [1.0, 5.0],
    }


def test_mutate_case_when():
    df = Dataframe(pa.table({"n": [1, 20]}))
    result = df.mutate(
        size=case_when((FunctionCallExpression(pc.less, col("n"), 10), "small"), default="big")
    )
    assert result.to_arrow().column("size").to_pylist() == ["small", "big"]


def test_summarise():
    df = Dataframe(pa.table({"k": ["b", "a", "b"], "v": [1, 2, 3], "w": [4, 5, 6]}))

    assert df.summarise(total=SumAggregation("v")).to_arrow().to_pydict() == {"total": [6]}
    assert df.summarise(
        across(["v", "w"], pc.max), n=CountAggregation(), by=["k"]
    ).to_arrow().to_pydict() == {"k": ["a", "b"], "v": [2, 3], "w": [5, 6], "n": [1, 2]}


@pytest.mark.parametrize(
    "method,expected_names",
    [
        ("inner_join", ["John", "Paul"]),
        ("left_join", ["Mick", "John", "Paul"]),
        ("right_join", ["John", "Paul", "Keith"]),
        ("full_join", ["Mick", "John", "Paul", "Keith"]),
        ("semi_join", ["John", "Paul"]),
        ("anti_join", ["Mick"]),
    ],
)
def test_joins(members, instruments, method, expected_names):
    result = getattr(members, method)(instruments, by="name").to_arrow()
    assert result.column("name").to_pylist() == expected_names


def test_join_options_are_forwarded(members):
    other = Dataframe(pa.table({"name": ["John"], "band": ["Plastic Ono"]}))
    result = members.inner_join(other, by="name", suffix=("", "_solo")).to_arrow()
    assert result.column_names == ["name", "band", "band_solo"]


@pytest.mark.parametrize(
    "method,expected",
    [
        ("intersect", [2]),
        ("union", [1, 2, 3]),
        ("union_all", [1, 2, 2, 3]),
        ("setdiff", [1]),
        ("symdiff", [1, 3]),
    ],
)
def test_set_operations(method, expected):
    x = Dataframe(pa.table({"v": [1, 2]}))
    y = Dataframe(pa.table({"v": [2, 3]}))
    assert getattr(x, method)(y).to_arrow().column("v").to_pylist() == expected


def test_distinct():
    df = Dataframe(pa.table({"k": [2, 1, 2], "v": ["a", "b", "c"]}))
    assert df.distinct("k").to_arrow().to_pydict() == {"k": [2, 1]}
    assert df.distinct("k", keep_all=True).to_arrow().to_pydict() == {
        "k": [2, 1],
        "v": ["a", "b"],
    }


def test_rownames():
    df = Dataframe.from_pandas(pd.DataFrame({"mpg": [21.0, 22.8]}, index=["Mazda", "Datsun"]))
    assert df.rownames_to_column().to_arrow().to_pydict() == {
        "rowname": ["Mazda", "Datsun"],
        "mpg": [21.0, 22.8],
    }


def test_rownames_survive_mutate():
    df = Dataframe.from_pandas(pd.DataFrame({"mpg": [21.0, 22.8]}, index=["Mazda", "Datsun"]))
    result = df.mutate(rank=min_rank("mpg")).rownames_to_column("model").to_arrow()
    assert result.to_pydict() == {
        "model": ["Mazda", "Datsun"],
        "mpg": [21.0, 22.8],
        "rank": [1, 2],
    }


@pytest.fixture
def cars():
    return Dataframe.from_pandas(
        pd.DataFrame(
            {"mpg": [21.0, 22.8, 21.4], "cyl": [6, 4, 6]},
            index=["Mazda", "Datsun", "Hornet"],
        )
    )


def test_rownames_survive_select(cars):
    result = cars.select("mpg").rownames_to_column("model").to_arrow()
    assert result.to_pydict() == {
        "model": ["Mazda", "Datsun", "Hornet"],
        "mpg": [21.0, 22.8, 21.4],
    }


def test_rownames_survive_distinct(cars):
    result = cars.distinct("cyl").rownames_to_column("model").to_arrow()
    assert result.to_pydict() == {"model": ["Mazda", "Datsun"], "cyl": [6, 4]}


def test_rownames_are_not_compared_by_distinct():
    df = Dataframe.from_pandas(pd.DataFrame({"cyl": [6, 4, 6]}, index=["a", "b", "c"]))
    result = df.distinct().rownames_to_column().to_arrow()
    assert result.to_pydict() == {"rowname": ["a", "b"], "cyl": [6, 4]}


def test_range_rownames_survive_filter():
    df = Dataframe.from_pandas(pd.DataFrame({"v": [10, 20, 30]}))
    result = df.filter(FunctionCallExpression(pc.greater, col("v"), 10)).rownames_to_column()
    assert result.to_arrow().to_pydict() == {"rowname": ["1", "2"], "v": [20, 30]}


def test_natural_join_ignores_rownames():
    left = Dataframe.from_pandas(pd.DataFrame({"k": [1, 2]}, index=["a", "b"]))
    right = Dataframe.from_pandas(pd.DataFrame({"k": [1, 2], "v": [3, 4]}, index=["x", "y"]))

    assert left.inner_join(right).to_arrow().to_pydict() == {"k": [1, 2], "v": [3, 4]}
    assert left.left_join(right, by="k").to_arrow().column_names == ["k", "v"]


def test_semi_join_keeps_rownames(cars):
    other = Dataframe.from_pandas(pd.DataFrame({"cyl": [6]}, index=["z"]))
    result = cars.semi_join(other).rownames_to_column("model").to_arrow()
    assert result.to_pydict() == {
        "model": ["Mazda", "Hornet"],
        "mpg": [21.0, 21.4],
        "cyl": [6, 6],
    }


def test_set_operations_ignore_rownames():
    x = Dataframe.from_pandas(pd.DataFrame({"v": [1, 2]}, index=["a", "b"]))
    y = Dataframe.from_pandas(pd.DataFrame({"v": [2, 3]}, index=["c", "d"]))
    assert x.intersect(y).to_arrow().to_pydict() == {"v": [2]}
    assert x.union(y).to_arrow().to_pydict() == {"v": [1, 2, 3]}


def test_rowid_to_column(members):
    assert members.rowid_to_column().to_arrow().column("rowid").to_pylist() == [1, 2, 3]


def test_rowwise():
    df = Dataframe(pa.table({"id": [1, 2], "a": [1, 5], "b": [3, 4]}))

    mutated = df.rowwise().mutate(top=c_across(starts_with(("a", "b")), pc.max))
    assert mutated.to_arrow().to_pydict() == {"id": [1, 2], "a": [1, 5], "b": [3, 4], "top": [3, 5]}

    summarised = df.rowwise("id").summarise(top=c_across(["a", "b"], pc.max))
    assert summarised.to_arrow().to_pydict() == {"id": [1, 2], "top": [3, 5]}


def test_str(members):
    assert str(members) == (
        "name | band   \n"
        "---- | -------\n"
        "Mick | Stones \n"
        "John | Beatles\n"
        "Paul | Beatles"
    )
