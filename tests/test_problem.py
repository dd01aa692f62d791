import pytest

from lazy_benders.problem import ProblemData, example_instance, matvec, rmatvec


def test_example_dimensions():
    d = example_instance()
    assert (d.n_x, d.n_y, d.n_rows) == (2, 2, 2)


def test_residual_is_b_minus_A1x():
    d = example_instance()
    assert d.residual([0, 1]) == [1.0, 0.0]
    assert d.residual([0, 0]) == [-2.0, -3.0]


def test_matvec_and_transpose():
    A = [[1, 2, 3], [4, 5, 6]]
    assert matvec(A, [1, 0, -1]) == [-2.0, -2.0]
    assert rmatvec(A, [1, -1]) == [-3.0, -3.0, -3.0]


@pytest.mark.parametrize(
    "raw, match",
    [
        ({"c1": [1], "c2": [1], "b": [1, 2], "A1": [[1]], "A2": [[1]]}, "rows to match b"),
        ({"c1": [1, 2], "c2": [1], "b": [1], "A1": [[1]], "A2": [[1]]}, "columns to match c1"),
        ({"c1": [1], "c2": [1], "b": [1], "A1": [[1]], "A2": [[1, 2]]}, "columns to match c2"),
        ({"c1": [1], "c2": [1], "b": [1], "A1": [[1]]}, "missing: A2"),
        ({"c1": [1], "c2": [1], "b": [float("nan")], "A1": [[1]], "A2": [[1]]}, "non-finite"),
        ({"c1": [1], "c2": [1], "b": [1, 1], "A1": [[1], [1]], "A2": [[1], [1, 2]]}, "different lengths"),
    ],
)
def test_invalid_data(raw, match):
    with pytest.raises(ValueError, match=match):
        ProblemData.from_mapping(raw)


def test_zero_column_with_profit_has_empty_dual_region():
    with pytest.raises(ValueError, match="dual subproblem is infeasible"):
        ProblemData.from_mapping({"c1": [1], "c2": [1, 2], "b": [1], "A1": [[1]], "A2": [[1, 0]]})
    # A zero column is fine when y[k] only costs
    d = ProblemData.from_mapping({"c1": [1], "c2": [1, -2], "b": [1], "A1": [[1]], "A2": [[1, 0]]})
    assert d.n_y == 2


def test_as_dict_round_trip():
    d = example_instance()
    assert ProblemData.from_mapping(d.as_dict()) == d
