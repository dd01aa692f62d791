import pytest

from lazy_benders.benders.types import Cut, CutType, SolveStatus
from lazy_benders.monolithic import MonolithicResult, build_monolithic, solve_monolithic, violated_cuts
from lazy_benders.problem import example_instance


def test_build_monolithic_structure():
    m = build_monolithic(example_instance(), x_upper=4)
    assert len(m.x) == 2 and len(m.y) == 2
    assert len(m.Rows) == 2
    assert m.x[0].ub == 4


def test_point_requires_solution():
    with pytest.raises(ValueError, match="INFEASIBLE"):
        MonolithicResult(status=SolveStatus.INFEASIBLE).point()
    res = MonolithicResult(status=SolveStatus.OPTIMAL, objective=-4.0, x=[0.0, 1.0], y=[0.0, 0.0])
    assert res.point() == {"x[0]": 0.0, "x[1]": 1.0, "t": -4.0}


def test_violated_cuts():
    point = {"x[0]": 0.0, "x[1]": 1.0, "t": -4.0}
    sound = Cut(name="a", cut_type=CutType.OPTIMALITY, coeffs={"t": 1.0, "x[0]": -1.0, "x[1]": -4.0}, rhs=-23.0 / 3.0)
    unsound = Cut(name="b", cut_type=CutType.FEASIBILITY, coeffs={"x[1]": 1.0}, rhs=0.0)
    assert violated_cuts([sound, unsound], point) == [unsound]


@pytest.mark.usefixtures("gurobi")
def test_solve_example():
    res = solve_monolithic(example_instance())
    assert res.status is SolveStatus.OPTIMAL
    assert res.objective == pytest.approx(-4.0, abs=1e-6)
    assert res.x == pytest.approx([0.0, 1.0], abs=1e-6)
