import pytest

from lazy_benders.benders.cuts import CutGenerator, CutState
from lazy_benders.benders.subproblem import DualSubproblem, Subproblem
from lazy_benders.benders.types import CutType, SolveStatus, SubproblemSolution
from lazy_benders.exceptions import SubproblemError
from lazy_benders.problem import ProblemData, example_instance


class ScriptedSubproblem(Subproblem):
    """Returns pre-recorded solutions and remembers the objectives it was given."""

    def __init__(self, *solutions: SubproblemSolution):
        super().__init__()
        self.solutions = list(solutions)
        self.objectives: list[tuple[float, list[float]]] = []

    def set_objective(self, constant, coefficients):
        self.objectives.append((constant, list(coefficients)))

    def solve(self):
        return self.solutions.pop(0)


def _feasibility_instance() -> ProblemData:
    # max x s.t. x + y <= 2, y >= 0
    return ProblemData.from_mapping({"c1": [1], "c2": [0], "b": [2], "A1": [[1]], "A2": [[1]]})


def test_subproblem_objective_is_reparameterized_with_candidate():
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.OPTIMAL, objective=-4.0, values=[0.0, 0.0]))
    gen = CutGenerator(example_instance(), sub)
    gen.evaluate([0.0, 1.0], -4.0)
    # const = c1.x, weights = b - A1 x
    assert sub.objectives == [(-4.0, [1.0, 0.0])]


def test_optimality_cut_from_dual_vertex():
    u = [1.0 / 3.0, 7.0 / 3.0]
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.OPTIMAL, objective=-23.0 / 3.0, values=u))
    gen = CutGenerator(example_instance(), sub)
    cut = gen.evaluate([0.0, 0.0], 1000.0)

    assert cut is not None and cut.cut_type is CutType.OPTIMALITY
    # t + (A1^T u - c1).x <= b.u
    assert cut.coeffs == pytest.approx({"t": 1.0, "x[0]": -1.0, "x[1]": -4.0})
    assert cut.rhs == pytest.approx(-23.0 / 3.0)
    assert not cut.is_satisfied({"t": 1000.0, "x[0]": 0.0, "x[1]": 0.0})
    # The optimum of the full problem survives
    assert cut.is_satisfied({"t": -4.0, "x[0]": 0.0, "x[1]": 1.0})
    assert gen.state.iterations == 1
    assert gen.state.cuts == [cut]
    assert gen.state.last_value == pytest.approx(-23.0 / 3.0)


def test_no_cut_within_tolerance():
    state = CutState()
    sub = ScriptedSubproblem(
        SubproblemSolution(SolveStatus.OPTIMAL, objective=-4.0 - 1e-7, values=[0.0, 0.0]),
        SubproblemSolution(SolveStatus.OPTIMAL, objective=-4.1, values=[0.0, 0.0]),
    )
    gen = CutGenerator(example_instance(), sub, tolerance=1e-5, state=state)
    assert gen.evaluate([0.0, 1.0], -4.0) is None
    # Beyond the tolerance the same candidate is cut off
    assert gen.evaluate([0.0, 1.0], -4.0) is not None
    assert state.iterations == 2
    assert len(state.cuts) == 1


def test_candidate_is_rounded_to_integers():
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.OPTIMAL, objective=-4.0, values=[0.0, 0.0]))
    gen = CutGenerator(example_instance(), sub)
    gen.evaluate([1e-9, 0.9999999], -4.0)
    assert sub.objectives[0] == (-4.0, [1.0, 0.0])


def test_feasibility_cut_from_ray_excludes_candidate():
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.UNBOUNDED, ray=[2.5]))
    gen = CutGenerator(_feasibility_instance(), sub)
    cut = gen.evaluate([3.0], 1000.0)

    assert cut.cut_type is CutType.FEASIBILITY
    # ray normalized to 1: x <= 2
    assert cut.coeffs == pytest.approx({"x[0]": 1.0})
    assert cut.rhs == pytest.approx(2.0)
    assert "t" not in cut.coeffs
    assert not cut.is_satisfied({"x[0]": 3.0})
    assert cut.is_satisfied({"x[0]": 2.0})
    assert gen.state.count(CutType.FEASIBILITY) == 1


def test_ray_that_does_not_separate_is_an_error():
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.UNBOUNDED, ray=[1.0]))
    gen = CutGenerator(_feasibility_instance(), sub)
    with pytest.raises(SubproblemError, match="does not separate"):
        gen.evaluate([1.0], 1000.0)


def test_zero_ray_is_an_error():
    sub = ScriptedSubproblem(SubproblemSolution(SolveStatus.UNBOUNDED, ray=[0.0]))
    gen = CutGenerator(_feasibility_instance(), sub)
    with pytest.raises(SubproblemError, match="no extreme ray"):
        gen.evaluate([3.0], 1000.0)


@pytest.mark.parametrize("status", [SolveStatus.INFEASIBLE, SolveStatus.UNKNOWN, SolveStatus.TIME_LIMIT])
def test_other_statuses_propagate(status):
    sub = ScriptedSubproblem(SubproblemSolution(status))
    gen = CutGenerator(example_instance(), sub)
    with pytest.raises(SubproblemError) as info:
        gen.evaluate([0.0, 0.0], 0.0)
    assert info.value.status is status
    assert info.value.iteration == 1


def test_candidate_length_checked():
    gen = CutGenerator(example_instance(), ScriptedSubproblem())
    with pytest.raises(ValueError, match="expected 2"):
        gen.evaluate([0.0], 0.0)


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        CutGenerator(example_instance(), ScriptedSubproblem(), tolerance=-1.0)


@pytest.mark.usefixtures("gurobi")
class TestWithDualSubproblem:
    def test_vertex_at_origin(self):
        gen = CutGenerator(example_instance(), DualSubproblem(example_instance()))
        cut = gen.evaluate([0.0, 0.0], 1000.0)
        assert cut.cut_type is CutType.OPTIMALITY
        assert cut.metadata["dual"] == pytest.approx([1.0 / 3.0, 7.0 / 3.0], abs=1e-7)
        assert cut.rhs == pytest.approx(-23.0 / 3.0)

    def test_optimal_candidate_gets_no_cut(self):
        gen = CutGenerator(example_instance(), DualSubproblem(example_instance()))
        assert gen.evaluate([0.0, 1.0], -4.0) is None
        assert gen.state.last_value == pytest.approx(-4.0)

    def test_unbounded_subproblem_gives_feasibility_cut(self):
        data = _feasibility_instance()
        gen = CutGenerator(data, DualSubproblem(data))
        cut = gen.evaluate([3.0], 1000.0)
        assert cut.cut_type is CutType.FEASIBILITY
        assert not cut.is_satisfied({"x[0]": 3.0})
        assert cut.is_satisfied({"x[0]": 2.0})
        assert cut.is_satisfied({"x[0]": 0.0})

    def test_region_is_reused_across_objectives(self):
        sub = DualSubproblem(example_instance())
        n_cons = len(sub.m.DualFeas)
        gen = CutGenerator(example_instance(), sub)
        for x in ([0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [2.0, 3.0]):
            gen.evaluate(x, 1000.0)
        assert len(sub.m.DualFeas) == n_cons
        assert "u[0]" in sub.describe()
