import pytest

from lazy_benders.config import BendersConfig, _eval_expr, _resolve_param_expressions, load_config
from lazy_benders.problem import example_instance


def test_defaults_without_file(tmp_path):
    assert isinstance(load_config(None), BendersConfig)
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.run.mode == "lazy"
    assert cfg.run.tolerance == pytest.approx(1e-5)
    assert cfg.master.solver == "gurobi_persistent"
    assert cfg.master.params["t_upper"] == pytest.approx(1000.0)
    assert cfg.problem == example_instance()


def test_default_yaml(default_cfg):
    cfg = default_cfg
    assert cfg.run.mode == "lazy"
    assert cfg.run.seed == 42
    assert cfg.master.solver_options["Threads"] == 1
    assert cfg.master.params["x_upper"] is None
    assert cfg.problem.c1 == (-1.0, -4.0)
    assert cfg.problem.A2 == ((1.0, -2.0), (-1.0, -1.0))


def test_feasibility_demo_resolves_expressions(feasibility_cfg):
    assert feasibility_cfg.run.mode == "loop"
    assert feasibility_cfg.master.params["t_upper"] == pytest.approx(1000.0)
    assert feasibility_cfg.master.params["x_upper"] == 5
    # Options not in the file keep their defaults
    assert feasibility_cfg.master.solver_options["MIPGap"] == 0.0


def test_problem_entries_accept_expressions(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text(
        "problem:\n"
        "  c1: ['-1/2', 3]\n"
        "  c2: [0]\n"
        "  b: ['2 * 3']\n"
        "  A1: [[1, '-(1 + 1)']]\n"
        "  A2: [[1]]\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.problem.c1 == (-0.5, 3.0)
    assert cfg.problem.b == (6.0,)
    assert cfg.problem.A1 == ((1.0, -2.0),)


def test_invalid_mode_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("run:\n  mode: parallel\n", encoding="utf-8")
    with pytest.raises(ValueError, match="run.mode"):
        load_config(p)


def test_negative_tolerance_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("run:\n  tolerance: -1.0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="tolerance"):
        load_config(p)


def test_non_yaml_rejected(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError, match="YAML"):
        load_config(p)


def test_eval_expr_names_and_safety():
    assert _eval_expr("10 * M + 1", {"M": 5}) == 51
    assert _eval_expr("-(2 ** 3)", {}) == -8
    with pytest.raises(ValueError):
        _eval_expr("__import__('os')", {})
    with pytest.raises(ValueError, match="not a numeric parameter"):
        _eval_expr("K + 1", {})
    with pytest.raises(ValueError, match="not a numeric parameter"):
        _eval_expr("M * 2", {"M": "gurobi"})


def test_resolve_param_expressions_refers_to_siblings():
    out = _resolve_param_expressions({"M": 100, "t_upper": "10 * M", "name": "gurobi"})
    assert out["t_upper"] == 1000
    assert out["name"] == "gurobi"
    with pytest.raises(ValueError, match="cannot evaluate"):
        _resolve_param_expressions({"t_upper": "10 * N"})
