from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
import ast
import operator as _op

import yaml

from .problem import ProblemData, example_instance


MODES = ("lazy", "loop")


@dataclass(slots=True)
class RunConfig:
    # "lazy": cuts from a MIPSOL callback; "loop": classic master/subproblem iterations
    mode: str = "lazy"
    # Relative tolerance when comparing subproblem value with the master proxy t
    tolerance: float = 1e-5
    max_iterations: int = 100
    time_limit_s: int = 600
    log_level: str = "INFO"
    seed: int = 42


@dataclass(slots=True)
class ComponentConfig:
    solver: str = "gurobi_persistent"
    solver_options: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)


def _default_master() -> ComponentConfig:
    return ComponentConfig(solver_options={"Threads": 1, "MIPGap": 0.0}, params={"t_upper": 1000.0})


def _default_subproblem() -> ComponentConfig:
    return ComponentConfig(solver_options={"Threads": 1})


@dataclass(slots=True)
class BendersConfig:
    run: RunConfig = field(default_factory=RunConfig)
    master: ComponentConfig = field(default_factory=_default_master)
    subproblem: ComponentConfig = field(default_factory=_default_subproblem)
    problem: ProblemData = field(default_factory=example_instance)


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


_BIN_OPS = {
    ast.Add: _op.add,
    ast.Sub: _op.sub,
    ast.Mult: _op.mul,
    ast.Div: _op.truediv,
    ast.FloorDiv: _op.floordiv,
    ast.Mod: _op.mod,
    ast.Pow: _op.pow,
}
_UNARY_OPS = {ast.UAdd: _op.pos, ast.USub: _op.neg}


def _eval_node(node: ast.AST, names: Mapping[str, Any]) -> float | int:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body, names)
    if isinstance(node, ast.Constant) and _is_number(node.value):
        return node.value
    if isinstance(node, ast.Name):
        value = names.get(node.id)
        if not _is_number(value):
            raise ValueError(f"'{node.id}' is not a numeric parameter")
        return value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        return _BIN_OPS[type(node.op)](_eval_node(node.left, names), _eval_node(node.right, names))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand, names))
    raise ValueError(f"unsupported element {type(node).__name__}")


def _eval_expr(expr: str, names: Mapping[str, Any]) -> float | int:
    """Evaluate arithmetic such as "10 * M" or "-1/3" over numeric `names`."""
    return _eval_node(ast.parse(expr, mode="eval"), names)


def _resolve_value(v: Any, names: Mapping[str, Any]) -> Any:
    if isinstance(v, str):
        s = v.strip()
        try:
            return float(s)
        except ValueError:
            pass
        if any(ch in s for ch in "+-*/()%"):
            try:
                return _eval_expr(s, names)
            except (SyntaxError, NameError, ValueError, ZeroDivisionError) as exc:
                raise ValueError(f"cannot evaluate expression '{s}': {exc}") from exc
        return v
    if isinstance(v, list):
        return [_resolve_value(item, names) for item in v]
    return v


def _resolve_param_expressions(params: dict[str, Any]) -> dict[str, Any]:
    """Resolve arithmetic string expressions within a parameter dict.

    Strings that look like math expressions (e.g. "10 * 100", "-1/3") are
    evaluated, nested lists included. Names refer to numeric keys of the same
    dict, e.g. {"M": 100, "t_upper": "10 * M"}.
    """
    if not params:
        return params
    names = {k: v for k, v in params.items() if _is_number(v)}
    return {k: _resolve_value(v, names) for k, v in params.items()}


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level YAML document must be a mapping")
    return data


def _component(raw: Mapping[str, Any], default: ComponentConfig) -> ComponentConfig:
    opts = dict(default.solver_options)
    opts.update(_as_dict(raw.get("solver_options")))
    params = dict(default.params)
    params.update(_resolve_param_expressions(_as_dict(raw.get("params"))))
    return ComponentConfig(
        solver=str(raw.get("solver", default.solver)),
        solver_options=opts,
        params=params,
    )


def load_config(path: str | Path | None) -> BendersConfig:
    """Load configuration from a YAML file or return defaults.

    Sections: `run`, `master`, `subproblem`, `problem`. Unknown keys are
    ignored; a missing `problem` section falls back to the built-in example
    instance.
    """
    if path is None:
        return BendersConfig()
    p = Path(path)
    if not p.exists():
        # Defaults let the CLI keep going without a config file
        return BendersConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    raw = _load_yaml(p)
    run = _as_dict(raw.get("run"))

    mode = str(run.get("mode", "lazy")).lower()
    if mode not in MODES:
        raise ValueError(f"run.mode must be one of {MODES}, got '{mode}'")
    run_cfg = RunConfig(
        mode=mode,
        tolerance=float(run.get("tolerance", 1e-5)),
        max_iterations=int(run.get("max_iterations", 100)),
        time_limit_s=int(run.get("time_limit_s", 600)),
        log_level=str(run.get("log_level", "INFO")),
        seed=int(run.get("seed", 42)),
    )
    if run_cfg.tolerance < 0.0:
        raise ValueError("run.tolerance must be non-negative")

    master_cfg = _component(_as_dict(raw.get("master")), _default_master())
    sub_cfg = _component(_as_dict(raw.get("subproblem")), _default_subproblem())

    problem_raw = _as_dict(raw.get("problem"))
    if problem_raw:
        problem = ProblemData.from_mapping(_resolve_param_expressions(problem_raw))
    else:
        problem = example_instance()
    return BendersConfig(run=run_cfg, master=master_cfg, subproblem=sub_cfg, problem=problem)


__all__ = ["MODES", "RunConfig", "ComponentConfig", "BendersConfig", "load_config"]
