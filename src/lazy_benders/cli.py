from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import MODES, BendersConfig, load_config
from .exceptions import BendersError
from .logging_config import setup_logging
from .benders.solver import BendersRunResult, BendersSolver
from .benders.types import CutType
from .monolithic import solve_monolithic, violated_cuts


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lazy-benders",
        description="Benders decomposition through lazy-constraint callbacks",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=Path("configs/default.yaml"),
        help="Path to YAML config. Default: configs/default.yaml",
    )
    sub = p.add_subparsers(dest="cmd")
    sub.required = False

    def _run_opts(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--mode", choices=MODES, default=None, help="Override run.mode from the config")
        sp.add_argument("--tolerance", type=float, default=None, help="Override run.tolerance from the config")
        sp.add_argument("--log-level", dest="log_level", default=None, help="Override run.log_level")

    _run_opts(sub.add_parser("run", help="Solve with Benders decomposition"))
    _run_opts(sub.add_parser("verify", help="Solve decomposed and undecomposed models and check every cut"))
    sub.add_parser("validate", help="Validate config and problem data")
    sub.add_parser("info", help="Show current configuration")
    return p


def _load(args) -> BendersConfig:
    cfg = load_config(args.config)
    if getattr(args, "mode", None):
        cfg.run.mode = args.mode
    if getattr(args, "tolerance", None) is not None:
        if args.tolerance < 0.0:
            raise ValueError("--tolerance must be non-negative")
        cfg.run.tolerance = float(args.tolerance)
    if getattr(args, "log_level", None):
        cfg.run.log_level = str(args.log_level)
    return cfg


def _print_cfg(cfg: BendersConfig) -> None:
    d = cfg.problem
    print("Run configuration:")
    print(
        f"  run: mode={cfg.run.mode} tol={cfg.run.tolerance} max_iterations={cfg.run.max_iterations} "
        f"time_limit_s={cfg.run.time_limit_s} seed={cfg.run.seed}"
    )
    print(f"  master: solver={cfg.master.solver} options={cfg.master.solver_options} params={cfg.master.params}")
    print(f"  subproblem: solver={cfg.subproblem.solver} options={cfg.subproblem.solver_options}")
    print(f"  problem: n_x={d.n_x} n_y={d.n_y} rows={d.n_rows}")
    print(f"    c1={list(d.c1)} c2={list(d.c2)} b={list(d.b)}")
    print(f"    A1={[list(r) for r in d.A1]}")
    print(f"    A2={[list(r) for r in d.A2]}")


def _print_result(result: BendersRunResult) -> None:
    x = "-" if result.x is None else "[" + ", ".join(f"{v:.6g}" for v in result.x) + "]"
    t = "-" if result.t is None else f"{result.t:.6g}"
    print(
        f"\nResult: status={result.status.value} t={t} x={x} iterations={result.iterations} "
        f"cuts={len(result.cuts)} (optimality={result.count(CutType.OPTIMALITY)} "
        f"feasibility={result.count(CutType.FEASIBILITY)}) time={result.elapsed_s:.3f}s"
    )
    for cut in result.cuts:
        print(f"  [{cut.iteration}] {cut}")


def _solve(cfg: BendersConfig) -> BendersRunResult | None:
    try:
        return BendersSolver.from_config(cfg).run()
    except BendersError as exc:
        print(f"Benders run failed: {exc}")
        return None


def cmd_run(args) -> int:
    cfg = _load(args)
    setup_logging(cfg.run.log_level)
    _print_cfg(cfg)
    result = _solve(cfg)
    if result is None:
        return 1
    _print_result(result)
    return 0 if result.status.has_solution else 1


def cmd_verify(args) -> int:
    cfg = _load(args)
    setup_logging(cfg.run.log_level)
    result = _solve(cfg)
    if result is None:
        return 1
    _print_result(result)
    mono = solve_monolithic(
        cfg.problem,
        solver=cfg.master.solver,
        solver_options=cfg.master.solver_options,
        x_upper=cfg.master.params.get("x_upper"),
    )
    print(f"\nUndecomposed model: status={mono.status.value} objective={mono.objective}")
    if result.status != mono.status:
        print(f"MISMATCH: decomposition status {result.status.value} vs undecomposed {mono.status.value}")
        return 1
    if not mono.status.has_solution:
        print("Verification OK.")
        return 0
    ok = True
    if abs(float(result.t) - float(mono.objective)) > 1e-6 * (1.0 + abs(float(mono.objective))):
        print(f"MISMATCH: t={result.t:.6g} vs objective={mono.objective:.6g}")
        ok = False
    bad = violated_cuts(result.cuts, mono.point())
    for cut in bad:
        print(f"VIOLATED at undecomposed optimum: {cut}")
    if bad:
        ok = False
    print("Verification OK." if ok else "Verification FAILED.")
    return 0 if ok else 1


def cmd_validate(args) -> int:
    try:
        cfg = load_config(args.config)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        return 1
    print(f"Config OK. Problem with {cfg.problem.n_x} integer and {cfg.problem.n_y} continuous variables, {cfg.problem.n_rows} rows.")
    return 0


def cmd_info(args) -> int:
    _print_cfg(load_config(args.config))
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.cmd == "validate":
        return cmd_validate(args)
    try:
        if args.cmd in (None, "run"):
            return cmd_run(args)
        if args.cmd == "verify":
            return cmd_verify(args)
        if args.cmd == "info":
            return cmd_info(args)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2
    except RuntimeError as exc:
        # Solver missing or unlicensed
        print(f"Solver error: {exc}")
        return 3
    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
