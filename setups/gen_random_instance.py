#!/usr/bin/env python3
"""
Generate a random problem instance config for the Benders runner.

Inputs:
  - n: number of integer variables x
  - p: number of continuous variables y
  - m: number of constraint rows

Entries of A1, A2 and b are integers drawn uniformly from [-R, R]. The
continuous costs c2 are drawn from [-R, 0] so that u = 0 is always dual
feasible and the subproblem never becomes infeasible; c1 is drawn from
[-R, R]. The integer variables get an upper bound so the undecomposed model
is bounded, and `master.params.t_upper` is set just above the largest
objective value those bounds allow.

Output is a YAML config with `run`, `master` and `problem` sections.

Examples:
  python setups/gen_random_instance.py -n 4 -p 3 -m 5 --seed 7
  python setups/gen_random_instance.py -n 10 -p 6 -m 8 -R 9 -o configs/random_10x6.yaml
"""

from __future__ import annotations

import argparse
import random
from pathlib import Path
from typing import Any, Dict, List

import yaml


def build_problem(n: int, p: int, m: int, R: int, seed: int | None = None) -> Dict[str, Any]:
    rng = random.Random(seed)

    def row(k: int) -> List[int]:
        return [rng.randint(-R, R) for _ in range(k)]

    A2 = [row(p) for _ in range(m)]
    # Keep every y column in at least one row
    for k in range(p):
        if all(r[k] == 0 for r in A2):
            A2[rng.randrange(m)][k] = rng.choice([-1, 1]) * rng.randint(1, R)
    return {
        "c1": row(n),
        "c2": [rng.randint(-R, 0) for _ in range(p)],
        "b": row(m),
        "A1": [row(n) for _ in range(m)],
        "A2": A2,
    }


def t_upper_for(c1: List[int], x_upper: int) -> float:
    """Bound on t strictly above every objective value with x <= x_upper.

    c2 <= 0 and y >= 0, so the y part never adds to the objective.
    """
    return float(sum(max(c, 0) for c in c1) * x_upper + 1)


def write_output(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=None)
    print(f"Wrote instance to: {path}")


def default_out_path(n: int, p: int, m: int, seed: int | None) -> Path:
    tag = f"_s{seed}" if seed is not None else ""
    return Path(f"configs/random_n{n}_p{p}_m{m}{tag}.yaml")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a random Benders problem instance")
    p.add_argument("-n", "--integers", type=int, required=True, help="Number of integer variables (n >= 1)")
    p.add_argument("-p", "--continuous", type=int, required=True, help="Number of continuous variables (p >= 1)")
    p.add_argument("-m", "--rows", type=int, required=True, help="Number of constraint rows (m >= 1)")
    p.add_argument("-R", "--range", dest="R", type=int, default=5, help="Entries are drawn from [-R, R]")
    p.add_argument("--x-upper", dest="x_upper", type=int, default=10, help="Upper bound on the integer variables")
    p.add_argument("--mode", choices=["lazy", "loop"], default="lazy", help="run.mode written to the config")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output YAML path. Default auto-named under configs/")
    return p.parse_args()


def main() -> int:
    args = parse_args()
    if min(args.integers, args.continuous, args.rows) < 1:
        raise SystemExit("n, p and m must be >= 1")
    if args.R < 1:
        raise SystemExit("R must be >= 1")

    problem = build_problem(args.integers, args.continuous, args.rows, args.R, seed=args.seed)
    data = {
        "run": {"mode": args.mode, "seed": args.seed if args.seed is not None else 42},
        "master": {"params": {"t_upper": t_upper_for(problem["c1"], args.x_upper), "x_upper": args.x_upper}},
        "problem": problem,
    }
    out_path = args.output if args.output is not None else default_out_path(args.integers, args.continuous, args.rows, args.seed)
    write_output(out_path, data)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
