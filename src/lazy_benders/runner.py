from __future__ import annotations

from pathlib import Path

from .config import load_config
from .logging_config import setup_logging
from .benders.solver import BendersSolver, BendersRunResult


def _default_config_path() -> Path:
    """Best-effort discovery of the default YAML config.

    Tries `configs/default.yaml` in the CWD, then relative to the repo root;
    falls back to the CWD path (missing file means built-in defaults).
    """
    cwd_path = Path("configs/default.yaml")
    if cwd_path.exists():
        return cwd_path
    # src/lazy_benders/runner.py -> repo root
    repo_path = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"
    if repo_path.exists():
        return repo_path
    return cwd_path


def run(config_path: str | Path | None = None, mode: str | None = None) -> BendersRunResult:
    """Run the Benders solver with options read from YAML.

    `mode` overrides `run.mode` from the file when given.
    """
    cfg_path = Path(config_path) if config_path is not None else _default_config_path()
    cfg = load_config(cfg_path)
    if mode is not None:
        cfg.run.mode = mode
    setup_logging(cfg.run.log_level)
    return BendersSolver.from_config(cfg).run()


__all__ = ["run"]
