from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> Path | None:
    """Configure root logging for a run.

    At DEBUG level (or when `log_file` is given) records are also written to a
    file; without an explicit path a timestamped file under `Report/` is used.
    Returns the log file path, if any.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=FORMAT)
    logging.getLogger().setLevel(lvl)

    if log_file is None and lvl > logging.DEBUG:
        return None
    if log_file is None:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path("Report") / f"benders_debug_{ts}.txt"
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path, mode="w", encoding="utf-8")
    fh.setLevel(lvl)
    fh.setFormatter(logging.Formatter(FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).info("Writing %s logs to %s", logging.getLevelName(lvl), path)
    return path


__all__ = ["setup_logging"]
