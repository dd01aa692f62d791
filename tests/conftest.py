from pathlib import Path

import pytest

from lazy_benders.benders.persistent import solver_available
from lazy_benders.config import load_config

CONFIGS = Path(__file__).resolve().parents[1] / "configs"


@pytest.fixture
def gurobi():
    if not solver_available("gurobi_persistent"):
        pytest.skip("gurobi_persistent is not available")


@pytest.fixture
def default_cfg():
    return load_config(CONFIGS / "default.yaml")


@pytest.fixture
def feasibility_cfg():
    return load_config(CONFIGS / "feasibility_demo.yaml")
