def test_imports():
    import lazy_benders as m
    from lazy_benders.benders.solver import BendersSolver
    from lazy_benders.benders.master import MasterProblem
    from lazy_benders.benders.subproblem import Subproblem
    from lazy_benders.benders.cuts import CutGenerator
    from lazy_benders.config import load_config

    assert hasattr(m, "__version__")
    assert callable(m.run)
    assert callable(load_config)
    # Abstract base classes import
    assert MasterProblem
    assert Subproblem
    assert BendersSolver
    assert CutGenerator
