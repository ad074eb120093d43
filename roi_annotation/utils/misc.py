import importlib.util
import itertools
from pathlib import Path


def load_module(script_path: Path, module_name: str = "module"):
    spec = importlib.util.spec_from_file_location(module_name, script_path)
    assert spec is not None, f"Can't import module at '{script_path}'"
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def incrf(start: int = 1):
    """Endless counter starting at ``start``."""
    return itertools.count(start)


def sequential_ids(prefix: str = "roi"):
    """Id factory yielding ``roi-1``, ``roi-2``, ... for reproducible runs."""
    counter = incrf()
    return lambda: f"{prefix}-{next(counter)}"
