import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so `eqsolve`, `densematrix` and `backend` are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import matplotlib

matplotlib.use("Agg")

from eqsolve import settings as settings_module


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path: Path) -> Path:
    """Point the settings store at a throwaway directory for every test."""
    data_dir = tmp_path / "data"
    data_file = data_dir / "eqsolve.json"
    monkeypatch.setattr(settings_module, "_DATA_DIR", str(data_dir))
    monkeypatch.setattr(settings_module, "_DATA_FILE", str(data_file))
    return data_file
