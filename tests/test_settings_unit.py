import json
import math
from pathlib import Path

import pytest

from eqsolve import settings


def test_defaults_when_nothing_stored(isolated_settings: Path) -> None:
    values = settings.get_settings()
    assert values == settings.DEFAULT_SETTINGS
    assert values["lower"] == -math.inf
    assert not isolated_settings.exists()


def test_save_merges_over_defaults(isolated_settings: Path) -> None:
    settings.save_settings({"margin": 1e-6, "iter_limit": 25})
    values = settings.get_settings()
    assert values["margin"] == 1e-6
    assert values["iter_limit"] == 25
    assert values["guess"] == 1.0

    stored = json.loads(isolated_settings.read_text(encoding="utf-8"))
    assert stored == {"settings": {"margin": 1e-6, "iter_limit": 25}}


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown setting"):
        settings.save_settings({"theme": "dark"})


def test_reset_forgets_values() -> None:
    settings.save_settings({"delimiter": "; "})
    settings.reset_settings()
    assert settings.get_settings()["delimiter"] == "\n"


def test_corrupt_file_falls_back_to_defaults(isolated_settings: Path) -> None:
    isolated_settings.parent.mkdir(parents=True)
    isolated_settings.write_text("{not json", encoding="utf-8")
    assert settings.get_settings() == settings.DEFAULT_SETTINGS
