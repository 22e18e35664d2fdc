# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import paperatlas` works without installing.
"""

import json
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def atom_sample() -> str:
    return (FIXTURES_DIR / "atom_sample.xml").read_text(encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """A data dir holding a two-topic taxonomy and a ranking config."""
    root = tmp_path / "data"
    (root / "taxonomy").mkdir(parents=True)
    (root / "ranking").mkdir(parents=True)
    topics = [
        {
            "id": "distribution-shift",
            "title": "Distribution Shift",
            "query": 'all:"distribution shift"',
            "keywords_any": ["invariant", "distribution shift"],
            "category_whitelist": ["cs.LG"],
        },
        {
            "id": "diffusion-models",
            "title": "Diffusion Models",
            "query": 'all:"diffusion model"',
            "keywords_any": ["diffusion"],
            "exclude_keywords": ["heat diffusion"],
        },
    ]
    ranking = {
        "version": "2026-01",
        "weights": {"recency": 0.6, "momentum": 0.2, "cross_list": 0.1, "churn": 0.1},
        "recency_half_life_days": 14,
        "momentum_window_days": 7,
        "baseline_window_days": 14,
    }
    (root / "taxonomy" / "topics.json").write_text(json.dumps(topics), encoding="utf-8")
    (root / "ranking" / "config.json").write_text(json.dumps(ranking), encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    """Keep file logs out of the working tree."""
    from paperatlas.utils.logging_config import Logger

    Logger.close()
    monkeypatch.setenv("PAPERATLAS_LOG_DIR", str(tmp_path / "logs"))
    yield
    Logger.close()
