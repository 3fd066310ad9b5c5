"""
Pytest configuration and fixtures for Candela tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from unittest.mock import patch

from candela.config import Config
from candela.patterns.cache import MetricCache
from candela.patterns.evaluator import PatternEvaluator
from candela.patterns.metrics import MetricLibrary


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def mock_env_vars() -> Generator[dict, None, None]:
    """Mock environment variables for testing."""
    test_env = {
        "CANDELA_CACHE_CAPACITY": "7",
        "LOG_LEVEL": "DEBUG",
        "LOG_MAX_SIZE": "5MB",
        "LOG_BACKUP_COUNT": "2",
        "LOG_CONSOLE": "false",
    }

    with patch.dict(os.environ, test_env, clear=False):
        yield test_env


@pytest.fixture
def test_config(mock_env_vars: dict) -> Config:
    """Create a test configuration instance."""
    return Config.load_from_env()


@pytest.fixture
def metric_cache() -> MetricCache:
    return MetricCache()


@pytest.fixture
def metrics(metric_cache: MetricCache) -> MetricLibrary:
    return MetricLibrary(metric_cache)


@pytest.fixture
def evaluator() -> PatternEvaluator:
    """Evaluator over the built-in catalog with a fresh cache."""
    return PatternEvaluator()
