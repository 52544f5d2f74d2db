# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
"""Global test fixtures for the sidecar host.

Provides filesystem isolation and resets the module-level singletons
(config cache, supervisor) between tests.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog

from tests.helpers.filesystem import create_test_data_dir

logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated runtime data directory.

    - Redirects ``PSA_DATA_DIR`` to a temp directory
    - Clears ``PSA_RESOURCE_DIR`` / ``PSA_LOG_LEVEL`` from the environment
    - Resets config cache, supervisor singleton and structlog context
    """
    from sidecar.config import invalidate_cache
    from sidecar.supervisor.manager import reset_supervisor

    d = create_test_data_dir(tmp_path)
    monkeypatch.setenv("PSA_DATA_DIR", str(d))
    monkeypatch.delenv("PSA_RESOURCE_DIR", raising=False)
    monkeypatch.delenv("PSA_LOG_LEVEL", raising=False)

    invalidate_cache()
    reset_supervisor()

    yield d

    invalidate_cache()
    reset_supervisor()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def restore_root_logging():
    """Restore root logger handlers/level after tests that call setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
