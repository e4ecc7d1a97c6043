"""Pytest configuration for test isolation.

Settings are read from ``POTLUCK_*`` environment variables (and a local
``.env`` loaded by the CLI). A developer's shell or ``.env`` must not leak
into tests, so every test starts with those variables removed and runs from
a temporary working directory.
"""

from __future__ import annotations

from pathlib import Path

import pytest

_ENV_VARS = (
    "POTLUCK_SHEET_CSV_URL",
    "POTLUCK_SCRIPT_URL",
    "POTLUCK_REFRESH_INTERVAL",
    "POTLUCK_RESYNC_DELAY",
    "POTLUCK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the CWD; point it at an empty directory.
    monkeypatch.chdir(tmp_path)
