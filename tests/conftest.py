from __future__ import annotations

import copy
from typing import Any

import pytest

from doctrans.config import API_KEY_ENV_VAR, CONFIG_ENV_VAR, DEFAULT_CONFIG, PROVIDER_ENV_VAR


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (CONFIG_ENV_VAR, PROVIDER_ENV_VAR, API_KEY_ENV_VAR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)
