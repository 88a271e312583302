from pathlib import Path

import pytest

from dexharvest.scraper.base import HarvestConfig
from fakes import API, ICONS, FakeSession


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> HarvestConfig:
    monkeypatch.chdir(tmp_path)
    return HarvestConfig(
        base_url=API,
        icon_base_url=ICONS,
        calls_per_second=0,
        max_retries=0,
        timeout=5,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
