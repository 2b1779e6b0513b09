from datetime import datetime, timezone

import pytest

from countries.repository import CountryRepository


@pytest.fixture(autouse=True)
def summary_path(settings, tmp_path):
    settings.CACHE_DIR = str(tmp_path / "cache")
    settings.SUMMARY_IMAGE_PATH = str(tmp_path / "cache" / "summary.png")
    settings.COUNTRIES_API_URL = "https://restcountries.com/v2/all"
    settings.EXCHANGE_API_URL = "https://open.er-api.com/v6/latest/USD"
    return settings.SUMMARY_IMAGE_PATH


@pytest.fixture
def repository():
    return CountryRepository()


@pytest.fixture
def refreshed_at():
    return datetime(2025, 10, 22, 12, 30, tzinfo=timezone.utc)
