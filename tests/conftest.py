import pytest

from check_mem.config import get_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    monkeypatch.delenv("CHECK_MEM_UNIT", raising=False)
    monkeypatch.delenv("CHECK_MEM_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
