from __future__ import annotations

import pytest

from pylds.config import HttpConfig, LdsConfig, PaginationConfig
from pylds.exceptions import LdsConfigError


def test_defaults() -> None:
    config = LdsConfig()

    assert config.storage == "session"
    assert config.save_state is True
    assert config.pagination == PaginationConfig(enabled=True, page_size=10, button_count=5)
    assert config.http.method == "GET"


def test_merged_merges_sections_field_by_field() -> None:
    base = LdsConfig(pagination=PaginationConfig(page_size=25, button_count=7))

    merged = base.merged(use_routing=True, pagination={"page_size": 50, "enabled": None}, http={"method": "post"})

    assert merged.use_routing is True
    assert merged.pagination == PaginationConfig(enabled=True, page_size=50, button_count=7)
    assert merged.http == HttpConfig(method="POST")
    assert base.pagination.page_size == 25


def test_merged_rejects_unknown_options() -> None:
    with pytest.raises(LdsConfigError):
        LdsConfig().merged(colour="blue")
    with pytest.raises(LdsConfigError):
        LdsConfig().merged(sort={"direction": "asc"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"storage": "cloud"},
        {"debug_mode": 4},
        {"http": {"method": "PUT"}},
        {"sort": {"default_dir": "up"}},
    ],
)
def test_invalid_values_raise(kwargs: dict[str, object]) -> None:
    with pytest.raises(LdsConfigError):
        LdsConfig().merged(**kwargs)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LDS_USE_ROUTING", "yes")
    monkeypatch.setenv("LDS_SAVE_STATE", "0")
    monkeypatch.setenv("LDS_STORAGE", "LOCAL")
    monkeypatch.setenv("LDS_STORAGE_DIR", "/tmp/lds")
    monkeypatch.setenv("LDS_DEBUG_MODE", "2")
    monkeypatch.setenv("LDS_HTTP_METHOD", "post")
    monkeypatch.setenv("LDS_PAGE_SIZE", "20")

    config = LdsConfig.from_env(debug_mode=1)

    assert config.use_routing is True
    assert config.save_state is False
    assert config.storage == "local"
    assert config.storage_dir == "/tmp/lds"
    assert config.debug_mode == 1
    assert config.http.method == "POST"
    assert config.pagination.page_size == 20


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LDS_PAGE_SIZE", "many")
    with pytest.raises(LdsConfigError):
        LdsConfig.from_env()
