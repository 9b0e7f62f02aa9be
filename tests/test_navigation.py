from __future__ import annotations

from pylds.navigation import UrlNavigator


def test_navigate_merges_into_existing_query() -> None:
    navigator = UrlNavigator("/orders?tab=2&q=old")

    navigator.navigate({"q": "new value", "pageIndex": 3})

    assert navigator.url == "/orders?tab=2&q=new%20value&pageIndex=3"
    assert navigator.query == {"tab": "2", "q": "new value", "pageIndex": "3"}
    assert navigator.current_path == "/orders"


def test_blank_values_remove_params() -> None:
    navigator = UrlNavigator("/orders?tab=2&q=old")

    navigator.navigate({"q": "", "tab": None})

    assert navigator.url == "/orders"
    assert navigator.query == {}


def test_history_records_each_navigation() -> None:
    navigator = UrlNavigator()

    navigator.navigate({"a": 1})
    navigator.navigate({"b": True})

    assert navigator.history == ["/", "/?a=1", "/?a=1&b=true"]
