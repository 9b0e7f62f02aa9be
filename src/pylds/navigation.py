"""Navigator capability and a URL-merging implementation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from pylds.query import encode_query_string, is_blank

_logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """Reflects a filter map into addressable application state."""

    def navigate(self, filters: Mapping[str, Any]) -> None: ...


class UrlNavigator:
    """Keeps a current URL and merges navigation params into its query.

    Parameters already in the URL but absent from the navigation map are
    preserved; blank values remove the parameter.
    """

    def __init__(self, url: str = "/") -> None:
        self.url = url
        self.history: list[str] = [url]

    @property
    def current_path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def query(self) -> dict[str, str]:
        return dict(parse_qsl(urlsplit(self.url).query))

    def navigate(self, filters: Mapping[str, Any]) -> None:
        parts = urlsplit(self.url)
        merged: dict[str, Any] = dict(parse_qsl(parts.query))
        for key, value in filters.items():
            if is_blank(value):
                merged.pop(key, None)
            else:
                merged[key] = value
        self.url = urlunsplit(parts._replace(query=encode_query_string(merged)))
        self.history.append(self.url)
        _logger.debug("Navigated to %s", self.url)
