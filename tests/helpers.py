"""Test doubles for the aiohttp session and the expected tool registry."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

BASE_URL = "https://ckan.example.org/api/3/action"


class FakeResponse:
    """Async context manager standing in for ``aiohttp.ClientResponse``."""

    def __init__(self, status: int = 200, body: Any = None, text: Optional[str] = None,
                 reason: str = "OK"):
        if text is None:
            text = json.dumps({"success": True, "result": []} if body is None else body)
        self.status = status
        self.reason = reason
        self.url = ""
        self._raw = text.encode("utf-8")

    async def read(self) -> bytes:
        return self._raw

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@dataclass
class FakeCall:
    method: str
    url: str
    kwargs: Dict[str, Any]

    @property
    def action(self) -> str:
        return self.url.rsplit("/", 1)[-1]

    @property
    def params(self) -> Dict[str, Any]:
        return self.kwargs.get("params", {})

    @property
    def json(self) -> Dict[str, Any]:
        return self.kwargs.get("json", {})

    @property
    def headers(self) -> Dict[str, str]:
        return self.kwargs.get("headers", {})

    @property
    def timeout(self) -> float:
        return self.kwargs["timeout"].total


@dataclass
class FakeSession:
    """Records every request and replays queued responses (or raises ``error``)."""

    responses: List[FakeResponse] = field(default_factory=list)
    calls: List[FakeCall] = field(default_factory=list)
    error: Optional[BaseException] = None
    closed: bool = False

    def queue(self, *responses: FakeResponse) -> None:
        self.responses.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(FakeCall(method, url, kwargs))
        if self.error is not None:
            raise self.error
        response = self.responses.pop(0) if self.responses else FakeResponse()
        query = urlencode(kwargs.get("params") or {})
        response.url = f"{url}?{query}" if query else url
        return response

    async def close(self) -> None:
        self.closed = True



EXPECTED_TOOLS = [
    "package_search",
    "package_show",
    "package_list",
    "current_package_list_with_resources",
    "package_autocomplete",
    "package_activity_list",
    "recently_changed_packages_activity_list",
    "organization_list",
    "organization_show",
    "group_list",
    "group_show",
    "tag_list",
    "tag_autocomplete",
    "license_list",
    "vocabulary_list",
    "vocabulary_show",
    "tag_show",
    "datastore_info",
    "datastore_search",
    "datastore_search_sql",
    "resource_show",
    "resource_view_show",
    "resource_view_list",
    "status_show",
    "help_show",
]
