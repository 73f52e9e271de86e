"""
Shared fixtures: a fake Wallhaven search API and image host behind
httpx.MockTransport, so no test touches the network.
"""

from typing import Dict, List, Tuple

import httpx
import pytest

SEARCH_URL = "https://search.test/api/v1/search"


class FakeUpstream:
    """Serves canned search results and image bytes, recording every request."""

    def __init__(self) -> None:
        self.results: Dict[Tuple[Tuple[str, str], ...], List[str]] = {}
        self.search_status: Dict[Tuple[Tuple[str, str], ...], int] = {}
        self.image_status: Dict[str, int] = {}
        self.requests: List[httpx.Request] = []

    def add_search(self, params: List[Tuple[str, str]], paths: List[str]) -> None:
        self.results[tuple(sorted(params))] = paths

    def fail_search(self, params: List[Tuple[str, str]], status: int) -> None:
        self.search_status[tuple(sorted(params))] = status

    def search_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "search.test"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "search.test":
            params = tuple(sorted(
                (k, v) for k, v in request.url.params.multi_items() if k != "apikey"
            ))
            if params in self.search_status:
                return httpx.Response(self.search_status[params])
            paths = self.results.get(params, [])
            return httpx.Response(200, json={
                "data": [{"id": str(i), "path": p} for i, p in enumerate(paths)],
                "meta": {"current_page": 1, "last_page": 1, "total": len(paths)},
            })

        url = str(request.url)
        status = self.image_status.get(url, 200)
        if status != 200:
            return httpx.Response(status)
        return httpx.Response(
            200,
            content=f"bytes of {request.url.path}".encode(),
            headers={"content-type": "image/jpeg"},
        )


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fake upstream with no canned results."""
    return FakeUpstream()


@pytest.fixture
def transport(upstream: FakeUpstream) -> httpx.MockTransport:
    """httpx transport routed to the fake upstream."""
    return httpx.MockTransport(upstream.handler)


@pytest.fixture
def search_url() -> str:
    """Search endpoint served by the fake upstream."""
    return SEARCH_URL
