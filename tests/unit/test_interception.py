"""Unit tests for request classification and interception."""

import pytest
from unittest.mock import AsyncMock

from netcapture.capture.config import InterceptionRules
from netcapture.capture.interception import RequestClassifier, RequestInterceptor, Verdict


class TestRequestClassifier:
    """Tests for RequestClassifier."""

    @pytest.fixture
    def classifier(self):
        return RequestClassifier()

    @pytest.mark.parametrize("resource_type", ["image", "stylesheet", "font"])
    def test_blocked_resource_types(self, classifier, resource_type):
        assert classifier.classify(resource_type, "https://cdn.example.com/asset") == Verdict.ABORT

    @pytest.mark.parametrize("url", [
        "https://cdn.example.com/logo.png",
        "https://cdn.example.com/photo.JPG",
        "https://cdn.example.com/site.css",
        "https://cdn.example.com/font.woff2",
        "https://cdn.example.com/icon.svg?v=3",
    ])
    def test_blocked_extensions(self, classifier, url):
        assert classifier.classify("xhr", url) == Verdict.ABORT

    @pytest.mark.parametrize("url", [
        "https://www.google-analytics.com/g/collect?v=2",
        "https://www.googletagmanager.com/gtag/js?id=G-XXXX",
    ])
    def test_trackers_blocked(self, classifier, url):
        assert classifier.classify("script", url) == Verdict.ABORT

    def test_extension_only_in_query_not_blocked(self, classifier):
        assert classifier.classify("xhr", "https://api.example.com/thumb?name=a.png") == Verdict.RECORD

    def test_record_without_filter(self, classifier):
        assert classifier.classify("document", "https://example.com/") == Verdict.RECORD
        assert classifier.classify("xhr", "https://api.example.com/v1/items", "POST") == Verdict.RECORD

    def test_filter_match(self):
        classifier = RequestClassifier(filter_substring="m3u8")

        assert classifier.classify("xhr", "https://video.example.com/master.m3u8") == Verdict.RECORD
        assert classifier.classify("xhr", "https://api.example.com/config") == Verdict.CONTINUE

    def test_blocking_wins_over_filter(self):
        classifier = RequestClassifier(filter_substring="example")

        assert classifier.classify("image", "https://example.com/pixel") == Verdict.ABORT
        assert classifier.classify("xhr", "https://example.com/logo.png") == Verdict.ABORT
        assert classifier.classify("script", "https://googletagmanager.com/?ref=example") == Verdict.ABORT

    def test_empty_filter_records_everything(self):
        classifier = RequestClassifier(filter_substring="")
        assert classifier.classify("xhr", "https://api.example.com/") == Verdict.RECORD

    def test_idempotent(self, classifier):
        args = ("fetch", "https://api.example.com/items", "GET", {"accept": "*/*"})
        assert classifier.classify(*args) == classifier.classify(*args)

    def test_custom_rules(self):
        rules = InterceptionRules(
            blocked_resource_types=["media"],
            blocked_extensions=[".mp4"],
            tracking_markers=["doubleclick"],
        )
        classifier = RequestClassifier(rules)

        assert classifier.classify("media", "https://example.com/stream") == Verdict.ABORT
        assert classifier.classify("xhr", "https://example.com/clip.mp4") == Verdict.ABORT
        assert classifier.classify("script", "https://ad.doubleclick.net/x") == Verdict.ABORT
        assert classifier.classify("image", "https://example.com/a") == Verdict.RECORD


class TestRequestInterceptor:
    """Tests for RequestInterceptor."""

    @pytest.fixture
    def interceptor(self):
        return RequestInterceptor(RequestClassifier())

    @pytest.mark.asyncio
    async def test_attach_registers_route(self, interceptor):
        page = AsyncMock()
        await interceptor.attach(page)

        page.route.assert_awaited_once_with("**/*", interceptor.handle_route)

    @pytest.mark.asyncio
    async def test_recorded_request_continues(self, interceptor, route_factory):
        route = route_factory("https://api.example.com/data", method="POST", headers={"x-token": "1"})

        await interceptor.handle_route(route)

        route.continue_.assert_awaited_once()
        route.abort.assert_not_awaited()
        assert len(interceptor.records) == 1
        record = interceptor.records[0]
        assert record.url == "https://api.example.com/data"
        assert record.method == "POST"
        assert record.headers == {"x-token": "1"}

    @pytest.mark.asyncio
    async def test_blocked_request_aborted(self, interceptor, route_factory):
        route = route_factory("https://example.com/logo.png", resource_type="image")

        await interceptor.handle_route(route)

        route.abort.assert_awaited_once()
        route.continue_.assert_not_awaited()
        assert interceptor.records == []

    @pytest.mark.asyncio
    async def test_unmatched_request_passes_silently(self, route_factory):
        interceptor = RequestInterceptor(RequestClassifier(filter_substring="m3u8"))
        route = route_factory("https://api.example.com/config")

        await interceptor.handle_route(route)

        route.continue_.assert_awaited_once()
        assert interceptor.records == []

    @pytest.mark.asyncio
    async def test_arrival_order_and_duplicates_kept(self, interceptor, route_factory):
        urls = [
            "https://example.com/",
            "https://api.example.com/b",
            "https://example.com/logo.png",
            "https://api.example.com/a",
            "https://api.example.com/b",
        ]
        for url in urls:
            await interceptor.handle_route(route_factory(url))

        assert [r.url for r in interceptor.get_records()] == [
            "https://example.com/",
            "https://api.example.com/b",
            "https://api.example.com/a",
            "https://api.example.com/b",
        ]

    @pytest.mark.asyncio
    async def test_stats(self, route_factory):
        interceptor = RequestInterceptor(RequestClassifier(filter_substring="api"))
        for url, resource_type in [
            ("https://api.example.com/x", "xhr"),
            ("https://example.com/", "document"),
            ("https://example.com/a.css", "stylesheet"),
        ]:
            await interceptor.handle_route(route_factory(url, resource_type=resource_type))

        assert interceptor.get_stats() == {"abort": 1, "record": 1, "continue": 1, "total": 3}

    def test_records_are_snapshots(self, interceptor):
        interceptor.evaluate("xhr", "https://api.example.com/", "GET", {})
        snapshot = interceptor.get_records()
        interceptor.evaluate("xhr", "https://api.example.com/2", "GET", {})

        assert len(snapshot) == 1
        assert len(interceptor.get_records()) == 2

    def test_headers_copied(self, interceptor):
        headers = {"accept": "*/*"}
        interceptor.evaluate("xhr", "https://api.example.com/", "GET", headers)
        headers["accept"] = "changed"

        assert interceptor.records[0].headers == {"accept": "*/*"}
