"""Tests for the news feed, relevance filters and news endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from app.schemas.news import NewsItem
from app.services import news as news_service
from app.services.news import client as news_client
from app.services.news.fallback import get_fallback_news
from app.services.news.filters import (
    categorize,
    filter_news_by_stocks,
    select_relevant,
    sort_recent_first,
)
from app.services.news.service import build_feed, collect_articles

from conftest import make_article

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


def _item(
    item_id: str,
    headline: str,
    summary: str = "",
    *,
    stocks: list[str] | None = None,
    hours_ago: float = 1,
    is_recent: bool = True,
) -> NewsItem:
    return NewsItem(
        id=item_id,
        headline=headline,
        summary=summary,
        source="test",
        timestamp=NOW - timedelta(hours=hours_ago),
        relevant_stocks=stocks or [],
        is_recent=is_recent,
    )


class TestCategorize:
    def test_policy_wins_over_everything(self):
        assert categorize("RBI keeps rates unchanged", "Sensex gains on GDP data") == "policy"

    def test_economy_before_market(self):
        assert categorize("Inflation cools", "Nifty rallies") == "economy"

    def test_market(self):
        assert categorize("Sensex closes higher", "") == "market"

    def test_defaults_to_company(self):
        assert categorize("Infosys wins large deal", "Multi-year contract") == "company"


class TestRelevance:
    def test_items_with_stocks_are_kept(self):
        items = [_item("1", "Quarterly chatter", stocks=["TCS"])]
        assert select_relevant(items) == items

    def test_thin_feed_accepts_financial_words(self):
        items = [_item("1", "Weekend musings", "A commercial view on the world")]
        assert select_relevant(items) == items

    def test_top_up_skips_clearly_irrelevant(self):
        items = [
            _item("1", "Celebrity gossip roundup"),
            _item("2", "Quiet afternoon"),
        ]
        selected = select_relevant(items)
        assert [i.id for i in selected] == ["2"]

    def test_sort_recent_first_then_newest(self):
        items = [
            _item("old", "a", hours_ago=30, is_recent=False),
            _item("recent-older", "b", hours_ago=5),
            _item("recent-newest", "c", hours_ago=1),
        ]
        assert [i.id for i in sort_recent_first(items)] == ["recent-newest", "recent-older", "old"]

    def test_filter_news_by_stocks(self):
        items = [
            _item("tagged", "Deal signed", stocks=["tcs"]),
            _item("mentioned", "INFY beats estimates"),
            _item("other", "Monsoon update"),
        ]
        assert [i.id for i in filter_news_by_stocks(items, ["TCS", "infy"])] == [
            "tagged",
            "mentioned",
        ]
        assert filter_news_by_stocks(items, []) == []


class TestFallbackNews:
    def test_fifteen_articles_spaced_thirty_minutes(self):
        items = get_fallback_news(now=NOW)
        assert len(items) == 15
        assert [i.id for i in items[:2]] == ["fallback-1", "fallback-2"]
        assert items[0].timestamp == NOW - timedelta(minutes=30)
        assert items[1].timestamp - items[2].timestamp == timedelta(minutes=30)
        assert all(i.url == "#" for i in items)
        assert not items[13].is_recent and not items[14].is_recent


class TestArticleMapping:
    def test_to_news_item_keeps_indian_equities(self):
        article = make_article(
            "a1",
            "Reliance profit jumps",
            "Refining margins improve",
            entities=[
                {"symbol": "RELIANCE.NSE", "type": "equity", "country": "in"},
                {"symbol": "XOM", "type": "equity", "country": "us"},
                {"symbol": "NIFTY", "type": "index", "country": "in"},
            ],
            now=NOW,
        )
        item = news_client.to_news_item(article, NOW)
        assert item.relevant_stocks == ["RELIANCE.NSE"]
        assert item.is_recent is True
        assert item.summary == "Refining margins improve"

    def test_summary_falls_back_to_snippet(self):
        article = make_article("a2", "Title", now=NOW)
        article["snippet"] = "From the snippet"
        assert news_client.to_news_item(article, NOW).summary == "From the snippet"

    def test_stock_item_strips_exchange_and_restricts(self):
        article = make_article(
            "a3",
            "Banks rally",
            entities=[
                {"symbol": "HDFCBANK.NSE", "type": "equity", "country": "in"},
                {"symbol": "HDFCBANK.BSE", "type": "equity", "country": "in"},
                {"symbol": "SBIN.NSE", "type": "equity", "country": "in"},
            ],
            now=NOW,
        )
        item = news_client.to_stock_news_item(article, {"HDFCBANK"}, NOW)
        assert item.relevant_stocks == ["HDFCBANK"]

    def test_malformed_entities_are_skipped(self):
        article = make_article(
            "a4",
            "Infosys wins contract",
            entities=[None, "INFY.NSE", {"symbol": 7, "type": "equity", "country": "in"},
                      {"symbol": "INFY.NSE", "type": "equity", "country": "in"}],
            now=NOW,
        )
        assert news_client.to_news_item(article, NOW).relevant_stocks == ["INFY.NSE"]
        assert news_client.to_stock_news_item(article, {"INFY"}, NOW).relevant_stocks == ["INFY"]

    def test_non_list_entities_are_ignored(self):
        article = make_article("a5", "Infosys wins contract", now=NOW)
        article["entities"] = {"symbol": "INFY.NSE"}
        assert news_client.to_news_item(article, NOW).relevant_stocks == []

    def test_build_feed_drops_old_articles(self):
        articles = [
            make_article("fresh", "Sensex hits record high", hours_ago=2, now=NOW),
            make_article("stale", "Sensex slips", hours_ago=24 * 4, now=NOW),
        ]
        assert [i.id for i in build_feed(articles, NOW)] == ["fresh"]


class TestCollectArticles:
    @pytest.mark.asyncio
    async def test_all_passes_run_for_thin_results(self, mock_http):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            params = dict(request.url.params)
            calls.append(params)
            assert params["api_token"] == "test-mx-key"
            assert params["filter_entities"] == "true"
            if "search" in params:
                keyword = params["search"]
                data = [make_article(f"{keyword}-{n}", f"{keyword} story {n}") for n in range(8)]
            elif params.get("countries") == "in":
                data = [make_article("shared", "Shared story"), make_article("in-1", "India story")]
            else:
                data = [make_article("shared", "Shared story")]
            return httpx.Response(200, json={"data": data})

        mock_http(handler)
        articles = await collect_articles()

        assert calls[0]["limit"] == "50"
        assert calls[1]["countries"] == "in"
        searches = [c["search"] for c in calls if "search" in c]
        # 2 articles, then +5 per keyword until at least 20 are collected
        assert searches == ["stock", "market", "investment", "financial"]
        assert len(articles) == 22
        assert len({a["uuid"] for a in articles}) == len(articles)

    @pytest.mark.asyncio
    async def test_failing_keyword_search_is_skipped(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("search") == "stock":
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"data": []})

        mock_http(handler)
        assert await collect_articles() == []


class TestFetchNews:
    @pytest.mark.asyncio
    async def test_without_api_key_returns_fallback(self):
        items = await news_service.fetch_news()
        assert len(items) == 15
        assert items[0].id == "fallback-1"
        assert await news_service.is_cache_active() is False

    @pytest.mark.asyncio
    async def test_provider_error_returns_fallback(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        mock_http(handler)
        items = await news_service.fetch_news()
        assert items[0].id.startswith("fallback-")

    @pytest.mark.asyncio
    async def test_successful_feed_is_cached(self, mock_http):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            data = [
                make_article(f"g-{n}", f"Sensex climbs on earnings {n}", hours_ago=n + 1)
                for n in range(20)
            ]
            return httpx.Response(200, json={"data": data})

        mock_http(handler)
        first = await news_service.fetch_news()
        second = await news_service.fetch_news()

        assert calls["count"] == 1
        assert len(first) == 20
        assert [i.id for i in second] == [i.id for i in first]
        assert await news_service.is_cache_active() is True
        assert 0 < await news_service.cache_ttl_remaining() <= 1200

        await news_service.clear_news_cache()
        assert await news_service.get_cached_news() == []

    @pytest.mark.asyncio
    async def test_stock_specific_news(self, mock_http):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            article = make_article(
                "s1",
                "TCS signs deal",
                entities=[{"symbol": "TCS.NSE", "type": "equity", "country": "in"}],
            )
            return httpx.Response(200, json={"data": [article]})

        mock_http(handler)
        items = await news_service.fetch_stock_specific_news(["tcs", "INFY"])

        assert seen["symbols"] == "TCS.NSE,TCS.BSE,INFY.NSE,INFY.BSE"
        assert seen["limit"] == "50"
        assert [i.relevant_stocks for i in items] == [["TCS"]]

    @pytest.mark.asyncio
    async def test_malformed_entity_does_not_break_feed(self, mock_http):
        article = make_article("m1", "Sensex climbs on earnings", entities=[None])
        mock_http(lambda request: httpx.Response(200, json={"data": [article]}))

        items = await news_service.fetch_news()
        assert [i.id for i in items] == ["m1"]
        assert items[0].relevant_stocks == []

    @pytest.mark.asyncio
    async def test_mapping_failure_returns_fallback(self, mock_http, mocker):
        mock_http(
            lambda request: httpx.Response(
                200, json={"data": [make_article("m2", "Sensex climbs on earnings")]}
            )
        )
        mocker.patch("app.services.news.service.build_feed", side_effect=TypeError("bad article"))

        items = await news_service.fetch_news()
        assert items[0].id.startswith("fallback-")
        assert await news_service.is_cache_active() is False

    @pytest.mark.asyncio
    async def test_stock_specific_news_error_returns_empty(self, mock_http):
        mock_http(lambda request: httpx.Response(429, json={"error": "limit"}))
        assert await news_service.fetch_stock_specific_news(["TCS"]) == []


class TestNewsEndpoints:
    def test_news_feed(self, client: TestClient):
        response = client.get("/api/news")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["count"] == 15
        assert len(data["news"]) == 15

    def test_news_filtered_by_symbols(self, client: TestClient):
        response = client.get("/api/news", params={"symbols": "tcs, infy"})
        data = response.json()
        assert data["count"] >= 1
        for item in data["news"]:
            text = f"{item['headline']} {item['summary']}".upper()
            assert {"TCS", "INFY"} & set(item["relevant_stocks"]) or "TCS" in text or "INFY" in text

    def test_portfolio_news(self, client: TestClient, auth_headers):
        client.post(
            "/api/portfolio", json={"symbol": "RELIANCE", "quantity": 1}, headers=auth_headers
        )
        response = client.get("/api/news/portfolio", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert all("RELIANCE" in i["relevant_stocks"] or "RELIANCE" in i["headline"].upper()
                   for i in response.json()["news"])
        assert response.json()["count"] >= 1

    def test_news_feed_survives_malformed_entities(self, client: TestClient, mock_http):
        article = make_article("m3", "Nifty rallies as markets rebound", entities=[None])
        mock_http(lambda request: httpx.Response(200, json={"data": [article]}))

        response = client.get("/api/news")
        assert response.status_code == status.HTTP_200_OK
        assert [i["id"] for i in response.json()["news"]] == ["m3"]

    def test_portfolio_news_requires_auth(self, client: TestClient):
        assert client.get("/api/news/portfolio").status_code == status.HTTP_401_UNAUTHORIZED

    def test_stock_news_without_provider_is_empty(self, client: TestClient):
        response = client.get("/api/news/stocks", params={"symbols": "TCS"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"news": [], "count": 0}

    def test_cache_status(self, client: TestClient):
        response = client.get("/api/news/cache")
        assert response.json() == {"active": False, "ttl_seconds": 0}
