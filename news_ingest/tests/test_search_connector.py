"""구조화 검색 커넥터 테스트"""

import asyncio
import logging
import random
from urllib.parse import parse_qs, urlsplit

import pytest

from conftest import SEARCH_BASE_URL, FakeTransport, json_response, make_article
from news_ingest.ingestion.search_connector import SearchConnector, build_or_query, quote_term
from news_ingest.ingestion.transport import FetchResponse
from news_ingest.normalizer.news_normalizer import NewsNormalizer


def _query_params(url: str):
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


# ═══════════════════════════════════════════════════════════
# 질의 구성
# ═══════════════════════════════════════════════════════════

class TestQueryBuilding:
    """OR 질의 / URL 구성 테스트."""

    def test_quote_term(self):
        assert quote_term("CVE") == "CVE"
        assert quote_term("linux kernel") == '"linux kernel"'

    def test_build_or_query(self):
        assert build_or_query(["a", "b c", "d"]) == '(a OR "b c" OR d)'

    def test_build_or_query_skips_blank(self):
        assert build_or_query(["", "  ", "x"]) == "(x)"

    def test_build_or_query_empty(self):
        assert build_or_query([]) == ""

    def test_configured_query_category(self, pipeline_config, fake_transport):
        connector = SearchConnector(pipeline_config, fake_transport)
        assert connector.build_category_query("sysadmin") == '("linux kernel" OR devops)'

    def test_fixed_terms_category(self, pipeline_config, fake_transport):
        connector = SearchConnector(pipeline_config, fake_transport)
        query = connector.build_category_query("tech")
        assert query.startswith("(technology OR software")
        assert '"silicon valley"' in query

    def test_build_url(self, pipeline_config, fake_transport):
        connector = SearchConnector(pipeline_config, fake_transport)
        url = connector.build_url("(a OR b)")

        assert url.startswith(f"{SEARCH_BASE_URL}/doc?")
        params = _query_params(url)
        assert params == {
            "query": "(a OR b) sourcelang:english",
            "timespan": "7d",
            "mode": "artlist",
            "maxrecords": "20",
            "format": "json",
            "sort": "date",
        }

    def test_build_url_percent_encodes_spaces(self, pipeline_config, fake_transport):
        connector = SearchConnector(pipeline_config, fake_transport)
        url = connector.build_url('("a b")')
        assert "+" not in url
        assert "%20" in url


# ═══════════════════════════════════════════════════════════
# 응답 처리
# ═══════════════════════════════════════════════════════════

class TestSearchFetch:
    """fetch() 응답 처리 테스트 (네트워크 불필요)."""

    def _connector(self, pipeline_config, transport) -> SearchConnector:
        normalizer = NewsNormalizer(rng=random.Random(1), clock=lambda: 0.0)
        return SearchConnector(pipeline_config, transport, normalizer=normalizer)

    def test_articles_transformed_in_order(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({"articles": [
            make_article(title="Older", url="https://n/1", seendate="20260201T000000Z"),
            make_article(title="Newer ransomware", url="https://n/2", seendate="20260205T000000Z"),
        ]}))])
        items = asyncio.run(self._connector(pipeline_config, transport).fetch("tech"))

        assert [item.title for item in items] == ["Older", "Newer ransomware"]
        assert items[0].id.endswith("-0")
        assert items[1].id.endswith("-1")
        assert items[1].is_alert is True
        assert items[1].alert_keyword == "ransomware"
        assert items[1].topics == ["CYBER"]
        assert len(transport.calls) == 1

    def test_missing_articles_field(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({}))])
        assert asyncio.run(self._connector(pipeline_config, transport).fetch("tech")) == []

    def test_empty_articles(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({"articles": []}))])
        assert asyncio.run(self._connector(pipeline_config, transport).fetch("tech")) == []

    def test_non_json_content_type(self, pipeline_config, caplog):
        response = FetchResponse(
            ok=True, status=200, text="<html>rate limited</html>",
            headers={"Content-Type": "text/html"},
        )
        transport = FakeTransport([(SEARCH_BASE_URL, response)])
        with caplog.at_level(logging.WARNING):
            items = asyncio.run(self._connector(pipeline_config, transport).fetch("tech"))
        assert items == []
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_invalid_json(self, pipeline_config, caplog):
        response = FetchResponse(
            ok=True, status=200, text="{not json" + "x" * 300,
            headers={"content-type": "application/json"},
        )
        transport = FakeTransport([(SEARCH_BASE_URL, response)])
        with caplog.at_level(logging.WARNING):
            items = asyncio.run(self._connector(pipeline_config, transport).fetch("tech"))
        assert items == []
        messages = [r.getMessage() for r in caplog.records]
        assert any("{not json" in m for m in messages)
        # 로그에는 잘린 발췌만 남음
        assert all("x" * 150 not in m for m in messages)

    def test_http_error(self, pipeline_config, caplog):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({}, status=503))])
        with caplog.at_level(logging.ERROR):
            items = asyncio.run(self._connector(pipeline_config, transport).fetch("tech"))
        assert items == []
        assert any("503" in r.getMessage() for r in caplog.records)

    def test_transport_exception(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, ConnectionError("unreachable"))])
        assert asyncio.run(self._connector(pipeline_config, transport).fetch("tech")) == []

    def test_non_dict_records_skipped(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({"articles": [
            "bogus", make_article(url="https://n/ok"),
        ]}))])
        items = asyncio.run(self._connector(pipeline_config, transport).fetch("tech"))
        assert [item.link for item in items] == ["https://n/ok"]

    def test_default_source_from_first_feed(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({"articles": [
            make_article(domain=""),
        ]}))])
        items = asyncio.run(self._connector(pipeline_config, transport).fetch("security"))
        assert items[0].source == "Feed A"

    def test_fetch_query_with_explicit_category(self, pipeline_config):
        transport = FakeTransport([(SEARCH_BASE_URL, json_response({"articles": [make_article()]}))])
        connector = self._connector(pipeline_config, transport)
        items = asyncio.run(connector.fetch_query('("Austin")', "local"))

        assert items[0].category == "local"
        assert items[0].id.startswith("gdelt-local-")
        assert _query_params(transport.calls[0])["query"] == '("Austin") sourcelang:english'

    def test_unknown_category_raises(self, pipeline_config, fake_transport):
        with pytest.raises(ValueError):
            asyncio.run(self._connector(pipeline_config, fake_transport).fetch("sports"))
        assert fake_transport.calls == []
