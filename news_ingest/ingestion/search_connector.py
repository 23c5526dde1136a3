"""구조화 검색(GDELT DOC API) 수집 커넥터"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote, urlencode

from news_ingest.classification.news_classifier import NewsClassifier
from news_ingest.ingestion.base_connector import BaseConnector
from news_ingest.ingestion.transport import Transport
from news_ingest.models.news import NewsItem, validate_category
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.normalizer.news_normalizer import PAYLOAD_EXCERPT_LENGTH, NewsNormalizer

# 카테고리별 고정 검색어 (설정 기반 카테고리와 local 제외)
CATEGORY_QUERY_TERMS: Dict[str, Sequence[str]] = {
    "politics": ("politics", "government", "election", "congress"),
    "tech": ("technology", "software", "startup", "silicon valley"),
    "security": (
        "CVE",
        "vulnerability",
        "exploit",
        "security advisory",
        "zero day",
        "ransomware",
        "privilege escalation",
        "remote code execution",
        "patch tuesday",
    ),
    "finance": ("finance", "stock market", "economy", "banking"),
    "gov": ("federal government", "white house", "congress", "regulation"),
    "ai": ("artificial intelligence", "machine learning", "AI", "ChatGPT"),
    "intel": ("intelligence", "security", "military", "defense"),
}


def quote_term(term: str) -> str:
    """공백이 있는 키워드는 따옴표로 감싼다."""
    term = term.strip()
    if any(ch.isspace() for ch in term):
        return f'"{term}"'
    return term


def build_or_query(terms: Sequence[str]) -> str:
    """키워드 목록 → '(a OR "b c" OR d)'. 키워드가 없으면 빈 문자열."""
    quoted = [quote_term(t) for t in terms if t and t.strip()]
    if not quoted:
        return ""
    return "(" + " OR ".join(quoted) + ")"


class SearchConnector(BaseConnector):
    """
    키워드 OR 질의 기반 구조화 검색 커넥터.

    - 카테고리 검색어 + 언어 필터로 GET 1회
    - 최근 timespan, 최대 max_records건, JSON, 날짜 내림차순
    - HTTP 실패 / 비JSON 응답 / JSON 오류 / 전송 오류는 모두 빈 리스트

    사용법:
        connector = SearchConnector(config, transport)
        items = await connector.fetch("tech")
    """

    def __init__(
        self,
        config: PipelineConfig,
        transport: Transport,
        normalizer: Optional[NewsNormalizer] = None,
        classifier: Optional[NewsClassifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(config, transport, normalizer, logger)
        self._classifier = classifier or NewsClassifier.from_config(config)

    def build_category_query(self, category: str) -> str:
        """카테고리 검색어. 설정 기반 카테고리는 keywords.query에서 구성."""
        if category == self.config.configured_query_category:
            return build_or_query(self.config.configured_query_keywords)
        return build_or_query(CATEGORY_QUERY_TERMS.get(category, ()))

    def build_url(self, query: str) -> str:
        """언어 필터를 붙인 질의로 검색 URL 생성."""
        params = {
            "query": f"{query} sourcelang:{self.config.search_language}",
            "timespan": self.config.search_timespan,
            "mode": "artlist",
            "maxrecords": self.config.search_max_records,
            "format": "json",
            "sort": "date",
        }
        return f"{self.config.search_base_url}/doc?{urlencode(params, quote_via=quote)}"

    async def fetch(self, category: str) -> List[NewsItem]:
        """카테고리 검색어로 수집."""
        validate_category(category)
        query = self.build_category_query(category)
        if not query:
            self._logger.warning("검색어가 비어 있어 건너뜀: %s", category)
            return []
        return await self.fetch_query(query, category)

    async def fetch_query(
        self,
        query: str,
        category: str,
        default_source: Optional[str] = None,
    ) -> List[NewsItem]:
        """
        임의 불리언 질의로 수집 (지역 뉴스 경로에서도 사용).

        Args:
            query: 괄호로 묶인 OR 질의.
            category: 결과 항목에 붙일 카테고리.
            default_source: domain 없는 기사용 소스 이름. None이면 카테고리 첫 피드 이름.

        Returns:
            검색 결과 순서 그대로의 NewsItem 리스트 (실패 시 빈 리스트).
        """
        validate_category(category)
        url = self.build_url(query)
        self._logger.info("검색 수집 시작: %s", category)

        try:
            response = await self._transport.fetch(url)
        except Exception as e:
            self._logger.error("검색 수집 실패: %s - %s", category, e)
            return []

        if not response.ok:
            self._logger.error("검색 응답 오류: %s - HTTP %d", category, response.status)
            return []

        content_type = response.header("content-type")
        if "application/json" not in content_type.lower():
            self._logger.warning("비JSON 응답: %s - %s", category, content_type or "(없음)")
            return []

        try:
            data = json.loads(response.text)
        except ValueError:
            self._logger.warning(
                "JSON 파싱 실패: %s - %r", category, response.text[:PAYLOAD_EXCERPT_LENGTH]
            )
            return []

        articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(articles, list) or not articles:
            self._logger.info("검색 결과 없음: %s", category)
            return []

        if default_source is None:
            default_source = self.config.default_source_for(category)
        items = self._transform_articles(articles, category, default_source)
        self._logger.info("검색 수집 완료: %s → %d건", category, len(items))
        return items

    def _transform_articles(
        self, articles: List[Any], category: str, default_source: Optional[str]
    ) -> List[NewsItem]:
        items: List[NewsItem] = []
        for index, article in enumerate(articles):
            if not isinstance(article, dict):
                self._logger.debug("잘못된 article 레코드 건너뜀: %s #%d", category, index)
                continue
            try:
                item = self._normalizer.transform_search_article(article, category, index, default_source)
                items.append(self._classifier.classify(item))
            except (TypeError, ValueError, AttributeError) as e:
                self._logger.debug("article 변환 실패 건너뜀: %s #%d - %s", category, index, e)
        return items
