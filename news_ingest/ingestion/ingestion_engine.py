"""Module 5: Category Orchestrator - 카테고리 순차 수집 + 소스 병합"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from news_ingest.classification.news_classifier import NewsClassifier
from news_ingest.dedup.dedup_engine import DeduplicationEngine
from news_ingest.ingestion.feed_connector import FeedListConnector
from news_ingest.ingestion.geo_query import build_geo_query
from news_ingest.ingestion.search_connector import SearchConnector
from news_ingest.ingestion.transport import RequestsTransport, Transport
from news_ingest.models.news import LOCAL_CATEGORY, NewsItem, validate_category
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.normalizer.news_normalizer import NewsNormalizer
from news_ingest.utils.logger import get_logger

CategoryResult = Dict[str, List[NewsItem]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class FetchNewsResult:
    """카테고리 순차 수집 결과 + 실패한 카테고리의 오류 메시지."""

    items: CategoryResult = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def failed_categories(self) -> List[str]:
        return list(self.errors)


class IngestionEngine:
    """
    Module 5: 카테고리별 수집 오케스트레이터.

    - 전체 실행: 카테고리를 고정 순서로 하나씩, 사이사이 고정 지연
    - 카테고리 내부: 검색 요청과 피드 요청은 동시에 진행
    - security/sysadmin: 피드 우선 병합 → 중복 제거 → 시간 역순 정렬
    - 그 외: 검색 결과 순서 그대로
    - 한 카테고리의 실패는 빈 결과로 기록하고 다음 카테고리로 진행

    사용법:
        engine = IngestionEngine(PipelineConfig.from_config())
        try:
            news = asyncio.run(engine.fetch_all_news())
        finally:
            engine.close()
    """

    def __init__(
        self,
        config: PipelineConfig,
        transport: Optional[Transport] = None,
        search_connector: Optional[SearchConnector] = None,
        feed_connector: Optional[FeedListConnector] = None,
        dedup_engine: Optional[DeduplicationEngine] = None,
        sleep: Optional[Sleep] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            config: 파이프라인 설정.
            transport: fetch 능력. None이면 requests 기반 기본 전송 계층 (close() 대상).
            search_connector: 검색 커넥터 (테스트 대역 주입용).
            feed_connector: 피드 커넥터 (테스트 대역 주입용).
            dedup_engine: 중복 제거 엔진.
            sleep: 카테고리 간 지연 함수. 기본 asyncio.sleep.
            logger: 주입 로거.
        """
        self._config = config
        self._logger = logger or get_logger(__name__)
        self._owns_transport = transport is None
        if transport is None:
            transport = RequestsTransport(
                timeout=config.request_timeout_seconds,
                user_agent=config.user_agent,
            )
        self._transport = transport
        normalizer = NewsNormalizer(logger=logger)
        self._search = search_connector or SearchConnector(
            config,
            transport,
            normalizer=normalizer,
            classifier=NewsClassifier.from_config(config, logger=logger),
            logger=logger,
        )
        self._feeds = feed_connector or FeedListConnector(
            config, transport, normalizer=normalizer, logger=logger
        )
        self._dedup = dedup_engine or DeduplicationEngine(logger=logger)
        self._sleep = sleep or asyncio.sleep

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def categories(self) -> List[str]:
        return list(self._config.categories)

    def close(self) -> None:
        """엔진이 직접 만든 전송 계층(requests 세션) 정리. 주입된 전송 계층은 호출자 소유."""
        if self._owns_transport:
            self._transport.close()

    async def fetch_category_news(self, category: str) -> List[NewsItem]:
        """
        단일 카테고리 수집.

        Returns:
            병합 대상 카테고리는 timestamp 내림차순, 그 외는 검색 결과 순서.
        """
        validate_category(category)
        if not self._config.uses_feeds(category):
            return await self._search.fetch(category)

        search_items, feed_items = await asyncio.gather(
            self._search.fetch(category),
            self._feeds.fetch(category),
        )
        merged = self._dedup.merge(feed_items, search_items, sort_by_time=True)
        self._logger.info(
            "병합 완료: %s → 피드 %d + 검색 %d → %d건",
            category, len(feed_items), len(search_items), len(merged),
        )
        return merged

    async def fetch_categories(self, categories: Sequence[str]) -> FetchNewsResult:
        """
        지정 카테고리를 순서대로 수집 (카테고리 사이 고정 지연, N개면 N-1회).

        카테고리 이름은 I/O 전에 모두 검증한다 (알 수 없으면 ValueError).
        수집 중 실패한 카테고리는 빈 리스트와 오류 메시지로 기록된다.
        """
        for category in categories:
            validate_category(category)

        result = FetchNewsResult(items={category: [] for category in categories})
        self._logger.info("수집 시작: %d개 카테고리", len(result.items))

        for i, category in enumerate(categories):
            if i > 0:
                await self._sleep(self._config.category_delay_seconds)
            try:
                result.items[category] = await self.fetch_category_news(category)
            except Exception as e:
                self._logger.error("카테고리 수집 실패: %s - %s", category, e)
                result.items[category] = []
                result.errors[category] = str(e) or type(e).__name__

        self._logger.info(
            "수집 완료: 총 %d건, 실패 카테고리 %d개",
            sum(len(items) for items in result.items.values()),
            len(result.errors),
        )
        return result

    async def fetch_all_news_with_errors(self) -> FetchNewsResult:
        """전체 카테고리 순차 수집 + 카테고리별 오류."""
        return await self.fetch_categories(self._config.categories)

    async def fetch_all_news(self) -> CategoryResult:
        """
        전체 카테고리 순차 수집 (카테고리 사이 고정 지연).

        Returns:
            {카테고리: NewsItem 리스트}. 설정된 모든 카테고리 키를 포함.
        """
        return (await self.fetch_all_news_with_errors()).items

    async def fetch_local_news(self, city: str, state: str) -> List[NewsItem]:
        """
        도시/주 기반 지역 뉴스 (오케스트레이터 지연 없이 검색 커넥터 직접 호출).

        Returns:
            category="local" NewsItem 리스트 (timestamp 내림차순). 입력이 비면 빈 리스트.
        """
        query = build_geo_query(city, state)
        if not query:
            self._logger.info("지역 정보 없음: 지역 뉴스 건너뜀")
            return []
        items = await self._search.fetch_query(query, LOCAL_CATEGORY)
        return self._dedup.sort_by_timestamp(items)


# ===== 표시 계층용 함수 인터페이스 =====

async def _run(
    config: Optional[PipelineConfig],
    transport: Optional[Transport],
    call: Callable[[IngestionEngine], Awaitable],
):
    engine = IngestionEngine(config or PipelineConfig.from_config(), transport=transport)
    try:
        return await call(engine)
    finally:
        engine.close()


async def fetch_category_news(
    category: str,
    config: Optional[PipelineConfig] = None,
    transport: Optional[Transport] = None,
) -> List[NewsItem]:
    """카테고리 하나의 NewsItem 목록."""
    return await _run(config, transport, lambda engine: engine.fetch_category_news(category))


async def fetch_all_news(
    config: Optional[PipelineConfig] = None,
    transport: Optional[Transport] = None,
) -> CategoryResult:
    """전체 카테고리 {카테고리: NewsItem 목록}."""
    return await _run(config, transport, lambda engine: engine.fetch_all_news())


async def fetch_all_news_with_errors(
    config: Optional[PipelineConfig] = None,
    transport: Optional[Transport] = None,
) -> FetchNewsResult:
    """전체 카테고리 결과 + 실패한 카테고리별 오류 메시지."""
    return await _run(config, transport, lambda engine: engine.fetch_all_news_with_errors())


async def fetch_local_news(
    city: str,
    state: str,
    config: Optional[PipelineConfig] = None,
    transport: Optional[Transport] = None,
) -> List[NewsItem]:
    """도시/주 지역 뉴스 (category="local")."""
    return await _run(config, transport, lambda engine: engine.fetch_local_news(city, state))
