"""RSS/Atom 피드 목록 수집 커넥터"""

import asyncio
from typing import List

from news_ingest.ingestion.base_connector import BaseConnector
from news_ingest.models.news import NewsItem, validate_category
from news_ingest.models.source import FeedSource


class FeedListConnector(BaseConnector):
    """
    카테고리에 설정된 피드를 모두 동시에 요청하는 커넥터.

    각 피드는 독립적으로 완료/실패하며, 한 피드의 실패나 지연이
    다른 피드 결과를 무효화하지 않는다 (모두 settle 후 성공분만 수집).
    """

    async def fetch(self, category: str) -> List[NewsItem]:
        """카테고리 피드 전체 수집."""
        validate_category(category)
        sources = self.config.feeds_for(category)
        if not sources:
            return []

        self._logger.debug("피드 수집 시작: %s (%d개)", category, len(sources))
        results = await asyncio.gather(
            *(self._fetch_feed(source, category) for source in sources),
            return_exceptions=True,
        )

        items: List[NewsItem] = []
        failed = 0
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                failed += 1
                self._logger.warning("피드 수집 예외 (%s): %s", source.name, result)
                continue
            items.extend(result)

        self._logger.info(
            "피드 수집 완료: %s → %d건 (%d/%d개 피드 실패)",
            category, len(items), failed, len(sources),
        )
        return items

    async def _fetch_feed(self, source: FeedSource, category: str) -> List[NewsItem]:
        """단일 피드 수집. 실패는 경고 후 빈 리스트."""
        try:
            response = await self._transport.fetch(source.url)
        except Exception as e:
            self._logger.warning("피드 요청 오류 (%s): %s", source.name, e)
            return []

        if not response.ok:
            self._logger.warning("피드 요청 실패 (%s): HTTP %d", source.name, response.status)
            return []

        return self._normalizer.parse_feed(response.text, source.name, category)
