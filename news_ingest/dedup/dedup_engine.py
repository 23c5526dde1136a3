"""Module 4: Deduplicator - 소스 간 병합 및 중복 제거"""

import logging
from typing import Iterable, List, Optional, Set

from news_ingest.models.news import NewsItem
from news_ingest.utils.logger import get_logger


class DeduplicationEngine:
    """
    Module 4: 여러 NewsItem 목록을 병합하고 중복 제거.

    중복 키는 link (없으면 id). 왼쪽에서 오른쪽으로 한 번 훑으며
    먼저 나온 항목을 남긴다. 우선순위는 호출자가 입력 순서로 정한다
    (예: 피드 항목을 검색 항목보다 앞에 둠).
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger(__name__)

    def deduplicate(self, items: Iterable[NewsItem]) -> List[NewsItem]:
        """입력 순서를 유지한 채 중복 제거."""
        seen: Set[str] = set()
        result: List[NewsItem] = []
        total = 0
        for item in items:
            total += 1
            key = self._dedup_key(item)
            if key in seen:
                continue
            seen.add(key)
            result.append(item)

        if total != len(result):
            self._logger.debug("중복 제거: %d → %d건", total, len(result))
        return result

    def merge(self, *item_lists: Iterable[NewsItem], sort_by_time: bool = True) -> List[NewsItem]:
        """
        여러 목록을 순서대로 이어 붙인 뒤 중복 제거.

        Args:
            item_lists: 우선순위 순서의 NewsItem 목록들.
            sort_by_time: True면 결과를 timestamp 내림차순 정렬.

        Returns:
            병합·중복 제거된 NewsItem 리스트.
        """
        merged = self.deduplicate(item for items in item_lists for item in items)
        if sort_by_time:
            return self.sort_by_timestamp(merged)
        return merged

    @staticmethod
    def sort_by_timestamp(items: Iterable[NewsItem]) -> List[NewsItem]:
        """timestamp 내림차순 (안정 정렬)."""
        return sorted(items, key=lambda item: item.timestamp, reverse=True)

    @staticmethod
    def _dedup_key(item: NewsItem) -> str:
        return item.link or item.id
