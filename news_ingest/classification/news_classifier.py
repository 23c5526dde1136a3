"""Module 3: Identity & Classification - 제목 기반 알림/지역/토픽 태깅"""

import dataclasses
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from news_ingest.models.news import NewsItem
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.utils.logger import get_logger


@dataclasses.dataclass(frozen=True)
class AlertMatch:
    """알림 키워드 매칭 결과."""

    keyword: str


class NewsClassifier:
    """
    Module 3: 제목 텍스트로 is_alert / region / topics 결정.

    - 알림: 설정된 키워드 목록 순서대로 첫 번째 부분 문자열 매칭 (대소문자 무시)
    - 지역: 제목에서 가장 먼저 등장하는 지명 키워드의 지역 라벨
    - 토픽: 매칭되는 모든 토픽, 제목 내 첫 등장 위치 순

    지역/토픽은 알림 매칭과 독립적으로 판정한다.
    """

    def __init__(
        self,
        alert_keywords: Sequence[str] = (),
        region_keywords: Optional[Mapping[str, Sequence[str]]] = None,
        topic_keywords: Optional[Mapping[str, Sequence[str]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._alert_keywords = [k for k in alert_keywords if k]
        self._region_keywords = self._lowered(region_keywords or {})
        self._topic_keywords = self._lowered(topic_keywords or {})
        self._logger = logger or get_logger(__name__)

    @classmethod
    def from_config(cls, config: PipelineConfig, logger: Optional[logging.Logger] = None) -> "NewsClassifier":
        return cls(
            alert_keywords=config.alert_keywords,
            region_keywords=config.region_keywords,
            topic_keywords=config.topic_keywords,
            logger=logger,
        )

    def classify(self, item: NewsItem) -> NewsItem:
        """분류 필드를 채운 새 NewsItem 반환 (원본은 변경하지 않음)."""
        alert = self.contains_alert_keyword(item.title)
        classified = dataclasses.replace(
            item,
            is_alert=alert is not None,
            alert_keyword=alert.keyword if alert else None,
            region=self.detect_region(item.title),
            topics=self.detect_topics(item.title),
        )
        if alert:
            self._logger.debug("알림 키워드 매칭: %s ← %s", alert.keyword, item.title[:80])
        return classified

    def contains_alert_keyword(self, title: str) -> Optional[AlertMatch]:
        """설정 순서상 첫 번째로 제목에 포함된 알림 키워드."""
        lowered = (title or "").lower()
        for keyword in self._alert_keywords:
            if keyword.lower() in lowered:
                return AlertMatch(keyword=keyword)
        return None

    def detect_region(self, title: str) -> Optional[str]:
        """제목에서 가장 먼저 등장하는 지명 키워드의 지역 라벨."""
        matches = self._find_matches(title, self._region_keywords)
        return matches[0] if matches else None

    def detect_topics(self, title: str) -> List[str]:
        """매칭되는 토픽 태그 전체 (제목 내 첫 등장 순)."""
        return self._find_matches(title, self._topic_keywords)

    @staticmethod
    def _find_matches(title: str, keyword_map: Dict[str, Tuple[str, ...]]) -> List[str]:
        if not title or not keyword_map:
            return []
        # 앞뒤 공백 패딩: " ai " 같은 단어 경계 키워드가 제목 양 끝에서도 매칭되도록
        text = f" {title.lower()} "
        positions: List[Tuple[int, int, str]] = []
        for order, (label, keywords) in enumerate(keyword_map.items()):
            found = [text.find(k) for k in keywords]
            found = [p for p in found if p >= 0]
            if found:
                positions.append((min(found), order, label))
        positions.sort()
        return [label for _, _, label in positions]

    @staticmethod
    def _lowered(keyword_map: Mapping[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
        return {
            label: tuple(k.lower() for k in keywords if k)
            for label, keywords in keyword_map.items()
        }
