"""파이프라인 설정 구조체

YAML(ConfigManager)에서 한 번 읽어 각 진입점에 명시적으로 전달한다.
테스트에서는 직접 생성해 대역(test double)으로 사용한다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from news_ingest.models.news import LOCAL_CATEGORY, NEWS_CATEGORIES, validate_category
from news_ingest.models.source import FeedSource
from news_ingest.utils.config_manager import ConfigManager
from news_ingest.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY_ORDER = tuple(c for c in NEWS_CATEGORIES if c != LOCAL_CATEGORY)


@dataclass(frozen=True)
class PipelineConfig:
    """수집 파이프라인 전체 설정 (시작 시 주입, 실행 중 불변)."""

    # 구조화 검색 엔드포인트
    search_base_url: str = "https://api.gdeltproject.org/api/v2/doc"
    search_timespan: str = "7d"
    search_max_records: int = 20
    search_language: str = "english"

    # 오케스트레이션
    category_delay_seconds: float = 3.0
    categories: Tuple[str, ...] = DEFAULT_CATEGORY_ORDER
    dual_source_categories: Tuple[str, ...] = ("security", "sysadmin")
    configured_query_category: str = "sysadmin"

    # 전송 계층
    request_timeout_seconds: float = 15.0
    user_agent: str = "NewsIngest/1.0"

    # 카테고리별 피드 / 키워드
    feeds: Dict[str, Tuple[FeedSource, ...]] = field(default_factory=dict)
    configured_query_keywords: Tuple[str, ...] = ()
    alert_keywords: Tuple[str, ...] = ()
    region_keywords: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    topic_keywords: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for category in self.categories:
            validate_category(category)
        for category in self.dual_source_categories:
            validate_category(category)

    def feeds_for(self, category: str) -> Tuple[FeedSource, ...]:
        """카테고리에 설정된 피드 목록 (없으면 빈 튜플)."""
        return self.feeds.get(category, ())

    def default_source_for(self, category: str) -> Optional[str]:
        """검색 결과에 도메인이 없을 때 쓰는 기본 소스 이름 (첫 번째 피드 이름)."""
        feeds = self.feeds_for(category)
        return feeds[0].name if feeds and feeds[0].name else None

    def uses_feeds(self, category: str) -> bool:
        """검색 + 피드 병합 대상 카테고리인지."""
        return category in self.dual_source_categories

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None) -> "PipelineConfig":
        """
        ConfigManager(YAML + 환경변수)에서 PipelineConfig 생성.

        Args:
            config: 설정 관리자. None이면 패키지 기본 config 디렉토리 사용.
        """
        config = config or ConfigManager()
        defaults = cls()

        feeds: Dict[str, Tuple[FeedSource, ...]] = {}
        for category, entries in (config.get("feeds") or {}).items():
            validate_category(category)
            sources = [FeedSource.from_dict(e) for e in entries or []]
            valid = tuple(s for s in sources if s.url)
            if len(valid) != len(sources):
                logger.warning("URL 없는 피드 제외: %s (%d건)", category, len(sources) - len(valid))
            feeds[category] = valid

        pipeline = cls(
            search_base_url=str(config.get("search.base_url", defaults.search_base_url)).rstrip("/"),
            search_timespan=str(config.get("search.timespan", defaults.search_timespan)),
            search_max_records=int(config.get("search.max_records", defaults.search_max_records)),
            search_language=str(config.get("search.language", defaults.search_language)),
            category_delay_seconds=float(
                config.get("orchestration.category_delay_seconds", defaults.category_delay_seconds)
            ),
            categories=_as_tuple(config.get("orchestration.categories"), defaults.categories),
            dual_source_categories=_as_tuple(
                config.get("orchestration.dual_source_categories"), defaults.dual_source_categories
            ),
            configured_query_category=str(
                config.get("orchestration.configured_query_category", defaults.configured_query_category)
            ),
            request_timeout_seconds=float(
                config.get("transport.timeout_seconds", defaults.request_timeout_seconds)
            ),
            user_agent=str(config.get("transport.user_agent", defaults.user_agent)),
            feeds=feeds,
            configured_query_keywords=_as_tuple(config.get("keywords.query"), ()),
            alert_keywords=_as_tuple(config.get("keywords.alert"), ()),
            region_keywords=_as_keyword_map(config.get("keywords.regions")),
            topic_keywords=_as_keyword_map(config.get("keywords.topics")),
        )
        logger.info(
            "파이프라인 설정 로드 (%s): 카테고리 %d개, 피드 %d개 (%s), 알림 키워드 %d개 (%s)",
            config.config_dir,
            len(pipeline.categories),
            sum(len(v) for v in feeds.values()),
            config.source_file("feeds") or "없음",
            len(pipeline.alert_keywords),
            config.source_file("keywords") or "없음",
        )
        return pipeline


def _as_tuple(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """리스트 또는 콤마 구분 문자열(환경변수)을 튜플로."""
    if value is None:
        return default
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip() for v in value if str(v).strip())


def _as_keyword_map(value: Any) -> Dict[str, Tuple[str, ...]]:
    """
    {라벨: [키워드, ...]} 형태로 정리 (순서 유지).

    키워드 앞뒤 공백은 단어 경계 표시(" ai ", "uk ")이므로 보존하고,
    공백뿐인 항목만 제외한다.
    """
    result: Dict[str, Tuple[str, ...]] = {}
    for label, keywords in (value or {}).items():
        words: List[str] = [str(k) for k in keywords or [] if str(k).strip()]
        if words:
            result[str(label)] = tuple(words)
    return result
