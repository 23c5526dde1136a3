"""뉴스 데이터 모델"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# 고정 카테고리 열거 (어댑터가 새 카테고리를 만들어내지 않음)
NEWS_CATEGORIES = (
    "politics",
    "tech",
    "security",
    "sysadmin",
    "finance",
    "gov",
    "ai",
    "intel",
    "local",
)

LOCAL_CATEGORY = "local"


def validate_category(category: str) -> str:
    """알 수 없는 카테고리면 ValueError."""
    if category not in NEWS_CATEGORIES:
        raise ValueError(f"알 수 없는 카테고리: {category!r} (허용: {', '.join(NEWS_CATEGORIES)})")
    return category


@dataclass
class NewsItem:
    """파이프라인 출력 단위: 정규화된 뉴스 항목."""

    id: str
    title: str
    link: str
    timestamp: int  # epoch milliseconds
    source: str
    category: str

    pub_date: Optional[str] = None  # 소스가 제공한 원본 날짜 문자열
    description: Optional[str] = None

    # 분류 (검색 경로에서 설정)
    is_alert: bool = False
    alert_keyword: Optional[str] = None
    region: Optional[str] = None
    topics: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_category(self.category)

    def to_dict(self) -> Dict[str, Any]:
        """표시 계층용 camelCase 딕셔너리 (없는 선택 필드는 생략)."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "timestamp": self.timestamp,
            "source": self.source,
            "category": self.category,
            "isAlert": self.is_alert,
            "topics": list(self.topics),
        }
        if self.pub_date is not None:
            data["pubDate"] = self.pub_date
        if self.description is not None:
            data["description"] = self.description
        if self.alert_keyword is not None:
            data["alertKeyword"] = self.alert_keyword
        if self.region is not None:
            data["region"] = self.region
        return data
