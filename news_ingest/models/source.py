"""피드 소스 데이터 모델"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class FeedSource:
    """카테고리별로 설정되는 RSS/Atom 피드 소스 (읽기 전용)."""

    name: str
    url: str

    @classmethod
    def from_dict(cls, data: Dict) -> "FeedSource":
        """딕셔너리에서 FeedSource 생성."""
        return cls(name=str(data.get("name", "")).strip(), url=str(data.get("url", "")).strip())
