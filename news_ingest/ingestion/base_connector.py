"""수집 커넥터 베이스 클래스"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from news_ingest.models.news import NewsItem
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.normalizer.news_normalizer import NewsNormalizer
from news_ingest.ingestion.transport import Transport
from news_ingest.utils.logger import get_logger


class BaseConnector(ABC):
    """모든 수집 커넥터의 추상 베이스. 경계 밖으로 예외를 던지지 않는다."""

    def __init__(
        self,
        config: PipelineConfig,
        transport: Transport,
        normalizer: Optional[NewsNormalizer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._normalizer = normalizer or NewsNormalizer()
        self._logger = logger or get_logger(type(self).__module__)

    @abstractmethod
    async def fetch(self, category: str) -> List[NewsItem]:
        """카테고리 뉴스 수집. 실패 시 빈 리스트."""
        ...
