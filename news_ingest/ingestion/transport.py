"""HTTP 전송 계층 - fetch(url) → FetchResponse"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

import requests

from news_ingest.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResponse:
    """fetch 결과. 헤더 이름은 소문자로 정규화."""

    ok: bool
    status: int
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = {str(k).lower(): str(v) for k, v in self.headers.items()}

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


class RequestsTransport:
    """
    requests 기반 fetch 구현.

    블로킹 호출은 asyncio.to_thread로 워커 스레드에서 실행해
    여러 요청의 네트워크 대기를 겹칠 수 있게 한다.
    재시도/백오프는 하지 않는다.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "NewsIngest/1.0",
        session: Optional[requests.Session] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        if extra_headers:
            self._session.headers.update(dict(extra_headers))

    async def fetch(self, url: str) -> FetchResponse:
        """GET 요청. 전송 실패(연결/타임아웃)는 requests 예외 그대로 전파."""
        return await asyncio.to_thread(self._get, url)

    def _get(self, url: str) -> FetchResponse:
        resp = self._session.get(url, timeout=self._timeout)
        logger.debug("HTTP %d ← %s", resp.status_code, url)
        return FetchResponse(
            ok=resp.ok,
            status=resp.status_code,
            text=resp.text,
            headers=dict(resp.headers),
        )

    def close(self) -> None:
        self._session.close()


class Transport(Protocol):
    """주입 가능한 fetch 능력 (테스트 대역 포함)."""

    async def fetch(self, url: str) -> FetchResponse:
        ...
