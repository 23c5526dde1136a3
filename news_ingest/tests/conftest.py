"""공유 테스트 fixture"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest
import yaml

from news_ingest.ingestion.transport import FetchResponse
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.models.source import FeedSource
from news_ingest.utils.config_manager import ConfigManager

SEARCH_BASE_URL = "https://search.test/api/v2"

# 테스트 기준 시각: 2026-02-05T05:00:00Z
REFERENCE_TIME_MS = 1770267600000

SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <item>
      <title>Ransomware hits European hospitals</title>
      <link>https://example.com/news/1</link>
      <description>&lt;p&gt;Attackers encrypted &lt;b&gt;patient&lt;/b&gt; records.&lt;/p&gt;</description>
      <pubDate>Thu, 05 Feb 2026 10:00:00 +0900</pubDate>
    </item>
    <item>
      <title>Kernel patch released</title>
      <link>https://example.com/news/2</link>
      <pubDate>Thu, 05 Feb 2026 09:00:00 +0900</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <entry>
    <title>Cluster upgrade notes</title>
    <link rel="self" href="https://atom.example.com/self/1"/>
    <link rel="alternate" href="https://atom.example.com/1"/>
    <summary>Upgrade summary</summary>
    <updated>2026-02-05T03:00:00Z</updated>
  </entry>
  <entry>
    <title>Untitled link only</title>
    <link href="https://atom.example.com/2"/>
  </entry>
</feed>"""


class FakeTransport:
    """
    메모리 내 fetch 대역.

    routes: (URL 부분 문자열, 응답 또는 예외) 목록. 먼저 매칭되는 항목 사용.
    매칭이 없으면 404 응답.
    """

    def __init__(self, routes: Optional[List[Tuple[str, Union[FetchResponse, Exception]]]] = None):
        self.routes = list(routes or [])
        self.calls: List[str] = []

    def add(self, fragment: str, response: Union[FetchResponse, Exception]) -> "FakeTransport":
        self.routes.append((fragment, response))
        return self

    async def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        for fragment, response in self.routes:
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return FetchResponse(ok=False, status=404)


def json_response(payload: Dict, status: int = 200) -> FetchResponse:
    """JSON content-type 응답 생성."""
    return FetchResponse(
        ok=200 <= status < 300,
        status=status,
        text=json.dumps(payload),
        headers={"Content-Type": "application/json; charset=utf-8"},
    )


def xml_response(text: str, status: int = 200) -> FetchResponse:
    """RSS/Atom 응답 생성."""
    return FetchResponse(
        ok=200 <= status < 300,
        status=status,
        text=text,
        headers={"Content-Type": "application/rss+xml"},
    )


def make_article(
    title: str = "Test article",
    url: str = "https://news.example.com/a",
    seendate: str = "20260205T050000Z",
    domain: str = "news.example.com",
) -> Dict[str, str]:
    return {"title": title, "url": url, "seendate": seendate, "domain": domain}


@pytest.fixture
def fake_transport() -> FakeTransport:
    """빈 라우팅의 fetch 대역."""
    return FakeTransport()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """네트워크 없는 테스트용 파이프라인 설정."""
    return PipelineConfig(
        search_base_url=SEARCH_BASE_URL,
        category_delay_seconds=0.5,
        feeds={
            "security": (
                FeedSource(name="Feed A", url="https://feeds.test/a.xml"),
                FeedSource(name="Feed B", url="https://feeds.test/b.xml"),
            ),
            "sysadmin": (FeedSource(name="Ops Atom", url="https://feeds.test/ops.atom"),),
        },
        configured_query_keywords=("linux kernel", "devops"),
        alert_keywords=("zero-day", "ransomware", "outage"),
        region_keywords={
            "EUROPE": ("europe", "european", "germany"),
            "ASIA": ("china", "japan"),
        },
        topic_keywords={
            "CYBER": ("ransomware", "breach"),
            "AI": (" ai ", "machine learning"),
        },
    )


@pytest.fixture
def config_dir() -> str:
    """실제 config 디렉토리 경로."""
    return str(Path(__file__).parent.parent / "config")


@pytest.fixture
def config_manager(config_dir: str) -> ConfigManager:
    """실제 설정 파일 기반 ConfigManager."""
    return ConfigManager(config_dir=config_dir)


@pytest.fixture
def tmp_config_dir():
    """임시 config 디렉토리 (단위 테스트용)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_data = {
            "search": {"timespan": "3d", "max_records": 10},
            "orchestration": {
                "category_delay_seconds": 1,
                "categories": ["tech", "security"],
            },
        }
        feeds_data = {
            "feeds": {
                "security": [
                    {"name": "Feed A", "url": "https://feeds.test/a.xml"},
                    {"name": "No URL"},
                ],
            },
        }
        keywords_data = {
            "keywords": {
                "alert": ["outage"],
                "query": ["linux kernel"],
                "regions": {"EUROPE": ["europe"]},
                "topics": {"CYBER": ["breach"]},
            },
        }
        for filename, data in (
            ("config.yaml", config_data),
            ("feeds.yaml", feeds_data),
            ("keywords.yaml", keywords_data),
        ):
            with open(os.path.join(tmpdir, filename), "w", encoding="utf-8") as f:
                yaml.dump(data, f, allow_unicode=True)

        yield tmpdir
