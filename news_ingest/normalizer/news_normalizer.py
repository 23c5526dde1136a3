"""Module 2: Content Normalizer - 구조화 검색 결과 / RSS·Atom 피드 → NewsItem 변환"""

import html as html_module
import logging
import random
import re
import time
from datetime import timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from xml.etree import ElementTree

from dateutil import parser as dateutil_parser

from news_ingest.models.news import NewsItem, validate_category
from news_ingest.utils.logger import get_logger

logger = get_logger(__name__)

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"
ATOM_NS = "http://www.w3.org/2005/Atom"
RSS1_NS = "http://purl.org/rss/1.0/"

# 피드 본문 요소의 namespace ("" = namespace 없음). media:, itunes: 등 확장 요소는 제외.
FEED_NAMESPACES = ("", ATOM_NS, RSS1_NS)

# 검색 API seendate 고정 포맷: 20251202T224500Z
COMPACT_DATE_PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z$")

# 피드에서 자주 보이는 미국 시간대 약어 (dateutil은 기본적으로 해석하지 않음)
TZ_ABBREVIATIONS = {
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}

# (허용 namespace 목록, local name) 후보 목록
FieldCandidates = Sequence[Tuple[Sequence[str], str]]

TITLE_FIELDS: FieldCandidates = ((FEED_NAMESPACES, "title"),)
DESCRIPTION_FIELDS: FieldCandidates = (
    (FEED_NAMESPACES, "description"),
    (FEED_NAMESPACES, "summary"),
    ((CONTENT_NS,), "encoded"),
    (FEED_NAMESPACES, "content"),
)
LINK_FIELDS: FieldCandidates = ((FEED_NAMESPACES, "link"), (FEED_NAMESPACES, "guid"))
DATE_FIELDS: FieldCandidates = (
    (FEED_NAMESPACES, "pubDate"),
    (FEED_NAMESPACES, "updated"),
    (FEED_NAMESPACES, "published"),
    ((DC_NS,), "date"),
)

PAYLOAD_EXCERPT_LENGTH = 100


class FeedElementKind(Enum):
    """피드 항목 요소 종류."""

    RSS_ITEM = "item"
    ATOM_ENTRY = "entry"


def hash_code(text: str) -> str:
    """
    32비트 롤링 문자 해시를 base-36 문자열로 반환.

    UTF-16 코드 유닛 단위로 hash = hash * 31 + unit 을 32비트 부호 정수로 누적하고
    절댓값을 36진수로 표기한다. 같은 입력이면 실행 환경과 무관하게 같은 값.
    """
    value = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return to_base36(abs(value))


def to_base36(number: int) -> str:
    """음이 아닌 정수를 소문자 36진수 문자열로."""
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    result = []
    while number:
        number, remainder = divmod(number, 36)
        result.append(digits[remainder])
    return "".join(reversed(result))


def compact_date_to_iso(date_str: str) -> Optional[str]:
    """'20251202T224500Z' → '2025-12-02T22:45:00Z'. 패턴 불일치 시 None."""
    match = COMPACT_DATE_PATTERN.match(date_str.strip())
    if not match:
        return None
    year, month, day, hour, minute, second = match.groups()
    return f"{year}-{month}-{day}T{hour}:{minute}:{second}Z"


def parse_date_ms(date_str: Optional[str]) -> Optional[int]:
    """
    일반 날짜 파싱 (RFC 822, ISO-8601 등) → epoch milliseconds.

    시간대 정보가 없으면 UTC로 간주한다. 실패 시 None.
    """
    if not date_str or not date_str.strip():
        return None
    try:
        parsed = dateutil_parser.parse(date_str.strip(), tzinfos=TZ_ABBREVIATIONS)
    except (ValueError, TypeError, OverflowError):
        logger.debug("날짜 파싱 실패: %s", date_str)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return int(parsed.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        logger.debug("날짜 범위 초과: %s", date_str)
        return None


def parse_search_date_ms(date_str: Optional[str]) -> Optional[int]:
    """
    검색 API seendate 파싱.

    고정 포맷 패턴을 먼저 ISO-8601로 변환해 파싱하고,
    패턴이 맞지 않을 때만 일반 파싱으로 넘어간다.
    """
    if not date_str:
        return None
    iso = compact_date_to_iso(date_str)
    if iso is not None:
        return parse_date_ms(iso)
    return parse_date_ms(date_str)


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""  # 주석/처리 명령 노드
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def _matches(element: ElementTree.Element, namespaces: Sequence[str], local: str) -> bool:
    if _local_name(element.tag) != local:
        return False
    return _namespace(element.tag) in namespaces


class NewsNormalizer:
    """
    Module 2: 두 가지 소스 포맷을 단일 NewsItem 형태로 변환.

    - 구조화 검색 결과 (JSON article 레코드)
    - RSS 2.0 / Atom XML 피드 문서

    사용법:
        normalizer = NewsNormalizer()
        item = normalizer.transform_search_article(article, "tech", index=0)
        items = normalizer.parse_feed(xml_text, "Krebs on Security", "security")
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            rng: URL 없는 검색 결과용 대체 토큰 난수원. 테스트에서 시드 고정용.
            clock: 현재 시각(초) 함수. 날짜 파싱 실패 시 "now" 값에 사용.
            logger: 주입 로거. None이면 모듈 로거.
        """
        self._rng = rng or random.Random()
        self._clock = clock or time.time
        self._logger = logger or get_logger(__name__)

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ===== 구조화 검색 경로 =====

    def transform_search_article(
        self,
        article: Dict[str, Any],
        category: str,
        index: int,
        default_source: Optional[str] = None,
    ) -> NewsItem:
        """
        검색 API article 레코드 하나를 NewsItem으로 변환.

        Args:
            article: {title, url, seendate, domain} 레코드.
            category: 대상 카테고리.
            index: 상위 결과 목록 내 순번 (id 충돌 방지용).
            default_source: domain이 없을 때 쓸 카테고리 기본 소스 이름.
        """
        validate_category(category)
        title = str(article.get("title") or "").strip()
        url = str(article.get("url") or "").strip()
        seendate = str(article.get("seendate") or "").strip()
        domain = str(article.get("domain") or "").strip()

        url_hash = hash_code(url) if url else self._random_token()
        timestamp = parse_search_date_ms(seendate)
        if timestamp is None:
            timestamp = self.now_ms()

        return NewsItem(
            id=f"gdelt-{category}-{url_hash}-{index}",
            title=title or url,
            link=url,
            pub_date=seendate or None,
            timestamp=timestamp,
            source=domain or default_source or "Unknown",
            category=category,
        )

    def _random_token(self) -> str:
        # 실행 내에서만 고유. 실행 간 안정성은 보장하지 않음.
        return to_base36(self._rng.getrandbits(52))

    # ===== 피드 경로 =====

    def parse_feed(self, xml_text: str, source_name: str, category: str) -> List[NewsItem]:
        """
        RSS/Atom 문서를 NewsItem 목록으로 변환.

        RSS item 요소가 하나라도 있으면 그것만, 없으면 Atom entry 요소를 사용한다.
        제목과 링크가 모두 없는 항목은 건너뛴다. 파싱 불가 문서는 빈 리스트.
        """
        validate_category(category)
        try:
            root = ElementTree.fromstring((xml_text or "").lstrip("\ufeff \t\r\n"))
        except ElementTree.ParseError as e:
            self._logger.warning(
                "XML 파싱 실패: %s - %s (%r)",
                source_name, e, (xml_text or "")[:PAYLOAD_EXCERPT_LENGTH],
            )
            return []

        kind, elements = self._select_feed_elements(root)
        items: List[NewsItem] = []
        skipped = 0
        for element in elements:
            item = self._transform_feed_element(element, kind, source_name, category)
            if item is None:
                skipped += 1
                continue
            items.append(item)

        if skipped:
            self._logger.debug("식별 정보 없는 피드 항목 제외: %s (%d건)", source_name, skipped)
        self._logger.debug("피드 정규화 완료: %s → %d건 (%s)", source_name, len(items), kind.value)
        return items

    @staticmethod
    def _select_feed_elements(
        root: ElementTree.Element,
    ) -> Tuple[FeedElementKind, List[ElementTree.Element]]:
        """RSS item 우선, 없으면 Atom entry (둘을 섞지 않음)."""
        rss_items = [el for el in root.iter() if _local_name(el.tag) == "item"]
        if rss_items:
            return FeedElementKind.RSS_ITEM, rss_items
        entries = [el for el in root.iter() if _local_name(el.tag) == "entry"]
        return FeedElementKind.ATOM_ENTRY, entries

    def _transform_feed_element(
        self,
        element: ElementTree.Element,
        kind: FeedElementKind,
        source_name: str,
        category: str,
    ) -> Optional[NewsItem]:
        title = self._read_text(element, TITLE_FIELDS)
        description = self._clean_html(self._read_text(element, DESCRIPTION_FIELDS))

        link = self._read_text(element, LINK_FIELDS)
        if not link and kind is FeedElementKind.ATOM_ENTRY:
            link = self._atom_link_href(element)

        date_text = self._read_text(element, DATE_FIELDS)
        timestamp = parse_date_ms(date_text)
        pub_date: Optional[str] = date_text
        if timestamp is None:
            timestamp = self.now_ms()
            pub_date = None

        if not title and not link:
            return None

        id_source = link or f"{title}-{date_text or timestamp}"
        return NewsItem(
            id=f"rss-{category}-{hash_code(id_source)}",
            title=title or link,
            link=link,
            pub_date=pub_date,
            timestamp=timestamp,
            description=description or None,
            source=source_name,
            category=category,
        )

    @staticmethod
    def _read_text(element: ElementTree.Element, candidates: FieldCandidates) -> str:
        """후보 필드를 순서대로 찾아 첫 번째로 비어 있지 않은 텍스트 반환."""
        for namespaces, local in candidates:
            found = next(
                (el for el in element.iter() if el is not element and _matches(el, namespaces, local)),
                None,
            )
            if found is None:
                continue
            text = "".join(found.itertext()).strip()
            if text:
                return text
        return ""

    @staticmethod
    def _atom_link_href(element: ElementTree.Element) -> str:
        """Atom entry의 link href (rel="alternate" 우선, 없으면 첫 link)."""
        links = [el for el in element.iter() if el is not element and _matches(el, FEED_NAMESPACES, "link")]
        if not links:
            return ""
        chosen = next((el for el in links if el.get("rel") == "alternate"), links[0])
        return (chosen.get("href") or "").strip()

    @staticmethod
    def _clean_html(text: str) -> str:
        """HTML 태그 제거 및 정제."""
        if not text:
            return ""
        text = re.sub(r"<script[^>]*>.*?</script>", "", text, flags=re.DOTALL | re.IGNORECASE)
        text = re.sub(r"<style[^>]*>.*?</style>", "", text, flags=re.DOTALL | re.IGNORECASE)
        text = re.sub(r"<[^>]+>", "", text)
        text = html_module.unescape(text)
        lines = [line.strip() for line in text.split("\n")]
        return "\n".join(line for line in lines if line)
