"""NewsIngest - 카테고리 뉴스 수집 데모 진입점

사용법:
    python main.py                     # 전체 카테고리
    python main.py security sysadmin   # 지정 카테고리
    python main.py --local Austin TX   # 지역 뉴스
    python main.py tech --json         # JSON 출력
"""

import argparse
import asyncio
import dataclasses
import json
import sys
from typing import Any, Dict, Optional, Sequence

from news_ingest.ingestion.ingestion_engine import FetchNewsResult, IngestionEngine
from news_ingest.models.news import LOCAL_CATEGORY, NEWS_CATEGORIES
from news_ingest.models.pipeline_config import PipelineConfig
from news_ingest.utils.config_manager import ConfigManager
from news_ingest.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

ORCHESTRATED_CATEGORIES = [c for c in NEWS_CATEGORIES if c != LOCAL_CATEGORY]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="카테고리별 뉴스 수집 (검색 API + RSS/Atom 피드)")
    parser.add_argument(
        "categories",
        nargs="*",
        metavar="CATEGORY",
        help="수집할 카테고리 (생략 시 전체)",
    )
    parser.add_argument("--local", nargs=2, metavar=("CITY", "STATE"), help="지역 뉴스 수집")
    parser.add_argument("--json", action="store_true", help="JSON으로 출력")
    parser.add_argument("--delay", type=float, help="카테고리 간 지연(초) 덮어쓰기")
    parser.add_argument("--config-dir", help="YAML 설정 디렉토리")
    parser.add_argument("--log-level", default=None, help="로그 레벨 (DEBUG, INFO, ...)")
    return parser


async def run(args: argparse.Namespace, engine: IngestionEngine) -> FetchNewsResult:
    """인자에 맞는 수집 실행."""
    if args.local:
        city, state = args.local
        return FetchNewsResult(items={LOCAL_CATEGORY: await engine.fetch_local_news(city, state)})

    return await engine.fetch_categories(args.categories or engine.categories)


def render_text(result: FetchNewsResult, limit: int = 5) -> str:
    lines = []
    for category, items in result.items.items():
        alerts = sum(1 for item in items if item.is_alert)
        lines.append(f"[{category}] {len(items)}건 (알림 {alerts}건)")
        for item in items[:limit]:
            flag = "!" if item.is_alert else "-"
            lines.append(f"  {flag} {item.title[:90]} ({item.source})")
    for category, message in result.errors.items():
        lines.append(f"[{category}] 수집 실패: {message}")
    return "\n".join(lines)


def render_json(result: FetchNewsResult) -> str:
    payload: Dict[str, Any] = {
        "news": {category: [item.to_dict() for item in items] for category, items in result.items.items()},
        "errors": dict(result.errors),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    unknown = [c for c in args.categories if c not in ORCHESTRATED_CATEGORIES]
    if unknown:
        parser.error(f"알 수 없는 카테고리: {', '.join(unknown)}")
    setup_logging(level=args.log_level)

    pipeline = PipelineConfig.from_config(ConfigManager(config_dir=args.config_dir))
    if args.delay is not None:
        pipeline = dataclasses.replace(pipeline, category_delay_seconds=args.delay)

    engine = IngestionEngine(pipeline)
    logger.info("NewsIngest 시작")
    try:
        result = asyncio.run(run(args, engine))
    finally:
        engine.close()

    print(render_json(result) if args.json else render_text(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
