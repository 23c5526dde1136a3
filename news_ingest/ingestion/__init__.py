from news_ingest.ingestion.ingestion_engine import (
    CategoryResult,
    FetchNewsResult,
    IngestionEngine,
    fetch_all_news,
    fetch_all_news_with_errors,
    fetch_category_news,
    fetch_local_news,
)
from news_ingest.ingestion.search_connector import SearchConnector, build_or_query
from news_ingest.ingestion.feed_connector import FeedListConnector
from news_ingest.ingestion.geo_query import build_geo_query, sanitize_query_term
from news_ingest.ingestion.transport import FetchResponse, RequestsTransport, Transport

__all__ = [
    "CategoryResult",
    "FetchNewsResult",
    "IngestionEngine",
    "fetch_all_news",
    "fetch_all_news_with_errors",
    "fetch_category_news",
    "fetch_local_news",
    "SearchConnector",
    "build_or_query",
    "FeedListConnector",
    "build_geo_query",
    "sanitize_query_term",
    "FetchResponse",
    "RequestsTransport",
    "Transport",
]
