"""Module 6: Geo Query Builder - 도시/주 기반 지역 검색 질의"""

import re

# 검색 API 불리언 질의 문법을 깨뜨리는 문자 (괄호, 따옴표)
QUERY_UNSAFE_CHARS = re.compile(r"[()\"'“”‘’]")


def sanitize_query_term(value: str) -> str:
    """괄호/따옴표 제거 후 공백 정리."""
    cleaned = QUERY_UNSAFE_CHARS.sub("", value or "")
    return " ".join(cleaned.split())


def build_geo_query(city: str, state: str) -> str:
    """
    도시/주 입력으로 OR 그룹 질의 생성.

    '("city, state" OR "city state" OR "city" OR "state")' 형태이며,
    비어 있는 입력에 해당하는 대안은 제외한다.
    둘 다 비어 있으면 빈 문자열 (호출자는 검색하지 않고 빈 결과 반환).
    """
    city = sanitize_query_term(city)
    state = sanitize_query_term(state)

    alternatives = []
    if city and state:
        alternatives.append(f'"{city}, {state}"')
        alternatives.append(f'"{city} {state}"')
    if city:
        alternatives.append(f'"{city}"')
    if state:
        alternatives.append(f'"{state}"')

    if not alternatives:
        return ""
    return "(" + " OR ".join(alternatives) + ")"
