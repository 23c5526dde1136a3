"""YAML 설정 로더 (수집 파이프라인용)"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from news_ingest.utils.logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "NEWS_INGEST_"

# 파이프라인이 읽는 최상위 섹션. 없으면 PipelineConfig 기본값으로 동작한다.
REQUIRED_SECTIONS = ("search", "orchestration", "feeds", "keywords")


class ConfigManager:
    """
    config 디렉토리의 YAML 파일을 하나의 섹션 트리로 병합.

    - 파일마다 최상위는 매핑이어야 함 (아니면 해당 파일 무시)
    - 같은 섹션이 여러 파일에 있으면 나중 파일(이름순)이 우선, 경고 기록
    - 필수 섹션(search, orchestration, feeds, keywords) 누락 시 경고
    - dot-notation 조회 + 환경변수 오버라이드:
      "orchestration.category_delay_seconds" → NEWS_INGEST_ORCHESTRATION_CATEGORY_DELAY_SECONDS
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        """
        Args:
            config_dir: YAML 디렉토리. None이면 패키지 내장 config 디렉토리.
        """
        if config_dir is None:
            config_dir = str(Path(__file__).parent.parent / "config")

        self.config_dir = config_dir
        self._sections: Dict[str, Any] = {}
        self._section_files: Dict[str, str] = {}
        self._load_dir(Path(config_dir))

        for section in self.missing_sections():
            logger.warning("설정 섹션 누락 (기본값 사용): %s", section)

    def _load_dir(self, config_path: Path) -> None:
        if not config_path.is_dir():
            logger.warning("설정 디렉토리가 존재하지 않습니다: %s", config_path)
            return

        for yaml_file in sorted(config_path.glob("*.yaml")):
            if yaml_file.name.startswith("logging"):
                continue  # setup_logging 전용
            try:
                data = self.load(str(yaml_file))
            except (OSError, yaml.YAMLError) as e:
                logger.error("설정 파일 로드 실패: %s - %s", yaml_file.name, e)
                continue

            if not isinstance(data, dict):
                logger.error("설정 파일 최상위가 매핑이 아님: %s", yaml_file.name)
                continue

            for section, value in data.items():
                previous = self._section_files.get(section)
                if previous is not None:
                    logger.warning(
                        "설정 섹션 중복: %s (%s → %s)", section, previous, yaml_file.name
                    )
                self._sections[section] = value
                self._section_files[section] = yaml_file.name
            logger.debug("설정 파일 로드 완료: %s", yaml_file.name)

    @staticmethod
    def load(filepath: str) -> Any:
        """YAML 파일 하나를 읽는다. 빈 파일은 빈 딕셔너리."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if data is not None else {}

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        dot-notation 조회. 환경변수 오버라이드가 있으면 그 문자열을 반환.

        Args:
            key_path: "search.timespan" 형태의 키 경로.
            default: 키가 없을 때 반환할 값.
        """
        env_value = os.environ.get(self.env_key(key_path))
        if env_value is not None:
            return env_value

        current: Any = self._sections
        for key in key_path.split("."):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def missing_sections(self) -> List[str]:
        """로드된 파일 어디에도 없는 필수 섹션 목록."""
        return [s for s in REQUIRED_SECTIONS if s not in self._sections]

    def source_file(self, section: str) -> Optional[str]:
        """섹션을 정의한 파일 이름 (없으면 None)."""
        return self._section_files.get(section)

    @staticmethod
    def env_key(key_path: str) -> str:
        return ENV_PREFIX + key_path.upper().replace(".", "_")
