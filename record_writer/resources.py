"""검증 규칙과 기재 원칙 문서를 프로세스 시작 시 한 번 읽어 두는 공용 캐시.

로드 이후에는 변경하지 않으므로 요청 간에 잠금 없이 공유한다.
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional

from record_writer import config
from record_writer.guidelines import GuidelineDocument, load_guidelines
from record_writer.models import RuleSet
from record_writer.rules import load_rules
from record_writer.validator import RecordValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordResources:
    rules: RuleSet
    guidelines: GuidelineDocument
    validator: RecordValidator
    rules_path: str
    guidelines_path: str
    rules_mtime: Optional[float] = None
    guidelines_mtime: Optional[float] = None

    @property
    def degraded(self):
        """규칙이나 기재 원칙을 하나도 읽지 못한 상태인지."""
        return self.rules.rule_count() == 0 or not self.guidelines


_lock = threading.Lock()
_resources = None


def _mtime(path):
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def _load(rules_path, guidelines_path):
    rules = load_rules(rules_path)
    guidelines = load_guidelines(guidelines_path)
    resources = RecordResources(
        rules=rules,
        guidelines=guidelines,
        validator=RecordValidator(rules),
        rules_path=rules_path,
        guidelines_path=guidelines_path,
        rules_mtime=_mtime(rules_path),
        guidelines_mtime=_mtime(guidelines_path),
    )
    if resources.degraded:
        logger.warning("검증 규칙 또는 기재 원칙 없이 동작합니다. 기재 금지 항목이 검출되지 않을 수 있습니다.")
    return resources


def init_resources(rules_path=None, guidelines_path=None):
    """규칙/기재 원칙을 읽어 캐시합니다. 이미 초기화되어 있으면 기존 값을 반환합니다."""
    global _resources
    with _lock:
        if _resources is None:
            _resources = _load(
                rules_path or config.VALIDATION_RULES_PATH,
                guidelines_path or config.GUIDELINES_PATH,
            )
        return _resources


def get_resources():
    return _resources or init_resources()


def reload_resources(rules_path=None, guidelines_path=None):
    """원본 파일을 다시 읽어 캐시를 교체합니다."""
    global _resources
    with _lock:
        current = _resources
        _resources = _load(
            rules_path or (current.rules_path if current else config.VALIDATION_RULES_PATH),
            guidelines_path or (current.guidelines_path if current else config.GUIDELINES_PATH),
        )
        logger.info("검증 규칙/기재 원칙을 다시 읽었습니다.")
        return _resources


def refresh_if_stale():
    """원본 파일의 수정 시각이 바뀌었을 때만 다시 읽습니다."""
    current = get_resources()
    if (
        _mtime(current.rules_path) == current.rules_mtime
        and _mtime(current.guidelines_path) == current.guidelines_mtime
    ):
        return current
    return reload_resources()


def reset_resources():
    """캐시를 비웁니다 (테스트용)."""
    global _resources
    with _lock:
        _resources = None
