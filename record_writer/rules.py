import json
import logging

from record_writer import config
from record_writer.models import (
    PROHIBITED_CATEGORIES,
    STYLE_CATEGORIES,
    Rule,
    RuleSet,
    Severity,
)

logger = logging.getLogger(__name__)


def _string_list(value, field, category):
    """문자열 목록만 받아들입니다. 목록이 아니면 경고 후 빈 값으로 취급합니다."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        logger.warning("%s 값이 목록이 아니어서 무시합니다 (%s): %r", field, category, value)
        return ()
    invalid = [v for v in value if not isinstance(v, str) or not v]
    if invalid:
        logger.warning("%s에서 문자열이 아닌 항목을 무시합니다 (%s): %r", field, category, invalid)
    return tuple(v for v in value if isinstance(v, str) and v)


def _parse_rule(entry, category):
    """JSON 규칙 항목 하나를 Rule로 변환합니다. 형식이 잘못되면 None."""
    if not isinstance(entry, dict):
        logger.warning("검증 규칙 형식 오류 (%s): 객체가 아님 -> %r", category, entry)
        return None

    keyword = entry.get("keyword") or None
    if keyword is not None and not isinstance(keyword, str):
        logger.warning("keyword 값이 문자열이 아니어서 무시합니다 (%s): %r", category, keyword)
        keyword = None
    keywords = _string_list(entry.get("keywords"), "keywords", category)
    if not keyword and not keywords:
        logger.warning("검증 규칙에 keyword/keywords가 없어 건너뜁니다 (%s): %r", category, entry)
        return None

    severity = Severity.parse(entry.get("severity"))
    if severity is None:
        logger.warning("알 수 없는 severity 값으로 규칙을 건너뜁니다 (%s): %r", category, entry.get("severity"))
        return None

    return Rule(
        violation_type=entry.get("type") or category,
        severity=severity,
        suggestion=entry.get("suggestion") or "",
        keyword=keyword,
        keywords=keywords,
        full=entry.get("full"),
        correct=entry.get("correct"),
    )


def _parse_group(group, names):
    parsed = {}
    group = group if isinstance(group, dict) else {}
    for name in names:
        entries = group.get(name) or []
        if not isinstance(entries, list):
            logger.warning("검증 규칙 카테고리 '%s'가 목록이 아니어서 비워 둡니다.", name)
            entries = []
        parsed[name] = tuple(r for r in (_parse_rule(e, name) for e in entries) if r is not None)
    return parsed


def parse_rules(data):
    """validation-rules.json 구조(dict)를 RuleSet으로 변환합니다."""
    if not isinstance(data, dict):
        raise ValueError("검증 규칙 최상위 구조는 객체여야 합니다.")

    context_keywords = _string_list(data.get("academicContextKeywords"), "academicContextKeywords", "top-level")
    return RuleSet(
        prohibited=_parse_group(data.get("prohibitedItems"), PROHIBITED_CATEGORIES),
        style=_parse_group(data.get("styleRules"), STYLE_CATEGORIES),
        academic_context_keywords=context_keywords,
    )


def load_rules(path=None):
    """
    검증 규칙 파일을 읽어 RuleSet을 반환합니다.
    읽기/파싱 실패 시 모든 카테고리가 빈 규칙 집합을 반환합니다 (검증은 계속 진행).
    """
    path = path or config.VALIDATION_RULES_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        rules = parse_rules(data)
    except (OSError, ValueError) as e:
        logger.warning("검증 규칙 파일을 읽을 수 없어 빈 규칙으로 동작합니다 (%s): %s", path, e)
        return RuleSet.empty()

    logger.info("검증 규칙 로드 완료: %s (%d개 규칙)", path, rules.rule_count())
    return rules
