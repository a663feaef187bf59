"""학교생활기록부 기재 원칙 검증기.

문장 단위로 나눈 뒤 규칙 카테고리를 정해진 순서대로 검사한다.
한 문장에서 여러 규칙이 걸리면 모두 기록하고, 겹치는 키워드도 중복 제거하지 않는다.
"""

import logging

from record_writer.matcher import KeywordMatcher
from record_writer.models import Rule, Severity, ValidationResult, Violation
from record_writer.segmenter import segment

logger = logging.getLogger(__name__)

# '발표'는 논문/학회 맥락일 때만 위반
PRESENTATION_KEYWORD = "발표"
PRESENTATION_RULE = Rule(
    violation_type="논문/학회 관련 발표 금지",
    severity=Severity.CRITICAL,
    suggestion="논문이나 학회 발표는 기재할 수 없습니다. 교내 수업 발표나 동아리 발표 활동으로 수정하세요.",
    keyword=PRESENTATION_KEYWORD,
)

# None 자리에서 '발표' 맥락 검사를 수행
EVALUATION_ORDER = (
    "languageTests",
    "externalAwards",
    "academicKeywords",
    None,
    "familyKeywords",
    "firstPersonWords",
    "abbreviations",
    "wrongEndings",
    "excessivePraise",
)


def _violation(rule, keyword, sentence):
    return Violation(
        type=rule.violation_type,
        found=keyword,
        context=f'"{sentence}"',
        suggestion=rule.suggestion,
        severity=rule.severity,
    )


class RecordValidator:
    """RuleSet을 카테고리별 매처로 컴파일해 두고 재사용하는 검증기."""

    def __init__(self, rules):
        self.rules = rules
        self._matchers = {}
        for category in EVALUATION_ORDER:
            if category is None:
                continue
            keywords = [k for rule in rules.rules_for(category) for k in rule.match_keywords]
            self._matchers[category] = KeywordMatcher(keywords)
        self._academic_context = KeywordMatcher(rules.academic_context_keywords)

    def _scan_category(self, category, sentence):
        matcher = self._matchers[category]
        if not len(matcher):
            return []
        found = matcher.find_all(sentence)
        if not found:
            return []
        return [
            _violation(rule, keyword, sentence)
            for rule in self.rules.rules_for(category)
            for keyword in rule.match_keywords
            if keyword in found
        ]

    def _scan_presentation(self, sentence, document_has_context):
        if PRESENTATION_KEYWORD not in sentence:
            return []
        if document_has_context or self._academic_context.contains_any(sentence):
            return [_violation(PRESENTATION_RULE, PRESENTATION_KEYWORD, sentence)]
        return []

    def validate(self, text):
        sentences = segment(text)
        if not sentences:
            return ValidationResult()

        # 학술 맥락 키워드가 문서 어디든 있으면 모든 '발표' 문장이 대상
        document_has_context = self._academic_context.contains_any(text)

        violations = []
        for sentence in sentences:
            for category in EVALUATION_ORDER:
                if category is None:
                    violations.extend(self._scan_presentation(sentence, document_has_context))
                else:
                    violations.extend(self._scan_category(category, sentence))

        if violations:
            logger.debug("기재 원칙 위반 %d건 (문장 %d개)", len(violations), len(sentences))
        return ValidationResult(violations=tuple(violations))


def validate_record(text, rules=None):
    """
    기재 원칙 위반 여부를 검사합니다.
    rules를 넘기지 않으면 프로세스 공용 캐시의 규칙을 사용합니다.
    """
    if rules is None:
        from record_writer.resources import get_resources

        return get_resources().validator.validate(text)
    return RecordValidator(rules).validate(text)
