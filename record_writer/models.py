from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class _ParsableEnum(str, Enum):
    """문자열 값으로 관대하게 변환되는 열거형 (알 수 없는 값은 None)."""

    @classmethod
    def parse(cls, value):
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            return None


class Severity(_ParsableEnum):
    CRITICAL = "critical"  # 절대 기재 불가
    WARNING = "warning"    # 반드시 고쳐야 하는 문체 문제
    MINOR = "minor"        # 문체상 권장 사항


class Category(_ParsableEnum):
    SUBJECT_DETAIL = "subject-detail"  # 교과 세부능력 및 특기사항
    ACTIVITY = "activity"              # 창의적 체험활동
    BEHAVIOR = "behavior"              # 행동특성 및 종합의견


class Level(_ParsableEnum):
    ADVANCED = "advanced"
    INTERMEDIATE = "intermediate"
    BASIC = "basic"


class PromptMode(_ParsableEnum):
    CREATE = "create"
    REVIEW = "review"


class Role(_ParsableEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# 검증 규칙 카테고리 (평가 순서 고정)
PROHIBITED_CATEGORIES = ("languageTests", "externalAwards", "academicKeywords", "familyKeywords")
STYLE_CATEGORIES = ("firstPersonWords", "abbreviations", "wrongEndings", "excessivePraise")


@dataclass(frozen=True)
class Rule:
    violation_type: str
    severity: Severity
    suggestion: str
    keyword: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    full: Optional[str] = None
    correct: Optional[str] = None

    @property
    def match_keywords(self) -> Tuple[str, ...]:
        """단일 keyword와 keywords 목록을 합친 검사 대상 키워드."""
        if self.keyword:
            return (self.keyword,) + tuple(k for k in self.keywords if k != self.keyword)
        return self.keywords


def _freeze(groups):
    return MappingProxyType({name: tuple(rules) for name, rules in (groups or {}).items()})


@dataclass(frozen=True)
class RuleSet:
    prohibited: Mapping[str, Tuple[Rule, ...]] = field(default_factory=dict)
    style: Mapping[str, Tuple[Rule, ...]] = field(default_factory=dict)
    academic_context_keywords: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "prohibited", _freeze(self.prohibited))
        object.__setattr__(self, "style", _freeze(self.style))
        object.__setattr__(self, "academic_context_keywords", tuple(self.academic_context_keywords))

    @classmethod
    def empty(cls):
        """모든 카테고리가 비어 있는 규칙 집합 (로드 실패 시 사용)."""
        return cls(
            prohibited={name: () for name in PROHIBITED_CATEGORIES},
            style={name: () for name in STYLE_CATEGORIES},
        )

    def rules_for(self, category: str) -> Tuple[Rule, ...]:
        # 누락된 카테고리는 빈 목록으로 취급
        if category in self.prohibited:
            return self.prohibited[category]
        return self.style.get(category, ())

    def rule_count(self) -> int:
        return sum(len(rules) for rules in self.prohibited.values()) + sum(
            len(rules) for rules in self.style.values()
        )


@dataclass(frozen=True)
class Violation:
    type: str
    found: str
    context: str
    suggestion: str
    severity: Severity

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "found": self.found,
            "context": self.context,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ValidationResult:
    violations: Tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def count_by_severity(self) -> dict:
        counts = {severity.value: 0 for severity in Severity}
        for violation in self.violations:
            counts[violation.severity.value] += 1
        return counts

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "violations": [v.to_dict() for v in self.violations],
        }


@dataclass(frozen=True)
class AttachedFile:
    name: str
    content: str
    size: int = 0


@dataclass(frozen=True)
class Message:
    role: Role
    content: str = ""
    attached_files: Tuple[AttachedFile, ...] = ()


@dataclass(frozen=True)
class PromptSelection:
    category: Optional[Category] = None
    subject: Optional[str] = None
    level: Optional[Level] = None
    is_continuation: bool = False

    @classmethod
    def from_values(cls, category=None, subject=None, level=None, is_continuation=False):
        """호출자가 넘긴 문자열 값으로 선택 조건을 만든다."""
        subject = subject.strip() if isinstance(subject, str) else None
        return cls(
            category=Category.parse(category),
            subject=subject or None,
            level=Level.parse(level),
            is_continuation=bool(is_continuation),
        )
