"""학교생활기록부 작성 도우미: 기재 원칙 검증기와 프롬프트 조합기.

Usage::

    from record_writer import compile_prompt, init_resources, validate_record

    init_resources()
    result = validate_record("학생은 TOEFL 110점을 취득함.")
    result.is_valid  # False
"""

from record_writer.context import estimate_tokens, trim_file_content, trim_history
from record_writer.guidelines import GuidelineDocument, load_guidelines
from record_writer.models import (
    Category,
    Level,
    Message,
    PromptMode,
    PromptSelection,
    Role,
    Rule,
    RuleSet,
    Severity,
    ValidationResult,
    Violation,
)
from record_writer.prompts import compile_prompt, extract_relevant_guidelines
from record_writer.resources import get_resources, init_resources, reload_resources
from record_writer.rules import load_rules
from record_writer.segmenter import segment
from record_writer.validator import RecordValidator, validate_record

__all__ = [
    "Category",
    "GuidelineDocument",
    "Level",
    "Message",
    "PromptMode",
    "PromptSelection",
    "RecordValidator",
    "Role",
    "Rule",
    "RuleSet",
    "Severity",
    "ValidationResult",
    "Violation",
    "compile_prompt",
    "estimate_tokens",
    "extract_relevant_guidelines",
    "get_resources",
    "init_resources",
    "load_guidelines",
    "load_rules",
    "reload_resources",
    "segment",
    "trim_file_content",
    "trim_history",
    "validate_record",
]
