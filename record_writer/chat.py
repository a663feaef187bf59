"""LLM 호출 직전/직후의 조합 로직 (Chainlit 앱에서 사용)."""

import logging

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from record_writer.attachments import render_with_attachments
from record_writer.context import estimate_tokens, trim_history
from record_writer.models import Message, PromptMode, PromptSelection, Role, Severity
from record_writer.prompts import build_full_system_prompt, compile_prompt

logger = logging.getLogger(__name__)

CONTINUATION_REQUEST = "위 내용에 이어서 간결하게 계속 작성해주세요."

SEVERITY_ICONS = {
    Severity.CRITICAL.value: "🚨",
    Severity.WARNING.value: "⚠️",
    Severity.MINOR.value: "ℹ️",
}


def build_llm_messages(history, selection=None, mode=PromptMode.CREATE, resources=None, optimize=True,
                       max_file_length=None):
    """
    대화 기록으로 LLM에 보낼 메시지 목록을 만듭니다.
    반환값: (LangChain 메시지 목록, 추정 입력 토큰 수)
    """
    selection = selection or PromptSelection()
    guidelines = resources.guidelines if resources is not None else None

    trimmed = trim_history(history, is_school_record_mode=True, is_continuation=selection.is_continuation)
    rendered = [
        Message(role=m.role, content=render_with_attachments(m, max_file_length)) for m in trimmed
    ]

    if optimize:
        system_prompt = compile_prompt(rendered, selection, mode, guidelines=guidelines)
    else:
        system_prompt = build_full_system_prompt(guidelines)

    llm_messages = [SystemMessage(content=system_prompt)]
    for m in rendered:
        if m.role is Role.ASSISTANT:
            llm_messages.append(AIMessage(content=m.content))
        elif m.role is Role.USER:
            llm_messages.append(HumanMessage(content=m.content))

    tokens = estimate_tokens([Message(role=Role.SYSTEM, content=system_prompt)] + rendered)
    logger.info(
        "LLM 요청 준비: 메시지 %d -> %d개, 추정 입력 토큰 %d (mode=%s, category=%s, continuation=%s)",
        len(history), len(trimmed), tokens, PromptMode.parse(mode),
        selection.category, selection.is_continuation,
    )
    return llm_messages, tokens


def chunk_text(chunk):
    """스트리밍 청크의 content에서 텍스트만 추출합니다."""
    content = getattr(chunk, "content", chunk)
    if isinstance(content, list):
        # 리스트인 경우 텍스트만 추출
        return ''.join(
            item.get('text', '') if isinstance(item, dict) else str(item)
            for item in content
        )
    if isinstance(content, str):
        return content
    return str(content) if content is not None else ""


def format_violations(result):
    """검증 결과를 사용자에게 보여줄 Markdown 경고문으로 만듭니다. 위반이 없으면 빈 문자열."""
    payload = result.to_dict()
    if payload["is_valid"]:
        return ""

    counts = result.count_by_severity()
    lines = [
        "## ⚠️ 학교생활기록부 기재 원칙 검토 필요",
        f"총 {len(payload['violations'])}건 (필수 수정 {counts['critical']}, 권고 {counts['warning']}, 참고 {counts['minor']})",
        "",
    ]
    for index, violation in enumerate(payload["violations"], start=1):
        icon = SEVERITY_ICONS.get(violation["severity"], "•")
        lines.append(f"{index}. {icon} **{violation['type']}**")
        lines.append(f"   - 발견된 내용: `{violation['found']}`")
        lines.append(f"   - 문맥: {violation['context']}")
        lines.append(f"   - 수정 제안: {violation['suggestion']}")
    return "\n".join(lines)


def complete_turn(history, user_message, response_text):
    """응답에 성공한 요청만 대화 기록에 남깁니다. 실패한 요청은 기록을 바꾸지 않습니다."""
    return list(history) + [user_message, Message(role=Role.ASSISTANT, content=response_text)]
