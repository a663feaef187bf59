"""대화 기록/첨부 파일을 토큰 예산에 맞게 줄이는 함수와 토큰 추정기."""

import math
import re

from record_writer.models import Role

# 학생부 관련 대화로 보고 오래된 메시지라도 남길 키워드
IMPORTANT_MESSAGE_KEYWORDS = ("세특", "학생부", "동아리", "진로")

# 파일 내용 중 우선 보존할 줄 (제목 기호, 핵심 단어)
IMPORTANT_LINE_MARKERS = ("##", "###", "중요", "핵심", "필수", "금지", "목표", "결과")

TRUNCATION_MARKER = "\n\n[... 내용 일부 생략 ...]"

# 한글 음절 + 한글 자모 + 호환용 자모
HANGUL_RE = re.compile(r"[가-힣ᄀ-ᇿㄱ-ㆎ]")


def _is_important(message):
    content = message.content or ""
    if message.role is Role.USER:
        return len(content) > 50 or any(k in content for k in IMPORTANT_MESSAGE_KEYWORDS)
    return len(content) > 200


def trim_history(messages, is_school_record_mode, is_continuation):
    """
    대화 기록을 제한된 창 크기로 줄입니다.

    1. 3개 이하: 그대로
    2. 연속 요청: 최근 3개
    3. 창 크기(학생부 모드 6, 일반 8) 이하: 그대로
    4. 그 외: 이전 메시지 중 중요한 것 최대 2개 + 최근 4개
    """
    messages = list(messages)
    if len(messages) <= 3:
        return messages

    if is_continuation:
        return messages[-3:]

    max_messages = 6 if is_school_record_mode else 8
    if len(messages) <= max_messages:
        return messages

    recent = messages[-4:]
    older = messages[:-4]
    important = [m for m in older if _is_important(m)][-2:]
    return important + recent


def trim_file_content(content, max_length=2000):
    """
    첨부 파일 내용을 max_length 글자에 맞춥니다.
    중요한 줄은 모두 먼저 싣고, 나머지 줄은 예산이 허락하는 만큼 순서대로 붙입니다.
    """
    content = content or ""
    if len(content) <= max_length:
        return content

    important_lines = []
    normal_lines = []
    for line in content.split("\n"):
        if any(marker in line for marker in IMPORTANT_LINE_MARKERS):
            important_lines.append(line)
        elif line.strip():
            normal_lines.append(line)

    result = "\n".join(important_lines)
    for line in normal_lines:
        if len(result) + len(line) + 1 > max_length:
            break
        result = f"{result}\n{line}" if result else line

    if len(result) < len(content):
        result += TRUNCATION_MARKER
    return result


def estimate_tokens(messages):
    """대략적인 토큰 수: 한글 1자 ≈ 1.5토큰, 그 외 4자 ≈ 1토큰 (메시지별 올림)."""
    total = 0
    for message in messages or ():
        content = getattr(message, "content", None)
        if content is None and isinstance(message, dict):
            content = message.get("content")
        content = content if isinstance(content, str) else ""
        korean_chars = len(HANGUL_RE.findall(content))
        other_chars = len(content) - korean_chars
        total += math.ceil(korean_chars * 1.5 + other_chars / 4)
    return total
