import re

# 문장 종결 부호: 마침표, 느낌표, 물음표, 동아시아 마침표
SENTENCE_TERMINALS_RE = re.compile(r"[.!?。]")


def segment(text):
    """텍스트를 문장 단위로 나눈다. 빈 조각은 버리고 각 문장은 trim한다."""
    if not text:
        return []
    return [s.strip() for s in SENTENCE_TERMINALS_RE.split(text) if s.strip()]
