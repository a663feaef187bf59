"""학교생활기록부 기재 원칙 문서 (마크다운)를 제목 트리로 다루는 모듈.

문서는 한 번 파싱해 두고, 섹션 조회와 수준별 필터링은 트리 질의로 처리한다.
각 노드는 원문 줄 범위를 그대로 가지므로 출력 텍스트는 원문과 같다.
"""

import logging
import re

from record_writer import config

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*$")
SUBJECT_PLACEHOLDER = "[교과명]"


class SectionNode:
    def __init__(self, title, depth, start, lines, parent=None):
        self.title = title
        self.depth = depth
        self.start = start
        self.end = start
        self.children = []
        self.parent = parent
        self._lines = lines

    def __repr__(self):
        return f"SectionNode({self.title!r}, depth={self.depth})"

    @property
    def text(self):
        """제목 줄부터 다음 같은(또는 상위) 제목 직전까지의 원문."""
        return "\n".join(self._lines[self.start:self.end]).strip()

    def text_until(self, child):
        """이 섹션의 시작부터 child 섹션 직전까지의 원문."""
        return "\n".join(self._lines[self.start:child.start]).strip()

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, title_prefix):
        """하위 트리에서 제목이 title_prefix로 시작하는 첫 섹션 (깊이 우선)."""
        for node in self.walk():
            if node is not self and node.title.startswith(title_prefix):
                return node
        return None


class GuidelineDocument:
    def __init__(self, source=""):
        self.source = source or ""
        self.lines = self.source.split("\n")
        self.root = SectionNode("", 0, 0, self.lines)
        self._parse()

    @classmethod
    def empty(cls):
        return cls("")

    def _parse(self):
        stack = [self.root]
        in_code_block = False
        for index, line in enumerate(self.lines):
            if line.lstrip().startswith("```"):
                in_code_block = not in_code_block
                continue
            match = None if in_code_block else HEADING_RE.match(line)
            if not match:
                continue
            depth = len(match.group(1))
            while stack[-1].depth >= depth:
                stack.pop().end = index
            node = SectionNode(match.group(2), depth, index, self.lines, parent=stack[-1])
            stack[-1].children.append(node)
            stack.append(node)
        for node in stack:
            node.end = len(self.lines)

    def __bool__(self):
        return bool(self.source.strip())

    def find(self, title_prefix):
        return self.root.find(title_prefix)

    def section_text(self, title_prefix):
        node = self.find(title_prefix)
        return node.text if node else ""

    def with_subject(self, subject):
        """첫 번째 [교과명] 자리표시자를 교과명으로 바꾼 새 문서."""
        if not subject or SUBJECT_PLACEHOLDER not in self.source:
            return self
        return GuidelineDocument(self.source.replace(SUBJECT_PLACEHOLDER, subject, 1))


def load_guidelines(path=None):
    """기재 원칙 문서를 읽어 트리로 파싱합니다. 실패하면 빈 문서를 반환합니다."""
    path = path or config.GUIDELINES_PATH
    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except (OSError, ValueError) as e:
        logger.warning("학교생활기록부 기재 원칙 파일을 읽을 수 없습니다 (%s): %s", path, e)
        return GuidelineDocument.empty()

    document = GuidelineDocument(source)
    logger.info("기재 원칙 문서 로드 완료: %s (섹션 %d개)", path, sum(1 for _ in document.root.walk()) - 1)
    return document
