import pandas as pd

from record_writer import config
from record_writer.attachments import (
    mark_multiple_spaces,
    read_attachment,
    render_with_attachments,
    xlsx_to_markdown,
)
from record_writer.context import TRUNCATION_MARKER
from record_writer.models import AttachedFile, Message, Role


def write_sheet(path, rows):
    pd.DataFrame(rows).to_excel(path, header=False, index=False, engine="openpyxl")
    return str(path)


NEIS_ROWS = [
    ["2025학년도 학교생활기록부 과목별 세부능력 및 특기사항", None, None, None, None, None],
    ["과 목", "학년", "반", "번호", "성명", "세부능력 및 특기사항"],
    ["물리학", "2", "3", "1", "김철수", "역학 단원에서 실험을 설계함."],
    [None, None, None, None, None, "추가로  결과를 분석함."],
    ["물리학", "2", "3", "2", "이영희", "탐구 보고서를 작성함."],
    ["과 목", "학년", "반", "번호", "성명", "세부능력 및 특기사항"],
]


class TestMarkMultipleSpaces:
    def test_marks_spaces(self):
        assert mark_multiple_spaces("가  나") == "가 [공백2칸] 나"
        assert mark_multiple_spaces("가    나") == "가 [공백3칸이상] 나"

    def test_non_string(self):
        assert mark_multiple_spaces(None) is None


class TestXlsxToMarkdown:
    def test_neis_export(self, tmp_path):
        markdown = xlsx_to_markdown(write_sheet(tmp_path / "세특.xlsx", NEIS_ROWS))

        assert "### 물리학 - 김철수 (No.1)" in markdown
        assert "### 물리학 - 이영희 (No.2)" in markdown
        assert "- **학년:** 2학년" in markdown
        assert "- **세부능력및특기사항:**" in markdown
        # 나뉜 행은 학생별로 합쳐지고 2칸 공백은 표시됨
        assert "> 역학 단원에서 실험을 설계함. 추가로 [공백2칸] 결과를 분석함." in markdown
        assert markdown.count("### ") == 2
        assert markdown.index("김철수") < markdown.index("이영희")

    def test_missing_name_column(self, tmp_path):
        rows = [["학생성명", "세부능력 및 특기사항"], ["김철수", "실험을 설계함."]]
        assert xlsx_to_markdown(write_sheet(tmp_path / "a.xlsx", rows)).startswith("오류:")

    def test_sheet_without_record_header(self, tmp_path):
        rows = [["항목", "값"], ["출석", "20"]]
        markdown = xlsx_to_markdown(write_sheet(tmp_path / "표.xlsx", rows))
        assert "|" in markdown
        assert "출석" in markdown

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "깨짐.xlsx"
        path.write_bytes(b"not an excel file")
        assert xlsx_to_markdown(str(path)).startswith("오류:")


class TestReadAttachment:
    def test_utf8_text(self, tmp_path):
        path = tmp_path / "메모.txt"
        path.write_text("학생 관찰 기록", encoding="utf-8")
        assert read_attachment(str(path)) == "학생 관찰 기록"

    def test_cp949_text(self, tmp_path):
        path = tmp_path / "upload"
        path.write_bytes("학생 관찰 기록".encode("cp949"))
        assert read_attachment(str(path), "기록.txt") == "학생 관찰 기록"

    def test_excel(self, tmp_path):
        path = write_sheet(tmp_path / "세특.xlsx", NEIS_ROWS)
        assert "김철수" in read_attachment(path)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "사진.png"
        path.write_bytes(b"\x89PNG")
        assert read_attachment(str(path)).startswith("오류: 지원하지 않는 파일 형식")

    def test_too_large(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 4)
        path = tmp_path / "큰파일.txt"
        path.write_text("12345678", encoding="utf-8")
        assert "너무 큽니다" in read_attachment(str(path))


class TestRenderWithAttachments:
    def test_without_files(self):
        assert render_with_attachments(Message(role=Role.USER, content="본문")) == "본문"

    def test_frames_and_trims_files(self):
        long_content = "\n".join(["x" * 30] * 10)
        message = Message(
            role=Role.USER,
            content="본문",
            attached_files=(AttachedFile("a.txt", "짧은 내용"), AttachedFile("b.txt", long_content)),
        )
        rendered = render_with_attachments(message, max_length=100)
        assert rendered.startswith("본문\n\n--- a.txt ---\n짧은 내용\n--- 파일 끝 ---")
        assert "\n\n--- b.txt ---\n" in rendered
        assert f"{TRUNCATION_MARKER}\n--- 파일 끝 ---" in rendered
