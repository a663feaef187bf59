import logging
import os
import re

import numpy as np
import pandas as pd

from record_writer import config
from record_writer.context import trim_file_content

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".md", ".csv", ".json")
EXCEL_EXTENSIONS = (".xlsx", ".xls")

# 학생 식별용 컬럼 (병합 셀은 forward fill)
ID_COLUMNS = ['과목', '학년', '반', '번호', '성명']
CONTENT_COLUMN_KEYS = ('세부능력및특기사항', '행동특성및종합의견', '특기사항', '종합의견')
GARBAGE_KEYWORDS = ('학교생활기록부', '사용자명', '담당교사')


# 공백 검출 함수
def mark_multiple_spaces(text):
    """텍스트 내의 2칸 이상 공백을 찾아 마킹합니다."""
    if not isinstance(text, str):
        return text
    # 3칸 이상 공백 우선 처리
    text = re.sub(r' {3,}', ' [공백3칸이상] ', text)
    # 2칸 공백 처리
    text = re.sub(r' {2}', ' [공백2칸] ', text)
    return text


def _find_header_row(df):
    for idx, row in df.iterrows():
        row_str = "".join(row.fillna('').astype(str).values).replace(" ", "")
        if ("성명" in row_str or "이름" in row_str) and any(k in row_str for k in ("특기사항", "종합의견", "세부능력")):
            return idx
    return None


def _sheet_to_table(df):
    """헤더를 찾지 못한 시트는 표 그대로 Markdown으로 변환합니다."""
    df = df.replace(r'^\s*$', np.nan, regex=True).dropna(how='all').dropna(axis=1, how='all')
    if df.empty:
        return "오류: 엑셀 파일에 내용이 없습니다."
    return df.fillna('').to_markdown(index=False)


def xlsx_to_markdown(file_path):
    """
    NEIS에서 내려받은 생활기록부 엑셀 파일을 학생별 Markdown 섹션으로 변환합니다.
    (과세특, 창체 특기사항, 행동특성 및 종합의견 공통)
    """
    # 1. 엑셀 읽기 (헤더 위치를 모르므로 header=None)
    # dtype=str: 반/번호(예: 6/1)가 날짜로 자동 변환되는 것을 방지
    try:
        engine = 'openpyxl' if file_path.lower().endswith('.xlsx') else None
        df = pd.read_excel(file_path, sheet_name=0, header=None, engine=engine, dtype=str)
    except Exception as e:
        return f"오류: 엑셀 파일을 읽는 중 문제가 발생했습니다. {e}"

    # 2. 헤더 행 동적 탐색
    header_row_idx = _find_header_row(df)
    if header_row_idx is None:
        logger.info("생활기록부 헤더를 찾지 못해 표 형식으로 변환합니다: %s", file_path)
        return _sheet_to_table(df)

    # 3. 헤더 적용 및 컬럼명 정규화 ('과 목' -> '과목')
    df.columns = [str(c).replace(' ', '').replace('\n', '').strip() for c in df.iloc[header_row_idx]]
    df = df.iloc[header_row_idx + 1:].reset_index(drop=True)
    if '이름' in df.columns and '성명' not in df.columns:
        df = df.rename(columns={'이름': '성명'})
    if '성명' not in df.columns:
        return "오류: '성명' 컬럼을 찾을 수 없습니다."

    content_col = next((c for key in CONTENT_COLUMN_KEYS for c in df.columns if key in c), None)
    if content_col is None:
        return "오류: 특기사항/종합의견 컬럼을 찾을 수 없습니다."

    # 공백 문자, 빈 문자열을 확실하게 NaN으로 변환
    df = df.replace(r'^\s*$', np.nan, regex=True)

    # 4. 반복 헤더와 메타데이터 행 제거
    name_col = df['성명'].astype(str)
    is_garbage = (name_col.str.replace(' ', '') == '성명') | name_col.apply(
        lambda x: any(k in x for k in GARBAGE_KEYWORDS)
    )
    df = df[~is_garbage].copy()

    # 5. 병합 셀 채우기 (Forward Fill)
    id_cols = [c for c in ID_COLUMNS if c in df.columns]
    df[id_cols] = df[id_cols].ffill()
    df = df.dropna(subset=[content_col])
    if df.empty:
        return "오류: 기재 내용이 있는 행이 없습니다."

    # 6. 학생별로 나뉜 행 합치기
    def join_text(series):
        texts = [str(t).strip() for t in series if str(t).strip()]
        return mark_multiple_spaces(" ".join(texts))

    grouped = df.groupby(id_cols, sort=False, dropna=False)[content_col].apply(join_text).reset_index()

    # 7. Markdown 생성
    markdown_lines = []
    for _, row in grouped.iterrows():
        subject = row.get('과목')
        title = f"{subject} - {row['성명']}" if isinstance(subject, str) else row['성명']
        number = row.get('번호', '?')
        grade = row.get('학년')
        markdown_lines.append(f"### {title} (No.{number})")
        if isinstance(grade, str):
            markdown_lines.append(f"- **학년:** {grade}학년")
        markdown_lines.append(f"- **{content_col}:**")
        markdown_lines.append(f"> {row[content_col]}")
        markdown_lines.append("\n---\n")

    return "\n".join(markdown_lines)


def _read_text(file_path):
    # NEIS/한글 윈도우 환경 파일은 cp949인 경우가 있음
    try:
        with open(file_path, encoding='utf-8-sig') as f:
            return f.read()
    except UnicodeDecodeError:
        with open(file_path, encoding='cp949') as f:
            return f.read()


def read_attachment(file_path, name=None):
    """업로드된 파일을 텍스트로 읽습니다. 지원하지 않는 형식이면 오류 문자열을 반환합니다."""
    name = name or os.path.basename(file_path)
    ext = os.path.splitext(name)[-1].lower()

    if os.path.getsize(file_path) > config.MAX_UPLOAD_BYTES:
        return f"오류: {name}이(가) 너무 큽니다. 10MB 이하의 파일만 업로드할 수 있습니다."
    if ext in EXCEL_EXTENSIONS:
        return xlsx_to_markdown(file_path)
    if ext in TEXT_EXTENSIONS:
        try:
            return _read_text(file_path)
        except (OSError, UnicodeDecodeError) as e:
            return f"오류: {name} 파일을 읽는 중 문제가 발생했습니다. {e}"
    return f"오류: 지원하지 않는 파일 형식입니다 ({ext or name})."


def render_with_attachments(message, max_length=None):
    """첨부 파일 내용을 예산에 맞게 줄여 메시지 본문 뒤에 붙입니다."""
    if not message.attached_files:
        return message.content
    max_length = max_length or config.FILE_CONTENT_MAX_LENGTH
    file_contents = "".join(
        f"\n\n--- {f.name} ---\n{trim_file_content(f.content, max_length)}\n--- 파일 끝 ---"
        for f in message.attached_files
    )
    return f"{message.content}{file_contents}"
