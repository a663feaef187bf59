import os
from pathlib import Path

from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()

DATA_DIR = Path(__file__).resolve().parent / "data"

# 작성/검토에 사용할 메인 모델
MAIN_MODEL_NAME = os.getenv("MAIN_MODEL_NAME", "gemini-3-flash-preview")

# API Key 검증용 가벼운 모델 (속도 우선)
TEST_MODEL_NAME = os.getenv("TEST_MODEL_NAME", "gemini-2.5-flash-lite")

TEMPERATURE = float(os.getenv("TEMPERATURE", "1.0"))
MAX_OUTPUT_TOKENS = int(os.getenv("MAX_OUTPUT_TOKENS", "2000"))

# 기재 원칙 문서와 검증 규칙 (기본값은 패키지에 포함된 파일)
VALIDATION_RULES_PATH = os.getenv("VALIDATION_RULES_PATH", str(DATA_DIR / "validation-rules.json"))
GUIDELINES_PATH = os.getenv("GUIDELINES_PATH", str(DATA_DIR / "school-record-guidelines.md"))

# false로 두면 기재 원칙 전체를 시스템 프롬프트에 넣는다
OPTIMIZE_PROMPT = os.getenv("OPTIMIZE_PROMPT", "true").lower() not in ("0", "false", "no")

# 첨부 파일 내용 최대 글자 수
FILE_CONTENT_MAX_LENGTH = int(os.getenv("FILE_CONTENT_MAX_LENGTH", "2000"))
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
