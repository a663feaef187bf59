import json

import pytest

from record_writer.guidelines import GuidelineDocument
from record_writer.resources import reset_resources
from record_writer.rules import parse_rules

RULES_DATA = {
    "prohibitedItems": {
        "languageTests": [
            {
                "keywords": ["TOEFL", "토플"],
                "type": "공인어학성적 기재 금지",
                "severity": "critical",
                "suggestion": "공인어학시험 성적은 기재할 수 없습니다.",
            }
        ],
        "externalAwards": [],
        "academicKeywords": [
            {
                "keyword": "학회",
                "type": "학회 관련 내용 기재 금지",
                "severity": "critical",
                "suggestion": "학회 참가는 기재할 수 없습니다.",
            }
        ],
        "familyKeywords": [
            {
                "keyword": "아버지",
                "type": "부모/가족 정보 기재 금지",
                "severity": "critical",
                "suggestion": "부모 정보는 기재할 수 없습니다.",
            }
        ],
    },
    "styleRules": {
        "firstPersonWords": [
            {
                "keywords": ["저는", "제가"],
                "type": "1인칭 시점 사용",
                "severity": "warning",
                "suggestion": "교사의 관찰 시점으로 서술하세요.",
            }
        ],
        "abbreviations": [
            {
                "keyword": "세특",
                "full": "세부능력 및 특기사항",
                "type": "축약어 사용",
                "severity": "warning",
                "suggestion": "'세특' 대신 '세부능력 및 특기사항'으로 쓰세요.",
            }
        ],
        "wrongEndings": [
            {
                "keyword": "했다",
                "correct": "함",
                "type": "명사형 어미 미사용",
                "severity": "warning",
                "suggestion": "명사형 어미로 끝내세요.",
            }
        ],
        "excessivePraise": [
            {
                "keywords": ["천재적"],
                "type": "과도한 칭찬 표현",
                "severity": "minor",
                "suggestion": "구체적 사례로 서술하세요.",
            }
        ],
    },
    "academicContextKeywords": ["논문", "학회", "연구"],
}

GUIDELINES_SOURCE = """# 기재 원칙

## 역할 (Role)

당신은 [교과명] 교과 담당 교사이다.

## III. 2022 개정 교육과정 핵심역량

- 협력적 소통 역량

## IV. 항목별 핵심 기재 요령

### A. 교과 세부능력 및 특기사항 (세특)

교과 수업 중 관찰한 내용을 기재한다.

#### 수준별 작성 전략

##### 🥇 상급 수준
- 심화 탐구

##### 🥈 중급 수준
- 참여 과정

##### 🥉 기본 수준
- 수업 태도

#### 우수 작성 사례
- 실험을 설계함.

### B. 창의적 체험활동 특기사항 (자율, 진로, 동아리)

동아리 활동의 역할을 기재한다.

### C. 행동특성 및 종합의견 (행특)

담임교사가 종합적으로 기재한다.
"""


@pytest.fixture
def rules():
    return parse_rules(RULES_DATA)


@pytest.fixture
def guidelines():
    return GuidelineDocument(GUIDELINES_SOURCE)


@pytest.fixture(autouse=True)
def _fresh_resources():
    reset_resources()
    yield
    reset_resources()


@pytest.fixture
def source_files(tmp_path):
    """검증 규칙/기재 원칙 원본 파일 경로 (rules_path, guidelines_path)."""
    rules_path = tmp_path / "validation-rules.json"
    guidelines_path = tmp_path / "school-record-guidelines.md"
    rules_path.write_text(json.dumps(RULES_DATA, ensure_ascii=False), encoding="utf-8")
    guidelines_path.write_text(GUIDELINES_SOURCE, encoding="utf-8")
    return str(rules_path), str(guidelines_path)
