import logging

from record_writer.models import Category, Level, PromptMode, PromptSelection, Role

logger = logging.getLogger(__name__)

# 기재 원칙 문서의 섹션 제목 (접두어로 조회)
ROLE_SECTION = "역할 (Role)"
COMPETENCY_SECTION = "III. 2022 개정 교육과정 핵심역량"
LEVEL_STRATEGY_SECTION = "수준별 작성 전략"
EXAMPLE_SECTION = "우수 작성 사례"

CATEGORY_SECTIONS = {
    Category.SUBJECT_DETAIL: "A. 교과 세부능력 및 특기사항",
    Category.ACTIVITY: "B. 창의적 체험활동 특기사항",
    Category.BEHAVIOR: "C. 행동특성 및 종합의견",
}
OTHER_SECTION = "D. 기타 항목별 기재 요령"

LEVEL_MARKERS = {
    Level.ADVANCED: "🥇 상급 수준",
    Level.INTERMEDIATE: "🥈 중급 수준",
    Level.BASIC: "🥉 기본 수준",
}

# 카테고리를 고르지 않았을 때 질문 키워드로 섹션 찾기 (앞에서부터 첫 매칭만 사용)
KEYWORD_SECTION_MAP = (
    ("세특", CATEGORY_SECTIONS[Category.SUBJECT_DETAIL]),
    ("세부능력", CATEGORY_SECTIONS[Category.SUBJECT_DETAIL]),
    ("특기사항", CATEGORY_SECTIONS[Category.SUBJECT_DETAIL]),
    ("교과", CATEGORY_SECTIONS[Category.SUBJECT_DETAIL]),
    ("동아리", CATEGORY_SECTIONS[Category.ACTIVITY]),
    ("자율활동", CATEGORY_SECTIONS[Category.ACTIVITY]),
    ("창의적", CATEGORY_SECTIONS[Category.ACTIVITY]),
    ("체험활동", CATEGORY_SECTIONS[Category.ACTIVITY]),
    ("진로", CATEGORY_SECTIONS[Category.ACTIVITY]),
    ("독서", OTHER_SECTION),
    ("행동특성", CATEGORY_SECTIONS[Category.BEHAVIOR]),
    ("종합의견", CATEGORY_SECTIONS[Category.BEHAVIOR]),
    ("행특", CATEGORY_SECTIONS[Category.BEHAVIOR]),
)

COMMON_PRINCIPLES = """## 공통 기재 원칙:
- 객관성: 교사가 직접 관찰한 사실 기반
- 과정 중심: 동기, 과정, 성장, 변화 중심
- 구체성: 구체적 사례와 근거 제시
- 개별화: 학생 고유 특성 표현
- 자기주도성: 학생 주도적 역할과 노력 부각
- 교사 관찰 시점 유지: 학생의 주관적 감정이나 깨달음 절대 표현 금지"""

FALLBACK_GUIDELINES = """## 핵심 기재 원칙:
- 객관성: 교사가 직접 관찰한 사실에 근거
- 과정 중심: 결과보다 동기, 과정, 성장, 변화 중심
- 구체성: 추상적 표현 지양, 구체적 사례와 근거 제시
- 개별화: 학생 고유의 특성과 역량 표현
- 자기주도성: 학생이 주도한 역할, 노력, 탐구과정 부각
- 교사 관찰 시점 유지: 학생의 주관적 감정이나 깨달음 절대 표현 금지

## 주요 금지사항:
- 공인어학성적 (토익, 토플, 텝스, HSK 등)
- 외부 수상실적 (교외 기관 수상)
- 논문/학회 발표 관련 내용
- 부모/가족 정보 (직업, 직장, 사회경제적 지위)
- 특정 대학명, 기관명 언급
- 1인칭 시점 ('저는', '제가' 등)
- 학생 시점 표현 (~을 깨달음, ~을 알게 됨, ~라고 느낌, 계기가 되었음, ~다짐함)
- 축약어 ('생기부', '세특' → '학교생활기록부', '세부능력 및 특기사항')"""

CONTINUATION_PROMPT = """학교생활기록부 작성 전문가로서 이전 내용에 이어서 작성해주세요.

핵심 원칙:
- 명사형 어미(~함, ~음, ~됨) 사용
- 기재 금지 항목 절대 금지: 공인어학성적, 외부수상, 논문/학회, 부모정보, 특정대학명
- 구체적이고 개별화된 내용으로 작성
- 과정 중심 서술, 자기주도적 활동 부각"""

CREATE_PROMPT_HEADER = "학교생활기록부 작성 전문가입니다. 다음 기재 원칙을 준수하여 작성해주세요."

CREATE_PROMPT_FOOTER = """핵심 지침:
1. 기재 금지 항목 절대 금지: 공인어학성적, 외부수상실적, 논문/학회발표, 부모/가족정보, 특정대학명
2. 명사형 어미(~함, ~음, ~됨) 사용 필수
3. 구체적 사례와 근거로 학생 고유 특성 표현
4. 과정 중심 서술, 자기주도적 활동 부각
5. 객관적 사실 기반 작성"""

REVIEW_PROMPT = """당신은 학교생활기록부 기재 원칙 검토 전문가입니다.

**역할:**
선생님이 작성한 학교생활기록부 원문을 검토하고, 기재 원칙 위반 사항을 명확히 지적한 후 구체적인 개선안을 제시합니다.

**검토 순서:**

1️⃣ **원문 분석**
   - 제공된 원문을 문장별로 꼼꼼히 검토

2️⃣ **위반 사항 지적** (발견된 경우)
   각 위반 사항마다 다음 형식으로 명확히 표시:

   【문제 ①】 (위반 유형)
   - 원문 내용: "실제 문장 인용"
   - 문제점: 왜 이것이 기재 원칙에 위배되는지 설명
   - 수정 제안: 구체적인 개선 방향

3️⃣ **개선된 버전 제시**
   - 위반 사항을 수정한 개선안 전체 작성
   - 수정된 부분은 **굵게** 표시하여 변경사항을 명확히 함

**반드시 검토할 기재 금지 항목:**
- 공인어학성적 (토익, 토플, 텝스, HSK 등)
- 외부 수상실적 (교외 기관 수상)
- 논문/학회 발표
- 부모/가족 정보 (직업, 직장, 사회경제적 지위)
- 특정 대학명, 기관명, 영어 브랜드명 (ChatGPT, Gemini 등 → '생성형 AI', '대화형 모델'로 대체)
- 1인칭 시점 ('저는', '제가')
- 학생 시점 표현 (~을 깨달음, ~을 알게 됨, ~라고 느낀, 계기가 되었음, ~다짐함)
- 축약어 ('생기부', '세특' 등 → '학교생활기록부', '세부능력 및 특기사항')
- 잘못된 어미 (~했다, ~습니다 대신 ~함, ~임 사용)
- 금지 기호 (마크다운 문법, 특수기호 《》『』「」〈〉·)

**검토 결과 형식:**

## 📋 원문 검토 결과

### ✅ 준수된 사항
- (잘 작성된 부분 구체적으로 칭찬)

### ⚠️ 수정이 필요한 사항

【문제 ①】 (위반 유형)
- 원문: "(실제 문장 인용)"
- 문제점: (상세 설명)
- 수정 제안: (구체적 방향)

(필요한 만큼 반복)

### ✨ 개선안

(수정된 전체 내용 작성. 수정 부분은 **굵게** 표시)

---

**만약 위반 사항이 전혀 없다면:**

## ✅ 검토 결과: 기재 원칙 준수

제공하신 내용은 학교생활기록부 기재 원칙을 잘 준수하고 있습니다.

**잘된 점:**
- (구체적으로 잘된 점 나열)

**선택적 개선 제안:**
- (더 나은 표현이나 추가할 내용 제안)
"""


def _resolve_guidelines(guidelines):
    if guidelines is not None:
        return guidelines
    from record_writer.resources import get_resources

    return get_resources().guidelines


def filter_by_level(category_node, level):
    """
    교과세특 섹션에서 선택한 수준의 전략만 남기고 다시 조합합니다.
    해당 수준 섹션이 없으면 카테고리 섹션 원문을 그대로 반환합니다.
    """
    level_name = LEVEL_MARKERS.get(level)
    strategy = category_node.find(LEVEL_STRATEGY_SECTION)
    level_node = strategy.find(level_name) if strategy and level_name else None
    if level_node is None:
        return category_node.text

    # 수준별 작성 전략 이전까지가 공통 설명
    common = category_node.text_until(strategy)
    example = category_node.find(EXAMPLE_SECTION)
    example_text = f"\n\n{example.text}" if example else ""

    return (
        f"{common}\n\n#### 작성 수준\n{level_node.text}{example_text}\n\n"
        f"**현재 작성 수준: {level_name}**\n"
        f"작성 시 위의 {level_name} 전략과 구조를 따라 작성해주세요."
    )


def _category_guidelines(document, category, level):
    category_node = document.find(CATEGORY_SECTIONS[category])
    if category_node is None:
        return None

    # 교과세특일 때만 수준 필터링
    if category is Category.SUBJECT_DETAIL and level is not None:
        category_text = filter_by_level(category_node, level)
    else:
        category_text = category_node.text

    parts = [
        document.section_text(ROLE_SECTION),
        category_text,
        document.section_text(COMPETENCY_SECTION),
        COMMON_PRINCIPLES,
    ]
    return "\n\n".join(p for p in parts if p)


def _keyword_guidelines(document, user_message):
    lower_message = (user_message or "").lower()
    for keyword, section_title in KEYWORD_SECTION_MAP:
        if keyword not in lower_message:
            continue
        section = document.find(section_title)
        if section is None:
            continue
        logger.debug("질문 키워드 '%s'로 기재 원칙 섹션 선택: %s", keyword, section.title)
        return f"## 관련 기재 원칙:\n{section.text}\n\n{COMMON_PRINCIPLES}"
    return None


def extract_relevant_guidelines(user_message, category=None, subject=None, level=None, guidelines=None):
    """
    요청 카테고리/교과/수준 또는 질문 키워드에 맞는 기재 원칙 섹션만 골라 반환합니다.
    아무것도 찾지 못하면 핵심 원칙과 주요 금지사항 요약을 반환합니다.
    """
    document = _resolve_guidelines(guidelines)
    category = Category.parse(category)
    level = Level.parse(level)

    if category is not None:
        compiled = _category_guidelines(document.with_subject(subject), category, level)
        if compiled:
            return compiled
        logger.warning("기재 원칙 문서에서 '%s' 섹션을 찾을 수 없습니다.", category.value)

    compiled = _keyword_guidelines(document, user_message)
    if compiled:
        return compiled

    return FALLBACK_GUIDELINES


def _last_user_content(messages):
    for message in reversed(messages or ()):
        if message.role is Role.USER:
            return message.content or ""
    return ""


def compile_prompt(messages, selection=None, mode=PromptMode.CREATE, guidelines=None):
    """
    학교생활기록부 작성/검토용 시스템 프롬프트를 조합합니다.

    - 검토 모드: 고정된 검토 지침
    - 연속 요청: 핵심 원칙만 담은 짧은 지침
    - 그 외: 관련 기재 원칙 섹션만 추출해 머리말/핵심 지침으로 감쌈
    """
    mode = PromptMode.parse(mode) or PromptMode.CREATE
    selection = selection or PromptSelection()

    if mode is PromptMode.REVIEW:
        return REVIEW_PROMPT

    if selection.is_continuation:
        return CONTINUATION_PROMPT

    relevant = extract_relevant_guidelines(
        _last_user_content(messages),
        category=selection.category,
        subject=selection.subject,
        level=selection.level,
        guidelines=guidelines,
    )
    return f"{CREATE_PROMPT_HEADER}\n\n{relevant}\n\n{CREATE_PROMPT_FOOTER}"


def build_full_system_prompt(guidelines=None):
    """기재 원칙 문서 전체를 담은 (최적화하지 않은) 시스템 프롬프트."""
    document = _resolve_guidelines(guidelines)
    return f"""당신은 학교생활기록부 작성 전문가입니다. 다음 기재 원칙과 점검 기준을 반드시 준수하여 학교생활기록부를 작성하거나 수정해주세요.

{document.source}

## 중요 지침:
1. 위의 모든 기재 원칙과 점검 기준을 반드시 준수해주세요.
2. 기재 금지 항목은 절대로 포함하지 마세요.
3. 모든 문장은 명사형 어미(~함, ~음, ~됨)로 종결해주세요.
4. 학생 고유의 특성이 드러나도록 구체적이고 개별화된 내용으로 작성해주세요.
5. 과정 중심으로 서술하며, 자기주도적 활동을 부각해주세요.

작성하거나 수정한 내용이 위 기준에 부합하는지 스스로 검토한 후 최종 결과를 제공해주세요."""

