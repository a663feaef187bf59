from record_writer.guidelines import GuidelineDocument
from record_writer.models import Category, Level, Message, PromptMode, PromptSelection, Role
from record_writer.prompts import (
    COMMON_PRINCIPLES,
    CONTINUATION_PROMPT,
    CREATE_PROMPT_FOOTER,
    CREATE_PROMPT_HEADER,
    FALLBACK_GUIDELINES,
    REVIEW_PROMPT,
    build_full_system_prompt,
    compile_prompt,
    extract_relevant_guidelines,
    filter_by_level,
)


def user(content):
    return Message(role=Role.USER, content=content)


class TestCompilePrompt:
    def test_review_mode_is_static(self, guidelines):
        first = compile_prompt([user("학생은 TOEFL 110점을 취득함.")], mode=PromptMode.REVIEW, guidelines=guidelines)
        second = compile_prompt([], PromptSelection(Category.ACTIVITY), mode="review", guidelines=guidelines)
        assert first == second == REVIEW_PROMPT

    def test_continuation(self, guidelines):
        selection = PromptSelection(Category.SUBJECT_DETAIL, "물리학", Level.BASIC, is_continuation=True)
        assert compile_prompt([user("계속")], selection, guidelines=guidelines) == CONTINUATION_PROMPT

    def test_subject_detail_with_level(self, guidelines):
        selection = PromptSelection(Category.SUBJECT_DETAIL, "정보과학", Level.ADVANCED)
        prompt = compile_prompt([user("수업 활동 정리")], selection, guidelines=guidelines)

        assert prompt.startswith(CREATE_PROMPT_HEADER)
        assert prompt.endswith(CREATE_PROMPT_FOOTER)
        assert prompt.count("정보과학") == 1
        assert "[교과명]" not in prompt
        assert "🥇 상급 수준" in prompt
        assert "🥈 중급 수준" not in prompt
        assert "🥉 기본 수준" not in prompt
        assert "**현재 작성 수준: 🥇 상급 수준**" in prompt
        assert "협력적 소통 역량" in prompt
        assert COMMON_PRINCIPLES in prompt

    def test_subject_detail_with_bundled_guidelines(self):
        selection = PromptSelection.from_values("subject-detail", " 물리학Ⅱ ", "advanced")
        prompt = compile_prompt([user("역학 단원 실험")], selection)
        assert prompt.count("물리학Ⅱ") == 1
        assert "[교과명]" not in prompt
        assert "🥇 상급 수준" in prompt
        assert "🥈 중급 수준" not in prompt
        assert "🥉 기본 수준" not in prompt

    def test_subject_detail_without_level_keeps_all_levels(self, guidelines):
        selection = PromptSelection(Category.SUBJECT_DETAIL, "화학")
        prompt = compile_prompt([user("실험")], selection, guidelines=guidelines)
        for marker in ("🥇 상급 수준", "🥈 중급 수준", "🥉 기본 수준"):
            assert marker in prompt
        assert "현재 작성 수준" not in prompt

    def test_level_ignored_for_other_categories(self, guidelines):
        selection = PromptSelection(Category.ACTIVITY, None, Level.ADVANCED)
        prompt = compile_prompt([user("활동 정리")], selection, guidelines=guidelines)
        assert "### B. 창의적 체험활동 특기사항" in prompt
        assert "A. 교과 세부능력" not in prompt
        assert "현재 작성 수준" not in prompt
        # 교과명이 없으면 자리표시자가 그대로 남음
        assert "[교과명]" in prompt

    def test_keyword_path_uses_last_user_message(self, guidelines):
        messages = [
            user("동아리 활동을 정리해줘"),
            Message(role=Role.ASSISTANT, content="행동특성 및 종합의견도 필요하신가요?"),
        ]
        prompt = compile_prompt(messages, guidelines=guidelines)
        assert "## 관련 기재 원칙:\n### B. 창의적 체험활동 특기사항" in prompt
        assert "C. 행동특성" not in prompt
        assert "역할 (Role)" not in prompt

    def test_fallback(self, guidelines):
        prompt = compile_prompt([user("안녕하세요")], guidelines=guidelines)
        assert prompt == f"{CREATE_PROMPT_HEADER}\n\n{FALLBACK_GUIDELINES}\n\n{CREATE_PROMPT_FOOTER}"

    def test_empty_messages(self, guidelines):
        assert FALLBACK_GUIDELINES in compile_prompt([], guidelines=guidelines)


class TestExtractRelevantGuidelines:
    def test_unknown_category_falls_through(self, guidelines):
        assert extract_relevant_guidelines("", category="unknown", guidelines=guidelines) == FALLBACK_GUIDELINES

    def test_missing_section_falls_back(self):
        empty = GuidelineDocument.empty()
        assert extract_relevant_guidelines("세특 작성", Category.BEHAVIOR, guidelines=empty) == FALLBACK_GUIDELINES

    def test_category_parts_order(self, guidelines):
        text = extract_relevant_guidelines("", Category.BEHAVIOR, "국어", guidelines=guidelines)
        role = text.index("당신은 국어 교과 담당 교사이다.")
        category = text.index("### C. 행동특성 및 종합의견")
        competency = text.index("## III. 2022 개정 교육과정 핵심역량")
        assert role < category < competency < text.index(COMMON_PRINCIPLES)


class TestFilterByLevel:
    def test_reassembled_text(self, guidelines):
        section = guidelines.find("A. 교과 세부능력")
        assert filter_by_level(section, Level.INTERMEDIATE) == (
            "### A. 교과 세부능력 및 특기사항 (세특)\n\n교과 수업 중 관찰한 내용을 기재한다."
            "\n\n#### 작성 수준\n##### 🥈 중급 수준\n- 참여 과정"
            "\n\n#### 우수 작성 사례\n- 실험을 설계함."
            "\n\n**현재 작성 수준: 🥈 중급 수준**\n"
            "작성 시 위의 🥈 중급 수준 전략과 구조를 따라 작성해주세요."
        )

    def test_missing_level_section_keeps_category_text(self):
        document = GuidelineDocument("### A. 교과 세부능력 및 특기사항\n수준 구분 없음")
        section = document.find("A. 교과")
        assert filter_by_level(section, Level.ADVANCED) == section.text


class TestFullSystemPrompt:
    def test_embeds_whole_document(self, guidelines):
        prompt = build_full_system_prompt(guidelines)
        assert guidelines.source in prompt
        assert "## 중요 지침:" in prompt
