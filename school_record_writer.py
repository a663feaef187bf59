import logging

import chainlit as cl
from google.api_core import exceptions as google_exceptions
from google.api_core.exceptions import InternalServerError, ServiceUnavailable
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from record_writer import config
from record_writer.attachments import read_attachment
from record_writer.chat import CONTINUATION_REQUEST, build_llm_messages, chunk_text, complete_turn, format_violations
from record_writer.models import AttachedFile, Category, Level, Message, PromptMode, PromptSelection, Role
from record_writer.resources import init_resources, refresh_if_stale
from record_writer.usage_log import log_usage

logger = logging.getLogger(__name__)

ASSISTANT_NAME = "생기부 작성 도우미"

MODE_LABELS = {
    PromptMode.CREATE: "학교생활기록부 작성",
    PromptMode.REVIEW: "원문 기재 원칙 검토",
}
CATEGORY_LABELS = {
    Category.SUBJECT_DETAIL: "교과 세부능력 및 특기사항",
    Category.ACTIVITY: "창의적 체험활동 (자율, 진로, 동아리)",
    Category.BEHAVIOR: "행동특성 및 종합의견",
    None: "자유 질문 (영역 선택 안 함)",
}
LEVEL_LABELS = {
    Level.ADVANCED: "🥇 상급",
    Level.INTERMEDIATE: "🥈 중급",
    Level.BASIC: "🥉 기본",
}


async def validate_api_key(api_key: str):
    """
    입력받은 API Key가 유효한지 가벼운 모델로 빠르게 확인합니다.
    """
    try:
        test_llm = ChatGoogleGenerativeAI(model=config.TEST_MODEL_NAME, google_api_key=api_key, temperature=0)
        # 1토큰 정도의 매우 짧은 응답을 유도하여 연결 확인
        await test_llm.ainvoke([HumanMessage(content="Hi")])
        return True
    except Exception as e:
        logger.warning("Google API 키가 유효하지 않습니다: %s", e)
        return False


def current_selection(is_continuation=False):
    return PromptSelection.from_values(
        category=cl.user_session.get("category"),
        subject=cl.user_session.get("subject"),
        level=cl.user_session.get("level"),
        is_continuation=is_continuation,
    )


async def send_mode_selection():
    actions = [
        cl.Action(name="mode_select", label=label, payload={"mode": mode.value})
        for mode, label in MODE_LABELS.items()
    ]
    await cl.Message(content="무엇을 도와드릴까요?", actions=actions, author=ASSISTANT_NAME).send()


async def send_category_selection():
    actions = [
        cl.Action(name="category_select", label=label, payload={"category": category.value if category else None})
        for category, label in CATEGORY_LABELS.items()
    ]
    await cl.Message(content="작성할 영역을 선택해주세요.", actions=actions, author=ASSISTANT_NAME).send()


@cl.on_chat_start
async def on_chat_start():
    """앱 시작 시 API Key 입력 요구 및 검증 후 메뉴 표시"""
    resources = await cl.make_async(init_resources)()
    if resources.degraded:
        await cl.Message(
            content="⚠️ 기재 원칙 또는 검증 규칙 파일을 읽지 못했습니다. 기재 금지 항목 자동 점검이 제한됩니다.",
            author="System",
        ).send()

    # 1. API Key 입력 루프
    while True:
        res = await cl.AskUserMessage(
            content="안녕하세요. 학교생활기록부 작성 도우미입니다.\n"
                    "**Google Gemini API 키**를 입력해주세요.\n\n"
                    "API 키와 생기부 내용은 서버에 기록하지 않습니다.\n"
                    "Google Gemini API 키는 https://aistudio.google.com/app/api-keys 에서 무료로 발급받을 수 있습니다.",
            timeout=600
        ).send()

        if not res:
            await cl.Message(content="입력 시간이 초과되었습니다. 페이지를 새로고침 해주세요.").send()
            return

        user_api_key = res["output"].strip()
        msg = cl.Message(content=f"**{config.TEST_MODEL_NAME}** 모델로 API 키 연결 확인 중...", author="System")
        await msg.send()

        if await validate_api_key(user_api_key):
            cl.user_session.set("user_api_key", user_api_key)
            msg.content = "✅ API Key가 확인되었습니다."
            await msg.update()
            break

        msg.content = "❌ 유효하지 않은 API Key입니다. 다시 입력해주세요."
        await msg.update()

    # 2. 세션 초기화 및 모드 선택
    cl.user_session.set("history", [])
    cl.user_session.set("session_id", cl.user_session.get("id"))
    await cl.Message(content=f"사용 모델: {config.MAIN_MODEL_NAME}", author=ASSISTANT_NAME).send()
    await send_mode_selection()


@cl.action_callback("mode_select")
async def on_mode_select(action: cl.Action):
    mode = PromptMode.parse(action.payload.get("mode")) or PromptMode.CREATE
    cl.user_session.set("mode", mode)
    cl.user_session.set("history", [])
    await action.remove()

    if mode is PromptMode.REVIEW:
        await cl.Message(
            content="**원문 검토** 모드입니다. 검토할 학교생활기록부 원문을 입력하거나 파일(.txt, .xlsx)을 첨부해주세요.",
            author=ASSISTANT_NAME,
        ).send()
        return

    await send_category_selection()


@cl.action_callback("category_select")
async def on_category_select(action: cl.Action):
    category = Category.parse(action.payload.get("category"))
    cl.user_session.set("category", category)
    cl.user_session.set("subject", None)
    cl.user_session.set("level", None)
    await action.remove()

    if category is not Category.SUBJECT_DETAIL:
        await cl.Message(
            content=f"**{CATEGORY_LABELS[category]}** 영역을 선택했습니다. 학생의 활동 내용을 입력해주세요.",
            author=ASSISTANT_NAME,
        ).send()
        return

    res = await cl.AskUserMessage(content="교과명을 입력해주세요. (예: 물리학, 문학)", timeout=300).send()
    if res:
        cl.user_session.set("subject", res["output"].strip() or None)

    actions = [
        cl.Action(name="level_select", label=label, payload={"level": level.value})
        for level, label in LEVEL_LABELS.items()
    ]
    await cl.Message(content="작성 수준을 선택해주세요.", actions=actions, author=ASSISTANT_NAME).send()


@cl.action_callback("level_select")
async def on_level_select(action: cl.Action):
    level = Level.parse(action.payload.get("level"))
    cl.user_session.set("level", level)
    await action.remove()
    await cl.Message(
        content=f"**{LEVEL_LABELS.get(level, '기본')}** 수준으로 작성합니다. 학생의 수업 활동 내용을 입력해주세요.",
        author=ASSISTANT_NAME,
    ).send()


@cl.action_callback("continue_writing")
async def on_continue_writing(action: cl.Action):
    await action.remove()
    await respond(Message(role=Role.USER, content=CONTINUATION_REQUEST), is_continuation=True)


@cl.on_message
async def on_message(message: cl.Message):
    # API Key가 없으면 중단 (새로고침 유도)
    if not cl.user_session.get("user_api_key"):
        await cl.Message(
            content="⚠️ API Key가 만료되었거나 없습니다. 페이지를 새로고침(F5)하여 키를 다시 입력해주세요.",
            author="System"
        ).send()
        return

    if not cl.user_session.get("mode"):
        await cl.Message(content="먼저 작성/검토 모드를 선택해주세요.", author=ASSISTANT_NAME).send()
        await send_mode_selection()
        return

    attached = []
    for element in message.elements:
        if not isinstance(element, cl.File):
            continue
        content = await cl.make_async(read_attachment)(element.path, element.name)
        if content.startswith("오류:"):
            await cl.Message(content=f"파일 처리 중 문제가 발생했습니다.\n\n{content}", author=ASSISTANT_NAME).send()
            continue
        attached.append(AttachedFile(name=element.name, content=content, size=len(content)))

    await respond(Message(role=Role.USER, content=message.content or "", attached_files=tuple(attached)))


async def respond(user_message, is_continuation=False):
    # 요청이 실패하면 대화 기록에 남기지 않음 (재시도 시 중복 방지)
    history = cl.user_session.get("history") or []
    mode = cl.user_session.get("mode") or PromptMode.CREATE
    session_id = cl.user_session.get("session_id") or cl.user_session.get("id")
    selection = current_selection(is_continuation)
    category = selection.category.value if selection.category else None
    resources = await cl.make_async(refresh_if_stale)()
    estimated_tokens = 0

    try:
        llm_messages, estimated_tokens = build_llm_messages(
            history + [user_message], selection, mode, resources, optimize=config.OPTIMIZE_PROMPT
        )

        msg = cl.Message(content="", author=ASSISTANT_NAME)
        await msg.send()

        full_response = []
        dynamic_llm = ChatGoogleGenerativeAI(
            model=config.MAIN_MODEL_NAME,
            temperature=config.TEMPERATURE,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
            google_api_key=cl.user_session.get("user_api_key"),
        )

        async with cl.Step(name="학교생활기록부 작성 중..." if mode is PromptMode.CREATE else "기재 원칙 검토 중..."):
            async for chunk in dynamic_llm.astream(llm_messages):
                content = chunk_text(chunk)
                if content:  # 빈 문자열이 아닐 때만 처리
                    await msg.stream_token(content)
                    full_response.append(content)
            await msg.update()

        response_text = "".join(full_response)
        cl.user_session.set("history", complete_turn(history, user_message, response_text))

        # 작성 모드는 생성된 문장을, 검토 모드는 선생님이 입력한 원문(첨부 포함)을 검증
        if mode is PromptMode.CREATE:
            target = response_text
        else:
            target = "\n".join([user_message.content] + [f.content for f in user_message.attached_files])
        result = resources.validator.validate(target)
        if not result.is_valid:
            logger.warning("학교생활기록부 기재 원칙 위반 %d건", len(result.violations))
            await cl.Message(content=format_violations(result), author="기재 원칙 점검").send()

        await cl.make_async(log_usage)(session_id, category, mode.value, estimated_tokens, True, None)

        if mode is PromptMode.CREATE:
            await cl.Message(
                content="답변이 중간에 끊겼다면 아래 버튼으로 이어서 작성할 수 있습니다.",
                actions=[cl.Action(name="continue_writing", label="이어서 작성", payload={})],
                author=ASSISTANT_NAME,
            ).send()

    # 503 Service Unavailable 및 기타 구글 API 에러 구체적 처리
    except ServiceUnavailable as e:
        error_user_msg = "⚠️ 현재 AI 모델 사용량이 폭주하여 일시적으로 응답할 수 없습니다 (503 Error). 잠시 후(약 1분 뒤) 다시 시도해 주세요."
        await cl.Message(content=error_user_msg, author="시스템 오류").send()
        await cl.make_async(log_usage)(session_id, category, mode.value, estimated_tokens, False, f"503 Service Unavailable: {e}")

    except InternalServerError as e:
        await cl.Message(content="⚠️ 구글 AI 서버 내부 오류가 발생했습니다. 잠시 후 다시 시도해 주세요.", author="시스템 오류").send()
        await cl.make_async(log_usage)(session_id, category, mode.value, estimated_tokens, False, f"500 Internal Error: {e}")

    except google_exceptions.InvalidArgument as e:
        if "request is too large" in str(e) or "token" in str(e).lower():
            await cl.Message(content="오류: 입력 내용이 너무 깁니다. 내용을 줄여서 다시 시도해주세요.", author="오류").send()
        else:
            await cl.Message(content=f"API 요청 오류: {e}", author="오류").send()
        await cl.make_async(log_usage)(session_id, category, mode.value, estimated_tokens, False, f"LLM Input Error: {e}")

    except Exception as e:
        error_msg = str(e)
        if "API_KEY" in error_msg or "403" in error_msg:
            await cl.Message(
                content="⛔ **API Key 오류**: 키가 올바르지 않거나 허용량이 초과되었습니다. 새로고침 후 다시 시도해주세요.",
                author="오류"
            ).send()
        else:
            logger.exception("응답 생성 중 예기치 않은 오류")
            await cl.Message(content=f"오류 발생: {e}", author="오류").send()
        await cl.make_async(log_usage)(session_id, category, mode.value, estimated_tokens, False, error_msg)
