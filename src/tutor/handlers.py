from __future__ import annotations
import logging
from dataclasses import dataclass, field

from aiogram import Dispatcher, F
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, Message
from aiogram.utils.formatting import Bold, Spoiler, Text
from pydantic import ValidationError

from .composer import MAX_QUESTIONS
from .config import Settings
from .errors import CompositionError, ExternalModelError, SchemaValidationError
from .flows import generate_exam, generate_feedback
from .i18n import t
from .keyboards import EXAM_MORE, kb_exam_more, kb_lang
from .llm import GeminiModel, ModelCapability
from .models import ExamRequest, FeedbackRequest, GeneratedQuestion, PracticeExam, QuestionType
from .normalize import norm_text

logger = logging.getLogger(__name__)

DEFAULT_EXAM_SIZE = 10
MAX_SEEN = 200
MESSAGE_LIMIT = 4000

_TYPE_LABELS = {
    QuestionType.MULTIPLE_CHOICE: "MC",
    QuestionType.TRUE_FALSE: "T/F",
    QuestionType.FREE_TEXT: "Written",
}

# ---------------- per-chat state (in memory only) ----------------
@dataclass
class ChatState:
    ui_lang: str
    native_language: str | None = None
    context: str | None = None
    seen_questions: list[str] = field(default_factory=list)
    last_topic: str | None = None
    last_num: int | None = None

    def remember(self, exam: PracticeExam) -> None:
        for q in exam.questions:
            if q.prompt not in self.seen_questions:
                self.seen_questions.append(q.prompt)
        if len(self.seen_questions) > MAX_SEEN:
            del self.seen_questions[: len(self.seen_questions) - MAX_SEEN]

class ChatStore:
    def __init__(self, default_lang: str):
        self.default_lang = default_lang
        self._states: dict[int, ChatState] = {}

    def get(self, chat_id: int) -> ChatState:
        st = self._states.get(chat_id)
        if st is None:
            st = ChatState(ui_lang=self.default_lang)
            self._states[chat_id] = st
        return st

# ---------------- helpers ----------------
def _build_model(settings: Settings) -> ModelCapability | None:
    if not settings.model.gemini_api_key:
        return None
    return GeminiModel(settings.model.gemini_api_key, model=settings.model.llm_model)

def _chunks(message: str, size: int = MESSAGE_LIMIT) -> list[str]:
    return [message[i : i + size] for i in range(0, len(message), size)] or [message]

def parse_exam_args(args: str | None) -> tuple[int, str]:
    """``"10 UPSC Civil Services"`` -> ``(10, "UPSC Civil Services")``.

    The count is optional and defaults to DEFAULT_EXAM_SIZE.
    """
    topic = norm_text(args or "")
    num = DEFAULT_EXAM_SIZE
    head, _, rest = topic.partition(" ")
    if head.isdigit():
        num = int(head)
        topic = rest.strip()
    if not topic:
        raise ValueError("topic required")
    if not 1 <= num <= MAX_QUESTIONS:
        raise ValueError(f"number of questions must be in [1, {MAX_QUESTIONS}]")
    return num, topic

def _question_block(index: int, q: GeneratedQuestion, ui_lang: str) -> Text:
    nodes: list = [
        Bold(f"{index}. [{_TYPE_LABELS[q.type]}] "),
        q.prompt,
        f" ({q.points_possible} {t('points', ui_lang)})",
    ]
    for letter, option in zip("ABCD", q.options):
        nodes.append(f"\n   {letter}) {option}")
    return Text(*nodes)

def build_exam_messages(exam: PracticeExam, topic: str, ui_lang: str) -> list[dict[str, object]]:
    """Render an exam as one or more message kwargs, answers hidden in spoilers."""
    blocks = [Text(Bold(t("exam_header", ui_lang, topic=topic)))]
    blocks.extend(_question_block(i, q, ui_lang) for i, q in enumerate(exam.questions, start=1))
    answers: list = [Bold(t("answers_header", ui_lang)), "\n"]
    for i, q in enumerate(exam.questions, start=1):
        answers.extend([f"{i}. ", Spoiler(q.correct_answer), "\n"])
    blocks.append(Text(*answers))

    messages: list[dict[str, object]] = []
    current: list[Text] = []
    size = 0
    for block in blocks:
        block_len = len(block.as_kwargs()["text"]) + 2
        if current and size + block_len > MESSAGE_LIMIT:
            messages.append(_join_blocks(current))
            current, size = [], 0
        current.append(block)
        size += block_len
    if current:
        messages.append(_join_blocks(current))
    return messages

def _join_blocks(blocks: list[Text]) -> dict[str, object]:
    nodes: list = []
    for block in blocks:
        if nodes:
            nodes.append("\n\n")
        nodes.append(block)
    return Text(*nodes).as_kwargs()

def build_feedback_request(text: str, st: ChatState) -> FeedbackRequest:
    return FeedbackRequest(text=text, context=st.context, native_language=st.native_language)

async def generate_exam_with_retry(
    request: ExamRequest,
    *,
    model: ModelCapability,
    settings: Settings,
) -> PracticeExam:
    """Re-prompt on invalid output; model failures are not retried."""
    attempts = settings.exam_attempts
    for attempt in range(1, attempts + 1):
        try:
            return await generate_exam(request, model=model, timeout=settings.model.llm_timeout_s)
        except (SchemaValidationError, CompositionError) as exc:
            logger.warning(
                "exam_retry: attempt=%s/%s topic=%s error=%s",
                attempt,
                attempts,
                request.exam_topic,
                exc,
            )
            if attempt >= attempts:
                raise
    raise RuntimeError("exam_attempts must be at least 1")

async def _send_exam(m: Message, st: ChatState, num: int, topic: str, *, model, settings: Settings) -> None:
    try:
        request = ExamRequest(exam_topic=topic, num_questions=num, seen_questions=st.seen_questions)
    except ValidationError:
        await m.answer(**Text(t("exam_usage", st.ui_lang)).as_kwargs())
        return
    st.last_topic, st.last_num = topic, num
    await m.answer(**Text(t("exam_generating", st.ui_lang, n=num, topic=topic)).as_kwargs())
    try:
        exam = await generate_exam_with_retry(request, model=model, settings=settings)
    except ExternalModelError as exc:
        logger.warning("exam_failed: chat_id=%s reason=%s", m.chat.id, exc.reason)
        await m.answer(**Text(t("model_failed", st.ui_lang)).as_kwargs())
        return
    except (SchemaValidationError, CompositionError):
        await m.answer(**Text(t("exam_invalid", st.ui_lang)).as_kwargs())
        return
    st.remember(exam)
    messages = build_exam_messages(exam, topic, st.ui_lang)
    for i, kwargs in enumerate(messages):
        if i == len(messages) - 1:
            kwargs = {**kwargs, "reply_markup": kb_exam_more(st.ui_lang)}
        await m.answer(**kwargs)

# ---------------- handlers ----------------
def register_handlers(
    dp: Dispatcher,
    *,
    settings: Settings,
    model: ModelCapability | None = None,
    store: ChatStore | None = None,
):
    model = model if model is not None else _build_model(settings)
    store = store if store is not None else ChatStore(settings.ui_default_lang)

    @dp.message(CommandStart())
    @dp.message(Command("help"))
    async def on_start(m: Message):
        st = store.get(m.chat.id)
        await m.answer(**Text(t("welcome", st.ui_lang)).as_kwargs())

    @dp.message(Command("lang"))
    async def on_lang(m: Message, command: CommandObject):
        st = store.get(m.chat.id)
        lang = norm_text(command.args or "").lower()
        if lang not in ("en", "uk"):
            await m.answer(t("lang_usage", st.ui_lang), reply_markup=kb_lang())
            return
        st.ui_lang = lang
        await m.answer(t("lang_set", lang))

    @dp.callback_query(F.data.startswith("lang:"))
    async def on_lang_cb(c: CallbackQuery):
        lang = (c.data or "").split(":", 1)[1]
        if lang not in ("en", "uk"):
            await c.answer()
            return
        st = store.get(c.message.chat.id)
        st.ui_lang = lang
        await c.answer()
        await c.message.answer(t("lang_set", lang))

    @dp.message(Command("native"))
    async def on_native(m: Message, command: CommandObject):
        st = store.get(m.chat.id)
        value = norm_text(command.args or "")
        st.native_language = value or None
        if value:
            await m.answer(**Text(t("native_set", st.ui_lang, value=value)).as_kwargs())
        else:
            await m.answer(t("native_cleared", st.ui_lang))

    @dp.message(Command("context"))
    async def on_context(m: Message, command: CommandObject):
        st = store.get(m.chat.id)
        value = norm_text(command.args or "")
        st.context = value or None
        if value:
            await m.answer(**Text(t("context_set", st.ui_lang, value=value)).as_kwargs())
        else:
            await m.answer(t("context_cleared", st.ui_lang))

    @dp.message(Command("exam"))
    async def on_exam(m: Message, command: CommandObject):
        st = store.get(m.chat.id)
        if model is None:
            await m.answer(t("llm_not_configured", st.ui_lang))
            return
        try:
            num, topic = parse_exam_args(command.args)
        except ValueError:
            await m.answer(**Text(t("exam_usage", st.ui_lang)).as_kwargs())
            return
        logger.info("exam_requested: chat_id=%s num=%s topic=%s", m.chat.id, num, topic)
        await _send_exam(m, st, num, topic, model=model, settings=settings)

    @dp.callback_query(F.data == EXAM_MORE)
    async def on_exam_more(c: CallbackQuery):
        await c.answer()
        st = store.get(c.message.chat.id)
        if model is None:
            await c.message.answer(t("llm_not_configured", st.ui_lang))
            return
        if not st.last_topic or not st.last_num:
            await c.message.answer(t("exam_nothing_to_repeat", st.ui_lang))
            return
        await _send_exam(c.message, st, st.last_num, st.last_topic, model=model, settings=settings)

    @dp.message(F.text & ~F.text.startswith("/"))
    async def on_text(m: Message):
        st = store.get(m.chat.id)
        if model is None:
            await m.answer(t("llm_not_configured", st.ui_lang))
            return
        text = norm_text(m.text or "")
        if not text:
            return
        try:
            resp = await generate_feedback(
                build_feedback_request(text, st),
                model=model,
                timeout=settings.model.llm_timeout_s,
            )
        except ExternalModelError as exc:
            logger.warning("feedback_failed: chat_id=%s reason=%s", m.chat.id, exc.reason)
            await m.answer(**Text(t("model_failed", st.ui_lang)).as_kwargs())
            return
        except SchemaValidationError as exc:
            logger.warning("feedback_invalid: chat_id=%s field=%s", m.chat.id, exc.field)
            await m.answer(**Text(t("feedback_invalid", st.ui_lang)).as_kwargs())
            return
        for chunk in _chunks(resp.response):
            await m.answer(**Text(chunk).as_kwargs())
