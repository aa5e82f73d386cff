import html
import logging
import re

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery, InlineKeyboardMarkup
from aiogram.fsm.context import FSMContext

from study_helper.config import settings
from study_helper.db.store import SessionStore, SqliteSessionStore, build_session_record
from study_helper.keyboards.main_menu import main_menu_keyboard
from study_helper.keyboards.session_kb import (
    OPTION_LABELS,
    concepts_keyboard,
    loading_keyboard,
    practice_keyboard,
    retry_keyboard,
    review_keyboard,
)
from study_helper.services.content_generator import get_content_generator
from study_helper.services.session_runner import SessionRunner
from study_helper.session.exceptions import InvalidTransitionError
from study_helper.session.models import PHASE_ORDER, Phase, QuestionKind, SessionParameters
from study_helper.states.study_states import StudyFlow

logger = logging.getLogger(__name__)

router = Router()

# One runner per chat; removed by the runner's on_end callback
_runners: dict[int, SessionRunner] = {}

store: SessionStore = SqliteSessionStore()

LOADING_TEXT = (
    "⏳ <b>Generating Study Content</b>\n\n"
    "AI is preparing personalized learning materials for you..."
)

_CODE_BLOCK_RE = re.compile(r"```(?:[\w+-]*\n)?(.+?)```", re.DOTALL)
_CODE_RE = re.compile(r"`([^`\n]+)`")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<![\w*])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![\w*])")


def _md(text: str) -> str:
    """Escape for Telegram HTML, keeping code, bold and italics from generated markdown."""
    parts = []
    # Code is split out first so markers inside it stay literal
    for i, chunk in enumerate(re.split(r"(```(?:[\w+-]*\n)?.+?```|`[^`\n]+`)", text, flags=re.DOTALL)):
        if i % 2:
            block = _CODE_BLOCK_RE.fullmatch(chunk)
            if block:
                parts.append(f"<pre>{html.escape(block.group(1).rstrip())}</pre>")
            else:
                parts.append(f"<code>{html.escape(_CODE_RE.fullmatch(chunk).group(1))}</code>")
            continue
        chunk = _BOLD_RE.sub(r"<b>\1</b>", html.escape(chunk))
        parts.append(_ITALIC_RE.sub(r"<i>\1</i>", chunk))
    return "".join(parts)


def end_active_session(chat_id: int) -> SessionRunner | None:
    """End the chat's running session, if any, without touching the chat."""
    runner = _runners.get(chat_id)
    if runner is not None:
        runner.end()
    return runner


# ============================================================================
# RENDERING
# ============================================================================

def _header(runner: SessionRunner) -> str:
    return (
        f"🎯 <b>{html.escape(runner.params.topic)}</b> · "
        f"🧠 {runner.params.difficulty.value.capitalize()} · "
        f"⏱ {runner.duration_text()}"
    )


def _progress_steps(phase: Phase) -> str:
    steps = []
    for i, step in enumerate(PHASE_ORDER):
        if step == phase:
            mark = "🔵"
        elif i < PHASE_ORDER.index(phase):
            mark = "🟢"
        else:
            mark = "⚪"
        steps.append(f"{mark} {step.value.capitalize()}")
    return " → ".join(steps)


def render_session(runner: SessionRunner) -> tuple[str, InlineKeyboardMarkup]:
    """Build the message text and keyboard for the runner's current state."""
    state = runner.state

    if state.loading:
        return LOADING_TEXT, loading_keyboard(runner.token)

    if state.content_unavailable:
        return "😞 <b>Failed to Load Content</b>", retry_keyboard(runner.token)

    content = state.content
    lines = [_header(runner), _progress_steps(state.phase), ""]

    if state.phase == Phase.CONCEPTS:
        lines.append("📖 <b>Core Concepts</b>")
        lines.append("Let's start by understanding the fundamental concepts\n")
        lines.extend(f"• {_md(concept)}" for concept in content.concepts)
        return "\n".join(lines), concepts_keyboard(runner.token)

    if state.phase == Phase.PRACTICE:
        question = state.current_question
        total = len(content.questions)
        lines.append(f"❓ <b>Question {state.current_question_index + 1} of {total}</b>\n")
        lines.append(_md(question.prompt))

        answer = state.answers.get(question.id)
        if question.kind == QuestionKind.OPEN_ENDED and not state.explanation_visible:
            lines.append("\n✏️ Type your answer here...")

        if state.explanation_visible:
            if question.has_options:
                lines.append("")
                for i, option in enumerate(question.options):
                    mark = "✅" if option == question.correct_answer else "❌"
                    label = OPTION_LABELS[i] if i < len(OPTION_LABELS) else str(i + 1)
                    chosen = " ← your answer" if option == answer else ""
                    lines.append(f"{mark} {label}) {html.escape(option)}{chosen}")
            elif answer:
                lines.append(f"\n📝 Your answer: {html.escape(answer)}")
            lines.append(f"\n💡 <b>Explanation</b>\n{_md(question.explanation)}")

        return "\n".join(lines), practice_keyboard(state, runner.token)

    # Review
    lines.append("🏆 <b>Session Complete!</b>")
    lines.append("Great job! Here's your performance summary\n")
    lines.append(f"📊 Score: {runner.score()}%")
    lines.append(f"❓ Questions: {len(content.questions)}")
    lines.append(f"⏱ Duration: {runner.duration_text()}")
    if content.summary:
        lines.append(f"\n📝 <b>Session Summary</b>\n{_md(content.summary)}")
    return "\n".join(lines), review_keyboard(runner.token)


async def _show(message: Message, runner: SessionRunner, edit: bool = True):
    text, keyboard = render_session(runner)
    if edit:
        await message.edit_text(text, reply_markup=keyboard, parse_mode="HTML")
    else:
        await message.answer(text, reply_markup=keyboard, parse_mode="HTML")


# ============================================================================
# ACTIVATION
# ============================================================================

async def activate_session(message: Message, state: FSMContext, params: SessionParameters, user_id: int):
    """Start a runner for the chat and load its content."""
    chat_id = message.chat.id
    previous = _runners.get(chat_id)
    if previous is not None:
        previous.end()

    runner = SessionRunner(
        params,
        get_content_generator(),
        on_end=lambda r: _discard(chat_id, r),
        score_denominator=settings.SCORE_DENOMINATOR,
    )
    _runners[chat_id] = runner
    await state.set_state(StudyFlow.in_session)
    await state.update_data(user_id=user_id)
    logger.info("Study session started for chat %s: %r", chat_id, params.topic)

    await message.answer(f"🚀 Starting study session for: <b>{html.escape(params.topic)}</b>", parse_mode="HTML")
    text, keyboard = render_session(runner)
    status = await message.answer(text, reply_markup=keyboard, parse_mode="HTML")
    await _load(status, runner)


async def _load(status: Message, runner: SessionRunner, retry: bool = False):
    """Run (or re-run) content generation and redraw the session message."""
    if retry:
        await runner.retry()
    else:
        await runner.load()
    if runner.ended:
        # Session was ended while content was being generated
        return
    if runner.state.content_unavailable:
        await status.answer("❌ Failed to generate study content")
    else:
        await status.answer("✅ Study content generated successfully!")
    await _show(status, runner)


def _discard(chat_id: int, runner: SessionRunner):
    if _runners.get(chat_id) is runner:
        del _runners[chat_id]


# ============================================================================
# SESSION HANDLERS
# ============================================================================

async def _active_runner(callback: CallbackQuery) -> SessionRunner | None:
    """Runner the pressed button belongs to, or None if it is not the chat's current one."""
    runner = _runners.get(callback.message.chat.id)
    token = callback.data.rsplit(":", 1)[-1]
    if runner is None or runner.token != token:
        await callback.answer("This session is no longer active.", show_alert=True)
        return None
    return runner


@router.callback_query(StudyFlow.in_session, F.data.startswith("sess:retry:"))
async def retry_content(callback: CallbackQuery):
    runner = await _active_runner(callback)
    if runner is None:
        return
    await callback.answer()
    # A second tap while generation is running is ignored
    if not runner.state.content_unavailable:
        return
    await callback.message.edit_text(LOADING_TEXT, reply_markup=loading_keyboard(runner.token), parse_mode="HTML")
    await _load(callback.message, runner, retry=True)


async def _transition(callback: CallbackQuery, action):
    """Apply a runner action and redraw; rejected events show an alert."""
    runner = await _active_runner(callback)
    if runner is None:
        return
    before = runner.state
    try:
        action(runner)
    except InvalidTransitionError as e:
        logger.info("Rejected session event in chat %s: %s", callback.message.chat.id, e)
        await callback.answer("That action isn't available right now.", show_alert=True)
        return
    await callback.answer()
    if runner.state is not before:
        await _show(callback.message, runner)


@router.callback_query(StudyFlow.in_session, F.data.startswith("sess:advance:"))
async def continue_to_practice(callback: CallbackQuery):
    await _transition(callback, lambda r: r.advance())


@router.callback_query(StudyFlow.in_session, F.data.startswith("ans:"))
async def answer_via_button(callback: CallbackQuery):
    """Option buttons carry the option index; the stored answer is the option text."""
    def submit(runner: SessionRunner):
        question = runner.state.current_question
        if question is None or not question.has_options:
            raise InvalidTransitionError("No option question is shown")
        try:
            option = question.options[int(callback.data.split(":")[1])]
        except (ValueError, IndexError):
            raise InvalidTransitionError(f"Bad option in {callback.data!r}") from None
        runner.submit_answer(question.id, option)

    await _transition(callback, submit)


@router.callback_query(StudyFlow.in_session, F.data.startswith("sess:next:"))
async def next_question(callback: CallbackQuery):
    await _transition(callback, lambda r: r.next_question())


@router.callback_query(StudyFlow.in_session, F.data.startswith("sess:prev:"))
async def previous_question(callback: CallbackQuery):
    await _transition(callback, lambda r: r.previous_question())


@router.callback_query(StudyFlow.in_session, F.data.startswith("sess:review_again:"))
async def review_again(callback: CallbackQuery):
    await _transition(callback, lambda r: r.review_again())


@router.message(StudyFlow.in_session)
async def answer_via_text(message: Message):
    """Typed answers for open-ended questions."""
    runner = _runners.get(message.chat.id)
    if runner is None:
        return
    question = runner.state.current_question
    if question is None or question.kind != QuestionKind.OPEN_ENDED:
        await message.answer("Use the buttons below the message to continue.")
        return

    user_answer = message.text.strip() if message.text else ""
    if not user_answer:
        await message.answer("Type your answer as text:")
        return

    try:
        runner.submit_answer(question.id, user_answer)
    except InvalidTransitionError as e:
        logger.info("Rejected text answer in chat %s: %s", message.chat.id, e)
        return
    await _show(message, runner, edit=False)


@router.callback_query(F.data.startswith("sess:end:"))
async def end_session(callback: CallbackQuery, state: FSMContext):
    """End the session, save it if it reached review, and go back to the menu."""
    runner = await _active_runner(callback)
    if runner is None:
        return

    data = await state.get_data()
    runner.end()
    user_id = data.get("user_id") or callback.from_user.id
    await save_finished_session(user_id, runner)

    # The form is reset only now, never when a session starts
    await state.clear()
    await callback.answer()
    await callback.message.answer(
        "🎉 Study session ended. Great work!",
        reply_markup=main_menu_keyboard(),
    )


async def save_finished_session(user_id: int, runner: SessionRunner) -> int | None:
    """Persist a session that reached review. Failures never block ending."""
    if not runner.state.reached_review:
        return None
    try:
        return await store.save_session(build_session_record(user_id, runner))
    except Exception:
        logger.exception("Could not save study session %r for user %s", runner.params.topic, user_id)
        return None
