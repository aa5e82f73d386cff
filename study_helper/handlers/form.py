import logging

from aiogram import Router, F
from aiogram.types import CallbackQuery, Message
from aiogram.fsm.context import FSMContext

from study_helper.config import DIFFICULTY_LABELS, FOCUS_LABELS
from study_helper.handlers.session import activate_session, end_active_session
from study_helper.keyboards.form_kb import difficulty_keyboard, focus_keyboard, topic_prompt_keyboard
from study_helper.session.exceptions import FormValidationError
from study_helper.session.form import build_session_parameters, parse_difficulty, parse_focus, validate_topic
from study_helper.states.study_states import StudyFlow

logger = logging.getLogger(__name__)

router = Router()

TOPIC_PROMPT = (
    "✏️ What would you like to study today?\n\n"
    "e.g., Quantum Physics, JavaScript Promises, Organic Chemistry..."
)


@router.callback_query(F.data == "start_study")
async def ask_topic(callback: CallbackQuery, state: FSMContext):
    await state.set_state(StudyFlow.entering_topic)
    await callback.message.edit_text(TOPIC_PROMPT, reply_markup=topic_prompt_keyboard())
    await callback.answer()


@router.message(StudyFlow.entering_topic)
async def topic_entered(message: Message, state: FSMContext):
    try:
        topic = validate_topic(message.text)
    except FormValidationError as e:
        # Stay on the topic question; nothing else changes
        await message.answer(f"⚠️ {e.message}. Try again:")
        return

    await state.update_data(topic=topic)
    await state.set_state(StudyFlow.choosing_difficulty)
    await message.answer(
        f"📝 Topic: {topic}\n\n🧠 Difficulty Level:",
        reply_markup=difficulty_keyboard(),
    )


@router.callback_query(StudyFlow.choosing_difficulty, F.data.startswith("diff:"))
async def difficulty_selected(callback: CallbackQuery, state: FSMContext):
    try:
        difficulty = parse_difficulty(callback.data.split(":", 1)[1])
    except FormValidationError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await state.update_data(difficulty=difficulty.value)
    await state.set_state(StudyFlow.choosing_focus)
    data = await state.get_data()
    await callback.message.edit_text(
        f"📝 Topic: {data.get('topic', '')}\n"
        f"🧠 {DIFFICULTY_LABELS[difficulty.value]}\n\n"
        f"🎯 Focus Area:",
        reply_markup=focus_keyboard(),
    )
    await callback.answer()


@router.callback_query(StudyFlow.choosing_focus, F.data == "back_to_difficulty")
async def back_to_difficulty(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    await state.set_state(StudyFlow.choosing_difficulty)
    await callback.message.edit_text(
        f"📝 Topic: {data.get('topic', '')}\n\n🧠 Difficulty Level:",
        reply_markup=difficulty_keyboard(),
    )
    await callback.answer()


@router.callback_query(StudyFlow.choosing_focus, F.data.startswith("focus:"))
async def focus_selected(callback: CallbackQuery, state: FSMContext):
    """Last field of the form: validate everything and start the session."""
    try:
        focus = parse_focus(callback.data.split(":", 1)[1])
    except FormValidationError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await state.update_data(focus=focus.value)
    data = await state.get_data()

    try:
        params = build_session_parameters(data.get("topic"), data.get("difficulty"), data.get("focus"))
    except FormValidationError as e:
        await state.set_state(StudyFlow.entering_topic)
        await callback.message.edit_text(f"⚠️ {e.message}.\n\n{TOPIC_PROMPT}", reply_markup=topic_prompt_keyboard())
        await callback.answer()
        return

    await callback.answer()
    await callback.message.edit_text(
        f"📝 Topic: {params.topic}\n"
        f"🧠 {DIFFICULTY_LABELS[params.difficulty.value]}\n"
        f"🎯 {FOCUS_LABELS[params.focus.value]}"
    )

    try:
        await activate_session(callback.message, state, params, callback.from_user.id)
    except Exception:
        logger.exception("Failed to start study session for %r", params.topic)
        end_active_session(callback.message.chat.id)
        # Back to the last form step with the collected answers kept
        await state.set_state(StudyFlow.choosing_focus)
        await callback.message.answer(
            "❌ Failed to start study session",
            reply_markup=focus_keyboard(),
        )
        return

    logger.info("User %s started studying %r", callback.from_user.id, params.topic)
