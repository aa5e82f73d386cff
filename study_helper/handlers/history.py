from aiogram import Router, F
from aiogram.types import CallbackQuery
from aiogram.fsm.context import FSMContext

from study_helper.handlers.session import end_active_session
from study_helper.keyboards.main_menu import main_menu_keyboard
from study_helper.services.progress_tracker import format_recent_topics, format_progress

router = Router()


@router.callback_query(F.data == "my_progress")
async def show_progress(callback: CallbackQuery, state: FSMContext):
    end_active_session(callback.message.chat.id)
    await state.clear()

    user_id = callback.from_user.id

    text = await format_recent_topics(user_id)
    progress = await format_progress(user_id)
    if progress:
        text += "\n" + progress

    await callback.message.edit_text(text, reply_markup=main_menu_keyboard())
    await callback.answer()
