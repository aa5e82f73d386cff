from aiogram import Router, F
from aiogram.filters import CommandStart
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from study_helper.db.queries import ensure_user
from study_helper.handlers.session import end_active_session
from study_helper.keyboards.main_menu import main_menu_keyboard

router = Router()

WELCOME_TEXT = (
    "👋 Hi! I'm Study Helper — master any topic with AI.\n\n"
    "Get personalized study sessions, practice questions and detailed explanations "
    "tailored to your level.\n\n"
    "What would you like to do?"
)


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext):
    end_active_session(message.chat.id)
    await state.clear()
    await ensure_user(message.from_user.id, message.from_user.username, message.from_user.first_name)
    await message.answer(WELCOME_TEXT, reply_markup=main_menu_keyboard())


@router.callback_query(F.data == "go_home")
async def go_home(callback: CallbackQuery, state: FSMContext):
    end_active_session(callback.message.chat.id)
    await state.clear()
    await callback.message.edit_text(WELCOME_TEXT, reply_markup=main_menu_keyboard())
    await callback.answer()
