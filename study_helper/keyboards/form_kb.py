from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from study_helper.config import DIFFICULTY_LABELS, FOCUS_LABELS
from study_helper.session.form import DEFAULT_DIFFICULTY, DEFAULT_FOCUS


def difficulty_keyboard() -> InlineKeyboardMarkup:
    buttons = []
    for value, label in DIFFICULTY_LABELS.items():
        mark = "✅ " if value == DEFAULT_DIFFICULTY.value else ""
        buttons.append([InlineKeyboardButton(text=f"{mark}{label}", callback_data=f"diff:{value}")])
    buttons.append([InlineKeyboardButton(text="🔙 Change topic", callback_data="start_study")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def focus_keyboard() -> InlineKeyboardMarkup:
    buttons = []
    for value, label in FOCUS_LABELS.items():
        mark = "✅ " if value == DEFAULT_FOCUS.value else ""
        buttons.append([InlineKeyboardButton(text=f"{mark}{label}", callback_data=f"focus:{value}")])
    buttons.append([InlineKeyboardButton(text="🔙 Back to difficulty", callback_data="back_to_difficulty")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def topic_prompt_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🏠 Back", callback_data="go_home")],
    ])
