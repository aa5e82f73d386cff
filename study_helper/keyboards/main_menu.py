from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📘 Start learning", callback_data="start_study")],
        [InlineKeyboardButton(text="📈 My progress", callback_data="my_progress")],
    ])
