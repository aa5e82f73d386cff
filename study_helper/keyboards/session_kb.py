from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from study_helper.session.models import SessionState

OPTION_LABELS = ["A", "B", "C", "D", "E", "F"]

# Session callback data ends with ":<session token>"


def end_button(token: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text="⏹ End Session", callback_data=f"sess:end:{token}")


def loading_keyboard(token: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[end_button(token)]])


def retry_keyboard(token: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔄 Try Again", callback_data=f"sess:retry:{token}")],
        [end_button(token)],
    ])


def concepts_keyboard(token: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="▶️ Continue to Practice", callback_data=f"sess:advance:{token}")],
        [end_button(token)],
    ])


def practice_keyboard(state: SessionState, token: str) -> InlineKeyboardMarkup:
    """Option buttons (until answered) plus Previous / Next navigation."""
    question = state.current_question
    buttons = []

    if question.has_options and not state.explanation_visible:
        for i, option in enumerate(question.options):
            label = OPTION_LABELS[i] if i < len(OPTION_LABELS) else str(i + 1)
            # Option index, not text: callback_data is limited to 64 bytes
            buttons.append([InlineKeyboardButton(
                text=f"{label}) {option}",
                callback_data=f"ans:{i}:{token}",
            )])

    nav = []
    if state.current_question_index > 0:
        nav.append(InlineKeyboardButton(text="◀️ Previous", callback_data=f"sess:prev:{token}"))
    next_text = "🏁 Finish" if state.is_last_question else "Next ▶️"
    nav.append(InlineKeyboardButton(text=next_text, callback_data=f"sess:next:{token}"))
    buttons.append(nav)
    buttons.append([end_button(token)])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def review_keyboard(token: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 Review Again", callback_data=f"sess:review_again:{token}")],
        [end_button(token)],
    ])
