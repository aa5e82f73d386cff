from aiogram.fsm.state import StatesGroup, State


class StudyFlow(StatesGroup):
    entering_topic = State()
    choosing_difficulty = State()
    choosing_focus = State()
    in_session = State()
