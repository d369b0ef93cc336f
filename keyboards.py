# keyboards.py
from telegram import ReplyKeyboardMarkup, InlineKeyboardButton, InlineKeyboardMarkup

NEW_IDEA_BUTTON = "💡 Новая идея"
HELP_BUTTON = "❓ Помощь"


def get_main_menu():
    """Возвращает главное меню"""
    keyboard = [
        [NEW_IDEA_BUTTON],
        [HELP_BUTTON],
    ]
    return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)


def get_suggestions_keyboard(key: str, labels: list[str], *, extra_rows=None):
    """Панель подсказок: по кнопке на вариант, callback ac_<key>_pick_<idx>."""
    keyboard = [
        [InlineKeyboardButton(label, callback_data=f"ac_{key}_pick_{i}")]
        for i, label in enumerate(labels)
    ]
    keyboard.extend(extra_rows or [])
    return InlineKeyboardMarkup(keyboard)


def get_closed_panel_keyboard(key: str, *, extra_rows=None):
    """Панель скрыта: одна кнопка, чтобы снова показать последние подсказки."""
    keyboard = [[InlineKeyboardButton("🔎 Показать подсказки", callback_data=f"ac_{key}_focus")]]
    keyboard.extend(extra_rows or [])
    return InlineKeyboardMarkup(keyboard)


def get_field_actions_row(key: str):
    """Общие действия поля формы: очистить / далее / отмена."""
    return [
        InlineKeyboardButton("🧹 Очистить", callback_data=f"ac_{key}_clear"),
        InlineKeyboardButton("➡️ Далее", callback_data=f"idea_next_{key}"),
    ]


def get_cancel_row():
    return [InlineKeyboardButton("❌ Отмена", callback_data="idea_cancel")]


def get_cancel_keyboard():
    return InlineKeyboardMarkup([get_cancel_row()])


def get_idea_confirm_keyboard():
    keyboard = [
        [
            InlineKeyboardButton("✅ Отправить", callback_data="idea_submit"),
            InlineKeyboardButton("❌ Отмена", callback_data="idea_cancel"),
        ]
    ]
    return InlineKeyboardMarkup(keyboard)


def get_close_only_keyboard(cb: str = "noop"):
    """Простая клавиатура с одной кнопкой Закрыть."""
    keyboard = [[InlineKeyboardButton("✖️ Закрыть", callback_data=cb)]]
    return InlineKeyboardMarkup(keyboard)
