# handlers.py - форма «Новая идея» и общие команды
import logging

from telegram import Update
from telegram.error import BadRequest
from telegram.ext import ContextTypes, ConversationHandler

import keyboards
import locations
from autocomplete_widget import country_widget, location_widget
from countries import canonical_country, is_valid_country
from ui_render import render_idea_card

logger = logging.getLogger(__name__)

TITLE_MAX_LEN = 120
COUNTRY_ERROR = "Выберите страну из списка"
TIMEOUT_TEXT = "⌛ Форма закрыта по таймауту"

# Состояния диалога создания идеи
(
    IDEA_TITLE,
    IDEA_LOCATION,
    IDEA_COUNTRY,
    IDEA_CONFIRM,
) = range(4)


def new_draft() -> dict:
    return {
        "title": "",
        "location": "",
        "selected_location": None,
        "country": "",
        "country_error": "",
    }


def draft_location_value(draft: dict) -> str:
    """Что уходит наружу как место: выбранный вариант, иначе сырой ввод."""
    selected = draft.get("selected_location")
    if selected is not None:
        return selected.name
    return (draft.get("location") or "").strip()


def make_location_callbacks(draft: dict):
    """on_change / on_select для поля места; выбор места сразу проставляет страну."""

    def on_change(value: str) -> None:
        draft["location"] = value
        # ручная правка после выбора: выбор больше не действителен
        selected = draft.get("selected_location")
        if selected is not None and selected.name != value:
            draft["selected_location"] = None

    def on_select(loc: locations.Location) -> None:
        draft["selected_location"] = loc
        draft["location"] = loc.name
        draft["country"] = loc.country
        draft["country_error"] = ""

    return on_change, on_select


def make_country_callbacks(draft: dict):
    def on_change(value: str) -> None:
        draft["country"] = value
        draft["country_error"] = ""

    def on_select(country: str) -> None:
        draft["country"] = country
        draft["country_error"] = ""

    return on_change, on_select


def resolve_free_location(draft: dict) -> None:
    """Место введено руками без выбора: точное совпадение с индексом считаем выбором."""
    if draft.get("selected_location") is not None:
        return
    loc = locations.canonical(draft.get("location"))
    if loc is not None:
        draft["selected_location"] = loc
        draft["location"] = loc.name
        draft["country"] = loc.country
        draft["country_error"] = ""


def validate_country(draft: dict) -> bool:
    """Проверка при уходе с поля: неизвестная страна стирается, ставится ошибка."""
    canon = canonical_country(draft.get("country"))
    if canon is None:
        draft["country"] = ""
        draft["country_error"] = COUNTRY_ERROR
        return False
    draft["country"] = canon
    draft["country_error"] = ""
    return True


# ========== служебное ==========

def _widgets(context: ContextTypes.DEFAULT_TYPE) -> dict:
    return context.user_data.setdefault("idea_widgets", {})


async def _delete_user_message(update: Update) -> None:
    # чистый чат: ввод пользователя удаляем, значение видно в панели
    if not update.message:
        return
    try:
        await update.message.delete()
    except BadRequest as e:
        logger.debug("Не удалось удалить сообщение пользователя: %s", e)


async def _unmount_all(context: ContextTypes.DEFAULT_TYPE, final_text: str | None = None) -> None:
    for widget in list(_widgets(context).values()):
        await widget.unmount(context.bot, final_text=final_text)
    context.user_data.pop("idea_widgets", None)


async def _cleanup(context: ContextTypes.DEFAULT_TYPE, chat_id: int | None) -> None:
    await _unmount_all(context)
    if chat_id is not None:
        for msg_id in context.user_data.get("idea_messages", []):
            try:
                await context.bot.delete_message(chat_id=chat_id, message_id=msg_id)
            except BadRequest as e:
                logger.debug("Не удалось удалить сообщение бота: %s", e)
    context.user_data.pop("idea_messages", None)
    context.user_data.pop("idea", None)


# ========== общие команды ==========

async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        "👋 Добро пожаловать!\n\nПредложите идею для своего города.",
        reply_markup=keyboards.get_main_menu()
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Показывает инструкцию."""
    help_text = (
        "❓ Помощь\n\n"
        "💡 Новая идея\n"
        "1) Название\n"
        "2) Место: начните вводить город или район и выберите подсказку\n"
        "3) Страна (если не определилась по месту)\n"
        "4) Проверьте карточку и отправьте"
    )
    await update.message.reply_text(
        help_text,
        reply_markup=keyboards.get_close_only_keyboard("help_close"),
    )


async def close_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    try:
        await query.message.delete()
    except BadRequest as e:
        logger.debug("close_message: %s", e)


# ========== НОВАЯ ИДЕЯ ==========

async def new_idea(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Начинает заполнение формы идеи."""
    await _cleanup(context, update.effective_chat.id if update.effective_chat else None)
    context.user_data["idea"] = new_draft()
    context.user_data["idea_messages"] = []

    await _delete_user_message(update)

    msg = await context.bot.send_message(
        chat_id=update.effective_chat.id,
        text="💡 Новая идея\n\nВведите название:",
        reply_markup=keyboards.get_cancel_keyboard(),
    )
    context.user_data["idea_messages"].append(msg.message_id)
    return IDEA_TITLE


async def input_title(update: Update, context: ContextTypes.DEFAULT_TYPE):
    raw_value = (update.message.text or "").strip()
    await _delete_user_message(update)

    chat_id = update.effective_chat.id
    draft = context.user_data.setdefault("idea", new_draft())

    if not raw_value or len(raw_value) > TITLE_MAX_LEN:
        msg = await context.bot.send_message(
            chat_id=chat_id,
            text=f"❌ Название должно быть от 1 до {TITLE_MAX_LEN} символов. Попробуйте ещё раз:",
            reply_markup=keyboards.get_cancel_keyboard(),
        )
        context.user_data.setdefault("idea_messages", []).append(msg.message_id)
        return IDEA_TITLE

    draft["title"] = raw_value

    on_change, on_select = make_location_callbacks(draft)
    widget = location_widget(value=draft["location"], on_change=on_change, on_select=on_select)
    _widgets(context)["location"] = widget
    context.user_data["idea_field"] = "location"
    msg = await widget.mount(context.application, context.bot, chat_id)
    context.user_data.setdefault("idea_messages", []).append(msg.message_id)
    return IDEA_LOCATION


async def field_text(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Текст в шаге места/страны: ввод в активное поле."""
    widget = _widgets(context).get(context.user_data.get("idea_field"))

    text = update.message.text or ""
    await _delete_user_message(update)
    if widget is None:
        logger.warning("Ввод без активного поля формы, диалог сброшен")
        return await cancel_idea(update, context)

    await widget.handle_text(context.bot, text)
    return IDEA_COUNTRY if widget.key == "country" else IDEA_LOCATION


async def field_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Кнопки панели подсказок: ac_<location|country>_<pick_N|focus|clear>."""
    query = update.callback_query
    data = query.data or ""

    for widget in _widgets(context).values():
        if widget.owns_callback(data):
            await query.answer()
            chosen = await widget.handle_callback(context.bot, data)
            if chosen is not None:
                logger.info("Выбрано %s: %s", widget.key, widget.controller.value)
            return IDEA_COUNTRY if widget.key == "country" else IDEA_LOCATION

    # панель от прошлой формы
    await query.answer("⚠️ Список вариантов устарел", show_alert=False)
    return None


async def location_next(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    draft = context.user_data.get("idea") or new_draft()

    if not (draft.get("location") or "").strip():
        await query.answer("Введите место", show_alert=True)
        return IDEA_LOCATION
    await query.answer()

    resolve_free_location(draft)

    widget = _widgets(context).pop("location", None)
    if widget is not None:
        await widget.unmount(context.bot, final_text=f"📍 {draft_location_value(draft)}")

    if is_valid_country(draft.get("country")):
        return await show_confirm(update, context)

    on_change, on_select = make_country_callbacks(draft)
    widget = country_widget(value=draft.get("country") or "", on_change=on_change, on_select=on_select)
    _widgets(context)["country"] = widget
    context.user_data["idea_field"] = "country"
    msg = await widget.mount(context.application, context.bot, update.effective_chat.id)
    context.user_data.setdefault("idea_messages", []).append(msg.message_id)
    return IDEA_COUNTRY


async def country_next(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    draft = context.user_data.get("idea") or new_draft()
    widget = _widgets(context).get("country")

    if not validate_country(draft):
        if widget is not None:
            await widget.set_value(context.bot, "", error=draft["country_error"])
        return IDEA_COUNTRY

    _widgets(context).pop("country", None)
    if widget is not None:
        await widget.unmount(context.bot, final_text=f"🌍 {draft['country']}")
    return await show_confirm(update, context)


async def show_confirm(update: Update, context: ContextTypes.DEFAULT_TYPE):
    draft = context.user_data.get("idea") or new_draft()
    context.user_data.pop("idea_field", None)
    msg = await context.bot.send_message(
        chat_id=update.effective_chat.id,
        text=render_idea_card(
            title=draft["title"],
            location=draft_location_value(draft),
            country=draft["country"],
            selected=draft.get("selected_location"),
        ),
        reply_markup=keyboards.get_idea_confirm_keyboard(),
    )
    context.user_data.setdefault("idea_messages", []).append(msg.message_id)
    return IDEA_CONFIRM


async def submit_idea(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    draft = context.user_data.get("idea") or new_draft()

    payload = {
        "title": draft["title"],
        "location_value": draft_location_value(draft),
        "country": draft["country"],
    }
    # отправка идеи наружу вне этого бота, здесь только журнал
    logger.info("Новая идея от %s: %s", update.effective_user.id if update.effective_user else "?", payload)

    card = render_idea_card(
        title=draft["title"],
        location=payload["location_value"],
        country=draft["country"],
        selected=draft.get("selected_location"),
        status="✅ Отправлено",
    )
    try:
        await query.edit_message_text(card, reply_markup=None)
    except BadRequest as e:
        logger.debug("submit_idea: %s", e)

    # карточку оставляем, остальное убираем
    ids = context.user_data.get("idea_messages", [])
    if query.message and query.message.message_id in ids:
        ids.remove(query.message.message_id)
    await _cleanup(context, update.effective_chat.id)
    return ConversationHandler.END


async def cancel_idea(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Отмена формы: снимаем виджеты и чистим чат."""
    if update.callback_query:
        await update.callback_query.answer()
    await _delete_user_message(update)
    await _cleanup(context, update.effective_chat.id if update.effective_chat else None)
    context.user_data.pop("idea_field", None)
    return ConversationHandler.END


async def idea_timeout(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Форма брошена: подписки виджетов не должны пережить диалог."""
    logger.info("Форма идеи закрыта по таймауту")
    # панели остаются в чате, кнопки с них снимаем
    await _unmount_all(context, final_text=TIMEOUT_TEXT)
    context.user_data.pop("idea", None)
    context.user_data.pop("idea_field", None)
    context.user_data.pop("idea_messages", None)
