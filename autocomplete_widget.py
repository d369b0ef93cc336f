# autocomplete_widget.py
"""Поле с автоподсказками внутри чата.

Границы виджета: его собственное сообщение-панель (chat_id + message_id):
- текст пользователя в чате = ввод в поле;
- inline-кнопки под панелью = список подсказок;
- кнопка под ЛЮБЫМ другим сообщением этого чата или /команда = «клик снаружи».

«Клики снаружи» ловит один TypeHandler (register(app), ставится при старте).
Каждый смонтированный виджет подписывается в bot_data при mount() и
отписывается при unmount() (ListenerScope).

ВАЖНО: application.handlers во время работы не трогаем (PTB итерируется по
нему, пока обрабатывает апдейт), меняется только список подписчиков.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from telegram import Update
from telegram.error import BadRequest
from telegram.ext import Application, ContextTypes, TypeHandler

import countries
import keyboards
import locations
import ui_render
from autocomplete import AutocompleteController, AutocompleteState, ListenerScope
from config import DISMISS_HANDLER_GROUP

logger = logging.getLogger(__name__)

# Ключ списка подписчиков «клика снаружи» в bot_data
BOTDATA_LISTENERS_KEY = "autocomplete_dismiss_listeners"


def dismiss_listeners(application: Application) -> list:
    return application.bot_data.setdefault(BOTDATA_LISTENERS_KEY, [])


async def dispatch_outside_clicks(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Срабатывает на любой update, раздаёт его смонтированным виджетам."""
    for widget in list(dismiss_listeners(context.application)):
        await widget.on_pointer_down(update, context.bot)


def register(app: Application) -> None:
    """Подключает модуль к приложению."""
    # раньше ConversationHandler (group=0), чтобы панель закрылась до реакции на клик
    app.add_handler(TypeHandler(Update, dispatch_outside_clicks), group=DISMISS_HANDLER_GROUP)


class AutocompleteWidget:
    def __init__(
        self,
        key: str,
        controller: AutocompleteController,
        *,
        title: str,
        render_item: Callable[[object], str],
    ):
        self.key = key
        self.controller = controller
        self.title = title
        self.render_item = render_item
        self.error: Optional[str] = None

        self.chat_id: Optional[int] = None
        self.message_id: Optional[int] = None

        self._application: Optional[Application] = None
        self._scope = ListenerScope(self._register, self._unregister)
        self._callback_re = re.compile(rf"^ac_{re.escape(key)}_(?:pick_(\d+)|(focus)|(clear))$")

    # ========== жизненный цикл ==========

    @property
    def mounted(self) -> bool:
        return self._scope.active

    def _register(self) -> None:
        dismiss_listeners(self._application).append(self)

    def _unregister(self) -> None:
        listeners = dismiss_listeners(self._application)
        if self in listeners:
            listeners.remove(self)

    async def mount(self, application: Application, bot, chat_id: int):
        """Отправляет панель и подписывается на «клики снаружи»."""
        self._application = application
        self.chat_id = chat_id
        msg = await bot.send_message(
            chat_id=chat_id,
            text=self.render_text(),
            reply_markup=self.render_keyboard(),
        )
        self.message_id = msg.message_id
        self._scope.acquire()
        logger.debug("widget %s mounted in chat %s (msg %s)", self.key, chat_id, self.message_id)
        return msg

    async def unmount(self, bot=None, *, final_text: str | None = None) -> None:
        """Снимает подписку. Повторный вызов безопасен."""
        if self._application is not None:
            self._scope.release()
        if bot is not None and final_text is not None and self.message_id:
            try:
                await bot.edit_message_text(
                    chat_id=self.chat_id,
                    message_id=self.message_id,
                    text=final_text,
                    reply_markup=None,
                )
            except BadRequest as e:
                logger.debug("widget %s: final edit failed: %s", self.key, e)
        logger.debug("widget %s unmounted", self.key)

    # ========== «клик снаружи» ==========

    def is_outside(self, update: Update) -> bool:
        chat = update.effective_chat
        if chat is None or chat.id != self.chat_id:
            return False

        query = update.callback_query
        if query is not None:
            msg = query.message
            return msg is None or msg.message_id != self.message_id

        msg = update.effective_message
        if msg is not None and (msg.text or "").startswith("/"):
            return True
        return False

    async def on_pointer_down(self, update: Update, bot) -> None:
        if not self.controller.is_open or not self.is_outside(update):
            return
        self.controller.outside_click()
        await self.refresh(bot)

    # ========== ввод ==========

    async def handle_text(self, bot, text: str) -> AutocompleteState:
        self.error = None
        state = self.controller.text_changed(text)
        await self.refresh(bot)
        return state

    def owns_callback(self, data: str | None) -> bool:
        return bool(self._callback_re.match(data or ""))

    async def handle_callback(self, bot, data: str | None):
        """Кнопки панели. Возвращает выбранный элемент (или None)."""
        m = self._callback_re.match(data or "")
        if not m:
            return None

        pick, focus, clear = m.groups()
        chosen = None
        if pick is not None:
            chosen = self.controller.select(int(pick))
            if chosen is None:
                logger.info("widget %s: stale suggestion index %s", self.key, pick)
        elif focus:
            self.controller.focus()
        elif clear:
            self.error = None
            self.controller.text_changed("")

        await self.refresh(bot)
        return chosen

    async def set_value(self, bot, value: str, *, error: str | None = None) -> None:
        """Значение выставил родитель (форма)."""
        self.controller.sync_value(value)
        self.error = error
        await self.refresh(bot)

    # ========== отрисовка ==========

    def render_text(self) -> str:
        c = self.controller
        return ui_render.render_autocomplete_panel(
            title=self.title,
            value=c.value,
            placeholder=c.placeholder,
            is_open=c.is_open,
            has_suggestions=bool(c.panel()),
            error=self.error,
        )

    def render_keyboard(self):
        extra_rows = [keyboards.get_field_actions_row(self.key), keyboards.get_cancel_row()]
        items = self.controller.panel()
        if items:
            labels = [self.render_item(x) for x in items]
            return keyboards.get_suggestions_keyboard(self.key, labels, extra_rows=extra_rows)
        if self.controller.state is AutocompleteState.CLOSED and self.controller.suggestions:
            return keyboards.get_closed_panel_keyboard(self.key, extra_rows=extra_rows)
        return keyboards.get_suggestions_keyboard(self.key, [], extra_rows=extra_rows)

    async def refresh(self, bot) -> None:
        if not self.message_id:
            return
        try:
            await bot.edit_message_text(
                chat_id=self.chat_id,
                message_id=self.message_id,
                text=self.render_text(),
                reply_markup=self.render_keyboard(),
            )
        except BadRequest as e:
            # "Message is not modified" и удалённая панель: не ошибка поля
            logger.debug("widget %s: refresh failed: %s", self.key, e)


def location_widget(
    *,
    value: str = "",
    on_change=None,
    on_select=None,
    placeholder: str = "Город или район...",
) -> AutocompleteWidget:
    controller = AutocompleteController(
        locations.search,
        value=value,
        on_change=on_change,
        on_select=on_select,
        placeholder=placeholder,
    )
    return AutocompleteWidget(
        "location",
        controller,
        title="📍 Где реализовать идею?",
        render_item=ui_render.location_button_label,
    )


def country_widget(
    *,
    value: str = "",
    on_change=None,
    on_select=None,
    placeholder: str = "Поиск страны...",
) -> AutocompleteWidget:
    controller = AutocompleteController(
        countries.search_countries,
        value=value,
        on_change=on_change,
        on_select=on_select,
        placeholder=placeholder,
    )
    return AutocompleteWidget(
        "country",
        controller,
        title="🌍 Страна",
        render_item=ui_render.country_button_label,
    )
