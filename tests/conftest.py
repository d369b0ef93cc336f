from datetime import datetime, timezone
from itertools import count
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import CallbackQuery, Chat, Message, Update, User
from telegram.ext import Application

CHAT_ID = 100
OTHER_CHAT_ID = 200
USER = User(id=1, first_name="Ann", is_bot=False)


@pytest.fixture
def app():
    return Application.builder().token("123456:TEST-TOKEN").build()


@pytest.fixture
def bot():
    ids = count(1000)
    bot = AsyncMock()
    bot.send_message.side_effect = lambda **kwargs: SimpleNamespace(message_id=next(ids))
    return bot


def tg_message(message_id, text=None, chat_id=CHAT_ID):
    return Message(
        message_id=message_id,
        date=datetime.now(timezone.utc),
        chat=Chat(id=chat_id, type=Chat.PRIVATE),
        from_user=USER,
        text=text,
    )


def text_update(text, message_id=1, chat_id=CHAT_ID):
    return Update(update_id=1, message=tg_message(message_id, text, chat_id))


def callback_update(message_id, data, chat_id=CHAT_ID):
    query = CallbackQuery(
        id="q1",
        from_user=USER,
        chat_instance="ci",
        data=data,
        message=tg_message(message_id, "panel", chat_id),
    )
    return Update(update_id=2, callback_query=query)


def fake_message_update(text):
    """Update для хендлеров формы: удаление сообщения не ходит в сеть."""
    update = MagicMock()
    update.callback_query = None
    update.message.text = text
    update.message.delete = AsyncMock()
    update.effective_chat.id = CHAT_ID
    update.effective_user.id = USER.id
    return update


def fake_callback_update(data, message_id=1):
    update = MagicMock()
    update.message = None
    update.callback_query.data = data
    update.callback_query.answer = AsyncMock()
    update.callback_query.edit_message_text = AsyncMock()
    update.callback_query.message.message_id = message_id
    update.effective_chat.id = CHAT_ID
    update.effective_user.id = USER.id
    return update


@pytest.fixture
def context(app, bot):
    return SimpleNamespace(bot=bot, application=app, user_data={})
