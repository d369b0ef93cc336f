from types import SimpleNamespace

import pytest
from telegram.error import BadRequest

from autocomplete import AutocompleteState
from autocomplete_widget import country_widget, dismiss_listeners, dispatch_outside_clicks, location_widget
from conftest import CHAT_ID, OTHER_CHAT_ID, callback_update, text_update


def last_keyboard(bot):
    markup = bot.edit_message_text.call_args.kwargs["reply_markup"]
    return [b.callback_data for row in markup.inline_keyboard for b in row]


def last_text(bot):
    return bot.edit_message_text.call_args.kwargs["text"]


@pytest.fixture
def changes():
    return []


@pytest.fixture
def selected():
    return []


@pytest.fixture
def widget(changes, selected):
    return location_widget(on_change=changes.append, on_select=selected.append)


@pytest.mark.asyncio
async def test_mount_registers_and_unmount_removes_listener(app, bot, widget):
    assert dismiss_listeners(app) == []

    msg = await widget.mount(app, bot, CHAT_ID)
    assert widget.message_id == msg.message_id
    assert widget.mounted
    assert len(dismiss_listeners(app)) == 1

    await widget.unmount()
    await widget.unmount()
    assert not widget.mounted
    assert dismiss_listeners(app) == []


@pytest.mark.asyncio
async def test_mount_unmount_cycles_do_not_leak(app, bot):
    for _ in range(3):
        w = location_widget()
        await w.mount(app, bot, CHAT_ID)
        await w.unmount()
    assert dismiss_listeners(app) == []


@pytest.mark.asyncio
async def test_unmount_before_mount_is_safe(bot, widget):
    await widget.unmount(bot, final_text="x")
    bot.edit_message_text.assert_not_called()


@pytest.mark.asyncio
async def test_text_renders_suggestions_in_index_order(app, bot, widget, changes):
    await widget.mount(app, bot, CHAT_ID)
    state = await widget.handle_text(bot, "paris")

    assert state is AutocompleteState.OPEN_WITH_SUGGESTIONS
    assert changes == ["paris"]
    assert last_keyboard(bot)[:3] == ["ac_location_pick_0", "ac_location_pick_1", "ac_location_pick_2"]
    labels = [b.text for row in bot.edit_message_text.call_args.kwargs["reply_markup"].inline_keyboard for b in row]
    assert labels[:3] == ["📍 Paris · France", "📍 Montmartre · Paris, France", "📍 Le Marais · Paris, France"]


@pytest.mark.asyncio
async def test_no_matches_renders_no_suggestion_buttons(app, bot, widget):
    await widget.mount(app, bot, CHAT_ID)
    state = await widget.handle_text(bot, "atlantis")

    assert state is AutocompleteState.OPEN_EMPTY
    assert not [d for d in last_keyboard(bot) if "_pick_" in d]
    assert "Совпадений нет" in last_text(bot)


@pytest.mark.asyncio
async def test_pick_reports_selection_and_closes(app, bot, widget, changes, selected):
    msg = await widget.mount(app, bot, CHAT_ID)
    await widget.handle_text(bot, "brook")

    chosen = await widget.handle_callback(bot, "ac_location_pick_0")

    assert chosen.name == "Brooklyn"
    assert selected == [chosen]
    assert changes == ["brook", "Brooklyn"]
    assert widget.controller.state is AutocompleteState.CLOSED
    assert "Brooklyn" in last_text(bot)
    assert "ac_location_focus" in last_keyboard(bot)
    assert widget.owns_callback("ac_location_pick_3")
    assert not widget.owns_callback("ac_country_pick_3")
    assert msg.message_id == widget.message_id


@pytest.mark.asyncio
async def test_stale_pick_is_ignored(app, bot, widget, selected):
    await widget.mount(app, bot, CHAT_ID)
    await widget.handle_text(bot, "brook")
    assert await widget.handle_callback(bot, "ac_location_pick_7") is None
    assert selected == []
    assert widget.controller.state is AutocompleteState.OPEN_WITH_SUGGESTIONS


@pytest.mark.asyncio
async def test_focus_and_clear(app, bot, widget, changes):
    await widget.mount(app, bot, CHAT_ID)
    await widget.handle_text(bot, "tokyo")
    widget.controller.outside_click()

    await widget.handle_callback(bot, "ac_location_focus")
    assert widget.controller.state is AutocompleteState.OPEN_WITH_SUGGESTIONS

    await widget.handle_callback(bot, "ac_location_clear")
    assert widget.controller.value == ""
    assert changes[-1] == ""
    assert widget.controller.panel() == []


def test_is_outside(widget):
    widget.chat_id = CHAT_ID
    widget.message_id = 50

    assert widget.is_outside(callback_update(51, "something_else"))
    assert widget.is_outside(text_update("/help"))
    assert not widget.is_outside(callback_update(50, "ac_location_pick_0"))
    assert not widget.is_outside(text_update("paris"))
    assert not widget.is_outside(callback_update(51, "x", chat_id=OTHER_CHAT_ID))


@pytest.mark.asyncio
async def test_outside_click_closes_without_changes(app, bot, widget, changes, selected):
    await widget.mount(app, bot, CHAT_ID)
    await widget.handle_text(bot, "lond")

    await widget.on_pointer_down(callback_update(widget.message_id + 1, "help_close"), bot)

    assert widget.controller.state is AutocompleteState.CLOSED
    assert widget.controller.value == "lond"
    assert changes == ["lond"]
    assert selected == []
    assert "ac_location_focus" in last_keyboard(bot)


@pytest.mark.asyncio
async def test_click_inside_does_not_close(app, bot, widget):
    await widget.mount(app, bot, CHAT_ID)
    await widget.handle_text(bot, "lond")
    calls = bot.edit_message_text.call_count

    await widget.on_pointer_down(callback_update(widget.message_id, "ac_location_pick_0"), bot)

    assert widget.controller.state is AutocompleteState.OPEN_WITH_SUGGESTIONS
    assert bot.edit_message_text.call_count == calls


@pytest.mark.asyncio
async def test_refresh_swallows_not_modified(app, bot, widget):
    await widget.mount(app, bot, CHAT_ID)
    bot.edit_message_text.side_effect = BadRequest("Message is not modified")
    state = await widget.handle_text(bot, "rome")
    assert state is AutocompleteState.OPEN_WITH_SUGGESTIONS


@pytest.mark.asyncio
async def test_unmount_edits_final_text(app, bot, widget):
    await widget.mount(app, bot, CHAT_ID)
    await widget.unmount(bot, final_text="📍 Rome")
    kwargs = bot.edit_message_text.call_args.kwargs
    assert kwargs["text"] == "📍 Rome"
    assert kwargs["reply_markup"] is None


@pytest.mark.asyncio
async def test_country_widget_limits_and_error(app, bot):
    w = country_widget()
    await w.mount(app, bot, CHAT_ID)
    await w.handle_text(bot, "a")
    picks = [d for d in last_keyboard(bot) if d.startswith("ac_country_pick_")]
    assert len(picks) == 7

    await w.set_value(bot, "", error="Выберите страну из списка")
    assert "Выберите страну из списка" in last_text(bot)
    await w.unmount()


@pytest.mark.asyncio
async def test_dispatcher_reaches_only_mounted_widgets(app, bot):
    first, second = location_widget(), location_widget()
    await first.mount(app, bot, CHAT_ID)
    await second.mount(app, bot, OTHER_CHAT_ID)
    await first.handle_text(bot, "rome")
    await second.handle_text(bot, "rome")

    context = SimpleNamespace(application=app, bot=bot)
    await dispatch_outside_clicks(text_update("/help"), context)

    assert first.controller.state is AutocompleteState.CLOSED
    assert second.controller.state is AutocompleteState.OPEN_WITH_SUGGESTIONS

    await first.unmount()
    await first.handle_text(bot, "rome")
    await dispatch_outside_clicks(text_update("/help"), context)
    assert first.controller.state is AutocompleteState.OPEN_WITH_SUGGESTIONS
    await second.unmount()


def test_register_adds_single_dispatcher(app):
    from autocomplete_widget import register
    from config import DISMISS_HANDLER_GROUP

    register(app)
    assert len(app.handlers[DISMISS_HANDLER_GROUP]) == 1
