# main.py
import logging

from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    TypeHandler,
    filters,
)

import autocomplete_widget
import handlers
import keyboards
from config import IDEA_FORM_TIMEOUT_SECONDS, LOG_LEVEL, TOKEN

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)
logger = logging.getLogger(__name__)

FIELD_CALLBACK_PATTERN = r"^ac_(location|country)_(pick_\d+|focus|clear)$"


def build_idea_conversation() -> ConversationHandler:
    """ConversationHandler формы «Новая идея»."""
    cancel_button = CallbackQueryHandler(handlers.cancel_idea, pattern="^idea_cancel$")
    field_text = MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.field_text)
    field_buttons = CallbackQueryHandler(handlers.field_callback, pattern=FIELD_CALLBACK_PATTERN)

    return ConversationHandler(
        entry_points=[
            CommandHandler('new_idea', handlers.new_idea),
            MessageHandler(filters.Regex(f"^{keyboards.NEW_IDEA_BUTTON}$"), handlers.new_idea),
        ],
        states={
            handlers.IDEA_TITLE: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.input_title),
                cancel_button,
            ],
            handlers.IDEA_LOCATION: [
                field_text,
                field_buttons,
                CallbackQueryHandler(handlers.location_next, pattern="^idea_next_location$"),
                cancel_button,
            ],
            handlers.IDEA_COUNTRY: [
                field_text,
                field_buttons,
                CallbackQueryHandler(handlers.country_next, pattern="^idea_next_country$"),
                cancel_button,
            ],
            handlers.IDEA_CONFIRM: [
                CallbackQueryHandler(handlers.submit_idea, pattern="^idea_submit$"),
                cancel_button,
            ],
            ConversationHandler.TIMEOUT: [
                TypeHandler(Update, handlers.idea_timeout),
            ],
        },
        fallbacks=[
            CommandHandler('cancel', handlers.cancel_idea),
            cancel_button,
        ],
        conversation_timeout=IDEA_FORM_TIMEOUT_SECONDS,
        per_message=False,
        allow_reentry=True,
    )


def build_application(token: str) -> Application:
    application = Application.builder().token(token).build()

    autocomplete_widget.register(application)

    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("help", handlers.help_command))
    application.add_handler(MessageHandler(filters.Regex(f"^{keyboards.HELP_BUTTON}$"), handlers.help_command))
    application.add_handler(build_idea_conversation())
    application.add_handler(CallbackQueryHandler(handlers.close_message, pattern="^help_close$"))
    return application


def main():
    """Запуск бота"""
    if not TOKEN:
        logger.error("BOT_TOKEN не найден в переменных окружения!")
        return

    application = build_application(TOKEN)

    logger.info("✅ Бот запущен...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == '__main__':
    main()
