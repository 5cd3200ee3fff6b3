"""Telegram bot front door for the SponsorConnect mini app.

Run with ``python -m sponsorconnect.bot``. The bot only points users at the
web app; all data lives behind the HTTP API.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from sponsorconnect.config import Settings, get_settings

logger = logging.getLogger(__name__)

WELCOME_TEXT: Final[str] = (
    "👋 Welcome to SponsorConnect!\n\n"
    "I'm your assistant for connecting creators with sponsorship "
    "opportunities. Here's what you can do:"
)
HELP_TEXT: Final[str] = (
    "🤖 *Available Commands:*\n\n"
    "/start - Start the bot\n"
    "/help - Show this help message\n"
    "/profile - View your profile\n"
    "/sponsorships - View available sponsorships\n\n"
    "Need more help? Contact our support team!"
)
ERROR_TEXT: Final[str] = "Sorry, something went wrong. Please try again later."

VIEW_SPONSORSHIPS: Final[str] = "view_sponsorships"
VIEW_PROFILE: Final[str] = "view_profile"
SHOW_HELP: Final[str] = "help"


def _webapp_url(context: ContextTypes.DEFAULT_TYPE, page: str = "") -> str:
    base = context.bot_data["webapp_url"].rstrip("/")
    return f"{base}/{page}" if page else base


def start_keyboard(webapp_url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton("🌐 Open WebApp", web_app=WebAppInfo(url=webapp_url))],
            [
                InlineKeyboardButton("📋 View Sponsorships", callback_data=VIEW_SPONSORSHIPS),
                InlineKeyboardButton("👤 My Profile", callback_data=VIEW_PROFILE),
            ],
            [InlineKeyboardButton("❓ Help", callback_data=SHOW_HELP)],
        ]
    )


def open_page_keyboard(url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton("🌐 Open in WebApp", web_app=WebAppInfo(url=url))]]
    )


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Greet the user and offer the main menu."""
    message = update.effective_message
    if message is None:
        return
    await message.reply_text(
        WELCOME_TEXT, reply_markup=start_keyboard(_webapp_url(context))
    )
    user = update.effective_user
    logger.info("Handled /start for user_id=%s", user.id if user else None)


async def handle_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    if message is None:
        return
    await message.reply_text(HELP_TEXT, parse_mode="Markdown")


async def _send_page(update: Update, context, text: str, page: str) -> None:
    message = update.effective_message
    if message is None:
        return
    await message.reply_text(
        text, reply_markup=open_page_keyboard(_webapp_url(context, page))
    )


async def handle_sponsorships(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _send_page(update, context, "View all available sponsorships:", "sponsorships")


async def handle_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _send_page(update, context, "View your profile:", "profile")


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route inline menu presses. Unknown actions are acknowledged and ignored."""
    query = update.callback_query
    if query is None:
        return

    if query.data == VIEW_SPONSORSHIPS:
        await handle_sponsorships(update, context)
    elif query.data == VIEW_PROFILE:
        await handle_profile(update, context)
    elif query.data == SHOW_HELP:
        await handle_help(update, context)
    else:
        logger.warning("Ignoring unknown callback data %r", query.data)

    await query.answer()


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Bot handler failed", exc_info=context.error)
    if isinstance(update, Update) and update.effective_chat is not None:
        await context.bot.send_message(chat_id=update.effective_chat.id, text=ERROR_TEXT)


def build_application(settings: Optional[Settings] = None) -> Application:
    """Create the telegram bot application with all handlers wired in."""
    settings = settings or get_settings()
    if not settings.bot_token:
        raise RuntimeError(
            "BOT_TOKEN is not set; add it to the environment or .env before "
            "running the bot."
        )

    application = ApplicationBuilder().token(settings.bot_token).build()
    application.bot_data["webapp_url"] = settings.webapp_url
    application.add_handler(CommandHandler("start", handle_start))
    application.add_handler(CommandHandler("help", handle_help))
    application.add_handler(CommandHandler("sponsorships", handle_sponsorships))
    application.add_handler(CommandHandler("profile", handle_profile))
    application.add_handler(CallbackQueryHandler(handle_callback))
    application.add_error_handler(handle_error)
    return application


def main() -> None:
    """Run the bot until the process receives a termination signal."""
    settings = get_settings()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )
    application = build_application(settings)
    logger.info("Starting telegram bot polling loop")
    application.run_polling()


if __name__ == "__main__":
    main()
