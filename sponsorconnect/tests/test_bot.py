import unittest
from unittest import mock

from telegram import Update
from telegram.ext import CallbackQueryHandler, CommandHandler

from sponsorconnect import bot
from sponsorconnect.config import Settings


def _update(callback_data=None):
    update = mock.MagicMock(spec=Update)
    update.effective_message.reply_text = mock.AsyncMock()
    update.effective_user.id = 111
    update.effective_chat.id = 42
    if callback_data is None:
        update.callback_query = None
    else:
        update.callback_query.data = callback_data
        update.callback_query.answer = mock.AsyncMock()
    return update


def _context():
    context = mock.MagicMock()
    context.bot_data = {"webapp_url": "https://app.example.com/"}
    context.bot.send_message = mock.AsyncMock()
    return context


class BotHandlerTests(unittest.IsolatedAsyncioTestCase):
    async def test_start_offers_menu(self):
        update = _update()
        await bot.handle_start(update, _context())

        args, kwargs = update.effective_message.reply_text.call_args
        self.assertEqual(args[0], bot.WELCOME_TEXT)
        rows = kwargs["reply_markup"].inline_keyboard
        self.assertEqual(rows[0][0].web_app.url, "https://app.example.com")
        self.assertEqual(
            [button.callback_data for button in rows[1]],
            [bot.VIEW_SPONSORSHIPS, bot.VIEW_PROFILE],
        )
        self.assertEqual(rows[2][0].callback_data, bot.SHOW_HELP)

    async def test_help_uses_markdown(self):
        update = _update()
        await bot.handle_help(update, _context())
        update.effective_message.reply_text.assert_awaited_once_with(
            bot.HELP_TEXT, parse_mode="Markdown"
        )

    async def test_callbacks_deep_link_and_answer(self):
        for data, page in (
            (bot.VIEW_SPONSORSHIPS, "sponsorships"),
            (bot.VIEW_PROFILE, "profile"),
        ):
            update = _update(data)
            await bot.handle_callback(update, _context())
            markup = update.effective_message.reply_text.call_args.kwargs["reply_markup"]
            self.assertEqual(
                markup.inline_keyboard[0][0].web_app.url,
                f"https://app.example.com/{page}",
            )
            update.callback_query.answer.assert_awaited_once()

    async def test_help_callback(self):
        update = _update(bot.SHOW_HELP)
        await bot.handle_callback(update, _context())
        update.effective_message.reply_text.assert_awaited_once_with(
            bot.HELP_TEXT, parse_mode="Markdown"
        )
        update.callback_query.answer.assert_awaited_once()

    async def test_unknown_callback_is_only_answered(self):
        update = _update("mystery")
        await bot.handle_callback(update, _context())
        update.effective_message.reply_text.assert_not_awaited()
        update.callback_query.answer.assert_awaited_once()

    async def test_error_handler_apologises(self):
        update = _update()
        context = _context()
        context.error = RuntimeError("boom")
        with self.assertLogs("sponsorconnect.bot", level="ERROR"):
            await bot.handle_error(update, context)
        context.bot.send_message.assert_awaited_once_with(chat_id=42, text=bot.ERROR_TEXT)


class BuildApplicationTests(unittest.TestCase):
    def test_requires_token(self):
        with self.assertRaises(RuntimeError):
            bot.build_application(Settings(_env_file=None, bot_token=None))

    def test_registers_handlers(self):
        application = bot.build_application(
            Settings(
                _env_file=None,
                bot_token="123456:TEST-token",
                webapp_url="https://app.example.com",
            )
        )
        handlers = application.handlers[0]
        commands = set()
        for handler in handlers:
            if isinstance(handler, CommandHandler):
                commands |= set(handler.commands)
        self.assertEqual(commands, {"start", "help", "sponsorships", "profile"})
        self.assertTrue(any(isinstance(h, CallbackQueryHandler) for h in handlers))
        self.assertEqual(application.bot_data["webapp_url"], "https://app.example.com")
        self.assertEqual(len(application.error_handlers), 1)


if __name__ == "__main__":
    unittest.main()
