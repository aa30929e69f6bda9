import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from dotenv import load_dotenv

from .bot_handlers import setup_handlers
from .config import load_settings
from .dispatch import HttpDispatcher


async def main() -> None:
    load_dotenv()
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    bot = Bot(token=settings.bot_token)
    dp = Dispatcher(storage=MemoryStorage())
    dispatcher = HttpDispatcher(settings.dispatch_url, timeout=settings.dispatch_timeout)

    setup_handlers(dp, settings, dispatcher)

    logging.info("Starting Secret Santa bot, assignments go to %s", settings.dispatch_url)
    try:
        await dp.start_polling(bot)
    finally:
        await dispatcher.close()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
