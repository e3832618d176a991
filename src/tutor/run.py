import asyncio
import logging
from aiogram import Bot, Dispatcher
from .config import load_settings
from .handlers import register_handlers

async def main():
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.model.gemini_api_key:
        logging.getLogger(__name__).warning("llm_not_configured: GOOGLE_API_KEY is not set")
    bot = Bot(settings.bot_token)
    try:
        dp = Dispatcher()
        register_handlers(dp, settings=settings)
        await dp.start_polling(bot)
    except Exception:
        logging.getLogger(__name__).exception("bot_run_failed")
        raise
    finally:
        await bot.session.close()

def cli():
    asyncio.run(main())

if __name__ == "__main__":
    cli()
