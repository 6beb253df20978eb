"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
import os
from collections.abc import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from algo_grind.api.routes import router
from algo_grind.config import Settings, get_settings
from algo_grind.ledger import PracticeLedger
from algo_grind.services.chat import ChatService
from algo_grind.services.recommendations import RecommendationService
from algo_grind.services.reminders import GoalReminder
from algo_grind.storage.slot import JsonFileSlot

logger = structlog.get_logger()


def configure_logging() -> None:
    """Configure structlog based on environment."""
    is_production = os.getenv("ENV", "development").lower() == "production"

    if is_production:
        # Production: JSON format for machine parsing
        renderer = structlog.processors.JSONRenderer()
        level = logging.INFO
    else:
        # Development: console format for human readability
        renderer = structlog.dev.ConsoleRenderer()
        level = logging.DEBUG

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app; the ledger is created and loaded when the app starts."""
    settings = settings or get_settings()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ledger = PracticeLedger(JsonFileSlot(settings.ledger_path))
        ledger.load()
        app.state.ledger = ledger
        app.state.chat_service = ChatService(settings.openai_api_key, model=settings.chat_model)
        app.state.recommendation_service = RecommendationService(
            settings.openai_api_key, model=settings.recommendation_model
        )

        reminder_task: asyncio.Task | None = None
        if settings.reminder_webhook_url:
            reminder = GoalReminder(
                ledger,
                webhook_url=settings.reminder_webhook_url,
                remind_after=settings.reminder_time,
                user_identifier=settings.user_identifier,
            )
            reminder_task = asyncio.create_task(reminder.run(settings.reminder_interval_seconds))
            logger.info("goal_reminder_scheduled", remind_after=settings.reminder_time.isoformat())

        try:
            yield
        finally:
            if reminder_task is not None:
                reminder_task.cancel()
                await asyncio.gather(reminder_task, return_exceptions=True)

    app = FastAPI(title="AlgoGrind", version="0.1.0", lifespan=lifespan)
    _allowed_origins_env = os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in _allowed_origins_env.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def main() -> None:
    """Run the application."""
    configure_logging()
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
