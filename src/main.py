"""GramCare FastAPI application entry point.

Creates the FastAPI app, configures middleware, includes routers, and
manages the lifecycle of the message-routing services (SessionStore,
Translation, AI, Messaging, knowledge base, MessageRouter).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from config.settings import settings
from src.api.router import api_router

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of all GramCare services.

    On startup:
      1. Create the session store and start its background sweep
      2. Load the FAQ and outbreak alert data
      3. Initialise Translation and AI collaborators (when GCP is configured)
      4. Initialise the messaging provider and verification codes
      5. Build the MessageRouter
      6. Store everything on ``app.state``

    On shutdown:
      - Stop the sweep and drop all sessions.
      - Close HTTP and GCP clients.
    """
    _configure_logging()
    logger.info(
        "app.startup",
        env=settings.env,
        gcp_project=settings.gcp_project_id,
        ai_enabled=settings.ai_enabled,
    )

    app.state.start_time = time.time()

    # -- 1. Sessions --------------------------------------------------------
    from src.services.session_store import SessionStore

    sessions = SessionStore(
        ttl=timedelta(hours=settings.session_ttl_hours),
        sweep_interval_seconds=settings.session_sweep_interval_seconds,
        history_limit=settings.session_history_limit,
        default_language=settings.default_language,
    )
    sessions.start()
    app.state.sessions = sessions
    logger.info("app.sessions_initialised", ttl_hours=settings.session_ttl_hours)

    # -- 2. Knowledge base (static, loaded once) ----------------------------
    from src.data.knowledge_base import AlertRepository, FAQRepository, load_alerts, load_faqs

    faqs = FAQRepository(load_faqs(Path(settings.faq_data_path) if settings.faq_data_path else None))
    alerts = AlertRepository(load_alerts(Path(settings.alert_data_path) if settings.alert_data_path else None))
    app.state.faqs = faqs
    app.state.alerts = alerts

    # -- 3. Translation and AI ----------------------------------------------
    from src.services.ai import AIService
    from src.services.cache import TTLCache
    from src.services.translation import TranslationService

    translation: TranslationService | None = None
    ai: AIService | None = None

    if settings.gcp_project_id:
        try:
            translation = TranslationService(
                project_id=settings.gcp_project_id,
                region=settings.gcp_region,
                cache=TTLCache(
                    max_size=settings.translation_cache_max_size,
                    ttl_seconds=settings.translation_cache_ttl,
                ),
            )
            logger.info("app.translation_initialised")
        except Exception:
            logger.warning("app.translation_init_failed", exc_info=True)

        try:
            ai = AIService(
                project_id=settings.gcp_project_id,
                region=settings.vertex_ai_location,
                model_name=settings.vertex_ai_model,
                enabled=settings.ai_enabled,
            )
            logger.info("app.ai_initialised", model=settings.vertex_ai_model, enabled=settings.ai_enabled)
        except Exception:
            logger.warning("app.ai_init_failed", exc_info=True)
    else:
        logger.warning("app.gcp_not_configured", note="replies stay in English templates")

    app.state.translation = translation
    app.state.ai = ai

    # -- 4. Messaging and verification codes --------------------------------
    from src.services.messaging import MessagingService
    from src.services.verification_codes import VerificationCodeStore

    provider = settings.sms_provider
    if provider == "twilio" and not settings.twilio_configured:
        logger.warning("app.twilio_not_configured", fallback="mock")
        provider = "mock"

    messaging = MessagingService(
        provider,
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        sms_from=settings.sms_from_number,
        whatsapp_from=settings.whatsapp_from_number,
    )
    app.state.messaging = messaging
    app.state.verification_codes = VerificationCodeStore(settings.verification_code_ttl_seconds)

    # -- 5. Router ----------------------------------------------------------
    from src.pipeline.router import MessageRouter
    from src.services.composer import ResponseComposer
    from src.services.formatter import ChannelFormatter
    from src.services.intent import IntentClassifier
    from src.services.language import LanguageResolver

    formatter = ChannelFormatter()
    app.state.formatter = formatter
    app.state.message_router = MessageRouter(
        sessions=sessions,
        resolver=LanguageResolver(
            sessions,
            translation,
            min_detection_length=settings.detection_min_length,
            timeout_seconds=settings.detection_timeout_seconds,
            default_language=settings.default_language,
        ),
        classifier=IntentClassifier(),
        composer=ResponseComposer(
            faqs,
            translation,
            ai,
            translation_timeout=settings.translation_timeout_seconds,
            ai_timeout=settings.ai_timeout_seconds,
            ai_provider=settings.preferred_ai_service,
        ),
        formatter=formatter,
        alerts=alerts,
        turn_deadline_seconds=settings.webhook_turn_deadline_seconds,
    )
    logger.info("app.startup_complete")

    yield

    # -- Shutdown -----------------------------------------------------------
    logger.info("app.shutdown_start")

    await sessions.close()
    await messaging.aclose()
    if translation is not None:
        await translation.close()

    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="GramCare API",
    description=(
        "GramCare -- multilingual health information assistant for rural India, "
        "reachable over web chat, SMS and WhatsApp."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
if settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "GramCare API",
        "description": "Multilingual health information assistant",
        "version": app.version,
        "docs": "/docs",
        "channels": ["web", "sms", "whatsapp"],
        "endpoints": {
            "chat": "/api/chat/message",
            "languages": "/api/chat/languages",
            "sms_webhook": "/api/sms/webhook",
            "whatsapp_webhook": "/api/whatsapp/webhook",
            "sms_message": "/api/sms/message",
            "sms_send": "/api/sms/send",
            "health": "/api/health",
        },
    }
