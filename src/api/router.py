"""Main API router combining all route modules.

Aggregates the routers under the ``/api`` prefix so the FastAPI
application only needs to include a single router.

Includes:
    * Chat: web chat messages and the language list
    * SMS / WhatsApp: Twilio webhooks, web-initiated SMS, phone verification
    * Health: liveness
"""

from __future__ import annotations

from fastapi import APIRouter

from src.api.routes import chat, health, messaging

api_router = APIRouter(prefix="/api")

api_router.include_router(chat.router)
api_router.include_router(messaging.sms_router)
api_router.include_router(messaging.whatsapp_router)
api_router.include_router(health.router)
