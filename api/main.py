import asyncio
import logging

from fastapi import FastAPI

from api.dependencies import WebhookDependencies
from api.error_handlers import register_exception_handlers
from api.routes import health, webhook
from domain.models.events import InboundEvent
from infrastructure.telegram import TelegramTransport

logger = logging.getLogger(__name__)


def create_app(
	webhook_path: str,
	secret_token: str,
	transport: TelegramTransport,
	events: asyncio.Queue[InboundEvent],
) -> FastAPI:
	"""Build the webhook listener app: the update route plus /health."""
	app = FastAPI(title='Chigui', docs_url=None, redoc_url=None, openapi_url=None)
	app.state.webhook = WebhookDependencies(secret_token=secret_token, transport=transport, events=events)

	app.include_router(health.router)
	app.include_router(webhook.build_router(webhook_path))
	register_exception_handlers(app)

	logger.debug(f'Webhook route mounted at {webhook_path}')
	return app
