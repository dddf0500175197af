import asyncio
import logging
import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from domain.models.events import InboundEvent
from infrastructure.telegram import TelegramTransport

logger = logging.getLogger(__name__)


@dataclass
class WebhookDependencies:
	"""Per-app collaborators of the webhook route, kept on app.state."""

	secret_token: str
	transport: TelegramTransport
	events: asyncio.Queue[InboundEvent]


def get_webhook_dependencies(request: Request) -> WebhookDependencies:
	deps = getattr(request.app.state, 'webhook', None)
	if deps is None:
		raise RuntimeError('Webhook dependencies not initialized')
	return deps


def get_transport(
	deps: Annotated[WebhookDependencies, Depends(get_webhook_dependencies)],
) -> TelegramTransport:
	return deps.transport


def get_event_queue(
	deps: Annotated[WebhookDependencies, Depends(get_webhook_dependencies)],
) -> asyncio.Queue[InboundEvent]:
	return deps.events


def verify_secret_token(
	deps: Annotated[WebhookDependencies, Depends(get_webhook_dependencies)],
	x_telegram_bot_api_secret_token: Annotated[str | None, Header()] = None,
) -> None:
	received = x_telegram_bot_api_secret_token or ''
	if not secrets.compare_digest(received.encode(), deps.secret_token.encode()):
		logger.warning('Rejected webhook request with an invalid secret token')
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='invalid secret token')
