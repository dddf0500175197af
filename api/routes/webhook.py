import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from api.dependencies import get_event_queue, get_transport, verify_secret_token
from domain.models.events import InboundEvent
from infrastructure.telegram import TelegramTransport, to_inbound_event

logger = logging.getLogger(__name__)


def build_router(path: str) -> APIRouter:
	"""The webhook path comes from the registered URL, so the router is built per app."""
	router = APIRouter(tags=['webhook'])

	@router.post(
		path,
		status_code=status.HTTP_200_OK,
		summary='Receive a Telegram update',
		dependencies=[Depends(verify_secret_token)],
	)
	async def receive_update(
		request: Request,
		transport: Annotated[TelegramTransport, Depends(get_transport)],
		events: Annotated[asyncio.Queue[InboundEvent], Depends(get_event_queue)],
	) -> Response:
		try:
			payload = await request.json()
			if not isinstance(payload, dict):
				raise ValueError(f'expected a JSON object, got {type(payload).__name__}')
			update = transport.parse_update(payload)
		except (ValueError, TypeError, KeyError) as e:
			logger.warning(f'Dropping malformed update: {e}')
			raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='invalid update payload') from e

		if update is None:
			raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='invalid update payload')

		event = to_inbound_event(update)
		if event is None:
			logger.debug(f'Ignoring unsupported update {update.update_id}')
		else:
			events.put_nowait(event)

		return Response(status_code=status.HTTP_200_OK)

	return router
