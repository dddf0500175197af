from .transport import TelegramTransport, to_inbound_event

__all__ = ['TelegramTransport', 'to_inbound_event']
