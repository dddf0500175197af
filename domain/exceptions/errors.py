class ChiguiError(Exception):
	pass


class ConfigError(ChiguiError):
	pass


class UpstreamError(ChiguiError):
	pass


class UsageError(ChiguiError):
	def __init__(self, usage: str, locale):
		super().__init__(f'invalid usage: {usage}')
		self.usage = usage
		self.locale = locale


class TransportError(ChiguiError):
	pass


class TransportRegistrationError(TransportError):
	pass


class ListenerError(ChiguiError):
	pass


class ShutdownError(ChiguiError):
	pass
