from .command_router import CommandRouter, CommandTable, build_command_table
from .rate_bot import RateBotHandler

__all__ = ['CommandRouter', 'CommandTable', 'RateBotHandler', 'build_command_table']
