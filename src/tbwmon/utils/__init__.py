"""
Utility modules for tbwmon.
"""

from .command import CommandError, CommandResult, run_command

__all__ = ["CommandError", "CommandResult", "run_command"]
