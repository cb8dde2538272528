"""
Command-line interface.

Modules:
- commands.py: CommandHandler (compile/validate/solve/backends)
- __main__.py: argparse entry point (`linmodel` console script)
"""

from .commands import CommandHandler

__all__ = ["CommandHandler"]
