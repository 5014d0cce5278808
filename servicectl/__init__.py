"""
Library facade over a host service manager's command-line tool.

    >>> from servicectl import Controller, Service
    >>> ctl = Controller()
    >>> ctl.start(Service("nginx"))
"""

from .plumbing.common import Result, State
from .plumbing.systemd import CommandFailed, Config, Controller, Service


__version__ = "1.0.0"

__all__ = ["CommandFailed", "Config", "Controller", "Result", "Service", "State"]
