"""
Service management via the host service manager's command-line tool, `systemctl` by default.

All commands are built as argument lists and never pass through a shell, so service names are
always a single argument, whatever characters they contain.
"""

import logging
import math
import os
from typing import List, NamedTuple, Optional

from .common import command, Invocation, Result, State


LOG = logging.getLogger(__name__)


class CommandFailed(Exception):
    """
    The service manager exited with an unexpected code, timed out, or couldn't be started.

    The full `Invocation` is kept for diagnosis, with its most useful parts exposed directly.
    """

    def __init__(self, invocation: Invocation, reason: Optional[str] = None):
        self.invocation = invocation
        if reason:
            self.reason = reason
        elif invocation.timed_out:
            self.reason = "timed out"
        else:
            self.reason = "failed with code {}".format(invocation.returncode)
        super().__init__('Command "{}" {}, error returned: {}'
                         .format(invocation.command_line, self.reason, invocation.stderr))

    @property
    def args_list(self) -> List[str]:
        return self.invocation.args

    @property
    def command_line(self) -> str:
        return self.invocation.command_line

    @property
    def returncode(self) -> Optional[int]:
        return self.invocation.returncode

    @property
    def stderr(self) -> str:
        return self.invocation.stderr

    @property
    def timed_out(self) -> bool:
        return self.invocation.timed_out


class Service(NamedTuple):
    """
    Handle for a single managed unit, identified by name.
    """

    name: str

    def __str__(self):
        return self.name


def _env_flag(value: str) -> bool:
    value = value.strip().lower()
    if value in ("1", "yes", "true", "on"):
        return True
    elif value in ("0", "no", "false", "off"):
        return False
    raise ValueError("Not a boolean: {!r}".format(value))


class _Settings(NamedTuple):
    command: str
    sudo: bool
    timeout: float


class Config(_Settings):
    """
    How to invoke the service manager.

    `command` is split on whitespace, so may include leading arguments (e.g. `systemctl --user`).
    Settings are checked on construction, raising `ValueError` for an empty command or a timeout
    that isn't a finite positive number.
    """

    __slots__ = ()

    def __new__(cls, command: str = "systemctl", sudo: bool = True, timeout: float = 3):
        return super().__new__(cls, command, sudo, float(timeout)).validate()

    def validate(self) -> "Config":
        if not self.command.split():
            raise ValueError("Empty service manager command")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ValueError("Timeout must be positive, got {!r}".format(self.timeout))
        return self

    def override(self, command: Optional[str] = None, sudo: Optional[bool] = None,
                 timeout: Optional[float] = None) -> "Config":
        """
        Create a copy with any given (non-`None`) settings replaced.
        """
        return self.__class__(self.command if command is None else command,
                              self.sudo if sudo is None else sudo,
                              self.timeout if timeout is None else timeout)

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        """
        Read settings from `SERVICECTL_COMMAND`, `SERVICECTL_SUDO` and `SERVICECTL_TIMEOUT`, using
        defaults for any that aren't set or are empty.
        """
        if environ is None:
            environ = os.environ
        command, sudo, timeout = (environ.get("SERVICECTL_{}".format(key)) or None
                                  for key in ("COMMAND", "SUDO", "TIMEOUT"))
        return cls().override(command, None if sudo is None else _env_flag(sudo), timeout)


class Controller:
    """
    Start, stop and query services through the service manager.

    Each operation runs exactly one process at a time and blocks until it exits or times out.
    Failures raise `CommandFailed`; there are no retries.
    """

    STATUS_STOPPED = 3
    """
    Exit code of `status` for a unit that is inactive, rather than in error.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    def __repr__(self) -> str:
        return "<{}: {!r}>".format(self.__class__.__name__, self.config)

    def args(self, *arguments: str) -> List[str]:
        """
        Build the full argument list for a service manager call.
        """
        args = self.config.command.split()
        if self.config.sudo:
            args.insert(0, "sudo")
        args.extend(arguments)
        return args

    def invoke(self, *arguments: str) -> Invocation:
        """
        Run the service manager once with the given arguments.  Only a failure to launch the
        process raises here; the exit code is left for the caller to interpret.
        """
        args = self.args(*arguments)
        try:
            return command(args, self.config.timeout)
        except OSError as ex:
            raise CommandFailed(Invocation(args, stderr=str(ex)),
                                "could not be started ({})".format(ex.strerror or ex)) from ex

    def _check(self, invocation: Invocation) -> Invocation:
        if invocation.timed_out:
            raise CommandFailed(invocation, "timed out after {:g}s".format(self.config.timeout))
        elif not invocation.ok:
            raise CommandFailed(invocation)
        return invocation

    def is_running(self, service: Service) -> Result[bool]:
        """
        Check whether the service is active.

        Inactive services give `False`; anything the service manager can't answer (e.g. an unknown
        unit) raises `CommandFailed`.
        """
        invocation = self.invoke("--lines=0", "status", service.name)
        if invocation.returncode == self.STATUS_STOPPED:
            return Result(State.unchanged, False, caller=self.is_running)
        self._check(invocation)
        return Result(State.unchanged, True, caller=self.is_running)

    def start(self, service: Service) -> Result[None]:
        """
        Start the service, unless it's already running.
        """
        if self.is_running(service).value:
            return Result(State.unchanged, caller=self.start)
        self._check(self.invoke("start", service.name))
        LOG.debug("Started %s", service)
        return Result(State.success, caller=self.start)

    def stop(self, service: Service) -> Result[None]:
        """
        Stop the service, unless it's already stopped.
        """
        if not self.is_running(service).value:
            return Result(State.unchanged, caller=self.stop)
        self._check(self.invoke("stop", service.name))
        LOG.debug("Stopped %s", service)
        return Result(State.success, caller=self.stop)

    def restart(self, service: Service) -> Result[None]:
        """
        Restart the service.  This always calls the service manager, even if the service is
        currently stopped, in which case it will be started.
        """
        self._check(self.invoke("restart", service.name))
        LOG.debug("Restarted %s", service)
        return Result(State.success, caller=self.restart)
