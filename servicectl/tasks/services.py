"""
Bulk operations over several services at once.
"""

import logging
from typing import Any, Callable, Dict, Iterable

from ..plumbing.common import Collect, Result
from ..plumbing.systemd import CommandFailed, Controller, Service


LOG = logging.getLogger(__name__)


def _attempt(action: Callable[[Service], Result[Any]], service: Service) -> Result[Any]:
    try:
        return action(service)
    except CommandFailed as ex:
        LOG.warning("%s: %s", service, ex)
        return Result.failure(ex, action)


@Result.collect
def status(controller: Controller, services: Iterable[Service]) -> Collect[Dict[str, bool]]:
    """
    Check which of the given services are running.  Services that couldn't be checked are left
    out of the returned mapping, and appear as failed parts of the result.
    """
    running: Dict[str, bool] = {}
    for service in services:
        result = yield from _attempt(controller.is_running, service)
        if not result.failed:
            running[service.name] = result.value
    return running


@Result.collect
def start(controller: Controller, services: Iterable[Service]) -> Collect[None]:
    """
    Start each service that isn't already running.
    """
    for service in services:
        yield _attempt(controller.start, service)


@Result.collect
def stop(controller: Controller, services: Iterable[Service]) -> Collect[None]:
    """
    Stop each service that is currently running.
    """
    for service in services:
        yield _attempt(controller.stop, service)


@Result.collect
def restart(controller: Controller, services: Iterable[Service]) -> Collect[None]:
    """
    Restart every service, regardless of its current state.
    """
    for service in services:
        yield _attempt(controller.restart, service)
