"""
Scripts to query and control services.
"""

from .utils import entrypoint, report, Services
from ..plumbing.systemd import Controller
from ..tasks import services as tasks


@entrypoint
def status(ctl: Controller, services: Services):
    """
    Check whether services are running.

    Usage: {script} SERVICE...
    """
    result = tasks.status(ctl, services)
    report(services, result, lambda part: "running" if part.value else "stopped")
    return result


@entrypoint
def start(ctl: Controller, services: Services):
    """
    Start services that aren't already running.

    Usage: {script} SERVICE...
    """
    result = tasks.start(ctl, services)
    report(services, result, lambda part: "started" if part else "already running")
    return result


@entrypoint
def stop(ctl: Controller, services: Services):
    """
    Stop services that are currently running.

    Usage: {script} SERVICE...
    """
    result = tasks.stop(ctl, services)
    report(services, result, lambda part: "stopped" if part else "already stopped")
    return result


@entrypoint
def restart(ctl: Controller, services: Services):
    """
    Restart services, starting any that are stopped.

    Usage: {script} SERVICE...
    """
    result = tasks.restart(ctl, services)
    report(services, result, lambda part: "restarted")
    return result
