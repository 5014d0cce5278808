"""
Helpers for converting methods into scripts, and filling in arguments with service objects.
"""

from functools import wraps
from inspect import cleandoc, signature
import logging
import sys
from typing import Any, Callable, cast, Dict, List, Optional, Union

from docopt import docopt

from ..plumbing.common import Result
from ..plumbing.systemd import Config, Controller, Service


DocOptArgs = Dict[str, Union[bool, str, List[str], None]]

Services = List[Service]
"""
Annotation for script parameters taking one or more service names (e.g. `SERVICE...`).
"""


ENTRYPOINTS: List[str] = []

SCRIPTS: Dict[str, Callable[..., Any]] = {}
"""
Script functions by their short name, as used by `python -m servicectl`.
"""

OPTIONS = """
Options:
  --debug           Log each service manager call.
  --command=CMD     Service manager command (else $SERVICECTL_COMMAND, or systemctl).
  --no-sudo         Don't run the service manager with sudo (else $SERVICECTL_SUDO).
  --timeout=SECS    Seconds to wait for each call (else $SERVICECTL_TIMEOUT, or 3).
"""


def controller(opts: DocOptArgs) -> Controller:
    """
    Build a controller from the environment, with any overrides from the command line.
    """
    timeout = opts.pop("--timeout", None)
    try:
        config = Config.from_env().override(
            command=cast(Optional[str], opts.pop("--command", None)),
            sudo=False if opts.pop("--no-sudo", False) else None,
            timeout=float(cast(str, timeout)) if timeout else None)
    except ValueError as ex:
        error(str(ex), exit=2)
    return Controller(config)


def entrypoint(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to make an entrypoint out of a generic function.

    This uses `docopt` to parse arguments according to the method docstring, and will be formatted
    with `{script}` set to the script name.  At minimum, it should contain `Usage: {script}`.  The
    common options (`--debug`, and those used to configure the `Controller`) are added to both the
    usage line and the help text.

    Functions may optionally accept arguments, but they must be annotated with a recognised type in
    order to be filled in.  The following types are fixed and always available:

    - `DocOptArgs` (a `dict` of input parameters parsed from the usage line)
    - `Controller` (configured from the environment and command line options)

    The types `Service` and `Services` will be filled from an input parameter matching the variable
    name (the name must be declared in the usage line, either in upper case or surrounded by arrow
    brackets, e.g. `SERVICE` or `<service>`).  For `Services`, the name may also be the singular
    form, which allows the usual `SERVICE...` syntax.

    An example function:

        @entrypoint
        def show(opts: DocOptArgs, ctl: Controller, service: Service):
            \"""
            Check if a service is running.

            Usage: {script} SERVICE
            \"""
    """
    name = fn.__qualname__.replace("_", "-")
    label = "servicectl-{}".format(name)

    @wraps(fn)
    def wrap(opts: Optional[DocOptArgs] = None):
        extra: Dict[str, Any] = {}
        if opts is None:
            script = "{} [options]".format(label)
            doc = cleandoc(fn.__doc__.format(script=script)) + "\n" + OPTIONS
            opts = docopt(doc)
        else:
            opts = dict(opts)
        if opts.pop("--debug", False):
            logging.basicConfig(level=logging.DEBUG)
        ctl = controller(opts)
        # Detect resolvable-typed arguments and fill in their values.
        sig = signature(fn)
        for param in sig.parameters.values():
            pname = param.name
            cls = param.annotation
            if cls is DocOptArgs:
                extra[pname] = opts
                continue
            elif cls is Controller:
                extra[pname] = ctl
                continue
            keys = [pname.upper(), "<{}>".format(pname)]
            if cls == Services and pname.endswith("s"):
                keys += [pname[:-1].upper(), "<{}>".format(pname[:-1])]
            for key in keys:
                if key in opts:
                    value = opts[key]
                    break
            else:
                raise RuntimeError("Missing argument {!r}".format(pname))
            if cls is Service:
                extra[pname] = Service(cast(str, value))
            elif cls == Services:
                if isinstance(value, str):
                    value = [value]
                extra[pname] = [Service(item) for item in cast(List[str], value)]
            else:
                raise RuntimeError("Bad parameter {!r} type {!r}".format(pname, cls))
        return fn(**extra)
    wrap.__doc__ = wrap.__doc__.format(script=label)
    # Create a console script line for setup.
    target = "{}:{}".format(fn.__module__, fn.__qualname__)
    ENTRYPOINTS.append("{}={}".format(label, target))
    SCRIPTS[name] = wrap
    return wrap


def report(services: Services, result: Result[Any],
           describe: Callable[[Result[Any]], str]) -> None:
    """
    Print one line per service for a task result, and exit non-zero if any of them failed.
    """
    failed = 0
    for service, part in zip(services, result.parts):
        if part.failed:
            failed += 1
            error("{}: {}".format(service, part.error))
        else:
            print("{}: {}".format(service, describe(part)))
    if failed:
        error("{} of {} services failed".format(failed, len(result.parts)), exit=1)


def error(msg: Optional[str] = None, *, exit: Optional[int] = None, colour: Optional[str] = None):
    """
    Print an error message and/or exit.
    """
    if msg:
        colour = colour or ("1" if exit else "3")
        print("\033[9{}m{}\033[0m".format(colour, msg), file=sys.stderr)
    if exit is not None:
        sys.exit(exit)
