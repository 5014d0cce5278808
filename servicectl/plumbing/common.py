"""
Shared helper methods and base classes.
"""

from enum import Enum
from functools import wraps
import inspect
import logging
import shlex
import subprocess
from typing import (Any, Callable, Generator, Generic, Iterable, List, Optional, TYPE_CHECKING,
                    TypeVar, Union)

if TYPE_CHECKING:
    from .systemd import CommandFailed


LOG = logging.getLogger(__name__)

T = TypeVar("T")

Collect = Generator["Result[Any]", None, T]
"""
Generic type for the return value of functions using `Result.collect`.
"""


class Unset:
    """
    Constructor of generic default values for optional but nullable parameters.
    """

    def __repr__(self):
        return "UNSET"


UNSET = Unset()
"""
Global generic default value.
"""


class State(Enum):
    """
    Enumeration used by `Result` to declare whether the action happened.
    """

    failed = -1
    """
    The action was attempted but the service manager reported an error.
    """
    unchanged = 0
    """
    No action required, the request and current state are consistent.
    """
    success = 1
    """
    The action was completed without issues.
    """
    created = 2
    """
    The action resulted in the creation of a new object or record.
    """

    def __bool__(self):
        return self.value > 0


class Result(Generic[T]):
    """
    State and optional accompanying value from a unit of work.

    For a simple plumbing action, just create a new result directly with the resulting `State` and
    a value if relevant:

        def unit():
            # Call an external command etc.
            return Result(State.success, True)

    For a task that combines multiple results, see `Result.collect`.  The state of such a result is
    based on all of its parts -- if any changes were made, the outer result also reports a change,
    and if any part failed, so does the outer result.

    A result can be checked for truthiness, which is `False` if no changes were made.

    A result can also be converted to a string, which produces a tree-like summary of changes:

        module:task success True
            module:unit1 unchanged
            module:unit2 success
    """

    @classmethod
    def collect(cls, fn: Callable[..., Collect[T]]) -> Callable[..., "Result[T]"]:
        """
        Decorator: build a `Result` from multiple sub-tasks:

            def plumb_b() -> Result[str]: ...

            @Result.collect
            def task() -> Collect[str]:
                yield plumb_a()
                result = yield from plumb_b()
                if result:
                    yield plumb_c()
                return result.value

        The inner function this decorator wraps should be a generator of `Result` objects.

        The return value of the wrapper function will be a new `Result` object, whose `parts` will
        be those collected sub-task results, and whose `value` will be set to the return value of
        the inner function (i.e. the example above will return a `Result[str]`).
        """
        @wraps(fn)
        def inner(*args: Any, **kwargs: Any) -> Result[T]:
            state = None
            value = None
            parts: List[Result[Any]] = []
            gen = fn(*args, **kwargs)
            try:
                while True:
                    result = next(gen)
                    parts.append(result)
            except StopIteration as ex:
                value = ex.value
            return cls(state, value, parts, fn)
        return inner

    @classmethod
    def failure(cls, error: "CommandFailed", caller: Callable[..., Any]) -> "Result[Any]":
        """
        Wrap a failed command as a result, instead of letting its exception propagate.
        """
        result: Result[Any] = cls(State.failed, caller=caller)
        result.error = error
        return result

    def __init__(self, state: Optional[State] = None, value: Union[T, Unset] = UNSET,
                 parts: Iterable["Result[Any]"] = (), caller: Optional[Callable[..., Any]] = None):
        self._state = state
        self._value = value
        self.parts = tuple(parts)
        self.error: Optional["CommandFailed"] = None
        self.caller = "<unknown>"
        # Inspection magic to log the calling method, e.g. `module.sub:Class.method`.
        name = None
        if not caller:
            frame = inspect.currentframe()
            try:
                name = frame.f_back.f_code.co_name
                caller = frame.f_back.f_globals[name]
            except (AttributeError, KeyError):
                pass
        if caller:
            self.caller = "{}:{}".format(caller.__module__, caller.__qualname__)
        elif name:
            self.caller = name

    @property
    def state(self) -> State:
        """
        Modification state of the unit of work.

        This may be set directly, computed from `parts`, or defaulted to `State.unchanged`.
        """
        if self._state:
            return self._state
        elif self._state is State.failed or any(part.failed for part in self.parts):
            return State.failed
        elif any(self.parts):
            if any(part.state is State.created for part in self.parts):
                return State.created
            else:
                return State.success
        else:
            return State.unchanged

    @state.setter
    def state(self, state: State) -> None:
        self._state = state

    @property
    def failed(self) -> bool:
        return self.state is State.failed

    @property
    def errors(self) -> List["CommandFailed"]:
        """
        All errors held by this result and its parts, depth-first.
        """
        errors = [self.error] if self.error else []
        for part in self.parts:
            errors.extend(part.errors)
        return errors

    def check(self) -> "Result[T]":
        """
        Raise the first error held by this result or any of its parts, otherwise return the result
        itself, to allow chaining:

            running = tasks.status(ctl, services).check().value
        """
        errors = self.errors
        if errors:
            raise errors[0]
        return self

    @property
    def value(self) -> T:
        """
        Return value produced by the unit of work.

        Accessing this attribute will raise `ValueError` if no value has been set.
        """
        if isinstance(self._value, Unset):
            raise ValueError("No value set")
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self._value = value

    def __bool__(self) -> bool:
        return bool(self.state)

    def __iter__(self) -> Generator["Result[T]", None, "Result[T]"]:
        # Syntactic sugar used by `yield from` expressions in `Result.collect()`.
        yield self
        return self

    def __repr__(self) -> str:
        params = [str(self.state)]
        if not isinstance(self._value, Unset):
            params.append(repr(self._value))
        if self.parts:
            params.append("<{} parts>".format(len(self.parts)))
        return "{}({})".format(self.__class__.__name__, ", ".join(params))

    def __str__(self) -> str:
        tree = "{}: {}".format(self.caller, self.state.name)
        if not isinstance(self._value, Unset):
            tree = "{} {!r}".format(tree, self._value)
        if self.error:
            tree = "{} ({})".format(tree, self.error.reason)
        if self.parts:
            for result in self.parts:
                tree += "\n    {}".format(str(result).replace("\n", "\n    "))
        return tree


class Invocation:
    """
    Outcome of a single external command: its arguments, exit code and captured output.

    `returncode` is `None` if the process never exited on its own, either because it was killed
    after a timeout or because it could not be started.
    """

    def __init__(self, args: List[str], returncode: Optional[int] = None, stdout: str = "",
                 stderr: str = "", timed_out: bool = False):
        self.args = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def __repr__(self) -> str:
        extra = " timed out" if self.timed_out else ""
        return "<{}: {!r} -> {}{}>".format(self.__class__.__name__, self.args, self.returncode,
                                           extra)


def command(args: List[str], timeout: Optional[float] = None) -> Invocation:
    """
    Create a subprocess to execute an external command, and wait for it to finish.

    Output is captured rather than passed through.  Unlike `subprocess.run(check=True)`, a non-zero
    exit does not raise -- interpretation of the exit code is left to the caller.  If the timeout
    expires, the child is killed and the invocation is marked as such.  `OSError` is raised if the
    command can't be started at all.
    """
    LOG.debug("Exec: %r", args)
    try:
        proc = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                              timeout=timeout, check=False)
    except subprocess.TimeoutExpired as ex:
        LOG.debug("Timed out after %ss: %r", timeout, args)
        return Invocation(args, None, _decode(ex.stdout), _decode(ex.stderr), timed_out=True)
    invocation = Invocation(args, proc.returncode, _decode(proc.stdout), _decode(proc.stderr))
    LOG.debug("Exit %d: %r", proc.returncode, args)
    return invocation


def _decode(output: Optional[Union[bytes, str]]) -> str:
    if output is None:
        return ""
    elif isinstance(output, bytes):
        return output.decode("utf-8", "replace")
    return output
