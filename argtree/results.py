"""
Argtree parse results.

Overview
- ParseResult: read-only view over one finished ParsingState, for one command of
  the matched route (root first, then `child` for the delegated subcommand).
  • values: display name -> value for every argument of the command (None when
    the argument is absent and has no default).
  • errors: faults of the command's whole subtree that their origin displays,
    ordered by token index then emission order.
  • failed / exit_code: whether a fault reached its origin's exit threshold, and
    the bitwise OR of the error codes of the failing commands of the route.

Lookups
- result["number"] / result[argument]: value of an argument of this command.
- result.get("cmd1-1.number2"): dotted lookup through delegated subcommands.
- result.used("number"): whether the argument was given.
"""
from .arguments import Argument
from .faults import ParseExit
from .utils import *


class ParseResult(metaclass=Introspective):
    """
    Outcome of Command.parse() for one command of the matched route.
    """

    __introspectable__ = (
        "command",
        "state",
        "child",
        "errors",
        "exit_errors",
        "failed",
        "exit_code",
    )
    __displayable__ = (
        "values",
        "child",
        "errors",
        "exit_code",
    )

    def __init__(self, command, state, /):
        route = state.route[state.route.index(command):]
        faults = command._faults(state)

        self._command = command
        self._state = state
        self._arguments = dict(state.values[command])
        self._values = {argument.display_name: value for argument, value in self._arguments.items()}
        self._child = ParseResult(route[1], state) if len(route) > 1 else None
        self._errors = tuple(state.sorted(fault for fault in faults if fault.origin.displays(fault)))
        self._exit_errors = tuple(state.sorted(fault for fault in faults if fault.origin.fails(fault)))
        self._failed = bool(self._exit_errors)

        self._exit_code = 0
        for step in route:
            if any(fault.command is step for fault in self._exit_errors):
                self._exit_code |= step.error_code

    @property
    def values(self):
        """
        Display name -> value; the parsed values themselves are not copied.
        """
        return dict(self._values)

    def _lookup(self, key, /):
        if isinstance(key, Argument):
            if key not in self._arguments:
                raise KeyError(key)
            return key
        elif isinstance(key, str):
            for argument in self._arguments:
                if key in argument.names:
                    return argument
            raise KeyError(key)
        raise TypeError(f"{type(self).__typename__} keys must be argument names or arguments")

    def __getitem__(self, key, /):
        return self._arguments[self._lookup(key)]

    def get(self, route, default=None, /):
        """
        Dotted lookup through delegated subcommands: "cmd1-1.number2".

        Returns `default` when a step of the route was not matched or the argument
        does not exist.
        """
        *commands, name = route.split(".")
        result = self
        for step in commands:
            if result._child is None or step not in result._child._command.names:
                return default
            result = result._child
        try:
            return result[name]
        except KeyError:
            return default

    def used(self, key, /):
        return self._state.used(self._lookup(key))

    def raise_for_errors(self):
        """
        Raise ParseExit with the exit-level faults when the parse failed.
        """
        if self._failed:
            raise ParseExit(self._exit_errors, exit_code=self._exit_code, tool=self._command)
        return self


__all__ = (
    "ParseResult",
)
