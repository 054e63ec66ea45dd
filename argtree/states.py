"""
Argtree per-parse state.

Scope
- ParsingState: everything that changes while one top-level parse() runs. The
  declared tree (commands, arguments, groups, types) is never written to during
  a parse; usages, faults and group violations live here, keyed by identity.
- Usage: per-argument record (count, value, token index).
- ValueContext: handed to an argument type for one use of an argument; carries
  the token index of the first value and records faults on the state.

Notes
- A state is created by Command.parse() and handed to every component that takes
  part in the pass; it must not be shared between concurrent parses.
- Faults are kept in emission order; ParsingState.sorted() gives the total order
  used by results (token index, then emission order).
"""
from .faults import InvalidValueError
from .levels import ErrorLevel
from .utils import *


class Usage:
    """
    Parse-scoped record of one argument.

    - count: number of accepted uses (a rejected repeated use is not counted).
    - value: value produced by the type, Unset when none was produced.
    - index: token index of the (first) use, None while unused.
    """
    __slots__ = ("count", "value", "index")

    def __init__(self):
        self.count = 0
        self.value = Unset
        self.index = None

    def __repr__(self):
        return f"usage(count={self.count!r}, value={self.value!r}, index={self.index!r})"


class ValueContext:
    """
    Context of a single use of an argument, given to ArgumentType.parse().
    """
    __slots__ = ("argument", "type", "index", "state")

    def __init__(self, argument, index, state, /):
        self.argument = argument
        self.type = argument.type
        self.index = index
        self.state = state

    def fault(self, message, /, *, level=ErrorLevel.ERROR, offset=0, hint=Unset, code=Unset):
        """
        Record a value fault at `index + offset` and keep parsing.
        """
        options = dict(
            level=level,
            index=self.index + offset,
            command=self.argument.command,
            argument=self.argument,
            type=self.type,
            origin=self.argument,
        )
        if hint is not Unset:
            options["hint"] = hint
        if code is not Unset:
            options["code"] = code
        return self.state.record(InvalidValueError(message, **options))


class ParsingState:
    """
    Mutable context of one parse pass.

    Attributes
    - tokens: the full token tuple of the top-level parse.
    - route: commands matched so far, root first.
    - faults: recorded faults, in emission order.
    - violations: exclusive group -> token index of the first offending match.
    - ends: command -> token index where its scan stopped (post-scan faults are
      attributed there).
    - values: command -> {argument: finalized value}.
    """

    def __init__(self, tokens, /):
        self.tokens = tuple(tokens)
        self.route = []
        self.faults = []
        self.violations = {}
        self.ends = {}
        self.values = {}
        self._usages = {}

    def usage(self, argument, /):
        """
        Return the usage record of `argument`, creating it on first access.
        """
        try:
            return self._usages[argument]
        except KeyError:
            return self._usages.setdefault(argument, Usage())

    def used(self, argument, /):
        return (usage := self._usages.get(argument)) is not None and usage.count > 0

    def count(self, argument, /):
        return usage.count if (usage := self._usages.get(argument)) is not None else 0

    def record(self, fault, /):
        self.faults.append(fault)
        return fault

    def unique_fired(self, command, /):
        """
        True when any allow-unique argument of `command` was used in this pass.
        """
        return any(argument.unique and self.used(argument) for argument in command.arguments)

    def sorted(self, faults=Unset, /):
        """
        Order faults by token index, ties broken by emission order.
        """
        faults = self.faults if faults is Unset else list(faults)
        order = {id(fault): position for position, fault in enumerate(self.faults)}
        return sorted(faults, key=lambda fault: (len(self.tokens) if fault.index is None else fault.index, order.get(id(fault), 0)))


__all__ = (
    "Usage",
    "ValueContext",
    "ParsingState",
)
