"""
Argtree error-severity layer.

Scope
- ErrorLevel: ordered severity scale carried by every parse-time fault
  (DEBUG < INFO < WARNING < ERROR).
- Thresholds: mixin shared by argument types, arguments and commands holding two
  independently settable gates:
  • display_level: minimum severity for a fault to be surfaced to the user.
  • exit_level: minimum severity for a fault to mark the parse as failed.

Inheritance
- A threshold that was never set explicitly is inherited along the component's
  lineage (see Thresholds._lineage): an argument inherits from its type,
  then from its command; a command inherits from its parent command. The root of
  every chain falls back to DISPLAY_LEVEL / EXIT_LEVEL.
- Setting a threshold on a root command therefore reconfigures the whole tree
  ("treat WARNING as fatal", "hide INFO") unless a node overrides it.

Judgement
- A fault is judged by the thresholds of the component that raised it (the
  fault's "origin"), not by whoever happens to be asking. Component queries
  (errors_under_display_level(...), has_exit_errors(...)) only choose WHICH
  faults belong to the component; each is then filtered by its own origin.
"""
from enum import IntEnum

from .utils import Unset


class ErrorLevel(IntEnum):
    """
    ordered severity scale for parse-time faults.

    values are spaced like the stdlib logging levels so hosts can map one
    onto the other without a table.
    """
    DEBUG   = 10
    INFO    = 20
    WARNING = 30
    ERROR   = 40


DISPLAY_LEVEL = ErrorLevel.INFO
EXIT_LEVEL = ErrorLevel.ERROR


def _sanitize_level(owner, level, /):
    typename = getattr(type(owner), "__typename__", type(owner).__name__)
    if isinstance(level, str):
        try:
            return ErrorLevel[level.strip().upper()]
        except KeyError:
            raise ValueError(f"{typename} unknown error level {level!r}") from None
    if not isinstance(level, ErrorLevel):
        raise TypeError(f"{typename} error level must be an ErrorLevel")
    return level


class Thresholds:
    """
    Mixin implementing the two-axis severity gate.

    Subclass contract
    - _lineage(): yield this component, then every component it inherits
      thresholds from, nearest first.
    - _faults(state): return the faults owned by this component (and its children)
      within the given parsing state.

    Both axes start unset; reading them resolves the lineage.
    """
    _display_level = Unset
    _exit_level = Unset

    def _lineage(self):
        yield self

    def _faults(self, state):
        return ()

    def _resolve(self, axis, default, /):
        for component in self._lineage():
            # components outside the mixin (user types) simply have no opinion
            if (level := getattr(component, axis, Unset)) is not Unset:
                return level
        return default

    @property
    def display_level(self):
        """
        Effective minimum severity for a fault to be displayed.
        """
        return self._resolve("_display_level", DISPLAY_LEVEL)

    @display_level.setter
    def display_level(self, level):
        self._display_level = _sanitize_level(self, level)

    @property
    def exit_level(self):
        """
        Effective minimum severity for a fault to fail the parse.
        """
        return self._resolve("_exit_level", EXIT_LEVEL)

    @exit_level.setter
    def exit_level(self, level):
        self._exit_level = _sanitize_level(self, level)

    def set_display_level(self, level, /):
        """
        Chainable form of `display_level = level`.
        """
        self.display_level = level
        return self

    def set_exit_level(self, level, /):
        """
        Chainable form of `exit_level = level`.
        """
        self.exit_level = level
        return self

    def displays(self, fault, /):
        """
        True when `fault` reaches this component's display threshold.
        """
        return fault.level >= self.display_level

    def fails(self, fault, /):
        """
        True when `fault` reaches this component's exit threshold.
        """
        return fault.level >= self.exit_level

    def errors_under_display_level(self, state, /):
        """
        Faults owned by this component that their origin allows to be displayed.
        """
        return [fault for fault in self._faults(state) if fault.origin.displays(fault)]

    def errors_under_exit_level(self, state, /):
        """
        Faults owned by this component that their origin treats as fatal.
        """
        return [fault for fault in self._faults(state) if fault.origin.fails(fault)]

    def has_display_errors(self, state, /):
        return any(fault.origin.displays(fault) for fault in self._faults(state))

    def has_exit_errors(self, state, /):
        return any(fault.origin.fails(fault) for fault in self._faults(state))


__all__ = (
    "ErrorLevel",
    "Thresholds",
    "DISPLAY_LEVEL",
    "EXIT_LEVEL",
)
