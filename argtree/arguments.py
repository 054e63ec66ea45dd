r"""
Argtree arguments.

Overview
- Argument[_T]: one declared argument of a command.
  • names: one or more names, unique within the owning command; matched as
    <prefix><prefix><name> (e.g., --number) or, for single-character names, as
    part of a grouped short form (e.g., -abc).
  • prefix: single non-alphanumeric character (default "-").
  • type: any object honouring the ArgumentType protocol (default BooleanType()).
  • flags: obligatory, positional, unique (allow-unique: using it suppresses the
    obligatory errors of its command), default value.
  • callbacks: on_ok(value) and on_err(argument), fired after a whole parse.

Lifecycle
- Declared with the chainable builders (bind, mark_obligatory, mark_positional,
  set_prefix, allow_unique, set_default, on_ok, on_err).
- Attached once to a command (Command.define_argument, or through a group).
- Frozen with the tree on the first parse; builders then raise
  InvalidConfigurationError.
- While parsing, all mutable data (usage count, value, faults) lives in the
  ParsingState handed to consume()/finalize_value()/invoke_callbacks().

Validation highlights
- Names must match r"\w[\w-]*" and cannot repeat on the same argument.
- A positional argument needs a type that takes at least one value.
- A default value cannot be None (None already means "no value").

Quick example:
    >>> from argtree import Argument, IntegerType
    >>> number = Argument("number", "n", type=IntegerType()).mark_obligatory()
"""
import builtins

from rich.text import Text

from .argtypes import ArgumentType, BooleanType
from .faults import *
from .levels import Thresholds
from .states import ValueContext
from .utils import *


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


class Argument[_T](Thresholds, metaclass=Introspective):
    """
    Declared argument of a command.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes;
      `command` and `group` stay None until the argument is attached.
    """

    __introspectable__ = (
        "names",
        "type",
        "prefix",
        "obligatory",
        "positional",
        "unique",
        "default",
        "descr",
        "command",
        "group",
    )
    __displayable__ = (
        "names",
        "type",
        "prefix",
        "obligatory",
        "positional",
        "unique",
        "default",
    )

    def __init__(
            self,
            *names,
            type=Unset,
            prefix="-",
            obligatory=False,
            positional=False,
            unique=False,
            default=Unset,
            descr=Unset
    ):
        """
        Construct an argument; keyword flags go through the matching builders.

        Parameters
        - names: zero or more names (a nameless argument must be bound before it
          is attached to a command).
        - type: ArgumentType, BooleanType() when omitted.
        - prefix: single non-alphanumeric character.
        - obligatory / positional / unique: see mark_obligatory(), mark_positional()
          and allow_unique().
        - default: value used when the argument is not given (never None).
        - descr: short description.
        """
        if type is Unset:
            type = BooleanType()
        elif not isinstance(type, ArgumentType):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must provide 'arity' and 'parse()'")

        self._names = []
        self._type = type
        self._prefix = sanitize_prefix(prefix, builtins.type(self).__typename__)
        self._obligatory = False
        self._positional = False
        self._unique = False
        self._default = Unset
        self._descr = _sanitize_descr(builtins.type(self), descr)
        self._command = None
        self._group = None
        self._on_ok = Unset
        self._on_err = Unset

        self.bind(*names)
        if obligatory:
            self.mark_obligatory()
        if positional:
            self.mark_positional()
        if unique:
            self.allow_unique()
        if default is not Unset:
            self.set_default(default)

    def _ensure_mutable(self):
        if self._command is not None and self._command.frozen:
            raise InvalidConfigurationError(f"{type(self).__typename__} {self.display_name!r} belongs to a frozen command")

    @property
    def display_name(self):
        """
        First declared name, used in messages and result mappings.
        """
        return self._names[0] if self._names else None

    @property
    def arity(self):
        return self._type.arity

    # --- builders ---

    def bind(self, *names):
        """
        Register additional names.

        Raises
        - DuplicateNameError: a name is already present on this argument (or, once
          attached, on a sibling argument of the same command).
        """
        self._ensure_mutable()
        sanitized = []
        for name in names:
            name = sanitize_name(name, type(self).__typename__)
            if name in self._names or name in sanitized:
                raise DuplicateNameError(f"{type(self).__typename__} name {name!r} is already bound")
            sanitized.append(name)
        if self._command is not None:
            self._command._ensure_available(sanitized, self)
        self._names.extend(sanitized)
        return self

    def mark_obligatory(self):
        self._ensure_mutable()
        self._obligatory = True
        return self

    def mark_positional(self):
        """
        Make the argument assignable by token order.

        Raises
        - InvalidConfigurationError: the type takes no value.
        """
        self._ensure_mutable()
        if self.arity.none:
            raise InvalidConfigurationError(f"positional {type(self).__typename__} must take at least one value")
        self._positional = True
        return self

    def set_prefix(self, prefix, /):
        self._ensure_mutable()
        self._prefix = sanitize_prefix(prefix, type(self).__typename__)
        return self

    def allow_unique(self):
        """
        Using this argument suppresses the obligatory errors of its command.
        """
        self._ensure_mutable()
        self._unique = True
        return self

    def set_default(self, value, /):
        self._ensure_mutable()
        if value is None or value is Unset:
            raise InvalidConfigurationError(f"{type(self).__typename__} default value cannot be None")
        self._default = value
        return self

    def on_ok(self, callback, /):
        """
        Register the success callback, called with the parsed value.

        Usable as a decorator; returns the callback.
        """
        self._ensure_mutable()
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} callbacks must be callable")
        elif self._on_ok is not Unset:
            raise InvalidConfigurationError(f"{type(self).__typename__} already has a success callback")
        self._on_ok = callback
        return callback

    def on_err(self, callback, /):
        """
        Register the error callback, called with the argument itself.

        Usable as a decorator; returns the callback.
        """
        self._ensure_mutable()
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} callbacks must be callable")
        elif self._on_err is not Unset:
            raise InvalidConfigurationError(f"{type(self).__typename__} already has an error callback")
        self._on_err = callback
        return callback

    # --- ownership ---

    def attach_to_command(self, command, /):
        """
        Set the owning command (once).

        This is the back-reference half of Command.define_argument(), which is
        what declarations should call.
        """
        if self._command is not None:
            raise AlreadyBoundError(f"{type(self).__typename__} {self.display_name!r} is already attached to a command")
        elif not self._names:
            raise InvalidConfigurationError(f"{type(self).__typename__} must have at least one name")
        self._command = command
        return self

    def _adopt(self, group, /):
        if self._group is not None:
            raise AlreadyOwnedError(f"{type(self).__typename__} {self.display_name!r} already belongs to a group")
        self._group = group

    # --- matching ---

    def matches(self, token, /):
        """
        True when `token` is the long form of one of the names (e.g., "--number").
        """
        return token.startswith(self._prefix * 2) and token[2:] in self._names

    def matches_char(self, char, /, prefix=Unset):
        """
        True when `char` is one of the single-character names (grouped short form).
        """
        return coalesce(prefix, self._prefix) == self._prefix and len(char) == 1 and char in self._names

    # --- parsing ---

    def consume(self, values, index, state, /):
        """
        Parse one use of this argument.

        `values` are the raw tokens taken for this use and `index` the token index
        they start at. The usage count is incremented even when the values are
        rejected, so a rejected argument is not additionally reported as missing.
        """
        values = tuple(values)
        usage = state.usage(self)
        usage.count += 1
        if usage.index is None:
            usage.index = index

        if not self.arity.accepts(len(values)):
            expected = (
                f"{self.arity.min}" if self.arity.fixed else
                f"at least {self.arity.min}" if self.arity.max is None else
                f"{self.arity.min} to {self.arity.max}"
            )
            state.record(IncorrectValueNumberError(
                f"{type(self).__typename__} {self.display_name!r} at {ordinal(index + 1)} position "
                f"expects {expected} value(s), got {len(values)}",
                index=index,
                command=self._command,
                argument=self,
                origin=self._command,
            ))
            usage.value = Unset
            return

        try:
            usage.value = self._type.parse(values, ValueContext(self, index, state))
        except InvalidValueError as fault:
            state.record(fault.__replace__(**{
                "index": index,
                **fault.options,
                "command": self._command,
                "argument": self,
                "type": self._type,
                "origin": self,
            }))
            usage.value = Unset
        except Exception as exception:
            state.record(InvalidValueError(
                f"{type(self).__typename__} {self.display_name!r} could not parse its value: {exception}",
                index=index,
                command=self._command,
                argument=self,
                type=self._type,
                origin=self,
                exception=exception,
            ))
            usage.value = Unset

    def finalize_value(self, state, /):
        """
        Resolve the value of this argument at the end of its command's scan.

        - unused: records ObligatoryArgumentNotUsedError when obligatory (unless an
          allow-unique argument of the command was used) and returns None;
          otherwise returns the default (None when unset).
        - used: returns the parsed value, None when the type produced none.
        """
        if not state.used(self):
            if self._obligatory and not state.unique_fired(self._command):
                index = state.ends.get(self._command, len(state.tokens))
                state.record(ObligatoryArgumentNotUsedError(
                    f"{type(self).__typename__} {self.display_name!r} is obligatory but was not used",
                    index=index,
                    command=self._command,
                    argument=self,
                    origin=self._command,
                    hint=f"add {self._prefix * 2}{self.display_name} to the command line"
                    if not self._positional else f"add a value for {self.display_name}",
                ))
                return None
            return coalesce(self._default)
        return coalesce(state.usage(self).value)

    def invoke_callbacks(self, state, /):
        """
        Fire the callbacks of this argument for a finished parse.

        - on_err(argument): whenever the argument has exit-level faults.
        - on_ok(value): when used, a value was produced, and either this argument
          is allow-unique or no allow-unique argument of the command was used.
        """
        if self._on_err is not Unset and self.has_exit_errors(state):
            self._on_err(self)
        if self._on_ok is Unset or not state.used(self):
            return
        if (value := state.usage(self).value) is Unset:
            return
        if not self._unique and state.unique_fired(self._command):
            return
        self._on_ok(value)

    # --- severity ---

    def _lineage(self):
        yield self
        yield self._type
        if self._command is not None:
            yield from self._command._lineage()

    def _faults(self, state):
        return [fault for fault in state.faults if fault.argument is self]


__all__ = (
    "Argument",
)
