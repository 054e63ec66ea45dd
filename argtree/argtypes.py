r"""
Argtree argument types (value coercion).

Overview
- Arity
  • (min, max) pair describing how many raw tokens one use of an argument takes;
    max=None means unbounded. Arity.NONE (0, 0) is a pure flag.
  • Arity.of(nargs) accepts the familiar spellings: "?", "*", "+", an int, None.

- ArgumentType (capability protocol)
  • Anything with an `arity` attribute and a `parse(values, context)` method is a
    type. There is no base class to inherit from; builtin types are plain classes.
  • parse() receives the raw tokens (already counted against the arity) and a
    ValueContext (see argtree.states) describing this single use.

Reporting bad input
- raise InvalidValueError(message): the value is rejected, the argument ends up
  without a value (None after finalization).
- context.fault(message, level=..., offset=...): the fault is accumulated and the
  type may still return a value (e.g., a WARNING for a duplicated key).
- A type never lets a conversion exception escape; the engine still shields itself
  from user-written types that do.

Builtin types
- BooleanType, StringType, IntegerType, FloatType, IntegerRangeType,
  MultipleStringsType, ChoiceType, KeyValuesType, FileType, StdinType,
  ConverterType.

Severity
- Builtin types carry the Thresholds mixin: an argument that never set its own
  thresholds inherits the ones set on its type.

Quick example:
    >>> from argtree.argtypes import IntegerRangeType
    >>> port = IntegerRangeType(1, 65535)
    >>> port.arity
    Arity(min=1, max=1)
"""
import builtins
import sys
from pathlib import Path
from typing import NamedTuple, Protocol, runtime_checkable

from .faults import InvalidValueError, ordinal
from .levels import ErrorLevel, Thresholds
from .utils import *


class Arity(NamedTuple):
    """
    number of raw tokens taken by one use of an argument.
    """
    min: int
    max: int | None

    @classmethod
    def exact(cls, count, /):
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError("arity count must be an integer")
        elif count < 0:
            raise ValueError("arity count cannot be negative")
        return cls(count, count)

    @classmethod
    def range(cls, min, max=None, /):
        if not isinstance(min, int) or isinstance(min, bool):
            raise TypeError("arity minimum must be an integer")
        elif not isinstance(max, int | None) or isinstance(max, bool):
            raise TypeError("arity maximum must be an integer or None")
        elif min < 0:
            raise ValueError("arity minimum cannot be negative")
        elif max is not None and max < min:
            raise ValueError("arity maximum cannot be lower than its minimum")
        return cls(min, max)

    @classmethod
    def of(cls, nargs, /):
        """
        Build an arity from an nargs-style spelling.

        - None / 0: no values (flag)
        - "?": zero or one value
        - "*": any number of values
        - "+": at least one value
        - int n: exactly n values
        """
        match nargs:
            case None | 0:
                return cls.NONE
            case "?":
                return cls(0, 1)
            case "*":
                return cls(0, None)
            case "+":
                return cls(1, None)
            case int() if not isinstance(nargs, bool):
                return cls.exact(nargs)
            case _:
                raise ValueError(f"unsupported nargs {nargs!r}")

    @property
    def none(self):
        return self.max == 0

    @property
    def fixed(self):
        return self.min == self.max

    def accepts(self, count, /):
        return self.min <= count and (self.max is None or count <= self.max)


Arity.NONE = Arity(0, 0)


@runtime_checkable
class ArgumentType[_T](Protocol):
    """
    Capability interface of every argument type.

    - arity: Arity of one use.
    - parse(values, context): convert the raw tokens into a value.
    """
    arity: Arity

    def parse(self, values, context, /) -> _T:
        ...


def _position(context, offset=0, /):
    return ordinal(context.index + offset + 1)


class BooleanType(Thresholds, metaclass=Introspective):
    """
    Pure flag: takes no token, its value is True whenever the argument is used.
    """
    arity = Arity.NONE

    def parse(self, values, context, /):
        return True


class StringType(Thresholds, metaclass=Introspective):
    arity = Arity.exact(1)

    def parse(self, values, context, /):
        return values[0]


class IntegerType(Thresholds, metaclass=Introspective):
    arity = Arity.exact(1)

    def parse(self, values, context, /):
        try:
            return int(values[0])
        except ValueError:
            raise InvalidValueError(
                f"expected an integer at {_position(context)} position, got {values[0]!r}",
                hint="use digits only, optionally preceded by a sign",
            ) from None


class FloatType(Thresholds, metaclass=Introspective):
    arity = Arity.exact(1)

    def parse(self, values, context, /):
        try:
            return float(values[0])
        except ValueError:
            raise InvalidValueError(
                f"expected a number at {_position(context)} position, got {values[0]!r}",
            ) from None


class IntegerRangeType(IntegerType):
    """
    Integer with inclusive bounds; either bound may be left open.
    """
    __introspectable__ = ("min", "max")

    def __init__(self, min=Unset, max=Unset, /):
        for bound in (min, max):
            if not isinstance(bound, int | Unset) or isinstance(bound, bool):
                raise TypeError(f"{type(self).__typename__} bounds must be integers")
        if min is not Unset and max is not Unset and max < min:
            raise ValueError(f"{type(self).__typename__} 'max' cannot be lower than 'min'")
        self._min = coalesce(min)
        self._max = coalesce(max)

    def parse(self, values, context, /):
        value = super().parse(values, context)
        if (self._min is not None and value < self._min) or (self._max is not None and value > self._max):
            raise InvalidValueError(
                f"value {value} at {_position(context)} position is out of range",
                hint=f"expected a value between {'-∞' if self._min is None else self._min} and {'+∞' if self._max is None else self._max}",
            )
        return value


class MultipleStringsType(Thresholds, metaclass=Introspective):
    arity = Arity.range(1, None)

    def parse(self, values, context, /):
        return tuple(values)


class ChoiceType(Thresholds, metaclass=Introspective):
    """
    One value among a fixed set of strings.
    """
    __introspectable__ = ("choices",)
    arity = Arity.exact(1)

    def __init__(self, *choices):
        if not choices:
            raise ValueError(f"{type(self).__typename__} requires at least one choice")
        for choice in choices:
            if not isinstance(choice, str):
                raise TypeError(f"{type(self).__typename__} choices must be strings")
        if len(set(choices)) != len(choices):
            raise ValueError(f"{type(self).__typename__} choices must be unique")
        self._choices = choices

    def parse(self, values, context, /):
        if values[0] not in self._choices:
            raise InvalidValueError(
                f"invalid choice {values[0]!r} at {_position(context)} position",
                hint=f"choose from {', '.join(map(repr, self._choices))}",
            )
        return values[0]


class KeyValuesType(Thresholds, metaclass=Introspective):
    """
    One or more key=value tokens collected into a dict.

    - a token without '=' (or with an empty key) is an ERROR and is skipped.
    - a key given twice is a WARNING; the last occurrence wins.
    - values are converted with `type` (str by default); a failing conversion
      is an ERROR for that token.
    """
    __introspectable__ = ("type",)
    arity = Arity.range(1, None)

    def __init__(self, type=str, /):
        if not builtins.callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be callable")
        self._type = type

    def parse(self, values, context, /):
        pairs = {}
        for offset, token in enumerate(values):
            key, separator, value = token.partition("=")
            if not separator or not (key := key.strip()):
                context.fault(
                    f"expected key=value at {_position(context, offset)} position, got {token!r}",
                    offset=offset,
                )
                continue
            try:
                value = self._type(value)
            except (ValueError, TypeError) as exception:
                context.fault(f"invalid value for key {key!r}: {exception}", offset=offset)
                continue
            if key in pairs:
                context.fault(
                    f"key {key!r} at {_position(context, offset)} position overrides a previous value",
                    level=ErrorLevel.WARNING,
                    offset=offset,
                )
            pairs[key] = value
        return pairs


class FileType(Thresholds, metaclass=Introspective):
    __introspectable__ = ("exists",)
    arity = Arity.exact(1)

    def __init__(self, *, exists=True):
        self._exists = bool(exists)

    def parse(self, values, context, /):
        path = Path(values[0])
        if self._exists and not path.is_file():
            raise InvalidValueError(
                f"file {values[0]!r} at {_position(context)} position does not exist",
                hint="check the path and its permissions",
            )
        return path


class StdinType(Thresholds, metaclass=Introspective):
    """
    Takes no token; the value is the whole standard input, read when the
    argument is used.
    """
    arity = Arity.NONE

    def parse(self, values, context, /):
        return "\n".join(sys.stdin.read().splitlines())


class ConverterType(Thresholds, metaclass=Introspective):
    """
    Adapt any callable converter (int, float, ipaddress.ip_address, ...) to the
    type protocol.

    - ValueError / TypeError raised by the converter reject the token.
    - with more than one value per use, the value is a tuple of converted tokens.
    """
    __introspectable__ = ("converter",)

    def __init__(self, converter, /, nargs=1):
        if not builtins.callable(converter):
            raise TypeError(f"{type(self).__typename__} converter must be callable")
        self._converter = converter
        self.arity = Arity.of(nargs)
        if self.arity.none:
            raise ValueError(f"{type(self).__typename__} must take at least one value")

    def parse(self, values, context, /):
        converted = []
        for offset, token in enumerate(values):
            try:
                converted.append(self._converter(token))
            except (ValueError, TypeError) as exception:
                context.fault(
                    f"invalid value {token!r} at {_position(context, offset)} position: {exception}",
                    offset=offset,
                )
        if len(converted) != len(values):
            return Unset
        if self.arity == (1, 1):
            return converted[0]
        # "?" used without a token
        if self.arity.max == 1:
            return converted[0] if converted else Unset
        return tuple(converted)


__all__ = (
    "Arity",
    "ArgumentType",
    "BooleanType",
    "StringType",
    "IntegerType",
    "FloatType",
    "IntegerRangeType",
    "MultipleStringsType",
    "ChoiceType",
    "KeyValuesType",
    "FileType",
    "StdinType",
    "ConverterType",
)
