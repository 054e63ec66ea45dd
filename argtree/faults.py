"""
Argtree faults (parse-time errors, build-time errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse-time fault.
  Codes are grouped by domain to keep copy consistent and logs searchable.
- ParseError: base type of every accumulated parse-time fault. A fault carries a
  message plus options (code, level, index, command, argument, group, origin...)
  and knows how to render itself with rich.
- Build-time errors (DuplicateNameError, AlreadyOwnedError, AlreadyBoundError,
  InvalidConfigurationError): raised immediately while declaring the tree; they are
  configuration bugs, never user input, and are not subject to severity filtering.
- ParseExit: exception group bundling the fatal faults of a failed parse.
- trigger(): central entry point to surface a fault (raise, warn, or print).

UX goals
- Position-first messages: every message names the ordinal position of the token
  it concerns (“at third position”) so users can learn by trying.
- Soft but technical language: short titles, one-sentence bodies, one clear hint.

Integration
- The engine never raises ParseError subclasses while parsing; it records them in
  the parsing state. Callers decide what to do with the result; the invoke() entry
  point is the only place that triggers them.
"""
import functools
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .levels import ErrorLevel
from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - tokens (2110x)
      • UNRECOGNIZED_TOKEN, UNKNOWN_ARGUMENT
    - arguments (2111x)
      • OBLIGATORY_ARGUMENT_NOT_USED, INCORRECT_VALUE_NUMBER, INCORRECT_USAGES_COUNT
    - groups (2112x)
      • MULTIPLE_EXCLUSIVE_ARGUMENTS_USED
    - values (2113x)
      • INVALID_VALUE

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired.
    """
    # --- token errors ---
    UNRECOGNIZED_TOKEN                = 21101
    UNKNOWN_ARGUMENT                  = 21102

    # --- argument errors ---
    OBLIGATORY_ARGUMENT_NOT_USED      = 21111
    INCORRECT_VALUE_NUMBER            = 21112
    INCORRECT_USAGES_COUNT            = 21113

    # --- group errors ---
    MULTIPLE_EXCLUSIVE_ARGUMENTS_USED = 21121

    # --- value errors (argument types) ---
    INVALID_VALUE                     = 21131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


@functools.cache
def ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth") for nicer phrasing.
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


# level -> default palette key used by the renderer
_PALETTE = {
    ErrorLevel.DEBUG: "debug",
    ErrorLevel.INFO: "info",
    ErrorLevel.WARNING: "warning",
    ErrorLevel.ERROR: "error",
}


class FaultWarning(UserWarning):
    """
    Warning category used when a non-fatal fault is triggered outside shell mode.
    """


class ParseError(Exception):
    """
    Base type of every parse-time fault.

    Options (all optional, read through properties)
    - code: FaultCode (defaults to the class' __code__)
    - level: ErrorLevel (defaults to the class' __level__)
    - title: short lowercase title (defaults to the class' __title__)
    - index: 0-based token index the fault is attributed to
    - command / argument / group / type: the components the fault concerns
    - origin: the component whose thresholds judge this fault
    - hint: one actionable sentence
    - rendering: tool, shell, fancy, colorful, fatal
    """
    __code__ = Unset
    __level__ = ErrorLevel.ERROR
    __title__ = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message else self.title

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def level(self):
        return self.options.get("level", type(self).__level__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def index(self):
        return self.options.get("index")

    @property
    def command(self):
        return self.options.get("command")

    @property
    def argument(self):
        return self.options.get("argument")

    @property
    def group(self):
        return self.options.get("group")

    @property
    def origin(self):
        """
        The component whose thresholds judge this fault.

        Falls back to the argument, then to the command, when no explicit
        origin was recorded.
        """
        for name in ("origin", "argument", "command"):
            if (component := self.options.get(name)) is not None:
                return component
        raise LookupError(f"{type(self).__name__} has no origin")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error": "bold #FF4DA6",  # pinky title for errors
            "warning": "bold #FFC2E0",  # softer pinky title for warnings
            "info": "bold #9CC8FF",  # pale blue title for notices
            "debug": "dim",

            # body
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style] if colorful else "")

        tool = self.options.get("tool", self.command)
        prog = text(getattr(main, "__prog__", getattr(getattr(tool, "root", None), "name", "argtree")), "prog-name")
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "-"

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, "code"),
            " | ",
            text(self.title.title(), _PALETTE.get(self.level, "error")),
            " ]"
        )
        renders = [text(self.message, "message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            width = console.width - 4
            try:
                width = int(width * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*renders), title=header, title_align="left", width=width)

        return Group(header, *renders)

    def __trigger__(self):
        fatal = self.options.get("fatal", self.level >= ErrorLevel.ERROR)
        if self.options.get("shell", False):
            console.print(self)
            return
        if fatal:
            raise self from None
        warnings.warn(str(self), FaultWarning, stacklevel=3)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnrecognizedTokenError(ParseError):
    __code__ = FaultCode.UNRECOGNIZED_TOKEN
    __title__ = "unrecognized token"


class UnknownArgumentError(ParseError):
    __code__ = FaultCode.UNKNOWN_ARGUMENT
    __title__ = "unknown argument"


class ObligatoryArgumentNotUsedError(ParseError):
    __code__ = FaultCode.OBLIGATORY_ARGUMENT_NOT_USED
    __title__ = "obligatory argument not used"


class IncorrectValueNumberError(ParseError):
    __code__ = FaultCode.INCORRECT_VALUE_NUMBER
    __title__ = "incorrect number of values"


class IncorrectUsagesCountError(ParseError):
    __code__ = FaultCode.INCORRECT_USAGES_COUNT
    __title__ = "argument used too many times"


class MultipleExclusiveArgumentsUsedError(ParseError):
    __code__ = FaultCode.MULTIPLE_EXCLUSIVE_ARGUMENTS_USED
    __title__ = "exclusive arguments used together"


class InvalidValueError(ParseError):
    """
    Value fault produced by an argument type.

    Argument types raise it to reject a value outright, or record it through
    their value context (with any level) and still return a value.
    """
    __code__ = FaultCode.INVALID_VALUE
    __title__ = "invalid value"


# --- build-time errors (raised immediately) ---

class DuplicateNameError(ValueError):
    """
    A name is already taken by the same argument, a sibling argument, or a sibling command.
    """


class AlreadyOwnedError(ValueError):
    """
    An argument or group was added to a second owner.
    """


class AlreadyBoundError(ValueError):
    """
    A one-time binding (argument -> command, group -> command, command -> parent) was repeated.
    """


class InvalidConfigurationError(ValueError):
    """
    A declaration is inconsistent (e.g., positional argument whose type takes no values).
    """


class ParseExit(ExceptionGroup):
    """
    Exception group carrying the fatal faults of a failed parse.

    Options
    - exit_code: process exit code computed from the failing commands.
    - tool: the command that was parsed (used for the header).
    - shell / fancy / colorful: rendering and termination behavior.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    @property
    def exit_code(self):
        return self.options.get("exit_code", 1)

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title (Bad Exit)
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", getattr(getattr(tool, "root", None), "name", "argtree")), "prog-name")
        header = Text.assemble("[ ", prog, " — ", text(self.message.title(), "title"), " ]")

        renders = []
        for exception in self.exceptions:
            renders.append(exception.__replace__(ratio=2/3, colorful=colorful, fancy=self.options.get("fancy", False)))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(self.exit_code)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseError/ParseExit).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, faults are rendered via the rich console (ParseExit then exits the
      process); otherwise fatal faults are raised and the rest are emitted as warnings.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "FaultWarning",
    "ParseError",
    "UnrecognizedTokenError",
    "UnknownArgumentError",
    "ObligatoryArgumentNotUsedError",
    "IncorrectValueNumberError",
    "IncorrectUsagesCountError",
    "MultipleExclusiveArgumentsUsedError",
    "InvalidValueError",
    "DuplicateNameError",
    "AlreadyOwnedError",
    "AlreadyBoundError",
    "InvalidConfigurationError",
    "ParseExit",
    "ordinal",
    "trigger",
)
