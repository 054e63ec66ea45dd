"""
Argtree argument groups.

Overview
- ArgumentGroup: named bag of arguments and nested groups.
  • Each argument and each group has at most one owner; a second owner raises
    AlreadyOwnedError.
  • register_into(command) attaches every member argument to the command,
    recursively; members added afterwards are attached right away.
  • An exclusive group allows at most one of its DIRECT member arguments to be
    used per parse (arguments of nested groups are not considered).

Notes
- Groups have no thresholds of their own: a MultipleExclusiveArgumentsUsedError is
  judged by the owning command.
"""
from rich.text import Text

from .arguments import Argument
from .faults import *
from .utils import *


class ArgumentGroup(metaclass=Introspective):
    """
    Group of arguments, optionally exclusive.
    """

    __introspectable__ = (
        "name",
        "descr",
        "exclusive",
        "arguments",
        "groups",
        "parent",
        "command",
    )
    __displayable__ = (
        "name",
        "exclusive",
        "arguments",
        "groups",
    )

    def __init__(self, name, /, *members, descr=Unset, exclusive=False):
        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")

        self._name = sanitize_name(name, type(self).__typename__)
        self._descr = coalesce(descr)
        self._exclusive = False
        self._arguments = []
        self._groups = []
        self._parent = None
        self._command = None

        for member in members:
            if isinstance(member, ArgumentGroup):
                self.add_group(member)
            else:
                self.add_argument(member)
        if exclusive:
            self.set_exclusive()

    def _ensure_mutable(self):
        if self._command is not None and self._command.frozen:
            raise InvalidConfigurationError(f"{type(self).__typename__} {self._name!r} belongs to a frozen command")

    def add_argument(self, argument, /):
        """
        Add a direct member argument; returns it.
        """
        self._ensure_mutable()
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} members must be arguments or groups")
        elif argument.group is not None:
            raise AlreadyOwnedError(f"argument {argument.display_name!r} already belongs to a group")
        if self._command is not None:
            self._command.define_argument(argument)
        argument._adopt(self)
        self._arguments.append(argument)
        return argument

    def add_group(self, group, /):
        """
        Nest a group; returns it.
        """
        self._ensure_mutable()
        if not isinstance(group, ArgumentGroup):
            raise TypeError(f"{type(self).__typename__} members must be arguments or groups")
        elif self in group.walk():
            raise InvalidConfigurationError(f"{type(self).__typename__} {group.name!r} cannot contain itself")
        elif group._parent is not None or group._command is not None:
            raise AlreadyOwnedError(f"{type(self).__typename__} {group.name!r} already has an owner")
        if self._command is not None:
            self._command._ensure_group_available(group)
        group._parent = self
        self._groups.append(group)
        if self._command is not None:
            group.register_into(self._command)
        return group

    def set_exclusive(self):
        self._ensure_mutable()
        self._exclusive = True
        return self

    def check_exclusivity(self, argument, state, /):
        """
        False iff another direct member of this group was already used.
        """
        for member in self._arguments:
            if member is not argument and state.used(member):
                return False
        return True

    def register_into(self, command, /):
        """
        Attach the group and all of its members to `command` (once).
        """
        if self._command is not None:
            raise AlreadyBoundError(f"{type(self).__typename__} {self._name!r} is already registered to a command")
        self._command = command
        for argument in self._arguments:
            command.define_argument(argument)
        for group in self._groups:
            group.register_into(command)
        return self

    def walk(self):
        """
        Yield this group then its nested groups, depth-first.
        """
        yield self
        for group in self._groups:
            yield from group.walk()


__all__ = (
    "ArgumentGroup",
)
