r"""
Argtree commands (declared tree + matching algorithm).

Overview
- Command: node of the command tree. Owns arguments (declaration order is the
  positional order), argument groups and child commands.
  • Builders: define_argument, define_group, define_subcommand (plus the argument()
    and subcommand() shortcuts); the first parse() freezes the whole tree.
  • parse(tokens) runs one pass over the tokens and returns a ParseResult.

Matching (single left-to-right scan over the command's span)
- For each token, in order:
  1. child command name: the rest of the tokens is delegated to that child and
     this command's scan ends.
  2. long form <prefix><prefix><name>, optionally <prefix><prefix><name>=<value>.
     An unmatched long form is an UnknownArgumentError for the whole name; the
     inline value of an argument that takes no values is ignored.
  3. grouped short form <prefix><chars>: each character resolves to a
     single-character name with that prefix (-abc ≡ -a -b -c). A value-taking
     argument in the middle of the group takes the rest of the token (-n5).
     An unresolved character is an UnknownArgumentError; the group goes on.
  4. anything else (including a bare "-" or a negative number nothing claims)
     goes to the next unused positional argument, else UnrecognizedTokenError.
- Values: up to arity.max tokens following a match are taken, stopping at a token
  that names a child command or an argument of this command.
- Post-scan: every argument is finalized (obligatory checks), and every exclusive
  group with two or more used direct members yields one error.
- Callbacks fire after the whole pass, parent command first, then in declaration
  order.

Faults
- Never raised while parsing: they are recorded in the ParsingState and exposed by
  the ParseResult. Structural faults (unknown tokens, usage counts, exclusivity,
  value counts, obligatory arguments) are judged by the command's thresholds;
  value faults by the argument's.

Quick example:
    >>> from argtree import Command, IntegerType
    >>> cmd1 = Command("cmd1")
    >>> number = cmd1.argument("number", type=IntegerType())
    >>> flag = cmd1.argument("name1", "f")
    >>> cmd1.parse(["--number", "5", "-f"]).values
    {'number': 5, 'name1': True}
"""
import re
import shlex
from collections import deque
from collections.abc import Iterable

from rich.text import Text

from .arguments import Argument
from .faults import *
from .groups import ArgumentGroup
from .levels import Thresholds
from .results import ParseResult
from .states import ParsingState
from .utils import *

# tokens like "-5", "-.5" or "-1e3" are values unless an argument claims their first character
_NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


class Command(Thresholds, metaclass=Introspective):
    """
    Node of the command tree.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes;
      collections are returned as tuples.
    - error_code: bit OR-ed into the exit code when this command fails.
    """

    __introspectable__ = (
        "names",
        "descr",
        "error_code",
        "arguments",
        "groups",
        "children",
        "parent",
    )
    __displayable__ = (
        "names",
        "descr",
        "error_code",
        "arguments",
        "groups",
        "children",
    )

    def __init__(self, *names, descr=Unset, error_code=1):
        if not names:
            raise TypeError(f"{type(self).__typename__} must specify at least one name")
        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")
        if not isinstance(error_code, int) or isinstance(error_code, bool):
            raise TypeError(f"{type(self).__typename__} 'error_code' must be an integer")
        elif error_code < 0:
            raise ValueError(f"{type(self).__typename__} 'error_code' cannot be negative")

        self._names = []
        for name in names:
            name = sanitize_name(name, type(self).__typename__)
            if name in self._names:
                raise DuplicateNameError(f"{type(self).__typename__} name {name!r} is already bound")
            self._names.append(name)

        self._descr = coalesce(descr)
        self._error_code = error_code
        self._arguments = []
        self._groups = []
        self._children = []
        self._parent = None
        self._frozen = False

    @property
    def name(self):
        return self._names[0]

    @property
    def frozen(self):
        return self._frozen

    @property
    def root(self):
        """
        Return the topmost command of the tree.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root to this command as a tuple.
        """
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(reversed(path))

    def walk(self):
        """
        Yield this command and its whole subtree, depth-first.
        """
        yield self
        for child in self._children:
            yield from child.walk()

    def freeze(self):
        """
        Freeze this command and its subtree; builders raise afterwards.
        """
        for command in self.walk():
            command._frozen = True
        return self

    def _ensure_mutable(self):
        if self._frozen:
            raise InvalidConfigurationError(f"{type(self).__typename__} {self.name!r} is frozen")

    def _ensure_available(self, names, argument, /):
        for other in self._arguments:
            if other is argument:
                continue
            for name in names:
                if name in other._names:
                    raise DuplicateNameError(
                        f"argument name {name!r} is already used in {type(self).__typename__} {self.name!r}"
                    )

    # --- builders ---

    def define_argument(self, argument, /):
        """
        Attach `argument` to this command; returns it.

        Raises
        - DuplicateNameError: a name is already used by a sibling argument.
        - AlreadyBoundError: the argument already belongs to a command.
        - InvalidConfigurationError: the argument has no name.
        """
        self._ensure_mutable()
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} arguments must be Argument instances")
        self._ensure_available(argument.names, argument)
        argument.attach_to_command(self)
        self._arguments.append(argument)
        return argument

    def define_group(self, group, /):
        """
        Register `group` (and all its members) into this command; returns it.
        """
        self._ensure_mutable()
        if not isinstance(group, ArgumentGroup):
            raise TypeError(f"{type(self).__typename__} groups must be ArgumentGroup instances")
        elif group.parent is not None:
            raise AlreadyOwnedError(f"argument-group {group.name!r} already belongs to a group")
        self._ensure_group_available(group)
        group.register_into(self)
        self._groups.append(group)
        return group

    def _ensure_group_available(self, group, /):
        """
        Validate every member of `group` against this command before any of them
        is attached, so a rejected group leaves the command untouched.
        """
        if group.command is not None:
            raise AlreadyBoundError(f"argument-group {group.name!r} is already registered to a command")
        taken = {other.name for other in self._walk_groups()}
        names = set()
        for nested in group.walk():
            if nested.name in taken:
                raise DuplicateNameError(
                    f"argument-group name {nested.name!r} is already used in {type(self).__typename__} {self.name!r}"
                )
            taken.add(nested.name)
            for argument in nested.arguments:
                if argument.command is not None:
                    raise AlreadyBoundError(f"argument {argument.display_name!r} is already attached to a command")
                elif not argument.names:
                    raise InvalidConfigurationError("argument must have at least one name")
                self._ensure_available(argument.names, argument)
                if clash := names.intersection(argument.names):
                    raise DuplicateNameError(
                        f"argument name {min(clash)!r} is used twice in argument-group {group.name!r}"
                    )
                names.update(argument.names)

    def define_subcommand(self, child, /):
        """
        Attach `child` as a subcommand; returns it.
        """
        self._ensure_mutable()
        if not isinstance(child, Command):
            raise TypeError(f"{type(self).__typename__} subcommands must be Command instances")
        elif child._parent is not None:
            raise AlreadyBoundError(f"{type(self).__typename__} {child.name!r} already has a parent")
        elif child in self.path:
            raise InvalidConfigurationError(f"{type(self).__typename__} {child.name!r} cannot be its own subcommand")
        for sibling in self._children:
            for name in child._names:
                if name in sibling._names:
                    raise DuplicateNameError(
                        f"subcommand name {name!r} is already used in {type(self).__typename__} {self.name!r}"
                    )
        child._parent = self
        self._children.append(child)
        return child

    def argument(self, *names, **options):
        """
        Shortcut for define_argument(Argument(*names, **options)).
        """
        return self.define_argument(Argument(*names, **options))

    def subcommand(self, *names, **options):
        """
        Shortcut for define_subcommand(Command(*names, **options)).
        """
        return self.define_subcommand(Command(*names, **options))

    # --- matching ---

    def _walk_groups(self):
        for group in self._groups:
            yield from group.walk()

    def _subcommand(self, token):
        for child in self._children:
            if token in child._names:
                return child
        return None

    def _long(self, token):
        """
        (argument, inline value) for a long form token, None when nothing matches.
        """
        input, separator, value = token.partition("=")
        for argument in self._arguments:
            if argument.matches(input):
                return argument, value if separator else Unset
        return None

    def _short(self, char, prefix):
        for argument in self._arguments:
            if argument.matches_char(char, prefix):
                return argument
        return None

    def _prefixes(self):
        return {"-"} | {argument.prefix for argument in self._arguments}

    def _is_name(self, token):
        """
        True when `token` would be matched as a command or argument name.
        """
        if self._subcommand(token) is not None or self._long(token) is not None:
            return True
        return len(token) > 1 and token[1] != token[0] and self._short(token[1], token[0]) is not None

    def _collect(self, state, start, limit):
        """
        Take up to `limit` (None: unbounded) value tokens from `start`.
        """
        stop = len(state.tokens) if limit is None else min(len(state.tokens), start + limit)
        cursor = start
        while cursor < stop and not self._is_name(state.tokens[cursor]):
            cursor += 1
        return state.tokens[start:cursor], cursor

    def _use(self, argument, state, index, values, start):
        """
        Record one use of `argument` named at `index` with values starting at `start`.
        """
        if state.used(argument):
            state.record(IncorrectUsagesCountError(
                f"argument {argument.display_name!r} at {ordinal(index + 1)} position was already used",
                index=index,
                command=self,
                argument=argument,
                origin=self,
                hint="give it only once",
            ))
            return
        if (group := argument.group) is not None and group.exclusive and not group.check_exclusivity(argument, state):
            state.violations.setdefault(group, index)
        argument.consume(values, start, state)

    def _expand(self, token, state, cursor):
        """
        Resolve a grouped short form token; returns the next cursor.
        """
        prefix, chars = token[0], token[1:]
        after = cursor + 1
        for offset, char in enumerate(chars):
            if (argument := self._short(char, prefix)) is None:
                state.record(UnknownArgumentError(
                    f"unknown argument {prefix + char!r} in {token!r} at {ordinal(cursor + 1)} position",
                    index=cursor,
                    command=self,
                    origin=self,
                    input=prefix + char,
                    hint=f"'{self.name}' has no argument named {char!r}",
                ))
                continue
            last = offset == len(chars) - 1
            if argument.arity.none or (argument.arity.min == 0 and not last):
                self._use(argument, state, cursor, (), cursor)
            elif not last:
                # -n5 and -n=5 both give "5" to n
                rest = chars[offset + 1:]
                self._use(argument, state, cursor, (rest.removeprefix("="),), cursor)
                break
            else:
                values, after = self._collect(state, cursor + 1, argument.arity.max)
                self._use(argument, state, cursor, values, cursor + 1 if values else cursor)
        return after

    def _scan(self, state, start):
        """
        Scan this command's span; returns (delegated child or None, stop index).
        """
        tokens = state.tokens
        positionals = deque(argument for argument in self._arguments if argument.positional)
        prefixes = self._prefixes()

        cursor = start
        while cursor < len(tokens):
            token = tokens[cursor]

            if (child := self._subcommand(token)) is not None:
                return child, cursor

            if (match := self._long(token)) is not None:
                argument, inline = match
                if argument.arity.none:
                    # a flag ignores any inline text (--flag=x)
                    self._use(argument, state, cursor, (), cursor)
                    cursor += 1
                elif inline is not Unset:
                    self._use(argument, state, cursor, (inline,), cursor)
                    cursor += 1
                else:
                    values, after = self._collect(state, cursor + 1, argument.arity.max)
                    self._use(argument, state, cursor, values, cursor + 1 if values else cursor)
                    cursor = after
                continue

            prefix = token[:1]
            if (
                len(token) > 1 and prefix in prefixes and token.strip(prefix) and
                not (_NUMBER.fullmatch(token) and self._short(token[1], prefix) is None)
            ):
                if token.startswith(prefix * 2):
                    input = token.partition("=")[0]
                    state.record(UnknownArgumentError(
                        f"unknown argument {input!r} at {ordinal(cursor + 1)} position",
                        index=cursor,
                        command=self,
                        origin=self,
                        input=input,
                        hint=f"'{' '.join(step.name for step in self.path)}' does not declare it",
                    ))
                    cursor += 1
                else:
                    cursor = self._expand(token, state, cursor)
                continue

            while positionals and state.used(positionals[0]):
                positionals.popleft()
            if not positionals:
                state.record(UnrecognizedTokenError(
                    f"unrecognized token {token!r} at {ordinal(cursor + 1)} position",
                    index=cursor,
                    command=self,
                    origin=self,
                    input=token,
                    hint="remove this extra value",
                ))
                cursor += 1
                continue

            argument = positionals.popleft()
            limit = None if argument.arity.max is None else argument.arity.max - 1
            values, after = self._collect(state, cursor + 1, limit)
            self._use(argument, state, cursor, (token, *values), cursor)
            cursor = after

        return None, cursor

    def _parse(self, state, start):
        state.route.append(self)
        child, cursor = self._scan(state, start)
        state.ends[self] = cursor

        state.values[self] = {argument: argument.finalize_value(state) for argument in self._arguments}

        for group in self._walk_groups():
            if not group.exclusive:
                continue
            if len(used := [argument for argument in group.arguments if state.used(argument)]) < 2:
                continue
            state.record(MultipleExclusiveArgumentsUsedError(
                f"arguments {', '.join(repr(argument.display_name) for argument in used)} "
                f"of exclusive group {group.name!r} cannot be used together",
                index=state.violations.get(group, cursor),
                command=self,
                group=group,
                origin=self,
                hint="keep only one of them",
            ))

        if child is not None:
            child._parse(state, cursor + 1)

    def parse(self, tokens, /):
        """
        Parse `tokens` (an iterable of strings or a shell-like string).

        The whole tree is frozen first. Faults are accumulated, never raised; the
        returned ParseResult carries values, faults and the exit code.
        """
        if isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif isinstance(tokens, Iterable):
            tokens = list(tokens)
            for token in tokens:
                if not isinstance(token, str):
                    raise TypeError(f"{type(self).__typename__}.parse() tokens must be strings")
        else:
            raise TypeError(f"{type(self).__typename__}.parse() argument must be a string or an iterable of strings")

        self.root.freeze()
        state = ParsingState(tokens)
        self._parse(state, 0)

        for command in state.route:
            for argument in command._arguments:
                argument.invoke_callbacks(state)

        return ParseResult(self, state)

    # --- severity ---

    def _lineage(self):
        command = self
        while command is not None:
            yield command
            command = command._parent

    def _faults(self, state):
        subtree = set(self.walk())
        return [fault for fault in state.faults if fault.command in subtree]


__all__ = (
    "Command",
)
