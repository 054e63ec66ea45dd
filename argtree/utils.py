"""
Argtree utilities (internal helpers, carefully exposed)

Scope
- Core building blocks shared by the argument, group, command and type layers
  so that naming, introspection and "not provided" semantics stay consistent.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with copies
    for containers to discourage accidental mutation of the declared tree.

- Introspective (metaclass)
  • Derives __typename__ from the class name, publishes __introspectable__ fields as
    mirrored properties, and installs stable __repr__/__rich_repr__ implementations.

- sanitize_name(name) / sanitize_prefix(prefix)
  • Validate user-visible argument, group and command names and argument prefixes.

Usage guidance
- Prefer Unset for API defaults when None is a meaningful user value; materialize with coalesce().
- Use mirror() (through __introspectable__) to expose internal state as read-only properties.

Quick examples
    >>> one = coalesce(Unset, "fallback")  # "fallback"
    >>> two = coalesce(None, "fallback")    # None  (None is preserved)
    >>> sanitize_name("  number ")
    'number'
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value, but the API needs a way
    to distinguish “not provided” from “provided as None”. A single instance,
    Unset, is exposed for use as the default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when Unset appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: equality and identity checks must not treat it as None.
- Falsey: bool(Unset) is False, but it is not equivalent to None or 0.
"""


def coalesce(object, default=None, /):
    """
    Resolve an internal Unset sentinel to a concrete default.

    This returns the given object unless it is the Unset sentinel, in which case
    the provided default is returned. Falsey values like None, 0, "", or [] are
    preserved as-is; they are not treated as “unset”.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> (decorator)

    Notes
    - This utility does not alter behavior beyond metadata.
    - Some built-in or C-implemented callables are not updatable and will
      raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values, processing nested items.

    Behavior
    - Sequence (non-string): returns a new tuple with each element processed.
    - Mapping: returns a new dict, preserving keys and processing values.
    - Set: returns a new frozenset with each element processed.
    - Anything else: returned as-is.

    Notes
    - Structural objects (arguments, groups, commands) are never containers,
      so they are returned by identity and remain comparable with `is`.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads from an attribute named "_{name}" on the
    instance and returns a copy for container types, so the declared tree
    cannot be mutated through its public attributes.

    Example
    - Given self._names, declare names = mirror("names") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


class Introspective(type):
    """
    Metaclass that turns engine classes into introspectable, self-describing types.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in build-time error messages and reprs.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in the class namespace's __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics; __displayable__ (if set) narrows what is shown.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(names=('number',), prefix='-', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def sanitize_name(name, /, typename="name"):
    r"""
    Validate and normalize a user-visible name (argument, group or command).

    Rules
    - must be a string; surrounding whitespace is trimmed.
    - must be non-empty after trimming.
    - must match r"\w[\w-]*" (unicode letters/digits, underscores and inner
      hyphens; no spaces, no leading prefix characters).

    Returns
    - str: the trimmed name.
    """
    if not isinstance(name, str):
        raise TypeError(f"{typename} names must be strings")
    elif not (name := name.strip()):
        raise ValueError(f"{typename} names cannot be empty-strings")
    elif not re.fullmatch(r"\w[\w-]*", name):
        raise ValueError(f"{typename} name {name!r} must be made of letters, digits, '_' or '-'")
    return name


def sanitize_prefix(prefix, /, typename="argument"):
    """
    Validate an argument prefix: a single printable, non-alphanumeric character.
    """
    if not isinstance(prefix, str):
        raise TypeError(f"{typename} 'prefix' must be a string")
    elif len(prefix) != 1 or prefix.isalnum() or prefix.isspace() or not prefix.isprintable() or prefix == "_":
        raise ValueError(f"{typename} 'prefix' must be a single non-alphanumeric character")
    return prefix


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "sanitize_name",
    "sanitize_prefix",

    # Types
    "UnsetType",
    "Introspective",

    # Constants
    "Unset",
)
