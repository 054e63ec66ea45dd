"""
Argtree templates (signature-driven declarations) and the process boundary.

Overview
- Template: wraps a Python callable whose parameter defaults are Argument
  declarations and builds the matching Command through the public builders
  (define_argument / define_subcommand) only.
  • a nameless Argument receives the parameter name ("dry_run" -> "dry-run").
  • a positional-only parameter marks its Argument positional.
  • Template.template(...) declares a subcommand template under this one.
- template(): build a Template, directly or as a decorator.
- invoke(): run a template (or a plain callable) against sys.argv[1:], a
  shell-like string, or an iterable of strings.

Runtime options
- shell: print faults with rich and sys.exit() on failure, instead of warning and
  raising ParseExit.
- fancy: render faults inside panels.
- colorful: style faults (plain text otherwise).
  Unset options are inherited from the parent template (False at the root).

Quick example:
    >>> from argtree import Argument, IntegerType, StringType, template, invoke
    >>> @template("greet")
    ... def greet(name=Argument(type=StringType(), positional=True), times=Argument(type=IntegerType(), default=1)):
    ...     for _ in range(times):
    ...         print(f"hello {name}")
    >>> invoke(greet, "world --times 2")
"""
import inspect
import shlex
import sys
from collections.abc import Iterable
from inspect import Parameter

from .arguments import Argument
from .commands import Command
from .faults import ParseExit, trigger
from .utils import *


def _process_source(cls, callback, command, /):
    """
    Introspect the callback and define one argument per parameter.

    Returns the mapping parameter name -> (parameter, argument).
    """
    try:
        signature = inspect.signature(callback)
    except TypeError:
        raise TypeError(f"{cls.__typename__} 'callback' must be callable") from None
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'callback' must be an inspectable callable") from None

    parameters = {}
    for name, parameter in signature.parameters.items():
        if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            raise TypeError(f"{cls.__typename__} 'callback' parameter {name!r} cannot be variadic")
        elif parameter.default is Parameter.empty:
            raise TypeError(f"{cls.__typename__} 'callback' parameter {name!r} must have a default")
        elif not isinstance(argument := parameter.default, Argument):
            raise TypeError(f"{cls.__typename__} 'callback' parameter {name!r} default must be an argument")

        if not argument.names:
            argument.bind(name.strip("_").replace("_", "-"))
        if parameter.kind is Parameter.POSITIONAL_ONLY and not argument.positional:
            argument.mark_positional()
        command.define_argument(argument)
        parameters[name] = (parameter, argument)
    return parameters


class Template(metaclass=Introspective):
    """
    Callable wrapper building a Command from its signature.
    """

    __introspectable__ = (
        "command",
        "parent",
        "children",
        "shell",
        "fancy",
        "colorful",
    )
    __displayable__ = (
        "command",
        "shell",
        "fancy",
        "colorful",
    )

    def __init__(
            self,
            callback,
            /,
            *names,
            parent=Unset,
            descr=Unset,
            error_code=1,
            shell=Unset,
            fancy=Unset,
            colorful=Unset
    ):
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} 'callback' must be callable")
        elif not isinstance(parent, Template | Unset):
            raise TypeError(f"{type(self).__typename__} 'parent' must be a template")

        if not names:
            names = (getattr(callback, "__name__", "").strip("_").replace("_", "-"),)

        self._callback = callback
        self._command = Command(*names, descr=coalesce(descr, inspect.getdoc(callback) or Unset), error_code=error_code)
        self._parameters = _process_source(type(self), callback, self._command)
        self._parent = coalesce(parent)
        self._children = {}
        self._shell = bool(coalesce(shell, getattr(parent, "shell", False)))
        self._fancy = bool(coalesce(fancy, getattr(parent, "fancy", False)))
        self._colorful = bool(coalesce(colorful, getattr(parent, "colorful", False)))

        if parent:
            parent._command.define_subcommand(self._command)
            parent._children[self._command] = self

    def __call__(self, *args, **kwargs):
        return self._callback(*args, **kwargs)

    def template(self, source=Unset, /, *names, **options):
        """
        Declare a subcommand template under this one (directly or as a decorator).
        """
        return template(source, *names, parent=self, **options)

    def _apply(self, result, /):
        args = []
        kwargs = {}
        for name, (parameter, argument) in self._parameters.items():
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(result[argument])
            else:
                kwargs[name] = result[argument]
        return self._callback(*args, **kwargs)

    def __invoke__(self, prompt=Unset):
        """
        Parse the prompt, surface its faults, then call the deepest matched callback.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence; each element is trimmed.

        Behavior
        - non-fatal faults are printed (shell) or emitted as FaultWarning.
        - a failed parse triggers ParseExit (raised, or printed then sys.exit()).
        - otherwise the callback of the last template of the matched route is
          called with the parsed values and its return value is returned.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            def _sanitized(iterable):
                for item in iterable:
                    if not isinstance(item, str):
                        raise TypeError(f"__invoke__() argument must be a string or an iterable of strings")
                    if item := item.strip():
                        yield item
            tokens = list(_sanitized(prompt))
        else:
            raise TypeError(f"__invoke__() argument must be a string or an iterable of strings")

        result = self._command.parse(tokens)
        options = {"tool": self._command, "shell": self._shell, "fancy": self._fancy, "colorful": self._colorful}

        fatal = set(map(id, result.exit_errors))
        for fault in result.errors:
            if id(fault) not in fatal:
                trigger(fault, fatal=False, **options)
        if result.failed:
            trigger(ParseExit(result.exit_errors, exit_code=result.exit_code), **options)

        template, step = self, result
        while step.child is not None:
            template, step = template._children[step.child.command], step.child
        return template._apply(step)


def template(source=Unset, /, *names, **options):
    """
    Create a Template or return a decorator to build it later.

    Invocation modes
    - Direct callback:
        cmd = template(func, "name", ...)
    - Decorator:
        @template("name", ...)
        def func(...): ...

    Parameters
    - source: Unset | Callable
      When Unset (or a name string), a decorator is returned.
    - *names, **options: forwarded to Template.
    """
    if isinstance(source, str):
        names, source = (source, *names), Unset

    @rename("template")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@template() must be applied to a callable")
        return Template(source, *names, **options)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for templates or callables.

    - If 'object' implements __invoke__, call it with prompt.
    - If 'object' is a plain callable, wrap it as a Template and then invoke.
    - Otherwise, raise TypeError.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(template(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Template",
    "template",
    "invoke",
)
