"""
Command registry and dispatch on top of the option table.

Overview
- Command: base class of command handlers; execute(arguments, writer) gets
  the tokens that follow the command name.
- command(name): class decorator registering a handler in a Registry (the
  module-level `registry` unless another one is given).
- LineWriter / ConsoleLineWriter: line-oriented output used by handlers.
- HelpCommand: the built-in 'help' command.
- dispatch(): locate the command token, find its handler and run it.
- CommonOptions: options base class with -v/--verbose and -h/--help.

    @command("copy", descr="copy a file")
    class Copy(Command):
        class Options(CommonOptions):
            source: Annotated[str, Argument(order=1, name="SOURCE")] = ""

        def execute(self, arguments, writer):
            options = self.parse(arguments)
            writer.write_line("copying %s" % options.source)

    dispatch(["copy", "-v", "a.txt"])
"""
import difflib
import inspect
import logging
import sys
from abc import ABC, abstractmethod
from typing import Annotated, Protocol, runtime_checkable

from rich.console import Console

from .descriptors import BooleanOption
from .faults import *
from .help import get_help
from .mapping import strip_command
from .parser import parse
from .utils import *

_log = logging.getLogger(__name__)


class CommonOptions:
    """
    Options shared by most commands; inherit to extend.
    """
    verbose: Annotated[
        bool,
        BooleanOption("-v", descr="verbose output"),
        BooleanOption("--verbose"),
    ] = False
    show_help: Annotated[
        bool,
        BooleanOption("-h", descr="show the command line help"),
        BooleanOption("--help"),
    ] = False


@runtime_checkable
class LineWriter(Protocol):
    def write_line(self, line, /): ...
    def write_error_line(self, line, /): ...


class ConsoleLineWriter:
    """
    LineWriter printing to rich consoles (stdout and stderr by default).

    Lines are printed verbatim: no markup, no highlighting, no wrapping.
    """

    __slots__ = ("_stdout", "_stderr")

    stdout = mirror("stdout")
    stderr = mirror("stderr")

    def __init__(self, stdout=Unset, stderr=Unset, /):
        self._stdout = require(coalesce(stdout, Console()), Console, "ConsoleLineWriter() stdout must be a console")
        self._stderr = require(coalesce(stderr, Console(stderr=True)), Console, "ConsoleLineWriter() stderr must be a console")

    def write_line(self, line, /):
        require(line, str, "write_line() argument must be a string")
        self._stdout.print(line, markup=False, highlight=False, soft_wrap=True)

    def write_error_line(self, line, /):
        require(line, str, "write_error_line() argument must be a string")
        self._stderr.print(line, markup=False, highlight=False, soft_wrap=True)


class Registry:
    """
    Explicit name → command class table.
    """

    __slots__ = ("_commands",)

    def __init__(self):
        self._commands = {}

    def __contains__(self, name):
        return name in self._commands

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return "Registry(%s)" % ", ".join(sorted(self._commands))

    def register(self, name, cls, /, descr=Unset):
        """
        Register `cls` under `name`.

        Raises
        - TypeError: `name` is not a non-blank string, or `cls` is not a
          concrete Command subclass.
        - ValueError: `name` is already registered.
        """
        if not isinstance(name, str) or not (name := name.strip()):
            raise TypeError("register() name must be a non-empty string")
        if not isinstance(cls, type) or not issubclass(cls, Command):
            raise TypeError("register() class must be a Command subclass")
        if inspect.isabstract(cls):
            raise TypeError("register() class must be concrete, %s is abstract" % cls.__qualname__)
        if name in self._commands:
            raise ValueError("command %r is already registered by %s" % (name, self._commands[name][0].__qualname__))

        if descr is Unset:
            descr = inspect.cleandoc(vars(cls).get("__doc__") or "").partition("\n")[0]
        self._commands[name] = (cls, descr or "")
        _log.debug("registered command %r as %s", name, cls.__qualname__)
        return cls

    def locate(self, name, /):
        """
        Return the command class registered under `name`, or None.
        """
        if not isinstance(name, str) or not name.strip():
            raise TypeError("locate() argument must be a non-empty string")
        try:
            return self._commands[name][0]
        except KeyError:
            return None

    def commands(self):
        """
        Return (name, class, description) for every command, sorted by name.
        """
        return tuple((name, cls, descr) for name, (cls, descr) in sorted(self._commands.items()))


registry = Registry()


class Command(ABC):
    """
    Base class of command handlers.

    - Options: container class parsed by parse() and shown by 'help NAME';
      None when the command takes no options.
    - registry: the registry the command was dispatched from.
    """
    Options = None

    def __init__(self, *, registry=registry):
        self.registry = registry

    def parse(self, arguments, /):
        """
        Parse `arguments` into a new Options instance.
        """
        if self.Options is None:
            raise TypeError("%s declares no Options class" % type(self).__qualname__)
        return parse(self.Options, arguments)

    @abstractmethod
    def execute(self, arguments, writer, /):
        """
        Run the command with the tokens that follow its name.
        """


def command(name, /, *, descr=Unset, registry=registry):
    """
    Class decorator registering a Command subclass under `name`.

    The description defaults to the first line of the class docstring.
    """
    @rename("command")
    def wrapper(cls, /):
        return registry.register(name, cls, descr)
    return wrapper


def _unknown(name, registry, /):
    suggestions = difflib.get_close_matches(name, [x for x, _, _ in registry.commands()], 5)
    try:
        hint = "did you mean %r? you can also run 'help' to see available commands" % suggestions[0]
    except IndexError:
        hint = "run 'help' to see available commands"
    return UnknownCommandError(
        "unknown command %r" % name,
        title="unknown command",
        code=FaultCode.UNKNOWN_COMMAND,
        input=name,
        suggestions=suggestions,
        hint=hint,
        docs=getdoc(FaultCode.UNKNOWN_COMMAND),
    )


@command("help", descr="shows help for built-in commands")
class HelpCommand(Command):
    """
    'help' lists the registered commands, after the __descr__ of __main__ when
    one is defined; 'help NAME' shows the options of one.
    """

    def execute(self, arguments, writer, /):
        topic = next(iter(arguments), None)
        if topic is None:
            self._general(writer)
        else:
            self._specific(topic, writer)

    def _general(self, writer, /):
        if descr := getattr(__import__("__main__"), "__descr__", None):
            writer.write_line(str(descr))
            writer.write_line("")
        commands = self.registry.commands()
        writer.write_line("list of commands:")
        writer.write_line("")
        width = max((len(name) for name, _, _ in commands), default=0)
        for name, _, descr in commands:
            writer.write_line(" " + (name.ljust(width) + "  " + descr).strip())

    def _specific(self, topic, writer, /):
        cls = self.registry.locate(topic)
        if cls is None:
            raise _unknown(topic, self.registry)
        if cls.Options is None:
            writer.write_line("command %r takes no options" % topic)
            return
        prog = getattr(__import__("__main__"), "__prog__", None)
        for line in get_help(cls.Options, prog="%s %s" % (prog, topic) if prog else topic):
            writer.write_line(line)


def dispatch(arguments=Unset, /, *, registry=registry, writer=Unset, shell=False, fancy=False, colorful=True):
    """
    Run the command named by the first non-option token of `arguments`.

    Parameters
    - arguments: Unset (sys.argv[1:]) or an iterable of tokens.
    - registry: where commands are looked up.
    - writer: LineWriter handed to the command (ConsoleLineWriter by default).
    - shell, fancy, colorful: fault surfacing options (see faults.trigger).

    Behavior
    - Without a command token the 'help' command runs.
    - Option tokens around the command name are kept, in order, for the command.
    - Bad input raised by the command (OptionException) goes through trigger().

    Returns
    - whatever the command's execute() returns.
    """
    tokens = sys.argv[1:] if arguments is Unset else arguments
    writer = ConsoleLineWriter() if writer is Unset else writer
    require(writer, LineWriter, "dispatch() writer must provide write_line() and write_error_line()")

    name, remaining = strip_command(tokens)
    if name is None:
        name = "help"

    try:
        cls = registry.locate(name)
        if cls is None:
            raise _unknown(name, registry)
        _log.debug("dispatching %r to %s with %r", name, cls.__qualname__, remaining)
        return cls(registry=registry).execute(remaining, writer)
    except OptionException as fault:
        trigger(fault, shell=shell, fancy=fancy, colorful=colorful)
        raise


__all__ = (
    "CommonOptions",
    "LineWriter",
    "ConsoleLineWriter",
    "Command",
    "Registry",
    "registry",
    "command",
    "HelpCommand",
    "dispatch",
)
