"""
optmap faults (user-input errors and declaration errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- OptionException: base type for bad command-line input. It carries a message
  plus options and knows how to render itself in a friendly, lowercased way.
- DeclarationError: raised while building an option table from a badly
  declared container class. It is a programming error and is never rendered.
- trigger(): central entry point to surface a fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- OptionException
  • OptionSyntaxError          malformed token ('---x')
    • MissingArgumentError     option requires a value but none is available
  • UnknownOptionError         option-looking token with an unregistered spelling
  • ConversionError            value text could not be converted
    • ValueOverflowError       numeric value outside the field's range
    • InvalidFormatError       unparseable numeric text
    • InvalidBooleanValueError word outside the boolean vocabulary
  • ResponseFileError          cyclic or repeated '@file' inclusion
  • UnknownCommandError        command dispatch could not find a handler

Integration
- The mapping layer raises these exceptions directly (nothing is retried).
- The runners (parser.invoke, commands.dispatch) hand them to trigger(fault, **ctx):
  in non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
"""
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND
    - option syntax (1111x)
      • MALFORMED_TOKEN, UNKNOWN_OPTION, MISSING_ARGUMENT
    - value conversion (1112x)
      • VALUE_OVERFLOW, INVALID_FORMAT, INVALID_BOOLEAN
    - response files (1113x)
      • REPEATED_RESPONSE_FILE

    codes are discoverable (searchable in logs and docs) and normalized to a
    string via normalize() so hosts can remap them if desired.
    """
    # --- routing errors (1110x) ---
    UNKNOWN_COMMAND             = 11101

    # --- option syntax errors (1111x) ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_OPTION              = 11112
    MISSING_ARGUMENT            = 11117

    # --- conversion errors (1112x) ---
    VALUE_OVERFLOW              = 11121
    INVALID_FORMAT              = 11122
    INVALID_BOOLEAN             = 11123

    # --- response file errors (1113x) ---
    REPEATED_RESPONSE_FILE      = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class OptionException(Exception):
    """
    Root of every bad-input fault raised while expanding or mapping arguments.

    The message is the one-sentence body; options carry the context used by the
    renderer and by callers inspecting the failure (code, title, hint, flag,
    token, value, ...). Options are exposed read-only.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # fault context (code, flag, token, value, ...) is reachable as attributes
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = getattr(main, "__prog__", self.options.get("prog") or os.path.basename(sys.argv[0]))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            text(prog, styler("prog-name")),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "", styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left", width=console.width - 4)

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class OptionSyntaxError(OptionException): ...
class MissingArgumentError(OptionSyntaxError): ...
class UnknownOptionError(OptionException): ...
class ConversionError(OptionException): ...
class ValueOverflowError(ConversionError): ...
class InvalidFormatError(ConversionError): ...
class InvalidBooleanValueError(ConversionError): ...
class ResponseFileError(OptionException): ...
class UnknownCommandError(OptionException): ...


class DeclarationError(Exception):
    """
    An option table could not be built from a container class.

    Raised for misuse of descriptors (wrong field type, duplicate flag, more
    than one catch-all field, duplicate positional order, unknown descriptor
    kind). This signals a bug in the declaring code, not bad user input.
    """


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see OptionException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console and the process exits;
      otherwise the (merged) exception is raised.

    typical options
    - shell, fancy, colorful, prog, and any other context the reporter may
      want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings. when
    not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "OptionException",
    "OptionSyntaxError",
    "MissingArgumentError",
    "UnknownOptionError",
    "ConversionError",
    "ValueOverflowError",
    "InvalidFormatError",
    "InvalidBooleanValueError",
    "ResponseFileError",
    "UnknownCommandError",
    "DeclarationError",
    "trigger",
    "getdoc",
)
