"""
Option table: discovery of a container class and the token-walk mapping.

A PropertyMap is built once per container class. Construction discovers the
annotated fields, runs every descriptor's validation hooks and routes each
descriptor into one of three tables:

- options:   flag spelling → (field, option descriptor)
- arguments: positional slots sorted by ascending order
- catchall:  the single field collecting leftover positional tokens

map() then walks a token stream left to right with one token of lookahead:

    token           kind         flag       inline value
    ---x            malformed    -          -
    --name=value    long         --name     'value'
    --name:value    long         --name     'value'
    --name          long         --name     ''
    -nvalue         short        -n         'value'
    -n=value        short        -n         'value'
    -n              short        -n         ''
    anything else   positional   -          -

An option requiring a value and given none inline takes the next token,
unless that token is itself a registered flag.
"""
import difflib
import inspect
import logging
from collections import deque
from collections.abc import Iterable

from .descriptors import *
from .faults import *
from .utils import mirror, require

_log = logging.getLogger(__name__)


def _split(token, /):
    """
    Split an option token into (flag, inline value).

    Long options split at the first '=', else the first ':'; short options
    take their first two characters and drop one leading '=' or ':' from
    the remainder.
    """
    if token.startswith("--"):
        for separator in "=:":
            flag, found, value = token.partition(separator)
            if found:
                return flag.strip(), value
        return token.strip(), ""
    flag, value = token[:2], token[2:]
    if value[:1] in ("=", ":") and value:
        value = value[1:]
    return flag, value


class PropertyMap:
    """
    Option table of one container class.

    Properties
    - container_type: the class the table was built from.
    - options: read-only mapping flag → (Field, OptionDescriptor), in declaration order.
    - fields: read-only mapping field name → descriptors attached to it.
    - arguments: (Field, Argument) pairs by ascending order.
    - catchall: the catch-all Field, or None.

    The table never changes after construction; one table can map any number
    of instances of its container class, sequentially.
    """

    __slots__ = (
        "_container_type",
        "_options",
        "_fields",
        "_arguments",
        "_catchall",
    )

    container_type = mirror("container_type")
    options = mirror("options")
    fields = mirror("fields")
    arguments = mirror("arguments")
    catchall = mirror("catchall")

    def __init__(self, cls, /):
        if cls is None:
            raise TypeError("PropertyMap() argument must be a class, not None")
        if not isinstance(cls, type):
            raise TypeError("PropertyMap() argument must be a class, not %s" % type(cls).__name__)
        if inspect.isabstract(cls):
            raise TypeError("PropertyMap() argument must be a concrete class, %s is abstract" % cls.__qualname__)

        options = {}
        fields = {}
        arguments = {}
        catchall = None

        for field in describe(cls):
            for descriptor in field.descriptors:
                try:
                    descriptor.validate_container(cls)
                    descriptor.validate_field(field)
                except DeclarationError as exception:
                    raise DeclarationError(
                        "invalid declaration of %s.%s with %r: %s" % (cls.__qualname__, field.name, descriptor, exception)
                    ) from exception

                match descriptor:
                    case OptionDescriptor():
                        if descriptor.flag in options:
                            raise DeclarationError(
                                "flag %r of %s.%s is already declared by %s.%s" % (
                                    descriptor.flag,
                                    cls.__qualname__,
                                    field.name,
                                    cls.__qualname__,
                                    options[descriptor.flag][0].name,
                                )
                            )
                        options[descriptor.flag] = (field, descriptor)
                    case Argument():
                        if descriptor.order in arguments:
                            raise DeclarationError(
                                "positional order %d of %s.%s is already used by %s.%s" % (
                                    descriptor.order,
                                    cls.__qualname__,
                                    field.name,
                                    cls.__qualname__,
                                    arguments[descriptor.order][0].name,
                                )
                            )
                        arguments[descriptor.order] = (field, descriptor)
                    case Arguments():
                        if catchall is not None and catchall.name != field.name:
                            raise DeclarationError(
                                "%s declares more than one catch-all field: %s, %s" % (
                                    cls.__qualname__, catchall.name, field.name
                                )
                            )
                        catchall = field
                    case _:
                        raise DeclarationError(
                            "unrecognized descriptor %r on %s.%s" % (descriptor, cls.__qualname__, field.name)
                        )

            fields[field.name] = field.descriptors

        self._container_type = cls
        self._options = options
        self._fields = fields
        self._arguments = [arguments[order] for order in sorted(arguments)]
        self._catchall = catchall

        _log.debug(
            "built option table for %s: %d option(s), %d positional(s), catch-all %s",
            cls.__qualname__, len(options), len(arguments), catchall.name if catchall else None,
        )

    def __repr__(self):
        return "PropertyMap(%s)" % self._container_type.__qualname__

    def __rich_repr__(self):
        yield "container_type", self._container_type
        yield "options", list(self._options)
        yield "arguments", [field.name for field, _ in self._arguments]
        yield "catchall", self._catchall.name if self._catchall else None

    def lookup(self, token, /):
        """
        Return (Field, OptionDescriptor) registered for the flag in `token`, or None.

        `token` is classified like map() does; positional and malformed tokens
        never resolve.
        """
        if not isinstance(token, str):
            raise TypeError("lookup() argument must be a string")
        if not token.startswith("-") or token.startswith("---"):
            return None
        flag, _ = _split(token)
        return self._options.get(flag)

    def map(self, arguments, container, /):
        """
        Assign the values found in `arguments` to the fields of `container`.

        Parameters
        - arguments: iterable of tokens (already expanded).
        - container: an instance of exactly container_type.

        Returns
        - leftover positional tokens in order of appearance, or [] when the
          class declares a catch-all field (leftovers are appended to it).

        Raises
        - TypeError: missing arguments/container or a container of another class.
        - OptionSyntaxError: a token starts with three or more dashes.
        - UnknownOptionError: an option spelling is not registered.
        - MissingArgumentError: an option lacks its required value.
        - ConversionError: a value cannot be converted into its field.
        """
        if arguments is None:
            raise TypeError("map() arguments must be an iterable of strings, not None")
        if not isinstance(arguments, Iterable) or isinstance(arguments, str):
            raise TypeError("map() arguments must be an iterable of strings")
        if container is None:
            raise TypeError("map() container must be an instance, not None")
        if type(container) is not self._container_type:
            raise TypeError(
                "map() container must be an instance of %s, not %s" % (
                    self._container_type.__qualname__, type(container).__qualname__
                )
            )

        tokens = deque(token for token in arguments if token is not None)
        slots = deque(self._arguments)
        leftovers = []

        while tokens:
            token = tokens.popleft()
            if not isinstance(token, str):
                raise TypeError("map() arguments must be strings, not %s" % type(token).__name__)

            if token.startswith("---"):
                raise self._malformed(token)

            if not token.startswith("-"):
                if slots:
                    field, argument = slots.popleft()
                    _log.debug("assigning positional %r to %s", token, field.name)
                    setattr(container, field.name, token)
                else:
                    leftovers.append(token)
                continue

            flag, value = _split(token)
            try:
                field, option = self._options[flag]
            except KeyError:
                raise self._unknown(token, flag) from None

            if option.requires_argument and not value:
                if not tokens:
                    raise self._missing(flag, "no value follows it")
                if not isinstance(tokens[0], str):
                    raise TypeError("map() arguments must be strings, not %s" % type(tokens[0]).__name__)
                if tokens[0].startswith("---"):
                    raise self._malformed(tokens[0])
                if self.lookup(tokens[0]) is not None:
                    raise self._missing(flag, "it is followed by the option %r" % tokens[0])
                value = tokens.popleft()

            _log.debug("assigning %r to %s through %s", value, field.name, flag)
            option.assign(container, field, value)

        if self._catchall is None:
            return leftovers

        current = getattr(container, self._catchall.name, None)
        if current is None:
            current = []
        elif current is getattr(type(container), self._catchall.name, None):
            # never append to a list shared through the class attribute
            current = list(current)
        current.extend(leftovers)
        setattr(container, self._catchall.name, current)
        _log.debug("collected %d leftover(s) into %s", len(leftovers), self._catchall.name)
        return []

    def _malformed(self, token, /):
        return OptionSyntaxError(
            "malformed option %r" % token,
            title="malformed token",
            code=FaultCode.MALFORMED_TOKEN,
            token=token,
            hint="options start with '-' (short) or '--' (long), never with three dashes",
            docs=getdoc(FaultCode.MALFORMED_TOKEN),
        )

    def _unknown(self, token, flag, /):
        suggestions = difflib.get_close_matches(flag, self._options.keys(), 5)
        try:
            hint = "did you mean %r?" % suggestions[0]
        except IndexError:
            hint = "run with --help to see all available options"
        return UnknownOptionError(
            "unknown option %r" % token,
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            token=token,
            flag=flag,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_OPTION),
        )

    def _missing(self, flag, reason, /):
        return MissingArgumentError(
            "option %r requires a value but %s" % (flag, reason),
            title="missing argument",
            code=FaultCode.MISSING_ARGUMENT,
            flag=flag,
            hint="pass the value inline (for example: %s=<value>)" % flag,
            docs=getdoc(FaultCode.MISSING_ARGUMENT),
        )


def locate_command(tokens, /):
    """
    Index of the first token that does not start with '-', or None.
    """
    for index, token in enumerate(require(tokens, Iterable, "locate_command() argument must be an iterable of strings")):
        if isinstance(token, str) and not token.startswith("-"):
            return index
    return None


def strip_command(tokens, /):
    """
    Split the command token out of `tokens`.

    Returns (name, remaining) where `remaining` keeps every other token in
    order; (None, tokens) when there is no command token.
    """
    tokens = list(require(tokens, Iterable, "strip_command() argument must be an iterable of strings"))
    index = locate_command(tokens)
    if index is None:
        return None, tokens
    return tokens[index], tokens[:index] + tokens[index + 1:]


__all__ = (
    "PropertyMap",
    "locate_command",
    "strip_command",
)
