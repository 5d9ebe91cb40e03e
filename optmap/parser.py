"""
Parse facade: expand, map and hand back populated containers.

    from optmap import parse, Annotated, BooleanOption

    class Options:
        verbose: Annotated[bool, BooleanOption("-v"), BooleanOption("--verbose")] = False

    options = parse(Options, ["-v"])

Option tables are built once per class and reused (get_map). parse() and
populate() raise faults directly; invoke() is the runner for scripts and
either raises them or renders them and exits, depending on `shell`.
"""
import functools
import logging
import shlex
import sys
from collections.abc import Iterable

from .expander import ArgumentsCollection
from .faults import OptionException, trigger
from .mapping import PropertyMap
from .utils import Unset

_log = logging.getLogger(__name__)


@functools.cache
def _get_map(cls, /):
    return PropertyMap(cls)


def get_map(cls, /):
    """
    Return the (cached) option table of `cls`.
    """
    if cls is None:
        raise TypeError("get_map() argument must be a class, not None")
    if not isinstance(cls, type):
        raise TypeError("get_map() argument must be a class, not %s" % type(cls).__name__)
    return _get_map(cls)


def populate(container, arguments, /):
    """
    Expand `arguments` and map them into an existing `container`.

    Returns the leftover positional tokens ([] when the container's class
    declares a catch-all field).
    """
    if container is None:
        raise TypeError("populate() container must be an instance, not None")
    if arguments is None:
        raise TypeError("populate() arguments must be an iterable of strings, not None")
    return get_map(type(container)).map(ArgumentsCollection(arguments), container)


def parse(cls, arguments, /):
    """
    Instantiate `cls`, populate it from `arguments` and return it.

    Leftover positional tokens are only reachable through a catch-all field;
    use populate() to receive them otherwise.
    """
    table = get_map(cls)
    if arguments is None:
        raise TypeError("parse() arguments must be an iterable of strings, not None")
    container = cls()
    leftovers = table.map(ArgumentsCollection(arguments), container)
    if leftovers:
        _log.debug("ignoring %d leftover(s) while parsing %s: %r", len(leftovers), cls.__qualname__, leftovers)
    return container


def invoke(cls, prompt=Unset, /, *, shell=False, fancy=False, colorful=True):
    """
    Parse a prompt into a new `cls` instance, surfacing bad input as faults.

    Parameters
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string; split via shlex.split.
      • Iterable[str]: pre-tokenized sequence, used as-is.
    - shell: render faults with rich and exit(1) instead of raising them.
    - fancy, colorful: rendering options forwarded to the fault.

    Returns
    - (container, leftovers)

    Raises
    - OptionException subclasses when shell is False.
    - TypeError/DeclarationError for programming errors, regardless of shell.
    """
    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
    else:
        raise TypeError("invoke() prompt must be a string or an iterable of strings")

    table = get_map(cls)
    container = cls()
    try:
        leftovers = table.map(ArgumentsCollection(tokens), container)
    except OptionException as fault:
        trigger(fault, shell=shell, fancy=fancy, colorful=colorful)
        raise
    return container, leftovers


__all__ = (
    "get_map",
    "parse",
    "populate",
    "invoke",
)
