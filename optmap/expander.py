"""
Response-file expansion of raw command-line tokens.

A token starting with '@' names a response file: the token is replaced, in
place, by the lines of that file, each of which may itself be another '@'
inclusion. Every other token (empty strings included) passes through
unchanged; None entries are dropped.

    >>> list(ArgumentsCollection(["1", "@numbers.rsp", "4"]))
    ['1', '2', '3', '4']

Each iteration is a fresh expansion with its own set of visited files, so a
collection can be iterated any number of times. Within one iteration a file
(compared by absolute path) may be expanded only once: cycles and plain
repeats both raise ResponseFileError. Files are read as UTF-8; a leading
byte-order mark is dropped.
"""
import logging
import os.path
from collections.abc import Iterable

from .faults import FaultCode, ResponseFileError, getdoc

_log = logging.getLogger(__name__)


class ArgumentsCollection:
    """
    Lazy, restartable view over raw tokens with '@file' inclusions inlined.
    """

    __slots__ = ("_arguments",)

    def __init__(self, arguments, /):
        if not isinstance(arguments, Iterable) or isinstance(arguments, str):
            raise TypeError("ArgumentsCollection() argument must be an iterable of strings")
        # snapshot so one-shot iterators still allow repeated expansion
        self._arguments = tuple(arguments)

    def __iter__(self):
        return self._expand(self._arguments, set())

    def __repr__(self):
        return "ArgumentsCollection(%r)" % (list(self._arguments),)

    def _expand(self, tokens, visited, /):
        for token in tokens:
            if token is None:
                continue
            if not isinstance(token, str):
                raise TypeError("argument must be a string, not %s" % type(token).__name__)
            if token.startswith("@"):
                yield from self._include(token[1:], visited)
            else:
                yield token

    def _include(self, path, visited, /):
        if not path:
            raise ResponseFileError(
                "response file token '@' does not name a file",
                title="repeated response file",
                code=FaultCode.REPEATED_RESPONSE_FILE,
                token="@",
                hint="write the path right after the '@' (for example: @options.rsp)",
                docs=getdoc(FaultCode.REPEATED_RESPONSE_FILE),
            )

        path = os.path.abspath(path)
        if path in visited:
            raise ResponseFileError(
                "response file %r is included more than once" % path,
                title="repeated response file",
                code=FaultCode.REPEATED_RESPONSE_FILE,
                token="@" + path,
                path=path,
                hint="remove the repeated or cyclic '@' reference",
                docs=getdoc(FaultCode.REPEATED_RESPONSE_FILE),
            )
        visited.add(path)

        _log.debug("expanding response file %s", path)
        with open(path, encoding="utf-8-sig") as stream:
            yield from self._expand((line.removesuffix("\n") for line in stream), visited)


__all__ = (
    "ArgumentsCollection",
)
