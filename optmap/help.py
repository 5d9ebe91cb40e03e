"""
Help text built from an option table.

get_help() returns plain lines (suited to line writers and tests);
render_help() prints the same content through rich, honouring the
__styles__ palette overrides and the __prog__ name found in __main__.

    usage: tool [options] SOURCE [TARGET] [FILES...]

    arguments:
      SOURCE             file to read
      [TARGET]           file to write

    options:
      -c, --count VALUE  how many times
      -v, --verbose      verbose output
"""
import os.path
import sys
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .parser import get_map
from .utils import Unset

_PADDING = 2


def _prog(prog, /):
    if prog is not Unset:
        return prog
    return getattr(__import__("__main__"), "__prog__", os.path.basename(sys.argv[0]))


def _descr(descriptors, /):
    # first description wins; every spelling of a field shares it
    for descriptor in descriptors:
        if descriptor.descr:
            return str(descriptor.descr)
    return ""


def _sections(cls, /):
    """
    Collect (arguments, options, catchall) rows of `cls`.

    - arguments: [(label, optional, descr)] by ascending order.
    - options: [(spellings, metavar, descr)] one row per field.
    - catchall: label of the catch-all field, or None.
    """
    table = get_map(cls)

    arguments = [
        (argument.name or field.name.upper(), argument.optional, _descr((argument,)))
        for field, argument in table.arguments
    ]

    grouped = {}
    for flag, (field, option) in table.options.items():
        grouped.setdefault(field.name, []).append(option)

    options = []
    for name, spellings in grouped.items():
        shorts = [x.flag for x in spellings if not x.flag.startswith("--")]
        longs = [x.flag for x in spellings if x.flag.startswith("--")]
        metavar = next((x.parameter_name for x in spellings if x.requires_argument and x.parameter_name), "")
        options.append((shorts + longs, metavar, _descr(spellings)))
    options.sort(key=lambda row: row[0][0].lstrip("-").lower())

    catchall = table.catchall.name.upper() if table.catchall else None
    return arguments, options, catchall


def _usage(prog, arguments, options, catchall, /):
    items = [prog]
    if options:
        items.append("[options]")
    for label, optional, _ in arguments:
        items.append("[%s]" % label if optional else label)
    if catchall:
        items.append("[%s...]" % catchall)
    return items


def _label(spellings, metavar, /):
    return ", ".join(spellings) + (" " + metavar if metavar else "")


def get_help(cls, /, *, prog=Unset):
    """
    Return the help of `cls` as a list of plain text lines.
    """
    if not isinstance(cls, type):
        raise TypeError("get_help() argument must be a class")

    arguments, options, catchall = _sections(cls)
    lines = ["usage: " + " ".join(_usage(_prog(prog), arguments, options, catchall))]

    rows = [("[%s]" % label if optional else label, descr) for label, optional, descr in arguments]
    rows += [(_label(spellings, metavar), descr) for spellings, metavar, descr in options]
    width = max((len(label) for label, _ in rows), default=0) + _PADDING

    if arguments:
        lines += ["", "arguments:"]
        for label, descr in rows[:len(arguments)]:
            lines.append((" " * _PADDING + label.ljust(width) + descr).rstrip())

    if options:
        lines += ["", "options:"]
        for label, descr in rows[len(arguments):]:
            lines.append((" " * _PADDING + label.ljust(width) + descr).rstrip())

    return lines


def render_help(cls, /, *, prog=Unset, colorful=True, fancy=False, console=Unset):
    """
    Print the help of `cls` with rich.

    Palette keys
    - usage-label, program-name, usage-section
    - group-label, argument-name, option-name, metavar, description

    Customization
    - Define a mapping named __styles__ in __main__ to override any palette entry.
    - When colorful is False, styling is suppressed.
    """
    if not isinstance(cls, type):
        raise TypeError("render_help() argument must be a class")

    console = console if console is not Unset else Console()
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",

        "group-label": "bold #FFFFFF",
        "argument-name": "bold #22C55E",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",
        "description": "#9CA3AF",

        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    prog = _prog(prog)
    arguments, options, catchall = _sections(cls)
    items = _usage(prog, arguments, options, catchall)

    usage = Text()
    usage.append("usage", styler("usage-label")).append(": ")
    usage.append(items[0], styler("program-name"))
    for item in items[1:]:
        usage.append(" ").append(item, styler("usage-section"))
    renders = [usage]

    rows = []
    for label, optional, descr in arguments:
        rows.append((Text("[%s]" % label if optional else label, styler("argument-name")), descr))
    for spellings, metavar, descr in options:
        name = Text(", ").join(Text(x, styler("option-name")) for x in spellings)
        if metavar:
            name.append(" ").append(metavar, styler("metavar"))
        rows.append((name, descr))
    width = max((len(name) for name, _ in rows), default=0) + _PADDING

    for title, group in (("arguments", rows[:len(arguments)]), ("options", rows[len(arguments):])):
        if not group:
            continue
        section = Text("\n")
        section.append(title, styler("group-label")).append(":")
        for name, descr in group:
            section.append("\n").append(" " * _PADDING).append(name)
            if descr:
                section.append(" " * (width - len(name))).append(descr, styler("description"))
        renders.append(section)

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{prog} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )
    console.print(renderable)


__all__ = (
    "get_help",
    "render_help",
)
