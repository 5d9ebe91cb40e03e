# python
"""
Help rendering behavioral tests.

Scope
- get_help: usage line, arguments section (optional slots bracketed), options
  section (all spellings, parameter names, descriptions).
- render_help: rich output in plain (colorful=False) and fancy modes.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from typing import Annotated
from unittest import TestCase

from rich.console import Console

from optmap import (
    Argument,
    Arguments,
    BooleanOption,
    IntegerOption,
    StringOption,
    get_help,
    render_help,
)


class Options:
    verbose: Annotated[bool, BooleanOption("-v", descr="verbose output"), BooleanOption("--verbose")] = False
    count: Annotated[int, IntegerOption("--count", descr="how many times"), IntegerOption("-c")] = 1
    source: Annotated[str, Argument(order=1, name="SOURCE", descr="file to read")] = ""
    target: Annotated[str, Argument(order=2, name="TARGET", optional=True)] = ""
    files: Annotated[list[str] | None, Arguments()] = None


class Bare:
    name: Annotated[str, StringOption("--name")] = ""


class Nothing:
    pass


class TestGetHelp(TestCase):
    """Plain help lines."""

    def testLayout(self):
        self.assertEqual(get_help(Options, prog="tool"), [
            "usage: tool [options] SOURCE [TARGET] [FILES...]",
            "",
            "arguments:",
            "  SOURCE             file to read",
            "  [TARGET]",
            "",
            "options:",
            "  -c, --count VALUE  how many times",
            "  -v, --verbose      verbose output",
        ])

    def testOptionsOnly(self):
        self.assertEqual(get_help(Bare, prog="tool"), [
            "usage: tool [options]",
            "",
            "options:",
            "  --name VALUE",
        ])

    def testNothingDeclared(self):
        self.assertEqual(get_help(Nothing, prog="tool"), ["usage: tool"])

    def testNonClassRejected(self):
        with self.assertRaises(TypeError):
            get_help(None)


class TestRenderHelp(TestCase):
    """Rich help output."""

    def render(self, **options):
        stream = io.StringIO()
        render_help(Options, prog="tool", console=Console(file=stream, width=100), **options)
        return stream.getvalue()

    def testPlainRendering(self):
        output = self.render(colorful=False)
        self.assertIn("usage: tool [options] SOURCE [TARGET] [FILES...]", output)
        self.assertIn("arguments:", output)
        self.assertIn("-c, --count VALUE  how many times", output)
        self.assertIn("-v, --verbose      verbose output", output)

    def testFancyRendering(self):
        output = self.render(colorful=False, fancy=True)
        self.assertIn("TOOL HELP", output)
        self.assertIn("--verbose", output)

    def testNonClassRejected(self):
        with self.assertRaises(TypeError):
            render_help(None)


if __name__ == "__main__":
    unittest.main()
