# python
"""
Option table behavioral tests.

Scope
- Construction: preconditions, discovery, routing and declaration errors.
- Token walk: long/short forms, inline and spaced values, lookahead rules,
  malformed and unknown tokens, positionals, leftovers and the catch-all.
- Command token helpers (locate_command, strip_command).

Conventions
- Test method names follow CamelCase per project convention.
- Container classes are declared at module level so their annotations resolve.
"""

from __future__ import annotations

import abc
import unittest
from decimal import Decimal
from typing import Annotated
from unittest import TestCase

from optmap import (
    Argument,
    Arguments,
    BooleanOption,
    DeclarationError,
    FaultCode,
    Float32,
    FloatingPointOption,
    Int32,
    IntegerOption,
    InvalidFormatError,
    MissingArgumentError,
    OptionSyntaxError,
    PropertyDescriptor,
    PropertyMap,
    StringOption,
    UnknownOptionError,
    locate_command,
    strip_command,
)


class Options:
    trace: Annotated[bool, BooleanOption("-t"), BooleanOption("--trace")] = False
    quiet: Annotated[bool | None, BooleanOption("-q", False), BooleanOption("--loud", False)] = None
    int32: Annotated[Int32, IntegerOption("-i"), IntegerOption("--int32")] = 0
    double: Annotated[float, FloatingPointOption("-d"), FloatingPointOption("--double")] = 0.0
    single: Annotated[Float32, FloatingPointOption("--single")] = 0.0
    amount: Annotated[Decimal | None, FloatingPointOption("--amount")] = None
    name: Annotated[str, StringOption("-n"), StringOption("--name", "NAME")] = ""
    untouched: int = 0


class Positionals:
    second: Annotated[str, Argument(order=2, name="TARGET", optional=True)] = ""
    first: Annotated[str, Argument(order=1, name="SOURCE")] = ""
    verbose: Annotated[bool, BooleanOption("-v")] = False
    rest: Annotated[list[str] | None, Arguments()] = None


class CatchAll:
    args: Annotated[list[str], Arguments()] = ["shared"]


class Inherited(Options):
    extra: Annotated[str, StringOption("--extra")] = ""


class Unknown(PropertyDescriptor):
    requires_argument = False

    def validate_field(self, field, /):
        super().validate_field(field)


class WithUnknownDescriptor:
    value: Annotated[str, Unknown()] = ""


class DuplicateFlag:
    first: Annotated[str, StringOption("-x")] = ""
    second: Annotated[str, StringOption("-x")] = ""


class DuplicateCatchAll:
    first: Annotated[list[str], Arguments()] = None
    second: Annotated[list[str], Arguments()] = None


class DuplicateOrder:
    first: Annotated[str, Argument(order=1)] = ""
    second: Annotated[str, Argument(order=1)] = ""


class WrongFieldType:
    flag: Annotated[int, BooleanOption("-f")] = 0


class StringOnBool:
    flag: Annotated[bool, StringOption("-f")] = False


class Abstract(abc.ABC):
    @abc.abstractmethod
    def run(self): ...


class Empty:
    pass


class TestConstruction(TestCase):
    """PropertyMap construction and introspection."""

    def testNoneRejected(self):
        with self.assertRaises(TypeError):
            PropertyMap(None)

    def testNonClassRejected(self):
        with self.assertRaises(TypeError):
            PropertyMap(Options())

    def testAbstractRejected(self):
        with self.assertRaises(TypeError):
            PropertyMap(Abstract)

    def testContainerType(self):
        self.assertIs(PropertyMap(Options).container_type, Options)

    def testOptionsTable(self):
        table = PropertyMap(Options)
        self.assertEqual(
            list(table.options),
            ["-t", "--trace", "-q", "--loud", "-i", "--int32", "-d", "--double", "--single", "--amount", "-n", "--name"]
        )
        field, option = table.options["--int32"]
        self.assertEqual(field.name, "int32")
        self.assertEqual(option.flag, "--int32")
        self.assertNotIn("untouched", table.fields)
        self.assertIsNone(table.catchall)

    def testOptionsTableIsReadOnly(self):
        table = PropertyMap(Options)
        with self.assertRaises(TypeError):
            table.options["-z"] = None

    def testInheritedFieldsIncluded(self):
        table = PropertyMap(Inherited)
        self.assertIn("-t", table.options)
        self.assertIn("--extra", table.options)

    def testArgumentsSortedByOrder(self):
        table = PropertyMap(Positionals)
        self.assertEqual([field.name for field, _ in table.arguments], ["first", "second"])
        self.assertEqual([argument.name for _, argument in table.arguments], ["SOURCE", "TARGET"])
        self.assertEqual(table.catchall.name, "rest")

    def testUnknownDescriptorRejected(self):
        with self.assertRaises(DeclarationError):
            PropertyMap(WithUnknownDescriptor)

    def testDuplicateFlagRejected(self):
        with self.assertRaises(DeclarationError):
            PropertyMap(DuplicateFlag)

    def testDuplicateCatchAllRejected(self):
        with self.assertRaises(DeclarationError):
            PropertyMap(DuplicateCatchAll)

    def testDuplicateOrderRejected(self):
        with self.assertRaises(DeclarationError):
            PropertyMap(DuplicateOrder)

    def testWrongFieldTypeRejected(self):
        with self.assertRaises(DeclarationError) as context:
            PropertyMap(WrongFieldType)
        self.assertIn("WrongFieldType.flag", str(context.exception))

    def testStringOptionOnBoolRejected(self):
        with self.assertRaises(DeclarationError):
            PropertyMap(StringOnBool)

    def testEmptyClassAccepted(self):
        table = PropertyMap(Empty)
        self.assertEqual(dict(table.options), {})
        self.assertEqual(table.arguments, ())

    def testIndependentTablesMapIdentically(self):
        tokens = ["-t", "--int32=5", "-nfoo", "x", "y"]
        first, second = Options(), Options()
        self.assertEqual(PropertyMap(Options).map(tokens, first), PropertyMap(Options).map(tokens, second))
        self.assertEqual(vars(first), vars(second))


class TestMap(TestCase):
    """Token walk over Options."""

    def map(self, tokens, container=None):
        container = container if container is not None else Options()
        leftovers = PropertyMap(type(container)).map(tokens, container)
        return container, leftovers

    def testPreconditions(self):
        table = PropertyMap(Options)
        with self.assertRaises(TypeError):
            table.map(None, Options())
        with self.assertRaises(TypeError):
            table.map([], None)
        with self.assertRaises(TypeError):
            table.map([], Empty())

    def testSubclassInstanceRejected(self):
        with self.assertRaises(TypeError):
            PropertyMap(Options).map([], Inherited())

    def testLongAndShortFormsAgree(self):
        long, leftovers = self.map(["--int32=10"])
        self.assertEqual((long.int32, leftovers), (10, []))
        short, leftovers = self.map(["-i", "10"])
        self.assertEqual((short.int32, leftovers), (10, []))

    def testInlineValueForms(self):
        for tokens in (["--int32=7"], ["--int32:7"], ["--int32", "7"], ["-i7"], ["-i=7"], ["-i:7"], ["-i", "7"]):
            with self.subTest(tokens=tokens):
                container, _ = self.map(tokens)
                self.assertEqual(container.int32, 7)

    def testLongSplitsAtFirstEquals(self):
        container, _ = self.map(["--name=a=b:c"])
        self.assertEqual(container.name, "a=b:c")

    def testLongSplitsAtColonWithoutEquals(self):
        container, _ = self.map(["--name:a:b"])
        self.assertEqual(container.name, "a:b")

    def testShortStripsOneSeparator(self):
        container, _ = self.map(["-n==x"])
        self.assertEqual(container.name, "=x")

    def testBooleanForms(self):
        container, _ = self.map(["-t"])
        self.assertIs(container.trace, True)
        container, _ = self.map(["-t+"])
        self.assertIs(container.trace, True)
        container, _ = self.map(["-t-"])
        self.assertIs(container.trace, False)
        container, _ = self.map(["--trace=off"])
        self.assertIs(container.trace, False)

    def testBooleanNeverConsumesNextToken(self):
        container, leftovers = self.map(["-t", "yes"])
        self.assertIs(container.trace, True)
        self.assertEqual(leftovers, ["yes"])

    def testBooleanPresenceValueFalse(self):
        container, _ = self.map(["--loud"])
        self.assertIs(container.quiet, False)

    def testFloatingForms(self):
        container, _ = self.map(["-d10.123"])
        self.assertEqual(container.double, 10.123)
        container, _ = self.map(["--double=-10.345"])
        self.assertEqual(container.double, -10.345)
        container, _ = self.map(["--amount", "1.50"])
        self.assertEqual(container.amount, Decimal("1.50"))

    def testDashValueConsumedWhenNotAFlag(self):
        container, _ = self.map(["-d", "-10.5"])
        self.assertEqual(container.double, -10.5)
        container, _ = self.map(["--name", "-z"])
        self.assertEqual(container.name, "-z")

    def testRegisteredFlagNotSwallowed(self):
        with self.assertRaises(MissingArgumentError) as context:
            self.map(["--name", "-t"])
        self.assertEqual(context.exception.code, FaultCode.MISSING_ARGUMENT)
        with self.assertRaises(MissingArgumentError):
            self.map(["--name", "--int32=4"])

    def testMissingValueAtEnd(self):
        with self.assertRaises(MissingArgumentError) as context:
            self.map(["-t", "--name"])
        self.assertEqual(context.exception.flag, "--name")

    def testMissingArgumentIsSyntaxError(self):
        with self.assertRaises(OptionSyntaxError):
            self.map(["-i"])

    def testEmptyInlineValueTakesNextToken(self):
        container, _ = self.map(["--name=", "value"])
        self.assertEqual(container.name, "value")

    def testMalformedAnywhere(self):
        for tokens in (["---x"], ["a", "----"], ["-t", "---", "b"], ["--name", "---x"]):
            with self.subTest(tokens=tokens):
                with self.assertRaises(OptionSyntaxError) as context:
                    self.map(tokens)
                self.assertEqual(context.exception.code, FaultCode.MALFORMED_TOKEN)

    def testUnknownOption(self):
        with self.assertRaises(UnknownOptionError) as context:
            self.map(["--nope=1"])
        self.assertEqual(context.exception.token, "--nope=1")
        self.assertEqual(context.exception.code, FaultCode.UNKNOWN_OPTION)

    def testShortOptionTakesTwoCharacters(self):
        with self.assertRaises(UnknownOptionError) as context:
            self.map(["-x10"])
        self.assertEqual(context.exception.token, "-x10")
        self.assertEqual(context.exception.flag, "-x")

    def testBareDashesAreUnknown(self):
        for token in ("-", "--"):
            with self.subTest(token=token):
                with self.assertRaises(UnknownOptionError):
                    self.map([token])

    def testConversionFailurePropagates(self):
        with self.assertRaises(InvalidFormatError):
            self.map(["--int32=abc"])

    def testLeftoversInOrder(self):
        container, leftovers = self.map(["1", "-t", "2", "", "3"])
        self.assertEqual(leftovers, ["1", "2", "", "3"])

    def testLeftoversWithoutDeclarations(self):
        container = Empty()
        self.assertEqual(PropertyMap(Empty).map(["1", "2", "3"], container), ["1", "2", "3"])

    def testNoneTokensDropped(self):
        container, leftovers = self.map(["1", None, "2"])
        self.assertEqual(leftovers, ["1", "2"])

    def testUnmentionedFieldsKeepDefaults(self):
        container, _ = self.map(["-t"])
        self.assertEqual(container.int32, 0)
        self.assertEqual(container.name, "")


class TestPositionals(TestCase):
    """Positional slots and the catch-all field."""

    def testSlotsFilledInOrder(self):
        container = Positionals()
        leftovers = PropertyMap(Positionals).map(["a", "-v", "b", "c", "d"], container)
        self.assertEqual(leftovers, [])
        self.assertEqual((container.first, container.second), ("a", "b"))
        self.assertIs(container.verbose, True)
        self.assertEqual(container.rest, ["c", "d"])

    def testMissingPositionalsAreNotAnError(self):
        container = Positionals()
        PropertyMap(Positionals).map(["a"], container)
        self.assertEqual((container.first, container.second), ("a", ""))
        self.assertEqual(container.rest, [])

    def testCatchAllAppendsToExistingContent(self):
        container = Positionals()
        container.rest = ["0"]
        PropertyMap(Positionals).map(["a", "b", "1", "2"], container)
        self.assertEqual(container.rest, ["0", "1", "2"])

    def testCatchAllCapturesEverything(self):
        container = CatchAll()
        leftovers = PropertyMap(CatchAll).map(["1", "2", "3"], container)
        self.assertEqual(leftovers, [])
        self.assertEqual(container.args, ["shared", "1", "2", "3"])

    def testClassDefaultListNotMutated(self):
        PropertyMap(CatchAll).map(["1"], CatchAll())
        self.assertEqual(CatchAll.args, ["shared"])
        second = CatchAll()
        PropertyMap(CatchAll).map(["2"], second)
        self.assertEqual(second.args, ["shared", "2"])


class TestLookup(TestCase):
    """Flag resolution used by the lookahead."""

    def testLookup(self):
        table = PropertyMap(Options)
        self.assertEqual(table.lookup("--int32=3")[0].name, "int32")
        self.assertEqual(table.lookup("-i3")[0].name, "int32")
        self.assertIsNone(table.lookup("-z"))
        self.assertIsNone(table.lookup("value"))
        self.assertIsNone(table.lookup("---int32"))


class TestCommandLocation(TestCase):
    """locate_command/strip_command helpers."""

    def testLocateCommand(self):
        self.assertEqual(locate_command(["-v", "--x=1", "build", "a"]), 2)
        self.assertEqual(locate_command(["build"]), 0)
        self.assertIsNone(locate_command(["-v", "--help"]))
        self.assertIsNone(locate_command([]))

    def testStripCommand(self):
        self.assertEqual(strip_command(["-v", "build", "a", "-x"]), ("build", ["-v", "a", "-x"]))
        self.assertEqual(strip_command(["-v"]), (None, ["-v"]))

    def testNoneRejected(self):
        with self.assertRaises(TypeError):
            locate_command(None)
        with self.assertRaises(TypeError):
            strip_command(None)


if __name__ == "__main__":
    unittest.main()
