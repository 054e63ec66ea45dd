"""
Arguments module tests (declaration rules, matching helpers, callbacks).

Scope
- Validate builder rules: names, prefixes, positional and default constraints.
- Validate ownership: one command, one group.
- Validate long/short matching helpers and custom prefixes.
- Validate the success and error callbacks.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Argument, Command, argument types).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argtree import Argument, Command, IntegerType, StringType, BooleanType
from argtree.faults import (
    DuplicateNameError,
    AlreadyBoundError,
    InvalidConfigurationError,
)


class TestArgumentDeclaration(TestCase):
    """Builder rules for Argument."""

    def testDefaultsToFlag(self):
        argument = Argument("verbose", "v")
        self.assertIsInstance(argument.type, BooleanType)
        self.assertTrue(argument.arity.none)
        self.assertEqual(argument.names, ("verbose", "v"))
        self.assertEqual(argument.display_name, "verbose")
        self.assertEqual(argument.prefix, "-")
        self.assertIsNone(argument.command)
        self.assertIsNone(argument.group)

    def testRepr(self):
        self.assertEqual(repr(BooleanType()), "boolean-type()")
        self.assertTrue(repr(Argument("number")).startswith("argument(names=('number',), type=boolean-type()"))

    def testBuildersAreChainable(self):
        argument = Argument(type=IntegerType()).bind("number").mark_obligatory().allow_unique().set_default(3)
        self.assertTrue(argument.obligatory)
        self.assertTrue(argument.unique)
        self.assertEqual(argument.default, 3)

    def testDuplicateNameRaises(self):
        with self.assertRaises(DuplicateNameError):
            Argument("number").bind("number")
        with self.assertRaises(DuplicateNameError):
            Argument("a", "a")

    def testInvalidNamesRaise(self):
        with self.assertRaises(TypeError):
            Argument(1)
        with self.assertRaises(ValueError):
            Argument("   ")
        with self.assertRaises(ValueError):
            Argument("--number")

    def testPositionalFlagRaises(self):
        with self.assertRaises(InvalidConfigurationError):
            Argument("flag").mark_positional()

    def testNoneDefaultRaises(self):
        with self.assertRaises(InvalidConfigurationError):
            Argument("number", type=IntegerType()).set_default(None)

    def testPrefixValidation(self):
        with self.assertRaises(ValueError):
            Argument("a", prefix="ab")
        with self.assertRaises(ValueError):
            Argument("a", prefix="x")
        self.assertEqual(Argument("a").set_prefix("+").prefix, "+")

    def testTypeMustFollowProtocol(self):
        with self.assertRaises(TypeError):
            Argument("number", type=int)

    def testAttachRequiresName(self):
        with self.assertRaises(InvalidConfigurationError):
            Argument().attach_to_command(Command("tool"))

    def testAttachIsOneTime(self):
        argument = Argument("number")
        argument.attach_to_command(Command("one"))
        with self.assertRaises(AlreadyBoundError):
            argument.attach_to_command(Command("two"))

    def testBindChecksSiblings(self):
        command = Command("tool")
        command.argument("number")
        text = command.argument("text")
        with self.assertRaises(DuplicateNameError):
            text.bind("number")


class TestArgumentMatching(TestCase):
    """Long form and grouped short form helpers."""

    def testMatchesDoubledPrefix(self):
        argument = Argument("number", "n")
        self.assertTrue(argument.matches("--number"))
        self.assertTrue(argument.matches("--n"))
        self.assertFalse(argument.matches("-number"))
        self.assertFalse(argument.matches("number"))

    def testMatchesChar(self):
        argument = Argument("number", "n")
        self.assertTrue(argument.matches_char("n"))
        self.assertFalse(argument.matches_char("x"))
        self.assertFalse(argument.matches_char("n", "+"))

    def testCustomPrefix(self):
        command = Command("tool")
        command.argument("plus", "p", prefix="+")
        command.argument("minus", "m")
        result = command.parse(["++plus", "-m"])
        self.assertEqual(result.errors, ())
        self.assertEqual(result.values, {"plus": True, "minus": True})
        self.assertIs(command.parse(["+p"])["plus"], True)


class TestArgumentCallbacks(TestCase):
    """Success and error callbacks fired after the parse."""

    def testSuccessCallback(self):
        command = Command("tool")
        number = command.argument("number", type=IntegerType())
        seen = []
        number.on_ok(seen.append)
        command.parse(["--number", "4"])
        self.assertEqual(seen, [4])

    def testSuccessCallbackNotFiredWhenUnused(self):
        command = Command("tool")
        number = command.argument("number", type=IntegerType(), default=1)
        seen = []
        number.on_ok(seen.append)
        command.parse([])
        self.assertEqual(seen, [])

    def testErrorCallback(self):
        command = Command("tool")
        number = command.argument("number", type=IntegerType())
        seen = []

        @number.on_err
        def failed(argument):
            seen.append(argument)

        self.assertTrue(callable(failed))
        command.parse(["--number", "x"])
        self.assertEqual(seen, [number])

    def testErrorCallbackForMissingObligatory(self):
        command = Command("tool")
        text = command.argument("text", type=StringType(), obligatory=True)
        seen = []
        text.on_err(seen.append)
        command.parse([])
        self.assertEqual(seen, [text])

    def testUniqueSuppressesOtherSuccessCallbacks(self):
        command = Command("tool")
        number = command.argument("number", type=IntegerType())
        version = command.argument("version", unique=True)
        seen = []
        number.on_ok(lambda value: seen.append(("number", value)))
        version.on_ok(lambda value: seen.append(("version", value)))
        command.parse(["--number", "1", "--version"])
        self.assertEqual(seen, [("version", True)])

    def testCallbackRegisteredOnce(self):
        argument = Argument("number")
        argument.on_ok(print)
        with self.assertRaises(InvalidConfigurationError):
            argument.on_ok(print)

    def testCallbacksRunParentFirst(self):
        root = Command("root")
        child = root.subcommand("child")
        seen = []
        root.argument("a").on_ok(lambda value: seen.append("root"))
        child.argument("b").on_ok(lambda value: seen.append("child"))
        root.parse(["-a", "child", "-b"])
        self.assertEqual(seen, ["root", "child"])


if __name__ == "__main__":
    unittest.main()
