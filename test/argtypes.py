"""
Argument types tests (arity, protocol, builtin coercions).

Scope
- Validate Arity constructors and nargs spellings.
- Validate the runtime-checkable ArgumentType protocol with a user-written type.
- Validate each builtin type through a real parse (faults, levels, values).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import ipaddress
import unittest
from pathlib import Path
from unittest import TestCase, mock

from argtree import (
    Arity,
    ArgumentType,
    Command,
    ErrorLevel,
    IntegerType,
    IntegerRangeType,
    ChoiceType,
    KeyValuesType,
    FileType,
    StdinType,
    ConverterType,
    MultipleStringsType,
)
from argtree.faults import InvalidValueError, IncorrectValueNumberError


def _parse(type, *tokens):
    command = Command("tool")
    command.argument("value", "v", type=type)
    return command.parse(["--value", *tokens])


class TestArity(TestCase):
    """Arity constructors and queries."""

    def testSpellings(self):
        self.assertEqual(Arity.of("?"), (0, 1))
        self.assertEqual(Arity.of("*"), (0, None))
        self.assertEqual(Arity.of("+"), (1, None))
        self.assertEqual(Arity.of(3), (3, 3))
        self.assertIs(Arity.of(None), Arity.NONE)
        with self.assertRaises(ValueError):
            Arity.of("x")

    def testQueries(self):
        self.assertTrue(Arity.NONE.none)
        self.assertTrue(Arity.exact(2).fixed)
        self.assertFalse(Arity.range(1).fixed)
        self.assertTrue(Arity.range(1).accepts(100))
        self.assertFalse(Arity.range(1, 2).accepts(3))
        self.assertFalse(Arity.exact(1).accepts(0))

    def testInvalidRanges(self):
        with self.assertRaises(ValueError):
            Arity.range(2, 1)
        with self.assertRaises(ValueError):
            Arity.exact(-1)
        with self.assertRaises(TypeError):
            Arity.exact("1")


class TestArgumentTypeProtocol(TestCase):
    """User-written types only need arity and parse()."""

    def testUserTypeWithContextFaults(self):
        class Pair:
            arity = Arity.exact(2)

            def parse(self, values, context, /):
                if values[0] == values[1]:
                    context.fault("both values are equal", level=ErrorLevel.WARNING, offset=1)
                return tuple(values)

        self.assertIsInstance(Pair(), ArgumentType)
        self.assertNotIsInstance(object(), ArgumentType)

        result = _parse(Pair(), "x", "x")
        self.assertEqual(result["value"], ("x", "x"))
        self.assertFalse(result.failed)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].level, ErrorLevel.WARNING)
        self.assertEqual(result.errors[0].index, 2)

    def testEscapingExceptionIsRecorded(self):
        class Broken:
            arity = Arity.exact(1)

            def parse(self, values, context, /):
                raise RuntimeError("boom")

        result = _parse(Broken(), "x")
        self.assertTrue(result.failed)
        self.assertIsInstance(result.errors[0], InvalidValueError)
        self.assertIsNone(result["value"])


class TestBuiltinTypes(TestCase):
    """Builtin coercions."""

    def testInteger(self):
        self.assertEqual(_parse(IntegerType(), "42")["value"], 42)
        result = _parse(IntegerType(), "4x2")
        self.assertIsInstance(result.errors[0], InvalidValueError)
        self.assertIn("second position", str(result.errors[0]))

    def testIntegerRange(self):
        self.assertEqual(_parse(IntegerRangeType(1, 10), "10")["value"], 10)
        self.assertTrue(_parse(IntegerRangeType(1, 10), "11").failed)
        self.assertFalse(_parse(IntegerRangeType(1), "1000").failed)
        with self.assertRaises(ValueError):
            IntegerRangeType(10, 1)

    def testChoice(self):
        self.assertEqual(_parse(ChoiceType("red", "green"), "red")["value"], "red")
        result = _parse(ChoiceType("red", "green"), "blue")
        self.assertTrue(result.failed)
        self.assertIn("'red'", result.errors[0].options["hint"])
        with self.assertRaises(ValueError):
            ChoiceType("red", "red")

    def testMultipleStrings(self):
        self.assertEqual(_parse(MultipleStringsType(), "a", "b")["value"], ("a", "b"))
        result = _parse(MultipleStringsType())
        self.assertIsInstance(result.errors[0], IncorrectValueNumberError)

    def testKeyValues(self):
        result = _parse(KeyValuesType(int), "a=1", "b=2")
        self.assertEqual(result["value"], {"a": 1, "b": 2})
        self.assertEqual(result.errors, ())

    def testKeyValuesDuplicateIsWarning(self):
        result = _parse(KeyValuesType(), "a=1", "a=2")
        self.assertEqual(result["value"], {"a": "2"})
        self.assertFalse(result.failed)
        self.assertEqual([fault.level for fault in result.errors], [ErrorLevel.WARNING])
        self.assertEqual(result.errors[0].index, 2)

    def testKeyValuesMalformedIsError(self):
        result = _parse(KeyValuesType(), "a=1", "oops")
        self.assertEqual(result["value"], {"a": "1"})
        self.assertTrue(result.failed)
        self.assertEqual(result.errors[0].index, 2)

    def testFile(self):
        self.assertEqual(_parse(FileType(), __file__)["value"], Path(__file__))
        self.assertTrue(_parse(FileType(), "/no/such/file.txt").failed)
        self.assertFalse(_parse(FileType(exists=False), "/no/such/file.txt").failed)

    def testStdin(self):
        command = Command("tool")
        command.argument("input", "i", type=StdinType())
        with mock.patch("sys.stdin", io.StringIO("first\nsecond\n")):
            result = command.parse(["-i"])
        self.assertEqual(result["input"], "first\nsecond")

    def testConverter(self):
        address = ConverterType(ipaddress.ip_address)
        self.assertEqual(_parse(address, "127.0.0.1")["value"], ipaddress.ip_address("127.0.0.1"))
        result = _parse(address, "not-an-ip")
        self.assertTrue(result.failed)
        self.assertIsNone(result["value"])

    def testConverterValuesKeepTheirType(self):
        result = _parse(ConverterType(str.encode), "ab")
        self.assertEqual(result["value"], b"ab")
        self.assertEqual(result.values, {"value": b"ab"})

        result = _parse(ConverterType(list), "ab")
        self.assertEqual(result["value"], ["a", "b"])
        self.assertEqual(result.values["value"], ["a", "b"])

    def testConverterWithSeveralValues(self):
        result = _parse(ConverterType(float, nargs=2), "1.5", "2")
        self.assertEqual(result["value"], (1.5, 2.0))
        with self.assertRaises(ValueError):
            ConverterType(float, nargs=0)


if __name__ == "__main__":
    unittest.main()
