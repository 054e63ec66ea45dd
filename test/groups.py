"""
Argument groups tests (ownership, registration, exclusivity).

Scope
- Validate single ownership of arguments and groups.
- Validate registration into commands, including late additions.
- Validate exclusivity on direct members only, one fault per group.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argtree import Argument, ArgumentGroup, Command
from argtree.faults import (
    AlreadyOwnedError,
    AlreadyBoundError,
    DuplicateNameError,
    MultipleExclusiveArgumentsUsedError,
)


def _exclusive_tool():
    command = Command("tool")
    group = command.define_group(ArgumentGroup("mode", Argument("a"), Argument("b"), Argument("c"), exclusive=True))
    command.argument("other")
    return command, group


class TestGroupOwnership(TestCase):
    """Ownership and registration rules."""

    def testArgumentOwnedOnce(self):
        argument = Argument("a")
        ArgumentGroup("one").add_argument(argument)
        with self.assertRaises(AlreadyOwnedError):
            ArgumentGroup("two").add_argument(argument)

    def testGroupOwnedOnce(self):
        nested = ArgumentGroup("nested")
        ArgumentGroup("one").add_group(nested)
        with self.assertRaises(AlreadyOwnedError):
            ArgumentGroup("two").add_group(nested)
        with self.assertRaises(AlreadyOwnedError):
            Command("tool").define_group(nested)

    def testRegisterIsOneTime(self):
        group = ArgumentGroup("group", Argument("a"))
        Command("one").define_group(group)
        with self.assertRaises(AlreadyBoundError):
            Command("two").define_group(group)

    def testRegisterAttachesNestedMembers(self):
        a, b = Argument("a"), Argument("b")
        group = ArgumentGroup("outer", a, ArgumentGroup("inner", b))
        command = Command("tool")
        command.define_group(group)
        self.assertEqual(command.arguments, (a, b))
        self.assertIs(b.command, command)
        self.assertIs(b.group.parent, group)
        self.assertEqual([step.name for step in group.walk()], ["outer", "inner"])

    def testLateMembersAreAttached(self):
        command = Command("tool")
        group = command.define_group(ArgumentGroup("group"))
        late = group.add_argument(Argument("late"))
        self.assertIs(late.command, command)
        self.assertIs(command.parse(["--late"])["late"], True)

    def testRejectedGroupLeavesCommandUntouched(self):
        command = Command("tool")
        b = command.argument("b")
        a = Argument("a")
        group = ArgumentGroup("group", a, Argument("b"))
        with self.assertRaises(DuplicateNameError):
            command.define_group(group)
        self.assertEqual(command.arguments, (b,))
        self.assertEqual(command.groups, ())
        self.assertIsNone(a.command)
        self.assertIsNone(group.command)
        # nothing was bound, so the group can still go elsewhere
        other = Command("other")
        other.define_group(group)
        self.assertIs(a.command, other)

    def testNamesClashInsideGroup(self):
        command = Command("tool")
        group = ArgumentGroup("outer", Argument("x"), ArgumentGroup("inner", Argument("x")))
        with self.assertRaises(DuplicateNameError):
            command.define_group(group)
        self.assertEqual(command.arguments, ())

    def testRejectedLateMemberIsNotAdopted(self):
        command = Command("tool")
        command.argument("x")
        group = command.define_group(ArgumentGroup("group"))
        late = Argument("x")
        with self.assertRaises(DuplicateNameError):
            group.add_argument(late)
        self.assertEqual(group.arguments, ())
        self.assertIsNone(late.group)
        with self.assertRaises(DuplicateNameError):
            group.add_group(ArgumentGroup("nested", Argument("y"), Argument("x")))
        self.assertEqual(group.groups, ())
        self.assertEqual(len(command.arguments), 1)

    def testDuplicateGroupName(self):
        command = Command("tool")
        command.define_group(ArgumentGroup("group"))
        with self.assertRaises(DuplicateNameError):
            command.define_group(ArgumentGroup("group"))


class TestGroupExclusivity(TestCase):
    """Exclusive groups."""

    def testSingleMemberIsFine(self):
        command, _ = _exclusive_tool()
        result = command.parse(["-a", "--other"])
        self.assertEqual(result.errors, ())

    def testTwoMembersYieldOneFault(self):
        command, group = _exclusive_tool()
        result = command.parse(["-a", "--other", "-b"])
        faults = [fault for fault in result.errors if isinstance(fault, MultipleExclusiveArgumentsUsedError)]
        self.assertEqual(len(faults), 1)
        self.assertIs(faults[0].group, group)
        self.assertEqual(faults[0].index, 2)
        self.assertTrue(result.failed)
        # values are still available
        self.assertIs(result["a"], True)
        self.assertIs(result["b"], True)

    def testThreeMembersStillOneFault(self):
        command, _ = _exclusive_tool()
        result = command.parse(["-abc"])
        self.assertEqual(len(result.errors), 1)
        self.assertIsInstance(result.errors[0], MultipleExclusiveArgumentsUsedError)

    def testNestedMembersAreNotDirect(self):
        inner = ArgumentGroup("inner", Argument("b"))
        outer = ArgumentGroup("outer", Argument("a"), inner, exclusive=True)
        command = Command("tool")
        command.define_group(outer)
        self.assertEqual(command.parse(["-a", "-b"]).errors, ())

    def testCheckExclusivity(self):
        command, group = _exclusive_tool()
        a, b, _ = group.arguments
        result = command.parse(["-a"])
        self.assertTrue(group.check_exclusivity(a, result.state))
        self.assertFalse(group.check_exclusivity(b, result.state))

    def testSetExclusiveIsIdempotent(self):
        group = ArgumentGroup("group").set_exclusive().set_exclusive()
        self.assertTrue(group.exclusive)


if __name__ == "__main__":
    unittest.main()
