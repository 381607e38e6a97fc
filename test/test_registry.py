"""
Tests for command registration.

Scope
- String, sequence and module-like registration shapes.
- Alias flattening/deduplication and overwrite semantics.
- Default command markers and the most-recent-default rule.
- names() and usage() queries.
"""
import types
import unittest
from types import SimpleNamespace
from unittest import TestCase

from argosy.faults import GrammarError
from argosy.registry import Registry
from argosy.utils import Namespace, Unset


def handler(namespace):
    return namespace


class RegisterShapesTest(TestCase):
    """Every supported registration shape produces the same kind of entry."""

    def setUp(self):
        self.registry = Registry()

    def testString(self):
        entry = self.registry.register("foo <bar> [baz]", "a command")
        self.assertEqual(entry.name, "foo")
        self.assertEqual(entry.original, "foo <bar> [baz]")
        self.assertEqual([positional.name for positional in entry.demanded], ["bar"])
        self.assertEqual([positional.name for positional in entry.optional], ["baz"])
        self.assertEqual(self.registry.names(), ["foo"])

    def testSequenceWithAliases(self):
        entry = self.registry.register(["foo <bar>", "f", "fo <ignored>", "f"])
        self.assertEqual(entry.name, "foo")
        self.assertEqual(entry.aliases, ("f", "fo"))
        self.assertEqual(entry.demanded[0].name, "bar")
        self.assertEqual(self.registry.names(), ["foo", "f", "fo"])

    def testModuleMapping(self):
        builder = {"flag": {"type": "boolean"}}
        entry = self.registry.register({
            "command": "foo",
            "aliases": "f",
            "describe": "a command",
            "builder": builder,
            "handler": handler,
        })
        self.assertEqual(entry.aliases, ("f",))
        self.assertEqual(entry.descr, "a command")
        self.assertEqual(entry.builder, builder)
        self.assertIs(entry.handler, handler)

    def testDescriptionKeys(self):
        for key in ("describe", "description", "desc"):
            with self.subTest(key=key):
                entry = Registry().register({"command": "foo", key: "text", "handler": handler})
                self.assertEqual(entry.descr, "text")

    def testModuleCommandSequenceAndAliases(self):
        entry = self.registry.register({
            "command": ["foo <bar>", "f"],
            "aliases": ["g", "h"],
            "handler": handler,
        })
        self.assertEqual(entry.aliases, ("f", "g", "h"))

    def testModuleNameFallback(self):
        module = types.ModuleType("commands.deploy")
        module.describe = "deploy things"
        module.handler = handler
        entry = self.registry.register(module)
        self.assertEqual(entry.name, "deploy")
        self.assertEqual(entry.descr, "deploy things")

    def testModuleBuilderIsUnpacked(self):
        def build(parser):
            return parser

        entry = self.registry.register("foo", "a command", SimpleNamespace(builder=build, handler=handler))
        self.assertIs(entry.builder, build)
        self.assertIs(entry.handler, handler)

    def testMissingHandlerIsANoop(self):
        entry = self.registry.register({"command": "foo", "describe": "a command"})
        self.assertIsNone(entry.handler(Namespace()))

    def testUnsupportedShapes(self):
        with self.assertRaises(TypeError):
            self.registry.register(42)
        with self.assertRaises(TypeError):
            self.registry.register("foo", 42)
        with self.assertRaises(TypeError):
            self.registry.register("foo", "a command", 42)
        with self.assertRaises(TypeError):
            self.registry.register("foo", "a command", None, "handler")

    def testMalformedDefinition(self):
        with self.assertRaises(GrammarError):
            self.registry.register("foo bar")


class RegistryBehaviorTest(TestCase):
    """Lookup, overwrite, default selection and usage listings."""

    def setUp(self):
        self.registry = Registry()

    def testOverwrite(self):
        self.registry.register("foo", "one")
        self.registry.register("foo <bar>", "two")
        self.assertEqual(len(self.registry), 1)
        self.assertEqual(self.registry.lookup("foo").descr, "two")
        self.assertEqual(self.registry.usage(), [("foo <bar>", "two", False, [])])

    def testLookupByAlias(self):
        entry = self.registry.register(["foo", "f"])
        self.assertIs(self.registry.lookup("f"), entry)
        self.assertIn("foo", self.registry)
        self.assertIsNone(self.registry.lookup("bar"))
        self.assertIsNone(self.registry.lookup(5))

    def testDefaultMarkers(self):
        entry = self.registry.register("*", "default command")
        self.assertEqual(entry.name, "$0")
        self.assertTrue(entry.default)
        self.assertIs(self.registry.default, entry)

    def testDefaultUsageOriginal(self):
        entry = self.registry.register("$0 <port>", "serve")
        self.assertEqual(entry.name, "$0")
        self.assertEqual(entry.original, "$0 <port>")
        entry = Registry().register("* [files..]")
        self.assertEqual(entry.original, "$0 [files..]")

    def testDefaultAsAlias(self):
        entry = self.registry.register(["start <name>", "*"], "start command")
        self.assertEqual(entry.name, "start")
        self.assertEqual(entry.aliases, ())
        self.assertTrue(entry.default)
        self.assertEqual(self.registry.usage(), [("start <name>", "start command", True, [])])

    def testLastDefaultWins(self):
        self.registry.register(["first", "*"], "override me")
        second = self.registry.register(["second <name>", "*"], "start command")
        self.assertIs(self.registry.default, second)

    def testNoDefault(self):
        self.registry.register("foo")
        self.assertIsNone(self.registry.default)

    def testHiddenCommands(self):
        self.registry.register("foo", False)
        self.registry.register("bar", "shown")
        self.registry.register("baz")
        self.assertEqual(self.registry.names(), ["foo", "bar", "baz"])
        self.assertEqual(self.registry.usage(), [("bar", "shown", False, [])])

    def testUsageAliases(self):
        self.registry.register(["foo <bar>", "f", "fo"], "a command")
        self.assertEqual(self.registry.usage(), [("foo <bar>", "a command", False, ["f", "fo"])])

    def testBranchIsLazy(self):
        entry = self.registry.register("foo")
        self.assertIs(entry.registry, Unset)
        child = entry.branch()
        self.assertIs(entry.branch(), child)
        self.assertIs(entry.registry, child)
        self.assertFalse(child)


if __name__ == "__main__":
    unittest.main()
