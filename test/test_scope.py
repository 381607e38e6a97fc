"""
Tests for configuration values and the global/local scope partition.
"""
import unittest
from unittest import TestCase

from argosy.scope import Configuration, ScopeManager, Setting, Toggle


def check(namespace):
    return True


def local_check(namespace):
    return True


class ConfigurationTest(TestCase):
    """Immutable updates and name resolution."""

    def testUpdateReturnsNewValue(self):
        base = Configuration()
        updated = base.update("foo", aliases=("f",), default=1)
        self.assertNotIn("foo", base.options)
        self.assertEqual(updated.option("foo").aliases, ("f",))
        self.assertEqual(updated.option("foo").default, 1)
        self.assertEqual(base.option("foo"), Setting())

    def testOptionsAreReadOnly(self):
        configuration = Configuration().update("foo")
        with self.assertRaises(TypeError):
            configuration.options["bar"] = Setting()

    def testResolve(self):
        configuration = Configuration().update("foo-bar", aliases=("f",))
        self.assertEqual(configuration.resolve("foo-bar"), "foo-bar")
        self.assertEqual(configuration.resolve("fooBar"), "foo-bar")
        self.assertEqual(configuration.resolve("f"), "foo-bar")
        self.assertEqual(configuration.resolve("unknown"), "unknown")

    def testKeys(self):
        configuration = Configuration().update("foo-bar", aliases=("f",))
        self.assertEqual(configuration.keys("f"), ["foo-bar", "f", "fooBar"])
        self.assertEqual(configuration.keys("baz-qux"), ["baz-qux", "bazQux"])
        self.assertEqual(configuration.known(), {"foo-bar", "f", "fooBar"})

    def testChecksAndStrict(self):
        configuration = Configuration().add_check(check).set_strict(True)
        self.assertEqual(len(configuration.checks), 1)
        self.assertTrue(configuration.strict.value)
        self.assertFalse(Configuration().strict.value)


class ScopeManagerTest(TestCase):
    """reset() keeps global entries, restore() merges global changes back."""

    def setUp(self):
        self.scope = ScopeManager()
        self.outer = (
            Configuration()
            .update("shared", default=1)
            .update("private", default=2, global_=False)
            .add_check(check)
            .add_check(local_check, False)
        )

    def testResetDropsLocalEntries(self):
        local = self.scope.reset(self.outer)
        self.assertIn("shared", local.options)
        self.assertNotIn("private", local.options)
        self.assertEqual([item.callback for item in local.checks], [check])

    def testResetDropsLocalStrict(self):
        self.assertEqual(self.scope.reset(self.outer.set_strict(True, False)).strict, Toggle(False))
        self.assertTrue(self.scope.reset(self.outer.set_strict(True)).strict.value)

    def testRestoreMergesGlobalChanges(self):
        local = (
            self.scope.reset(self.outer)
            .update("added", default=3)
            .update("hidden", default=4, global_=False)
            .add_check(local_check)
        )
        restored = self.scope.restore(self.outer, local)
        self.assertIn("added", restored.options)
        self.assertNotIn("hidden", restored.options)
        self.assertIn("private", restored.options)
        self.assertEqual(len(restored.checks), 3)

    def testRestoreIgnoresLocalOnlyChanges(self):
        local = self.scope.reset(self.outer).update("hidden", global_=False).add_check(local_check, False)
        self.assertEqual(self.scope.restore(self.outer, local), self.outer)

    def testRestoreStrict(self):
        local = self.scope.reset(self.outer).set_strict(True)
        self.assertTrue(self.scope.restore(self.outer, local).strict.value)
        local = self.scope.reset(self.outer).set_strict(True, False)
        self.assertFalse(self.scope.restore(self.outer, local).strict.value)


if __name__ == "__main__":
    unittest.main()
