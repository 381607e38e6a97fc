"""
Tests for flag extraction.

Scope
- Long, short, negated and clustered flags; "--" handling.
- Typing: booleans, arrays, strings, repeated keys.
- complete=True: config loading, defaults and coerce callbacks.
"""
import json
import os
import tempfile
import unittest
from unittest import TestCase

from argosy.faults import CoercionError, UnloadableConfigError
from argosy.scope import Configuration
from argosy.tokens import Tokenizer, load_json


class FormsTest(TestCase):
    """Every supported flag form."""

    def extract(self, *tokens, configuration=Configuration()):
        return Tokenizer(configuration).extract(list(tokens))

    def testEquals(self):
        extraction = self.extract("--foo=bar")
        self.assertEqual(extraction.namespace, {"foo": "bar"})
        self.assertEqual(extraction.given, ["foo"])

    def testFollowingValue(self):
        self.assertEqual(self.extract("--foo", "bar").namespace, {"foo": "bar"})

    def testBareFlag(self):
        self.assertEqual(self.extract("--foo").namespace, {"foo": True})
        self.assertEqual(self.extract("--foo", "--bar").namespace, {"foo": True, "bar": True})

    def testNegation(self):
        extraction = self.extract("--no-foo")
        self.assertEqual(extraction.namespace, {"foo": False})
        self.assertEqual(extraction.given, ["foo"])

    def testDeclaredNegatedName(self):
        configuration = Configuration().update("no-color", type="boolean")
        self.assertTrue(self.extract("--no-color", configuration=configuration).namespace["noColor"])

    def testShortCluster(self):
        self.assertEqual(self.extract("-abc").namespace, {"a": True, "b": True, "c": True})
        self.assertEqual(self.extract("-ab", "5").namespace, {"a": True, "b": 5})
        self.assertEqual(self.extract("-n=5").namespace, {"n": 5})

    def testCamelCaseDual(self):
        self.assertEqual(self.extract("--foo-bar", "1").namespace, {"foo-bar": 1, "fooBar": 1})

    def testNegativeNumberIsPositional(self):
        extraction = self.extract("-5", "cmd")
        self.assertEqual(extraction.positionals, ["-5", "cmd"])
        self.assertEqual(extraction.namespace, {})

    def testDoubleDash(self):
        extraction = self.extract("a", "--foo", "--", "--bar", "b")
        self.assertEqual(extraction.positionals, ["a"])
        self.assertEqual(extraction.namespace, {"foo": True})
        self.assertEqual(extraction.rest, ["--bar", "b"])

    def testPositionalsKeepRawText(self):
        self.assertEqual(self.extract("1", "x", "--foo", "2", "3").positionals, ["1", "x", "3"])


class TypingTest(TestCase):
    """Configured settings change how values are taken and converted."""

    def testBoolean(self):
        configuration = Configuration().update("flag", type="boolean")
        extraction = Tokenizer(configuration).extract(["--flag", "x"])
        self.assertIs(extraction.namespace["flag"], True)
        self.assertEqual(extraction.positionals, ["x"])
        self.assertIs(Tokenizer(configuration).extract(["--flag", "false"]).namespace["flag"], False)

    def testArray(self):
        configuration = Configuration().update("list", array=True)
        extraction = Tokenizer(configuration).extract(["--list", "1", "two", "--other", "--list", "3"])
        self.assertEqual(extraction.namespace["list"], [1, "two", 3])
        self.assertIs(extraction.namespace["other"], True)

    def testString(self):
        configuration = Configuration().update("zip", type="string")
        self.assertEqual(Tokenizer(configuration).extract(["--zip", "01234"]).namespace["zip"], "01234")
        self.assertEqual(Tokenizer(configuration).extract(["--zip", "5"]).namespace["zip"], "5")

    def testRepeatedKeyAccumulates(self):
        extraction = Tokenizer(Configuration()).extract(["--foo", "1", "--foo", "2", "--foo", "x"])
        self.assertEqual(extraction.namespace["foo"], [1, 2, "x"])
        self.assertEqual(extraction.given, ["foo"])

    def testAliases(self):
        configuration = Configuration().update("verbose", aliases=("v",), type="boolean")
        extraction = Tokenizer(configuration).extract(["-v"])
        self.assertEqual(extraction.namespace, {"verbose": True, "v": True})
        self.assertEqual(extraction.given, ["verbose"])


class CompleteTest(TestCase):
    """Config files, defaults and coerce callbacks."""

    def testDefaults(self):
        configuration = Configuration().update("foo", default=3).update("bar", default="x")
        extraction = Tokenizer(configuration).extract(["--bar", "y"], complete=True)
        self.assertEqual(extraction.namespace, {"foo": 3, "bar": "y"})
        self.assertEqual(Tokenizer(configuration).extract(["--bar", "y"]).namespace, {"bar": "y"})

    def testCoerce(self):
        configuration = Configuration().update("name", coerce=str.upper)
        self.assertEqual(Tokenizer(configuration).extract(["--name", "bob"], complete=True).namespace["name"], "BOB")

    def testPositionalCoerceIsLeftToTheBinder(self):
        configuration = Configuration().update("name", coerce=str.upper, positional=True, default="bob")
        self.assertEqual(Tokenizer(configuration).extract([], complete=True).namespace["name"], "bob")

    def testCoerceFailure(self):
        def explode(value):
            raise ValueError("bad value")

        configuration = Configuration().update("name", coerce=explode)
        with self.assertRaises(CoercionError) as context:
            Tokenizer(configuration).extract(["--name", "bob"], complete=True)
        self.assertEqual(str(context.exception), "bad value")
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def testConfigGivenKeysWin(self):
        calls = []

        def loader(path):
            calls.append(path)
            return {"foo": 1, "bar": 2}

        configuration = Configuration().update("settings", config=loader)
        extraction = Tokenizer(configuration).extract(["--settings", "app.json", "--foo", "9"], complete=True)
        self.assertEqual(extraction.namespace["foo"], 9)
        self.assertEqual(extraction.namespace["bar"], 2)
        self.assertEqual(calls, ["app.json"])

    def testConfigFromDefaultPath(self):
        configuration = Configuration().update("settings", config=lambda path: {"path": path}, default="default.json")
        self.assertEqual(Tokenizer(configuration).extract([], complete=True).namespace["path"], "default.json")

    def testConfigWithoutPathIsSkipped(self):
        configuration = Configuration().update("settings", config=lambda path: {"loaded": True})
        self.assertNotIn("loaded", Tokenizer(configuration).extract([], complete=True).namespace)

    def testConfigFailure(self):
        def loader(path):
            raise OSError("no such file")

        configuration = Configuration().update("settings", config=loader)
        with self.assertRaises(UnloadableConfigError) as context:
            Tokenizer(configuration).extract(["--settings", "missing.json"], complete=True)
        self.assertEqual(str(context.exception), "invalid json config file: missing.json")
        self.assertIsInstance(context.exception.cause, OSError)


class LoadJsonTest(TestCase):
    """The default config loader."""

    def write(self, content):
        descriptor, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(descriptor, "w", encoding="utf-8") as stream:
            stream.write(content)
        self.addCleanup(os.remove, path)
        return path

    def testObject(self):
        self.assertEqual(load_json(self.write(json.dumps({"foo": "bar"}))), {"foo": "bar"})

    def testNonObject(self):
        with self.assertRaises(ValueError):
            load_json(self.write("[1, 2]"))

    def testInvalid(self):
        with self.assertRaises(json.JSONDecodeError):
            load_json(self.write("{oops"))


if __name__ == "__main__":
    unittest.main()
