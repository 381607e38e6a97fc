"""
Argosy flag extraction: split a token stream into flag values, positional
candidates and the tokens after "--".

Supported forms
- --key=value, --key value, --key (true), --no-key (false)
- -k, -k=value, -k value, short clusters -abc (a and b true, c takes the value)
- "--" stops flag parsing; everything after it is returned as rest
- negative numbers ("-5", "-1.5") are positional candidates, not flags

Typing (per configured setting)
- boolean: takes an optional following "true"/"false", otherwise true
- array: takes every following non-flag token
- string: keeps raw text; number: forces numeric coercion; otherwise numbers are
  detected with utils.numberize
- a key given repeatedly (and not an array) accumulates into a list

A value is written under its canonical key, every alias and the camel-case
forms of all of them.

complete=True additionally loads config files (for keys not given explicitly),
applies defaults and runs coerce callbacks, in that order.
"""
import json
import logging
import re
from typing import NamedTuple

from .faults import CoercionError, FaultCode, UnloadableConfigError
from .utils import Namespace, Unset, numberize

logger = logging.getLogger(__name__)

_SWITCH = re.compile(r"--?[^\W\d_][^=]*(=.*)?", re.DOTALL)
_BOOLEANS = {"true": True, "false": False}


def load_json(path, /):
    """
    Default config loader: read a JSON object from path.
    """
    with open(path, encoding="utf-8") as stream:
        content = json.load(stream)
    if not isinstance(content, dict):
        raise ValueError(f"config file {path!r} must contain a JSON object")
    return content


class Extraction(NamedTuple):
    """
    Result of one extraction pass.

    - namespace: Namespace with flag values (and config/defaults when complete)
    - positionals: raw positional candidates, in order
    - rest: tokens after "--"
    - given: canonical keys given explicitly, in order of appearance
    """
    namespace: Namespace
    positionals: list
    rest: list
    given: list


def _flag(token):
    return token != "--" and bool(_SWITCH.fullmatch(token))


class Tokenizer:
    """
    Flag extraction under one Configuration.
    """

    def __init__(self, configuration, /):
        self.configuration = configuration

    def write(self, namespace, name, value, /):
        """
        Write value under every key name answers to.
        """
        for key in self.configuration.keys(name):
            namespace[key] = value

    def convert(self, name, value, /):
        """
        Convert one raw value according to the setting of name.
        """
        if not isinstance(value, str):
            return value
        match self.configuration.option(self.configuration.resolve(name)).type:
            case "boolean":
                return _BOOLEANS.get(value.lower(), value)
            case "string":
                return value
            case _:
                return numberize(value)

    def _assign(self, namespace, given, name, value):
        key = self.configuration.resolve(name)
        setting = self.configuration.option(key)
        if isinstance(value, list):
            value = [self.convert(name, item) for item in value]
        else:
            value = self.convert(name, value)

        if setting.array:
            items = value if isinstance(value, list) else [value]
            value = [*namespace[key], *items] if key in given else items
        elif key in given:
            previous = namespace[key]
            value = [*(previous if isinstance(previous, list) else [previous]), value]

        if key not in given:
            given.append(key)
        self.write(namespace, name, value)

    def _consume(self, name, tokens, index):
        """
        Pick the value of a flag given without "=" from the following tokens.

        returns (value, next index)
        """
        setting = self.configuration.option(self.configuration.resolve(name))
        following = tokens[index] if index < len(tokens) else Unset

        if setting.array:
            values = []
            while index < len(tokens) and tokens[index] != "--" and not _flag(tokens[index]):
                values.append(tokens[index])
                index += 1
            return values, index
        if setting.type == "boolean":
            if isinstance(following, str) and following.lower() in _BOOLEANS:
                return following, index + 1
            return True, index
        if following is Unset or following == "--" or _flag(following):
            return True, index
        return following, index + 1

    def extract(self, tokens, /, *, complete=False):
        """
        Extract flags from tokens.

        parameters
        - tokens: list[str]
        - complete: bool (keyword-only)
          also load config files, apply defaults and run coerce callbacks.

        raises (complete=True only)
        - UnloadableConfigError: a config loader failed.
        - CoercionError: a coerce callback raised.
        """
        tokens = list(tokens)
        namespace = Namespace()
        positionals = []
        rest = []
        given = []

        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1

            if token == "--":
                rest = tokens[index:]
                break

            if not _flag(token):
                positionals.append(token)
                continue

            if token.startswith("--"):
                name, equals, value = token[2:].partition("=")
                if equals:
                    self._assign(namespace, given, name, value)
                elif name.startswith("no-") and self.configuration.resolve(name) not in self.configuration.options:
                    self._assign(namespace, given, name[3:], False)
                else:
                    value, index = self._consume(name, tokens, index)
                    self._assign(namespace, given, name, value)
                continue

            letters, equals, value = token[1:].partition("=")
            for letter in letters[:-1]:
                self._assign(namespace, given, letter, True)
            if equals:
                self._assign(namespace, given, letters[-1], value)
            else:
                value, index = self._consume(letters[-1], tokens, index)
                self._assign(namespace, given, letters[-1], value)

        if complete:
            self._configure(namespace, given)
            self._default(namespace)
            self._coerce(namespace)

        return Extraction(namespace, positionals, rest, given)

    def _configure(self, namespace, given):
        for key, setting in self.configuration.options.items():
            if setting.config is None:
                continue
            path = namespace.get(key, setting.default)
            if path is Unset or path is None or path is True:
                continue
            try:
                content = setting.config(path)
            except Exception as exc:
                raise UnloadableConfigError(
                    "invalid json config file: %s" % path,
                    title="unloadable config",
                    code=FaultCode.UNLOADABLE_CONFIG,
                    hint=str(exc),
                    cause=exc,
                    namespace=namespace,
                ) from exc
            logger.debug("loaded config %r from option %r", path, key)
            for name, value in content.items():
                if self.configuration.resolve(name) not in given:
                    self.write(namespace, name, value)

    def _default(self, namespace):
        for key, setting in self.configuration.options.items():
            if setting.default is not Unset and key not in namespace:
                self.write(namespace, key, setting.default)

    def _coerce(self, namespace):
        for key, setting in self.configuration.options.items():
            if setting.coerce is None or setting.positional or key not in namespace:
                continue
            try:
                value = setting.coerce(namespace[key])
            except Exception as exc:
                raise CoercionError(
                    str(exc) or type(exc).__name__,
                    title="uncoercible value",
                    code=FaultCode.UNCOERCIBLE_VALUE,
                    hint=f"check the value given to {key!r}",
                    cause=exc,
                    namespace=namespace,
                ) from exc
            self.write(namespace, key, value)


__all__ = (
    "Extraction",
    "Tokenizer",
    "load_json",
)
