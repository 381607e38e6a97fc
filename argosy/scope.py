"""
Argosy scope management: immutable parser configuration and its global/local
partition.

Scope
- Setting: everything the parser knows about one option key.
- Configuration: immutable value (settings, checks, strict toggle); every update
  returns a new Configuration so snapshots are plain references.
- ScopeManager: reset() before a matched command's builder runs, restore() when
  the command's execution chain unwinds.

Rules
- Every setting, check and the strict toggle carry a global tag, true unless
  cleared explicitly.
- reset() keeps global entries and drops the rest, so command-local validators,
  coercions and checks never leak into sibling commands or the parent scope.
- restore() returns the outer snapshot plus whatever the local scope added or
  changed under the global tag.
"""
import logging
from types import MappingProxyType
from typing import Any, Callable, NamedTuple

from .utils import Unset, camelcase

logger = logging.getLogger(__name__)


class Setting(NamedTuple):
    aliases: tuple[str, ...] = ()
    default: Any = Unset
    demand: bool = False
    choices: tuple = ()
    type: str | None = None
    array: bool = False
    coerce: Callable | None = None
    conflicts: tuple[str, ...] = ()
    implies: tuple[str, ...] = ()
    group: str | None = None
    descr: str | None = None
    config: Callable | None = None
    positional: bool = False
    global_: bool = True


class Check(NamedTuple):
    callback: Callable
    global_: bool = True


class Toggle(NamedTuple):
    value: bool
    global_: bool = True


_EMPTY = MappingProxyType({})


class Configuration(NamedTuple):
    """
    Immutable parser configuration.

    - options: read-only mapping key -> Setting
    - checks: tuple of Check, in registration order
    - strict: Toggle
    """
    options: MappingProxyType = _EMPTY
    checks: tuple[Check, ...] = ()
    strict: Toggle = Toggle(False)

    def option(self, key, /):
        return self.options.get(key, Setting())

    def update(self, key, /, **changes):
        """
        Return a new Configuration where options[key] has the given fields replaced.
        """
        options = dict(self.options)
        options[key] = self.option(key)._replace(**changes)
        return self._replace(options=MappingProxyType(options))

    def add_check(self, callback, /, global_=True):
        return self._replace(checks=self.checks + (Check(callback, global_),))

    def set_strict(self, value, /, global_=True):
        return self._replace(strict=Toggle(bool(value), global_))

    def resolve(self, name, /):
        """
        Return the canonical option key for name (itself, an alias, or a
        camel-case form of either); unknown names resolve to themselves.
        """
        if name in self.options:
            return name
        for key, setting in self.options.items():
            if name in (camelcase(key), *setting.aliases, *map(camelcase, setting.aliases)):
                return key
        return name

    def keys(self, name, /):
        """
        Every key a value for name is written under: canonical key, its aliases
        and the camel-case forms of all of them, without duplicates.
        """
        key = self.resolve(name)
        keys = [key, *self.option(key).aliases]
        return list(dict.fromkeys([*keys, *map(camelcase, keys)]))

    def known(self):
        """
        Every name the configuration answers to.
        """
        return {name for key in self.options for name in self.keys(key)}


class ScopeManager:
    """
    Snapshot and restore of the global/local configuration partition.
    """

    def reset(self, configuration, /):
        """
        Return configuration reduced to its global settings, checks and strict toggle.
        """
        options = {key: setting for key, setting in configuration.options.items() if setting.global_}
        checks = tuple(check for check in configuration.checks if check.global_)
        strict = configuration.strict if configuration.strict.global_ else Toggle(False)
        dropped = len(configuration.options) - len(options)
        logger.debug("scope reset: kept %d option(s), dropped %d local option(s)", len(options), dropped)
        return Configuration(MappingProxyType(options), checks, strict)

    def restore(self, outer, local, /):
        """
        Return the outer snapshot merged with the global changes made in local.
        """
        options = dict(outer.options)
        merged = []
        for key, setting in local.options.items():
            if setting.global_ and outer.options.get(key) != setting:
                options[key] = setting
                merged.append(key)
        checks = outer.checks + tuple(
            check for check in local.checks
            if check.global_ and check not in outer.checks
        )
        strict = outer.strict
        if local.strict.global_ and local.strict != self.reset(outer).strict:
            strict = local.strict
        logger.debug("scope restore: merged global option(s) %r", merged)
        return Configuration(MappingProxyType(options), checks, strict)


__all__ = (
    "Setting",
    "Check",
    "Toggle",
    "Configuration",
    "ScopeManager",
)
