"""
Argosy parser facade: the fluent public API over registry, configuration and
orchestration.

Usage
    parser = (
        Parser("git")
        .option("verbose", {"alias": "v", "type": "boolean"})
        .command("clone <repository> [directory]", "clone a repository", builder, handler)
        .strict()
    )
    namespace = parser.parse("clone https://example.org/repo.git --verbose")

Lifecycle
- Registration methods return the parser and build the base configuration.
- Each parse() / aparse() starts from that base configuration and restores it
  afterwards, so one configured parser can be parsed repeatedly.
- Inside a command builder the same parser object is in the command's scope:
  command() registers subcommands under the running command, and option-level
  calls change the command-local configuration.

Failure path
- fail(callback): callback(message | None, error | None, parser) replaces the
  default reporting; handler rejections pass (None, original exception).
- default: contextual help and the fault are printed on the parser console,
  then the process exits with status 1 (exit=True) or the fault is raised.
- parse(prompt, callback): output is captured and callback(error | None,
  namespace, output) receives the outcome instead.
"""
import asyncio
import os
import shlex
import sys
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rich.console import Console

from .dispatch import Dispatcher
from .execution import Orchestrator
from .faults import CommandException, HandlerRejection, trigger
from .grammar import compile
from .registry import Registry
from .scope import Configuration, ScopeManager
from .tokens import load_json
from .usage import render_help, render_version
from .utils import Namespace, Unset, coalesce

SETTINGS = ("populate_double_dash",)
TYPES = ("boolean", "string", "number", "array")

# option spec keys -> Setting fields
_FIELDS = {
    "alias": "aliases",
    "aliases": "aliases",
    "default": "default",
    "demand": "demand",
    "demand_option": "demand",
    "demandOption": "demand",
    "required": "demand",
    "choices": "choices",
    "type": "type",
    "coerce": "coerce",
    "describe": "descr",
    "description": "descr",
    "desc": "descr",
    "group": "group",
    "global": "global_",
    "global_": "global_",
    "config": "config",
    "conflicts": "conflicts",
    "implies": "implies",
    "array": "array",
    "boolean": "boolean",
    "string": "string",
    "number": "number",
    "positional": "positional",
}


def _names(value, caller, field):
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        value = tuple(value)
        if all(isinstance(item, str) for item in value):
            return value
    raise TypeError(f"{caller}() {field!r} must be a string or an iterable of strings")


def _key(key, caller):
    if not isinstance(key, str):
        raise TypeError(f"{caller}() 'key' must be a string")
    if not key:
        raise ValueError(f"{caller}() 'key' cannot be empty")
    return key


class Parser:
    """
    Command-line parser built from declarative command definitions.

    parameters
    - prog: str (positional-only)
      program name reported as "$0" and in help; defaults to the script name.
    - console: rich.console.Console (keyword-only)
      where help, version and faults are printed.
    - exit: bool (keyword-only)
      exit the process on faults (status 1) and after help/version (status 0)
      instead of raising / returning.
    """

    def __init__(self, prog=Unset, /, *, console=Unset, exit=False):
        if not isinstance(prog, str | Unset):
            raise TypeError("Parser() 'prog' must be a string")
        if not isinstance(console, Console | Unset):
            raise TypeError("Parser() 'console' must be a rich console")
        if not isinstance(exit, bool):
            raise TypeError("Parser() 'exit' must be a boolean")

        self._prog = prog
        self._console = coalesce(console, Console())
        self._exit = exit
        self._root = Registry()
        self._entry = Unset
        self._configuration = Configuration()
        self._settings = dict.fromkeys(SETTINGS, False)
        self._usage = None
        self._fail = None
        self._help = None
        self._version = None
        self._failure = Unset
        self._capturing = False
        self.help()

    # ==== State ====

    @property
    def prog(self):
        return coalesce(self._prog, os.path.basename(sys.argv[0]) or "argosy")

    @property
    def console(self):
        return self._console

    @property
    def configuration(self):
        return self._configuration

    @property
    def _registry(self):
        return self._root if self._entry is Unset else self._entry.branch()

    @property
    def _exiting(self):
        return self._exit and not self._capturing

    def _update(self, key, **changes):
        self._configuration = self._configuration.update(key, **changes)
        return self

    def _forget(self, key):
        options = dict(self._configuration.options)
        options.pop(key, None)
        self._configuration = self._configuration._replace(options=MappingProxyType(options))

    def _reserved(self):
        reserved = {"_", "$0", "--"}
        if self._help:
            reserved.add(self._help)
        if self._version:
            reserved.add(self._version[0])
        return reserved

    # ==== Commands ====

    def command(self, source, descr=Unset, builder=Unset, handler=Unset, /):
        """
        Register a command in the current scope (see Registry.register).
        """
        self._registry.register(source, descr, builder, handler)
        return self

    def usage(self, message, descr=Unset, builder=Unset, handler=Unset, /):
        """
        Set the root usage text, or register a default command.

        With only a message, the message becomes the usage line of the root
        help ("$0" expands to the program name). With a description, builder or
        handler, the message must start with "$0" and is registered as the
        default command.
        """
        if not isinstance(message, str):
            raise TypeError("usage() 'message' must be a string")
        if descr is Unset and builder is Unset and handler is Unset:
            self._usage = message
            return self
        compile(message, usage=True)
        return self.command(message, descr, builder, handler)

    # ==== Options ====

    def option(self, key, spec=Unset, /, **options):
        """
        Declare or update an option.

        spec is a mapping of option fields (alias, default, demand, choices,
        type, coerce, describe | description | desc, group, global, config,
        conflicts, implies, array, boolean, string, number); keyword arguments
        are merged over it.
        """
        key = _key(key, "option")
        if spec is Unset or spec is None:
            spec = {}
        if not isinstance(spec, Mapping):
            raise TypeError("option() 'spec' must be a mapping")

        current = self._configuration.option(key)
        changes = {}
        for name, value in {**spec, **options}.items():
            if (field := _FIELDS.get(name)) is None:
                raise TypeError(f"option() unknown field {name!r}")
            match field:
                case "aliases":
                    changes["aliases"] = tuple(dict.fromkeys((*current.aliases, *_names(value, "option", name))))
                case "choices":
                    changes["choices"] = (value,) if isinstance(value, str) or not isinstance(value, Iterable) else tuple(value)
                case "conflicts" | "implies":
                    changes[field] = tuple(dict.fromkeys((*getattr(current, field), *_names(value, "option", name))))
                case "demand" | "global_" | "array" | "positional":
                    changes[field] = bool(value)
                case "type":
                    if value not in TYPES:
                        raise ValueError(f"option() 'type' must be one of {', '.join(TYPES)}")
                    if value == "array":
                        changes["array"] = True
                    else:
                        changes["type"] = value
                case "boolean" | "string" | "number":
                    if value:
                        changes["type"] = field
                case "config":
                    if value:
                        changes["config"] = value if callable(value) else load_json
                case "coerce":
                    if value is not None and not callable(value):
                        raise TypeError("option() 'coerce' must be callable")
                    changes["coerce"] = value
                case _:
                    changes[field] = value
        return self._update(key, **changes)

    def positional(self, key, spec=Unset, /, **options):
        """
        Describe a positional of the running command (same fields as option()).
        """
        return self.option(key, spec, positional=True, **options)

    def alias(self, key, *aliases):
        return self.option(key, alias=aliases)

    def default(self, key, value, /):
        return self.option(key, default=value)

    def demand_option(self, *keys):
        for key in keys:
            self.option(key, demand=True)
        return self

    def choices(self, key, values, /):
        return self.option(key, choices=values)

    def coerce(self, key, callback, /):
        if not callable(callback):
            raise TypeError("coerce() 'callback' must be callable")
        return self.option(key, coerce=callback)

    def boolean(self, *keys):
        for key in keys:
            self.option(key, type="boolean")
        return self

    def array(self, *keys):
        for key in keys:
            self.option(key, array=True)
        return self

    def string(self, *keys):
        for key in keys:
            self.option(key, type="string")
        return self

    def number(self, *keys):
        for key in keys:
            self.option(key, type="number")
        return self

    def describe(self, key, descr, /):
        if not isinstance(descr, str):
            raise TypeError("describe() 'descr' must be a string")
        return self.option(key, describe=descr)

    def group(self, keys, title, /):
        if not isinstance(title, str):
            raise TypeError("group() 'title' must be a string")
        for key in _names(keys, "group", "keys"):
            self.option(key, group=title)
        return self

    def conflicts(self, key, *others):
        return self.option(key, conflicts=others)

    def implies(self, key, *others):
        return self.option(key, implies=others)

    def global_(self, keys, enabled=True, /):
        """
        Tag options global (kept when a command scope is entered) or local.
        """
        for key in _names(keys, "global", "keys"):
            self.option(key, global_=enabled)
        return self

    def check(self, callback, global_=True, /):
        """
        Add a validation callback; it receives the namespace and fails the parse
        by returning a falsy value, returning a message string or raising.
        """
        if not callable(callback):
            raise TypeError("check() 'callback' must be callable")
        self._configuration = self._configuration.add_check(callback, bool(global_))
        return self

    def strict(self, enabled=True, global_=True, /):
        """
        Reject unknown options (and unknown positionals where subcommands exist).
        """
        self._configuration = self._configuration.set_strict(enabled, bool(global_))
        return self

    def get_strict(self):
        return self._configuration.strict.value

    def config(self, key="config", loader=Unset, /):
        """
        Declare a config-file option; loader(path) must return a mapping
        (defaults to reading a JSON object).
        """
        loader = coalesce(loader, load_json)
        if not callable(loader):
            raise TypeError("config() 'loader' must be callable")
        if not self._configuration.option(key).descr:
            self.option(key, describe="path to a JSON config file")
        return self.option(key, config=loader)

    def help(self, key="help", descr="Show help", /):
        """
        Set the help trigger (flag and trailing command token); False disables it.
        """
        if self._help:
            self._forget(self._help)
        if key is False or key is None:
            self._help = None
            return self
        self._help = _key(key, "help")
        return self.option(key, type="boolean", describe=descr)

    def version(self, key="version", descr="Show version number", value=Unset, /):
        """
        Enable the version flag; value defaults to __version__ of __main__.
        """
        if self._version:
            self._forget(self._version[0])
        if key is False or key is None:
            self._version = None
            return self
        self._version = (_key(key, "version"), value)
        return self.option(key, type="boolean", describe=descr)

    def fail(self, callback, /):
        if not callable(callback):
            raise TypeError("fail() 'callback' must be callable")
        self._fail = callback
        return self

    def exit_process(self, enabled=True, /):
        self._exit = bool(enabled)
        return self

    def configure(self, **settings):
        """
        Update parser settings (populate_double_dash).
        """
        for name, value in settings.items():
            if name not in SETTINGS:
                raise TypeError(f"configure() unknown setting {name!r}")
            self._settings[name] = bool(value)
        return self

    def reset(self):
        """
        Drop every local option, check and strict toggle of the current scope.
        """
        self._configuration = ScopeManager().reset(self._configuration)
        return self

    # ==== Queries ====

    def get_commands(self):
        return self._registry.names()

    def get_usage(self):
        return self._registry.usage()

    def match_command(self, tokens, /):
        """
        Walk positional tokens against the registered command tree.
        """
        return Dispatcher(self._help).match(self._root, [str(token) for token in tokens])

    # ==== Rendering / failure path ====

    def _render_help(self, entry, path):
        registry = self._root if entry is None else entry.registry
        positionals = [name for positional in (entry.positionals if entry else ()) for name in positional.names]
        return render_help(
            self._configuration,
            registry,
            entry,
            path,
            self.prog,
            positionals=positionals,
            usage=self._usage,
        )

    def _show_help(self, entry, path):
        self._console.print(self._render_help(entry, path))

    def _show_version(self):
        value = self._version[1]
        if value is Unset:
            value = getattr(__import__("__main__"), "__version__", "unknown")
        self._console.print(render_version(value))

    def _report(self, fault, entry, path):
        """
        Surface a parse fault; only the first fault of a parse is surfaced.
        """
        if self._failure is not Unset:
            return
        self._failure = fault
        if self._fail is not None:
            if isinstance(fault, HandlerRejection):
                self._fail(None, fault.cause, self)
            else:
                self._fail(fault.message, fault, self)
            return
        self._console.print(self._render_help(entry, path))
        trigger(fault, console=self._console, exit=self._exiting, captured=self._capturing, prog=self.prog)

    # ==== Parsing ====

    def parse(self, prompt=Unset, callback=Unset, /):
        """
        Parse prompt synchronously (see aparse); not usable inside a running loop.
        """
        return asyncio.run(self.aparse(prompt, callback))

    async def aparse(self, prompt=Unset, callback=Unset, /):
        """
        Parse a prompt and run the matched command.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, taken verbatim.
        - callback:
          callback(error | None, namespace, output) receives the outcome; output is
          everything printed on the parser console during the parse.

        Returns
        - the namespace.

        Raises
        - TypeError: when prompt is not Unset/str/Iterable[str], or when an
          iterable contains a non-string element.
        - CommandException: parse faults, unless a fail() callback handled them
          (coercion faults and handler rejections are raised either way).
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("aparse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("aparse() argument must be a string or an iterable of strings")
        if callback is not Unset and not callable(callback):
            raise TypeError("aparse() 'callback' must be callable")

        base = self._configuration
        self._failure = Unset
        self._capturing = callback is not Unset
        try:
            if callback is Unset:
                return await Orchestrator(self).run(tokens)

            error = None
            with self._console.capture() as capture:
                try:
                    namespace = await Orchestrator(self).run(tokens)
                except CommandException as fault:
                    error = fault
                    namespace = Namespace(fault.options.get("namespace", {}))
            callback(coalesce(self._failure, error), namespace, capture.get())
            if error is not None:
                raise error
            return namespace
        finally:
            self._configuration = base
            self._entry = Unset
            self._capturing = False


__all__ = (
    "Parser",
)
