"""
Argosy command registry: compiled command entries, aliases and the lazily
attached sub-registries that form the command tree.

Scope
- Entry: one registered command (definition, aliases, description, default
  marker, positional slots, builder, handler) plus its optional child Registry.
- Registry: registration in every supported shape, lookup by name or alias,
  default-command selection and the help/usage queries.

Registration shapes
- register("get <source> [dest]", "describe", builder, handler)
- register(["get <source>", "fetch", "g"], ...)     first canonical, rest aliases
- register(module_or_mapping)                      command / aliases / describe |
                                                   description | desc / builder / handler

Notes
- The tree has no parent links: a child Registry only exists under the Entry that
  owns it, and the parent context lives on the dispatch call stack.
- Entries are immutable after registration; branch() is the only late mutation.
"""
import logging
from collections.abc import Mapping, Sequence

from .grammar import DEFAULT_MARKERS, compile
from .utils import Unset, view

logger = logging.getLogger(__name__)

DESCRIPTION_KEYS = ("describe", "description", "desc")


def _noop(namespace, /):
    return None


def _field(source, key, default=Unset):
    if isinstance(source, Mapping):
        return source.get(key, default)
    return getattr(source, key, default)


def _modular(source):
    """
    True for module-like sources: mappings and objects that carry a command or
    a callable handler.
    """
    if isinstance(source, str | Sequence):
        return False
    if isinstance(source, Mapping):
        return True
    return hasattr(source, "command") or callable(getattr(source, "handler", None))


def _strings(value, name):
    if value is Unset or value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence) and all(isinstance(item, str) for item in value):
        return list(value)
    raise TypeError(f"register() {name!r} must be a string or a sequence of strings")


class Entry:
    """
    A registered command.

    fields (read-only views)
    - name: canonical command name (default markers already resolved)
    - original: definition string as shown in usage listings
    - aliases: alternative names (no positional parts, no duplicates)
    - descr: description text, False (hidden) or None
    - default: True when registered with the "*" / "$0" marker
    - demanded, optional: Positional tuples in declaration order
    - builder, handler: callables (builder may also be a flat option mapping or None)
    - registry: the child Registry once a subcommand was attached, else Unset
    """
    __slots__ = (
        "_name",
        "_original",
        "_aliases",
        "_descr",
        "_default",
        "_demanded",
        "_optional",
        "_builder",
        "_handler",
        "_registry",
    )

    name = view("name")
    original = view("original")
    aliases = view("aliases")
    descr = view("descr")
    default = view("default")
    demanded = view("demanded")
    optional = view("optional")
    builder = view("builder")
    handler = view("handler")
    registry = view("registry")

    def __init__(self, name, original, aliases, descr, default, demanded, optional, builder, handler):
        self._name = name
        self._original = original
        self._aliases = tuple(aliases)
        self._descr = descr
        self._default = default
        self._demanded = tuple(demanded)
        self._optional = tuple(optional)
        self._builder = builder
        self._handler = handler
        self._registry = Unset

    @property
    def positionals(self):
        return self._demanded + self._optional

    def branch(self):
        """
        Return the child registry, creating it on first use.
        """
        if self._registry is Unset:
            self._registry = Registry()
        return self._registry

    def __repr__(self):
        return f"Entry({self._original!r}, aliases={self._aliases!r}, default={self._default!r})"


class Registry:
    """
    Ordered collection of command entries for one depth of the command tree.
    """

    def __init__(self):
        self._entries = {}
        self._aliases = {}
        self._default = Unset

    def register(self, source, descr=Unset, builder=Unset, handler=Unset, /):
        """
        Register a command and return its Entry.

        parameters
        - source: str | Sequence[str] | module-like
          definition string, [definition, *aliases], or an object/mapping with
          command, aliases, describe|description|desc, builder and handler.
        - descr: str | False | None
          description; False hides the command from usage listings.
        - builder: callable | Mapping | module-like | None
          runs when the command matches; a module-like builder (builder + callable
          handler) is unpacked in place.
        - handler: callable | None
          receives the bound namespace; a missing handler is a no-op.

        behavior
        - re-registering a canonical name replaces the previous entry;
        - the most recently registered default command wins.

        raises
        - TypeError: unsupported shapes.
        - GrammarError: malformed definitions (see grammar.compile).
        """
        aliases = []
        if _modular(source):
            module = source
            source = _field(module, "command")
            if source is Unset:
                if (name := getattr(module, "__name__", Unset)) is Unset:
                    raise TypeError("register() module-like source must define 'command'")
                source = name.rpartition(".")[2]
            aliases += _strings(_field(module, "aliases"), "aliases")
            if descr is Unset:
                descr = next((
                    value for key in DESCRIPTION_KEYS
                    if (value := _field(module, key)) is not Unset
                ), Unset)
            builder = _field(module, "builder") if builder is Unset else builder
            handler = _field(module, "handler") if handler is Unset else handler

        if isinstance(source, Sequence) and not isinstance(source, str):
            source, *extra = _strings(source, "command") or [""]
            aliases = extra + aliases
        if not isinstance(source, str):
            raise TypeError("register() 'command' must be a string or a sequence of strings")

        if _modular(builder) and not isinstance(builder, Mapping) and callable(getattr(builder, "handler", None)):
            builder, handler = getattr(builder, "builder", None), builder.handler

        descr = None if descr is Unset else descr
        if not (descr is None or descr is False or isinstance(descr, str)):
            raise TypeError("register() 'descr' must be a string, False or None")
        builder = None if builder is Unset else builder
        if not (builder is None or callable(builder) or isinstance(builder, Mapping)):
            raise TypeError("register() 'builder' must be callable, a mapping or None")
        handler = _noop if handler is Unset or handler is None else handler
        if not callable(handler):
            raise TypeError("register() 'handler' must be callable or None")

        definition = compile(source)
        names = []
        default = False
        for name in [definition.name, *(compile(alias).name for alias in aliases)]:
            if name in DEFAULT_MARKERS:
                default = True
            elif name not in names:
                names.append(name)

        original = source
        if default:
            if not names:
                names.append("$0")
            if source.startswith(DEFAULT_MARKERS):
                marker = next(marker for marker in DEFAULT_MARKERS if source.startswith(marker))
                original = names[0] + source[len(marker):]

        name, *aliases = names
        entry = Entry(
            name,
            original,
            aliases,
            descr,
            default,
            definition.demanded,
            definition.optional,
            builder,
            handler,
        )

        if (previous := self._entries.pop(name, None)) is not None:
            for alias in previous.aliases:
                if self._aliases.get(alias) == name:
                    del self._aliases[alias]
        self._entries[name] = entry
        for alias in aliases:
            self._aliases[alias] = name

        if default:
            self._default = name
        elif self._default == name:
            self._default = Unset

        logger.debug("registered command %r (aliases=%r, default=%s)", name, aliases, default)
        return entry

    def lookup(self, token, /):
        """
        Return the entry whose canonical name or alias equals token, or None.
        """
        if not isinstance(token, str):
            return None
        if (entry := self._entries.get(token)) is not None:
            return entry
        if (name := self._aliases.get(token)) is not None:
            return self._entries.get(name)
        return None

    @property
    def default(self):
        """
        The most recently registered default entry, or None.
        """
        return self._entries.get(self._default) if self._default is not Unset else None

    def names(self):
        """
        Canonical names followed by aliases, each in registration order.
        """
        return [*self._entries, *self._aliases]

    def usage(self):
        """
        Usage listing: (original, descr, default, aliases) for every entry with a
        textual description, in registration order.
        """
        return [
            (entry.original, entry.descr, entry.default, list(entry.aliases))
            for entry in self._entries.values()
            if isinstance(entry.descr, str)
        ]

    def __contains__(self, token):
        return self.lookup(token) is not None

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)

    def __repr__(self):
        return f"Registry({list(self._entries)!r})"


__all__ = (
    "Entry",
    "Registry",
)
