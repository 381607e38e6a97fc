"""
Argosy utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the grammar, binding, and execution layers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the parser facade.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- view("attr")
  • Read-only property factory exposing a private backing field (self._attr) as a shallow,
    immutable view (tuple / MappingProxyType / frozenset).

- camelcase(text)
  • "foo-bar" → "fooBar", "baz_qux" → "bazQux"; text without separators is returned unchanged.

- numberize(token)
  • Numeric coercion for raw tokens: decimal, float, exponent and hex forms become numbers;
    leading '+' signs and leading zeros keep the token as text.

- Namespace
  • The result object: a dict that also answers attribute access.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> camelcase("baz-qux")
    'bazQux'
    >>> numberize("+5550100")
    '+5550100'
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "", False or [] are preserved as-is; only
    Unset is replaced. Command descriptions rely on this: False is a
    meaningful "hide from help" marker and must survive.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def view(name, /):
    """
    Define a read-only property over the private backing field "_{name}".

    Freezing is shallow:
    - Sequence (non-string) → tuple (elements kept as-is, so named tuples survive)
    - Mapping → MappingProxyType
    - Set → frozenset
    - anything else → returned unchanged
    """
    if not isinstance(name, str):
        raise TypeError("view() argument must be a string")

    @rename(name)
    def getter(self):
        value = getattr(self, "_" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


@functools.cache
def camelcase(text, /):
    """
    Return the camel-case dual of a separator-bearing name.

    Hyphens and underscores separate words; the first word keeps its casing and
    every following word is capitalized on its first letter only. Leading
    separators are kept untouched so names like "--" or "_" survive.

    Examples
    - camelcase("foo-bar")   -> "fooBar"
    - camelcase("baz_qux")   -> "bazQux"
    - camelcase("expandMe")  -> "expandMe"
    """
    if not isinstance(text, str):
        raise TypeError("camelcase() argument must be a string")
    head = re.match(r"[-_]*", text).group()
    words = [word for word in re.split(r"[-_]+", text[len(head):]) if word]
    if len(words) < 2:
        return text
    return head + words[0] + "".join(word[:1].upper() + word[1:] for word in words[1:])


_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:e[-+]?\d+)?", re.IGNORECASE)
_HEXADECIMAL = re.compile(r"0x[0-9a-f]+", re.IGNORECASE)


def numberize(token, /):
    """
    Coerce a raw token into a number when it reads like one.

    rules
    - non-strings are returned unchanged.
    - hexadecimal ("0x1f") → int.
    - a leading zero followed by more characters ("0123", "007") keeps the text.
    - decimal integers → int; decimals and exponents → float.
    - a leading '+' is never numeric ("+5550100" stays a string).
    """
    if not isinstance(token, str):
        return token
    if _HEXADECIMAL.fullmatch(token):
        return int(token, 16)
    if re.match(r"0[^.]", token):
        return token
    if not _NUMBER.fullmatch(token):
        return token
    if re.fullmatch(r"-?\d+", token):
        return int(token)
    return float(token)


class Namespace(dict):
    """
    Result object of a parse: a plain dict that also answers attribute access.

    Keys that are not identifiers (e.g. "foo-bar", "$0", "_") remain reachable
    through item access only.
    """
    __slots__ = ()

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"namespace has no key {name!r}") from None

    def __repr__(self):
        return f"Namespace({dict.__repr__(self)})"


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Distinct from None: equality and identity checks must not treat it as None.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "view",
    "camelcase",
    "numberize",

    # Types
    "UnsetType",
    "Namespace",

    # Constants
    "Unset",
)
