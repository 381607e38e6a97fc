"""
Argosy command grammar: compile definition strings into positional schemas.

A command definition is a single string such as

    "copy <source> [target] [extra-files..]"

whose first word is the command name and whose remaining words declare
positional arguments:

- <name>          required (demanded) positional
- [name]          optional positional
- <a | b>         alias group: every name receives the same value
- [name..]        variadic (also "..."): absorbs all remaining tokens, but only
                  when it is the last word of the definition; anywhere else the
                  dots are dropped and it captures a single token
- "*" or "$0"     as the command name: the default command marker

Whitespace is forgiving: runs of blanks collapse and blanks inside brackets
are ignored ("[ ssns | sins... ]" is the same as "[ssns|sins...]").

compile() is pure and cached; malformed definitions raise GrammarError at
registration time, never at parse time.
"""
import functools
import re
from typing import NamedTuple

from .faults import GrammarError, FaultCode

DEFAULT_MARKERS = ("*", "$0")

# whitespace that is not inside a [...] or <...> group
_SPLITTER = re.compile(r"\s+(?![^\[]*\]|[^<]*>)")
# brackets together with any dots that precede a closing bracket
_BRACKETS = re.compile(r"\.*[\]\[<>]")
_SHAPE = re.compile(r"<[^<>\[\]]+>|\[[^<>\[\]]+\]")
_VARIADIC = re.compile(r"\.+[\]>]$")


class Positional(NamedTuple):
    """
    One positional slot of a command.

    names    every name bound to the slot (first is canonical)
    required True for <...>, False for [...]
    variadic True only for the last slot of a definition ending in ".."/"..."
    """
    names: tuple[str, ...]
    required: bool
    variadic: bool = False

    @property
    def name(self):
        return self.names[0]


class Definition(NamedTuple):
    """
    Compiled command definition: command name plus demanded and optional slots,
    each in declaration order.
    """
    name: str
    demanded: tuple[Positional, ...] = ()
    optional: tuple[Positional, ...] = ()

    @property
    def default(self):
        return self.name in DEFAULT_MARKERS

    @property
    def positionals(self):
        return self.demanded + self.optional


def _malformed(definition, message, hint):
    return GrammarError(
        message,
        title="malformed command definition",
        code=FaultCode.MALFORMED_DEFINITION,
        definition=definition,
        hint=hint,
    )


@functools.cache
def compile(definition, /, *, usage=False):
    """
    Compile a command definition string into a Definition.

    parameters
    - definition: str
      the command definition ("name <required> [optional] [rest..]").
    - usage: bool (keyword-only)
      when True the definition is a default-command usage string and must
      start with "$0".

    raises
    - TypeError: the definition is not a string.
    - GrammarError: empty definition, bracketed command name, a word that is
      not a single <...> or [...] group, or an empty alias name; with
      usage=True also a definition without the leading "$0".
    """
    if not isinstance(definition, str):
        raise TypeError("compile() argument must be a string")

    source = re.sub(r"\s{2,}", " ", definition.strip())
    if not source:
        raise _malformed(definition, "empty command definition", "start the definition with a command name")

    head, *words = _SPLITTER.split(source)

    if usage and head != "$0":
        raise GrammarError(
            "usage description must start with $0 to declare a default command, got %r" % definition,
            title="missing default marker",
            code=FaultCode.MISSING_DEFAULT_MARKER,
            definition=definition,
            hint="write it as '$0 %s'" % source,
        )

    if _SHAPE.fullmatch(head) or not (name := _BRACKETS.sub("", head)):
        raise _malformed(
            definition,
            "command name %r of definition %r cannot be a positional" % (head, definition),
            "put the command name first, for example 'run %s'" % source,
        )

    demanded = []
    optional = []

    for index, word in enumerate(words):
        word = re.sub(r"\s", "", word)
        if not _SHAPE.fullmatch(word):
            raise _malformed(
                definition,
                "bad positional %r in definition %r" % (word, definition),
                "wrap each positional in <...> (required) or [...] (optional)",
            )
        names = tuple(_BRACKETS.sub("", word).split("|"))
        if not all(names):
            raise _malformed(
                definition,
                "empty positional name in %r of definition %r" % (word, definition),
                "remove the stray '|' or give every alias a name",
            )
        positional = Positional(
            names,
            required=word.startswith("<"),
            variadic=bool(_VARIADIC.search(word)) and index == len(words) - 1,
        )
        (demanded if positional.required else optional).append(positional)

    return Definition(name, tuple(demanded), tuple(optional))


__all__ = (
    "DEFAULT_MARKERS",
    "Positional",
    "Definition",
    "compile",
)
