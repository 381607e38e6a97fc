"""
Argosy faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
  Codes are grouped by the phase that raises them (grammar, binding,
  validation, coercion, execution) to keep logs and searches predictable.
- CommandException: base type that carries message + options and knows how to
  render itself with rich in a friendly, lowercased, actionable way.
- One subclass per fault kind (GrammarError, BindingCountError, the
  ValidationError family, CoercionError, UnloadableConfigError, HandlerRejection).
- trigger(): central entry point to surface a fault (print, then raise / exit / keep).

Phases
- GrammarError is raised directly at registration time (a programming error in
  the command definition, never user input).
- Every other fault is raised during a parse and travels through the parser's
  failure path, which decides between a custom reporter, completion-callback
  delivery, process termination and plain exception propagation.

Integration
- Hosts may expose __codes__ (FaultCode -> label), __styles__ (style overrides)
  and __prog__ (program name) in __main__; rendering honours them.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by phase)
    - grammar (211xx): MALFORMED_DEFINITION, MISSING_DEFAULT_MARKER
    - binding (212xx): NOT_ENOUGH_POSITIONALS
    - validation (213xx): UNKNOWN_ARGUMENT, CONFLICTING_ARGUMENTS, MISSING_IMPLICATION,
      MISSING_ARGUMENT, INVALID_CHOICE, FAILED_CHECK
    - coercion (214xx): UNCOERCIBLE_VALUE, UNLOADABLE_CONFIG
    - execution (215xx): HANDLER_REJECTION
    """
    # --- grammar errors (211xx) ---
    MALFORMED_DEFINITION        = 21101
    MISSING_DEFAULT_MARKER      = 21102

    # --- binding errors (212xx) ---
    NOT_ENOUGH_POSITIONALS      = 21201

    # --- validation errors (213xx) ---
    UNKNOWN_ARGUMENT            = 21301
    CONFLICTING_ARGUMENTS       = 21302
    MISSING_IMPLICATION         = 21303
    MISSING_ARGUMENT            = 21304
    INVALID_CHOICE              = 21305
    FAILED_CHECK                = 21306

    # --- coercion errors (214xx) ---
    UNCOERCIBLE_VALUE           = 21401
    UNLOADABLE_CONFIG           = 21402

    # --- execution errors (215xx) ---
    HANDLER_REJECTION           = 21501

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every parse fault.

    options
    - title, code, hint: header/footer copy used by the renderer.
    - cause: original exception (re-attached as __cause__ when triggered).
    - namespace: the partially populated result object at failure time.
    - console, exit, captured, colorful: runtime options merged by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message if self.message is not Unset else ""

    @property
    def code(self):
        return self.options.get("code")

    @property
    def cause(self):
        return self.options.get("cause")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = text(getattr(main, "__prog__", self.options.get("prog", "argosy")), "prog-name")
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code else "?", "code"),
            " | ",
            text(str(self.options.get("title", "error")).title(), "error-title"),
            " ]"
        )
        renderables = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renderables.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renderables)

    def __trigger__(self):
        """
        print the fault, then keep going (captured), exit (exit) or raise.
        """
        self.options.get("console", console).print(self)
        if self.options.get("captured", False):
            return
        if self.options.get("exit", False):
            sys.exit(1)
        raise self from self.cause

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class GrammarError(CommandException): ...
class BindingCountError(CommandException): ...
class ValidationError(CommandException): ...
class UnknownArgumentError(ValidationError): ...
class ConflictingArgumentsError(ValidationError): ...
class MissingImplicationError(ValidationError): ...
class MissingArgumentError(ValidationError): ...
class InvalidChoiceError(ValidationError): ...
class FailedCheckError(ValidationError): ...
class CoercionError(CommandException): ...
class UnloadableConfigError(CommandException): ...
class HandlerRejection(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(...) before triggering,
      so the caller's fault object is never mutated.

    typical options
    - console, exit, captured, colorful, prog, namespace.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "CommandException",
    "GrammarError",
    "BindingCountError",
    "ValidationError",
    "UnknownArgumentError",
    "ConflictingArgumentsError",
    "MissingImplicationError",
    "MissingArgumentError",
    "InvalidChoiceError",
    "FailedCheckError",
    "CoercionError",
    "UnloadableConfigError",
    "HandlerRejection",
    "FaultCode",
    "trigger",
)
