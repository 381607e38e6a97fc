"""
Argosy positional binder: fill a namespace from a command's positional slots
and the tokens left after dispatch.
"""
import logging

from .faults import BindingCountError, CoercionError, FaultCode
from .utils import numberize

logger = logging.getLogger(__name__)


class Binder:
    """
    Bind positional tokens under one Configuration.

    Rules
    - demanded slots first, then optional slots, each in declaration order;
    - every non-variadic slot takes one token;
    - a variadic slot (only ever the last one) takes all remaining tokens, and
      binds [] when none remain unless an earlier phase already set a value;
    - each value is written under every slot name, the camel-case forms and the
      aliases configured for the slot; other keys are never touched;
    - tokens are numerically coerced unless the slot's setting is typed "string";
      a leading "+" always keeps the text; a configured coerce callback runs last.
    """

    def __init__(self, configuration, /):
        self.configuration = configuration

    def keys(self, positional, /):
        return list(dict.fromkeys(
            key for name in positional.names for key in self.configuration.keys(name)
        ))

    def convert(self, positional, token, /):
        match self.configuration.option(self.configuration.resolve(positional.name)).type:
            case "string":
                return token
            case _:
                return numberize(token)

    def coerce(self, positional, value, namespace, /):
        setting = self.configuration.option(self.configuration.resolve(positional.name))
        if setting.coerce is None:
            return value
        try:
            return setting.coerce(value)
        except Exception as exc:
            raise CoercionError(
                str(exc) or type(exc).__name__,
                title="uncoercible value",
                code=FaultCode.UNCOERCIBLE_VALUE,
                hint=f"check the value given to {positional.name!r}",
                cause=exc,
                namespace=namespace,
            ) from exc

    def bind(self, entry, namespace, tokens, /):
        """
        Bind entry's positional slots from tokens into namespace.

        returns
        - the unconsumed tokens, in order.

        raises
        - BindingCountError: fewer tokens than demanded slots; the namespace holds
          whatever could be bound.
        - CoercionError: a coerce callback raised.
        """
        tokens = list(tokens)
        available = len(tokens)
        positionals = entry.positionals

        for index, positional in enumerate(positionals):
            keys = self.keys(positional)
            if positional.variadic and index == len(positionals) - 1:
                if not tokens and any(key in namespace for key in keys):
                    continue
                value = [self.convert(positional, token) for token in tokens]
                tokens = []
            elif tokens:
                value = self.convert(positional, tokens.pop(0))
            else:
                continue
            value = self.coerce(positional, value, namespace)
            for key in keys:
                namespace[key] = value
            logger.debug("bound positional %r = %r", positional.name, value)

        if available < len(entry.demanded):
            raise BindingCountError(
                "not enough non-option arguments: got %d, need at least %d" % (available, len(entry.demanded)),
                title="missing positional arguments",
                code=FaultCode.NOT_ENOUGH_POSITIONALS,
                hint="usage: %s" % entry.original,
                namespace=namespace,
            )

        return tokens


__all__ = (
    "Binder",
)
