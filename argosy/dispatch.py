"""
Argosy command matching: walk positional tokens against the command tree.

Matching is strictly positional and left to right. At each depth the first
token is compared with canonical names and aliases; a hit consumes it and
extends the command path, a miss falls back to the default entry of that depth
without consuming anything. A token that follows a non-command positional is
never promoted to a command.
"""
import logging
from typing import NamedTuple

from .utils import Unset

logger = logging.getLogger(__name__)


class Match(NamedTuple):
    """
    Outcome of a dispatch walk.

    - path: consumed command tokens, outermost first
    - remaining: tokens left for binding
    - entry: the deepest matched Entry (or default), None when nothing matched
    - help: True when the only remaining token is the help trigger, at the
      root or after a command path
    """
    path: tuple
    remaining: tuple
    entry: object = None
    help: bool = False


class Dispatcher:
    """
    One-depth steps and full walks over registries.

    parameters
    - help: str | None
      the help trigger token; None disables help interception.
    """

    def __init__(self, help="help"):
        self.help = help

    def intercepts(self, tokens, /):
        """
        True when tokens consist of the help trigger alone.
        """
        return self.help is not None and [str(token) for token in tokens] == [self.help]

    def step(self, registry, tokens, /):
        """
        Resolve one depth of registry against tokens.
        """
        tokens = tuple(tokens)
        if tokens and (entry := registry.lookup(str(tokens[0]))) is not None:
            logger.debug("dispatch: %r matched command %r", tokens[0], entry.name)
            return Match((str(tokens[0]),), tokens[1:], entry)
        if (entry := registry.default) is not None:
            logger.debug("dispatch: falling back to default command %r", entry.name)
            return Match((), tokens, entry)
        return Match((), tokens)

    def match(self, registry, tokens, /):
        """
        Walk registry and the already built child registries below it.
        """
        path = ()
        entry = None
        tokens = tuple(tokens)
        while registry:
            step = self.step(registry, tokens)
            if step.entry is None:
                break
            entry = step.entry
            path += step.path
            tokens = step.remaining
            if entry.registry is Unset or self.intercepts(tokens):
                break
            registry = entry.registry
        return Match(path, tokens, entry, self.intercepts(tokens))


__all__ = (
    "Match",
    "Dispatcher",
)
