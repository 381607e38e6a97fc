"""
Argosy execution: builder protocols and the per-parse orchestration of
dispatch, scope, binding, validation and handlers.

Builder protocols (auto-detected by invoke_builder)
- mapping            flat option specs, applied through parser.option()
- builder(parser)    synchronous; an awaitable return value is awaited
- builder(parser, done)
                     completion callback; the parse resumes once done() is
                     called (done(error) fails the parse with error);
                     parameters with defaults are not counted, so
                     builder(parser, verbose=False) is synchronous

Every protocol is normalized into Immediate(state) or Deferred(future) so the
orchestrator suspends only where a builder or a handler asks it to.
"""
import asyncio
import inspect
import logging
import sys
from collections.abc import Mapping
from typing import NamedTuple

from .binder import Binder
from .dispatch import Dispatcher
from .faults import (
    BindingCountError,
    CoercionError,
    FaultCode,
    HandlerRejection,
    UnloadableConfigError,
    ValidationError,
)
from .scope import ScopeManager
from .tokens import Tokenizer
from .utils import Namespace, Unset, numberize
from .validation import Validator

logger = logging.getLogger(__name__)


class Immediate(NamedTuple):
    state: object


class Deferred(NamedTuple):
    future: asyncio.Future


def _arity(callable):
    try:
        parameters = inspect.signature(callable).parameters.values()
    except (TypeError, ValueError):
        return 1
    return sum(
        parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
        and parameter.default is parameter.empty
        for parameter in parameters
    )


def invoke_builder(builder, parser, /):
    """
    Run a command builder against parser and normalize its completion.

    returns
    - Immediate(configuration) for mappings, None and synchronous builders;
    - Deferred(future) for awaitable results and completion-callback builders.
    """
    if builder is None:
        return Immediate(parser.configuration)

    if isinstance(builder, Mapping):
        for key, spec in builder.items():
            parser.option(key, spec)
        logger.debug("builder: applied %d option spec(s)", len(builder))
        return Immediate(parser.configuration)

    if _arity(builder) >= 2:
        future = asyncio.get_running_loop().create_future()

        def done(error=None, /):
            if future.done():
                return
            if isinstance(error, BaseException):
                future.set_exception(error)
            else:
                future.set_result(parser.configuration)

        result = builder(parser, done)
        logger.debug("builder: waiting for completion callback")
        if inspect.isawaitable(result):
            async def chained():
                await result
                return await future
            return Deferred(asyncio.ensure_future(chained()))
        return Deferred(future)

    result = builder(parser)
    if inspect.isawaitable(result):
        async def settled():
            await result
            return parser.configuration
        logger.debug("builder: deferred result")
        return Deferred(asyncio.ensure_future(settled()))
    return Immediate(parser.configuration)


async def settle(outcome, /):
    """
    Wait for a builder outcome and return its state.
    """
    match outcome:
        case Immediate(state):
            return state
        case Deferred(future):
            return await future
        case _:
            raise TypeError("settle() argument must be Immediate or Deferred")


class Orchestrator:
    """
    One parse over a parser's command tree.

    The orchestrator drives the parser through its internal state: the current
    configuration (parser._configuration), the entry whose builder is running
    (parser._entry, so nested command() calls land in its child registry) and
    the failure path (parser._report).
    """

    def __init__(self, parser, /):
        self.parser = parser
        self.scope = ScopeManager()
        self.dispatcher = Dispatcher(parser._help)

    def positionals(self, tokens, path, /):
        """
        Positional candidates left after path under the current configuration.
        """
        return Tokenizer(self.parser._configuration).extract(tokens).positionals[len(path):]

    async def run(self, tokens, /):
        tokens = list(tokens)
        step = self.dispatcher.step(self.parser._root, self.positionals(tokens, ()))
        if step.entry is None:
            return await self._conclude(None, tokens, ())
        return await self._execute(step.entry, tokens, step.path)

    async def _execute(self, entry, tokens, path):
        parser = self.parser
        outer, previous = parser._configuration, parser._entry
        parser._configuration = self.scope.reset(outer)
        parser._entry = entry
        try:
            await settle(invoke_builder(entry.builder, parser))
            if entry.registry:
                candidates = self.positionals(tokens, path)
                if not self.dispatcher.intercepts(candidates):
                    step = self.dispatcher.step(entry.registry, candidates)
                    if step.entry is not None:
                        return await self._execute(step.entry, tokens, path + step.path)
            return await self._conclude(entry, tokens, path)
        finally:
            parser._configuration = self.scope.restore(outer, parser._configuration)
            parser._entry = previous

    async def _conclude(self, entry, tokens, path):
        parser = self.parser
        configuration = parser._configuration

        try:
            extraction = Tokenizer(configuration).extract(tokens, complete=True)
        except (CoercionError, UnloadableConfigError) as fault:
            parser._report(fault, entry, path)
            raise

        candidates = extraction.positionals[len(path):]
        namespace = Namespace(_=list(path))
        namespace.update(extraction.namespace)
        namespace["$0"] = parser.prog

        if self.dispatcher.intercepts(candidates) or (parser._help and parser._help in extraction.given):
            parser._show_help(entry, path)
            if parser._exiting:
                sys.exit(0)
            return namespace

        if parser._version and parser._version[0] in extraction.given:
            parser._show_version()
            if parser._exiting:
                sys.exit(0)
            return namespace

        binder = Binder(configuration)
        leftovers = candidates
        if entry is not None:
            try:
                leftovers = binder.bind(entry, namespace, candidates)
            except BindingCountError as fault:
                parser._report(fault, entry, path)
                return namespace
            except CoercionError as fault:
                parser._report(fault, entry, path)
                raise

        namespace["_"] = [*path, *map(numberize, leftovers)]
        if parser._settings.get("populate_double_dash"):
            namespace["--"] = list(extraction.rest)
        else:
            namespace["_"] += extraction.rest

        registry = parser._root if entry is None else entry.registry
        validator = Validator(configuration, reserved=parser._reserved())
        try:
            validator.validate(
                namespace,
                given=extraction.given,
                bound=[key for positional in (entry.positionals if entry else ()) for key in binder.keys(positional)],
                leftovers=leftovers,
                commands=registry.names() if registry else (),
            )
        except ValidationError as fault:
            parser._report(fault, entry, path)
            return namespace

        if entry is None:
            return namespace

        logger.debug("invoking handler of %r", entry.name)
        result = entry.handler(namespace)
        if inspect.isawaitable(result):
            try:
                await result
            except Exception as exc:
                fault = HandlerRejection(
                    str(exc) or "handler for %r failed: %s" % (entry.name, type(exc).__name__),
                    title="handler failed",
                    code=FaultCode.HANDLER_REJECTION,
                    cause=exc,
                    namespace=namespace,
                )
                logger.debug("handler of %r rejected with %r", entry.name, exc)
                parser._report(fault, entry, path)
                raise fault from exc
            logger.debug("handler of %r settled", entry.name)
        return namespace


__all__ = (
    "Immediate",
    "Deferred",
    "invoke_builder",
    "settle",
    "Orchestrator",
)
