"""
Argosy validation: the checks that run after binding and before the handler.

Order
1. demand      missing required options
2. strict      unknown flags, and unknown positionals where subcommands exist
3. choices     values outside the declared choices
4. implies     an option given without the option(s) it implies
5. conflicts   mutually exclusive options given together
6. checks      custom callbacks (falsy result, message string or raised exception)

The first failing step raises; later steps do not run.
"""
from .faults import (
    ConflictingArgumentsError,
    FailedCheckError,
    FaultCode,
    InvalidChoiceError,
    MissingArgumentError,
    MissingImplicationError,
    UnknownArgumentError,
)


def _plural(word, items):
    return word if len(items) == 1 else word + "s"


class Validator:
    """
    Validate a namespace under one Configuration.

    parameters
    - configuration: Configuration
    - reserved: Iterable[str]
      keys always known to strict mode (help, version, "$0", "_", "--").
    """

    def __init__(self, configuration, /, reserved=()):
        self.configuration = configuration
        self.reserved = set(reserved)

    def validate(self, namespace, /, *, given=(), bound=(), leftovers=(), commands=()):
        """
        Run every validation step against namespace.

        parameters
        - given: canonical keys given as flags
        - bound: keys written by the positional binder
        - leftovers: positional tokens nothing consumed
        - commands: command names available at the terminal depth

        raises
        - ValidationError subclasses, see module documentation.
        """
        present = {*given, *bound}
        options = self.configuration.options

        if missing := [key for key, setting in options.items() if setting.demand and namespace.get(key) is None]:
            raise MissingArgumentError(
                "missing required %s: %s" % (_plural("argument", missing), ", ".join(missing)),
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                hint="pass " + " ".join("--" + key for key in missing),
                namespace=namespace,
            )

        if self.configuration.strict.value:
            known = self.configuration.known() | self.reserved | set(bound)
            unknown = [key for key in given if key not in known]
            if commands:
                unknown += [str(token) for token in leftovers if str(token) not in commands]
            if unknown:
                raise UnknownArgumentError(
                    "unknown %s: %s" % (_plural("argument", unknown), ", ".join(unknown)),
                    title="unknown argument",
                    code=FaultCode.UNKNOWN_ARGUMENT,
                    hint="check the spelling or declare the option",
                    namespace=namespace,
                )

        for key, setting in options.items():
            if not setting.choices or namespace.get(key) is None:
                continue
            values = namespace[key] if isinstance(namespace[key], list) else [namespace[key]]
            if invalid := [value for value in values if value not in setting.choices]:
                raise InvalidChoiceError(
                    "invalid values: argument: %s, given: %s, choices: %s" % (
                        key,
                        ", ".join(map(repr, invalid)) if len(invalid) > 1 else invalid[0],
                        ", ".join(map(str, setting.choices)),
                    ),
                    title="invalid choice",
                    code=FaultCode.INVALID_CHOICE,
                    hint="pick one of: " + ", ".join(map(str, setting.choices)),
                    namespace=namespace,
                )

        for key, setting in options.items():
            if key not in present or namespace.get(key) is False:
                continue
            if absent := [implied for implied in setting.implies if namespace.get(implied) is None]:
                raise MissingImplicationError(
                    "missing dependent arguments: %s" % ", ".join("%s -> %s" % (key, implied) for implied in absent),
                    title="missing dependent argument",
                    code=FaultCode.MISSING_IMPLICATION,
                    hint="pass " + " ".join("--" + implied for implied in absent),
                    namespace=namespace,
                )

        for key, setting in options.items():
            if key not in present:
                continue
            for other in setting.conflicts:
                if self.configuration.resolve(other) in present:
                    raise ConflictingArgumentsError(
                        "arguments %s and %s are mutually exclusive" % (key, other),
                        title="conflicting arguments",
                        code=FaultCode.CONFLICTING_ARGUMENTS,
                        hint="pass only one of --%s and --%s" % (key, other),
                        namespace=namespace,
                    )

        for check in self.configuration.checks:
            name = getattr(check.callback, "__name__", "check")
            try:
                result = check.callback(namespace)
            except Exception as exc:
                raise FailedCheckError(
                    str(exc) or type(exc).__name__,
                    title="failed check",
                    code=FaultCode.FAILED_CHECK,
                    cause=exc,
                    namespace=namespace,
                ) from exc
            if isinstance(result, str) or not result:
                raise FailedCheckError(
                    result if isinstance(result, str) and result else "argument check failed: %s" % name,
                    title="failed check",
                    code=FaultCode.FAILED_CHECK,
                    namespace=namespace,
                )


__all__ = (
    "Validator",
)
