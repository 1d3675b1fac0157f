"""Error taxonomy for design building and document generation.

Usage errors are raised while a design is being declared, structural errors
while a document is assembled, configuration errors before any generation
starts. ``EncodingBug`` sits outside the hierarchy on purpose: it signals an
invariant violation that callers are not expected to recover from.
"""


class DesignError(Exception):
    """Base class for every recoverable design or generation error."""


# -- usage errors (design-build time) ----------------------------------------

class UsageError(DesignError):
    """A DSL function was called incorrectly."""


class IncompatibleContextError(UsageError):
    def __init__(self, func: str, kind: str):
        super().__init__(f"{func} cannot be used in a {kind} context")
        self.func = func
        self.kind = kind


class DuplicateSchemeError(UsageError):
    def __init__(self, name: str):
        super().__init__(f"cannot redefine security scheme with name {name!r}")
        self.name = name


class InvalidSchemeKindError(UsageError):
    def __init__(self, scheme: str, kind: str):
        super().__init__(f"cannot specify flow for non-oauth2 security scheme {scheme!r} ({kind})")
        self.scheme = scheme
        self.kind = kind


class TooManyArgumentsError(UsageError):
    def __init__(self, func: str):
        super().__init__(f"{func}: too many arguments")
        self.func = func


class UnknownScopeError(UsageError):
    def __init__(self, scope: str, schemes: list[str]):
        super().__init__(f"scope {scope!r} is not defined by any of {', '.join(schemes) or 'no schemes'}")
        self.scope = scope


class InvalidArgumentError(UsageError):
    def __init__(self, expected: str, value: object):
        super().__init__(f"expected {expected}, got {value!r}")


class DesignErrors(UsageError):
    """All usage errors recorded while evaluating a design."""

    def __init__(self, errors: list[DesignError]):
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} design error(s):\n{lines}")


# -- structural errors (assembly time) ---------------------------------------

class StructuralError(DesignError):
    """The design graph cannot be mapped onto a document."""


class UnknownSchemeError(StructuralError):
    def __init__(self, name: str):
        super().__init__(f"security scheme {name!r} not found")
        self.name = name


class ConflictingRouteError(StructuralError):
    def __init__(self, verb: str, path: str, first: str, second: str):
        super().__init__(f"{verb} {path} is routed to both {first} and {second}")
        self.verb = verb
        self.path = path
        self.operations = (first, second)


# -- configuration errors ----------------------------------------------------

class ConfigurationError(DesignError):
    """The generator configuration is missing or invalid."""


class EncodingBug(RuntimeError):
    """A document could not be serialized; indicates a bug in assembly."""
