"""Security scheme registry.

Holds the named authentication schemes of a design. Scheme names are
unique; lookups by name or by handle resolve the schemes listed in a
security requirement.
"""

import logging

from apidesign.design.base import Flow, FlowKind, Requirement, Scheme, SchemeKind, Scope
from apidesign.design.errors import (
    DuplicateSchemeError,
    InvalidArgumentError,
    InvalidSchemeKindError,
    TooManyArgumentsError,
    UnknownSchemeError,
    UnknownScopeError,
)

logger = logging.getLogger(__name__)

# URLs each flow carries, per RFC 6749 section 1.3
FLOW_URLS: dict[FlowKind, tuple[str, ...]] = {
    FlowKind.AUTHORIZATION_CODE: ("authorization_url", "token_url", "refresh_url"),
    FlowKind.IMPLICIT: ("authorization_url", "refresh_url"),
    FlowKind.PASSWORD: ("token_url", "refresh_url"),
    FlowKind.CLIENT_CREDENTIALS: ("token_url", "refresh_url"),
}

SCOPED_KINDS = (SchemeKind.OAUTH2, SchemeKind.JWT)


class SchemeRegistry:
    """Registry of security schemes backed by a (shared) list."""

    def __init__(self, schemes: list[Scheme] | None = None):
        self.schemes = schemes if schemes is not None else []

    def __len__(self) -> int:
        return len(self.schemes)

    def __contains__(self, name: str) -> bool:
        return any(s.name == name for s in self.schemes)

    def define(self, kind: SchemeKind, name: str) -> Scheme:
        """Create and register a new scheme. Names must be unique."""
        return self.add(Scheme(kind=kind, name=name))

    def add(self, scheme: Scheme) -> Scheme:
        if scheme.name in self:
            raise DuplicateSchemeError(scheme.name)
        if scheme.kind == SchemeKind.NONE:
            raise InvalidArgumentError("a security scheme kind other than 'none'", scheme.kind)
        self.schemes.append(scheme)
        logger.debug("registered %s security scheme %r", scheme.kind.value, scheme.name)
        return scheme

    def lookup(self, name: str) -> Scheme:
        for scheme in self.schemes:
            if scheme.name == name:
                return scheme
        raise UnknownSchemeError(name)

    def resolve(self, ref: str | Scheme) -> Scheme:
        """Resolve a scheme reference given by name or by handle."""
        if isinstance(ref, str):
            return self.lookup(ref)
        if isinstance(ref, Scheme):
            return ref
        raise InvalidArgumentError("security scheme or security scheme name", ref)

    def requirement(self, *refs: str | Scheme) -> Requirement:
        """Build a requirement that ANDs the given schemes."""
        return Requirement(schemes=[self.resolve(ref).name for ref in refs])


def add_flow(
    scheme: Scheme,
    kind: FlowKind,
    authorization_url: str | None = None,
    token_url: str | None = None,
    refresh_url: str | None = None,
) -> Flow:
    """Append an OAuth2 flow to ``scheme``, keeping only the URLs the flow uses."""
    if scheme.kind != SchemeKind.OAUTH2:
        raise InvalidSchemeKindError(scheme.name, scheme.kind.value)
    urls = {
        "authorization_url": authorization_url,
        "token_url": token_url,
        "refresh_url": refresh_url,
    }
    flow = Flow(kind=kind, **{k: v for k, v in urls.items() if k in FLOW_URLS[kind]})
    scheme.flows.append(flow)
    return flow


def define_scope(scheme: Scheme, name: str, *desc: str) -> Scope:
    """Declare a scope supported by ``scheme``."""
    if len(desc) > 1:
        raise TooManyArgumentsError("Scope")
    scope = Scope(name=name, description=desc[0]) if desc else Scope(name=name)
    scheme.scopes.append(scope)
    return scope


def require_scope(requirement: Requirement, schemes: list[Scheme], name: str, *desc: str) -> None:
    """Add ``name`` to the scopes a requirement demands.

    The scope must be defined by one of the requirement's schemes.
    """
    if desc:
        raise TooManyArgumentsError("Scope")
    if not any(s.has_scope(name) for s in schemes):
        raise UnknownScopeError(name, [s.name for s in schemes])
    requirement.scopes.append(name)
