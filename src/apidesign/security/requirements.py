"""Effective security requirements and their document rendering."""

from apidesign.design.base import (
    Api,
    DesignGraph,
    Method,
    Requirement,
    Scheme,
    SchemeKind,
    SecurityRole,
    Service,
    localize,
)
from apidesign.design.errors import StructuralError, UnknownSchemeError
from apidesign.generator.document import OAuthFlow, SecurityScheme
from apidesign.security.registry import SCOPED_KINDS

# attribute roles that carry the credentials of each scheme kind
ROLE_KINDS: dict[SecurityRole, SchemeKind] = {
    SecurityRole.USERNAME: SchemeKind.BASIC,
    SecurityRole.PASSWORD: SchemeKind.BASIC,
    SecurityRole.API_KEY: SchemeKind.API_KEY,
    SecurityRole.ACCESS_TOKEN: SchemeKind.OAUTH2,
    SecurityRole.TOKEN: SchemeKind.JWT,
}


def effective_requirements(api: Api, service: Service, method: Method) -> list[Requirement] | None:
    """Resolve the requirements that apply to ``method``.

    The most specific non-empty layer wins: method, then service, then API.
    A no-security sentinel yields an empty list; ``None`` means nothing was
    declared at any level.
    """
    for layer in (method.security, service.security, api.security):
        if any(r.no_security for r in layer):
            return []
        if layer:
            return layer
    return None


def render_requirements(requirements: list[Requirement], graph: DesignGraph) -> list[dict[str, list[str]]]:
    """Render OR'd requirements as document security requirement objects."""
    rendered = []
    for req in requirements:
        entry: dict[str, list[str]] = {}
        for name in req.schemes:
            scheme = graph.scheme(name)
            if scheme is None:
                raise UnknownSchemeError(name)
            if scheme.kind in SCOPED_KINDS:
                entry[name] = [s for s in req.scopes if scheme.has_scope(s)]
            else:
                entry[name] = []
        rendered.append(entry)
    return rendered


def credential_attributes(graph: DesignGraph, scheme: Scheme) -> list[str]:
    """Names of payload attributes that carry credentials for ``scheme``."""
    names: list[str] = []
    for service in graph.services:
        for method in service.methods:
            if method.payload is None:
                continue
            for att in method.payload.attributes:
                if att.security_role is None or ROLE_KINDS[att.security_role] != scheme.kind:
                    continue
                if att.security_role == SecurityRole.API_KEY and att.security_scheme != scheme.name:
                    continue
                if att.name not in names:
                    names.append(att.name)
    return names


def render_scheme(graph: DesignGraph, scheme: Scheme, locale: str, default_locale: str | None = None) -> SecurityScheme:
    parts = []
    description = localize(scheme.description, locale, default_locale)
    if description:
        parts.append(description)
    if scheme.kind == SchemeKind.JWT and scheme.scopes:
        lines = "\n".join(f"  * `{s.name}`: {s.description}" for s in scheme.scopes)
        parts.append(f"**Security Scopes**:\n{lines}")
    attributes = credential_attributes(graph, scheme)
    if attributes:
        parts.append("Provided by payload attribute(s): " + ", ".join(f"`{a}`" for a in attributes))
    text = "\n\n".join(parts) or None

    if scheme.kind == SchemeKind.BASIC:
        return SecurityScheme(type="http", scheme="basic", description=text)
    if scheme.kind == SchemeKind.API_KEY:
        return SecurityScheme(type="apiKey", name="Authorization", in_="header", description=text)
    if scheme.kind == SchemeKind.JWT:
        return SecurityScheme(type="http", scheme="bearer", bearer_format="JWT", description=text)
    if scheme.kind != SchemeKind.OAUTH2:
        raise StructuralError(f"security scheme {scheme.name!r} of kind {scheme.kind.value!r} cannot be rendered")
    scopes = {s.name: s.description for s in scheme.scopes}
    flows = {
        f.kind.value: OAuthFlow(
            authorization_url=f.authorization_url,
            token_url=f.token_url,
            refresh_url=f.refresh_url,
            scopes=scopes,
        )
        for f in scheme.flows
    }
    return SecurityScheme(type="oauth2", flows=flows, description=text)


def security_schemes(graph: DesignGraph, locale: str, default_locale: str | None = None) -> dict[str, SecurityScheme]:
    """All registered schemes keyed by name, in registration order."""
    return {s.name: render_scheme(graph, s, locale, default_locale) for s in graph.schemes}
