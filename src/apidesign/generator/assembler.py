"""Document assembler: maps a design graph onto an OpenAPI document."""

import logging

from apidesign.design.base import Api, DesignGraph, localize
from apidesign.design.errors import ConflictingRouteError, StructuralError
from apidesign.generator import document as doc
from apidesign.generator.params import classify, normalize_path, template_shape
from apidesign.security.requirements import effective_requirements, render_requirements, security_schemes

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "unversioned"


def assemble(graph: DesignGraph, locale: str, default_locale: str | None = None) -> doc.Document | None:
    """Build the document for ``locale``.

    Returns ``None`` when no service exposes a route. Raises a
    ``StructuralError`` when the graph cannot be mapped (conflicting routes,
    unknown schemes); no partial document is returned in that case.
    """
    if not graph.has_routes():
        logger.debug("no HTTP routes in design %r, skipping %s", graph.api.name, locale)
        return None

    components = None
    if graph.schemes:
        components = doc.Components(security_schemes=security_schemes(graph, locale, default_locale))

    return doc.Document(
        info=_info(graph.api, locale, default_locale),
        servers=_servers(graph.api, locale, default_locale),
        paths=_paths(graph, locale, default_locale),
        components=components,
    )


def _info(api: Api, locale: str, default_locale: str | None) -> doc.Info:
    contact = doc.Contact(**api.contact.model_dump()) if api.contact else None
    license_ = doc.License(**api.license.model_dump()) if api.license else None
    return doc.Info(
        title=localize(api.title, locale, default_locale) or api.name,
        description=localize(api.description, locale, default_locale),
        terms_of_service=localize(api.terms_of_service, locale, default_locale),
        contact=contact,
        license=license_,
        version=api.version or DEFAULT_VERSION,
    )


def _servers(api: Api, locale: str, default_locale: str | None) -> list[doc.Server] | None:
    if not api.servers:
        return None
    servers = []
    for server in api.servers:
        for host in server.hosts:
            description = localize(host.description, locale, default_locale)
            for uri in host.uris:
                servers.append(doc.Server(url=uri, description=description))
    return servers


def _paths(graph: DesignGraph, locale: str, default_locale: str | None) -> dict[str, doc.PathItem]:
    paths: dict[str, doc.PathItem] = {}
    templates: dict[str, str] = {}
    for service in graph.services:
        for method in service.methods:
            operation_id = f"{service.name}#{method.name}"
            requirements = effective_requirements(graph.api, service, method)
            security = None if requirements is None else render_requirements(requirements, graph)
            attributes = method.payload.attributes if method.payload else []

            for route in method.routes:
                path = normalize_path(route.path)
                verb = route.verb.lower()
                if verb not in doc.VERBS:
                    raise StructuralError(f"unsupported HTTP verb {route.verb!r} for {operation_id}")
                first = templates.setdefault(template_shape(path), path)
                if first != path:
                    existing = getattr(paths[first], verb)
                    if existing is not None:
                        raise ConflictingRouteError(route.verb.upper(), path, existing.operation_id, operation_id)
                    raise StructuralError(f"path {path!r} of {operation_id} differs from {first!r} only in parameter names")
                item = paths.setdefault(path, doc.PathItem())
                existing = getattr(item, verb)
                if existing is not None:
                    raise ConflictingRouteError(route.verb.upper(), path, existing.operation_id, operation_id)

                params = classify(attributes, route.path, method.headers, locale, default_locale)
                setattr(item, verb, doc.Operation(
                    tags=[service.name],
                    operation_id=operation_id,
                    description=localize(method.description, locale, default_locale),
                    parameters=params or None,
                    responses={},
                    security=security,
                ))
                logger.debug("mapped %s %s to %s", verb.upper(), path, operation_id)
    return paths
