"""Parameter classification: maps payload attributes onto route parameters."""

import re

from apidesign.design.base import Attribute, localize
from apidesign.generator.document import Parameter

WILDCARD_RE = re.compile(r"\{\*?([a-zA-Z0-9_]+)\}")

PRIMITIVE_SCHEMAS: dict[str, dict] = {
    "string": {"type": "string"},
    "integer": {"type": "integer"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "bytes": {"type": "string", "format": "byte"},
    "object": {"type": "object"},
    "any": {},
}


def extract_wildcards(path: str) -> list[str]:
    """Return the wildcard names of a path template, e.g. /a/{x}/{*y} -> [x, y]."""
    return WILDCARD_RE.findall(path)


def normalize_path(path: str) -> str:
    """Rewrite catch-all wildcards ({*name}) as plain template segments."""
    return WILDCARD_RE.sub(r"{\1}", path)


def template_shape(path: str) -> str:
    """Path with wildcard names erased; equal shapes are the same OpenAPI path."""
    return WILDCARD_RE.sub("{}", path)


def attribute_schema(att: Attribute) -> dict:
    if att.is_array:
        return {"type": "array", "items": dict(PRIMITIVE_SCHEMAS.get(att.items or "any", {}))}
    return dict(PRIMITIVE_SCHEMAS.get(att.type, {}))


def classify(
    attributes: list[Attribute],
    path: str,
    headers: list[str] | None = None,
    locale: str = "",
    default_locale: str | None = None,
) -> list[Parameter]:
    """Classify ``attributes`` as path, header or query parameters of ``path``.

    Path wildcards are always required. Attributes carrying credentials are
    left to the security scheme and never listed.
    """
    wildcards = set(extract_wildcards(path))
    headers = headers or []
    params = []
    for att in attributes:
        if att.security_role is not None:
            continue
        if att.name in wildcards:
            location, required = "path", True
        elif att.name in headers:
            location, required = "header", att.required
        else:
            location, required = "query", att.required

        params.append(
            Parameter(
                in_=location,
                name=att.name,
                description=localize(att.description, locale, default_locale),
                required=required,
                explode=True if att.is_array else None,
                schema_=attribute_schema(att),
                example=att.localized_example(locale, default_locale),
            )
        )
    return params
