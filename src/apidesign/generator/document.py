"""Output document models (OpenAPI 3.0.0 subset).

Field aliases carry the camelCase names of the target schema. Dump with
:func:`to_dict` so unset optional fields are dropped.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

OPENAPI_VERSION = "3.0.0"

VERBS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Contact(_Model):
    name: str | None = None
    url: str | None = None
    email: str | None = None


class License(_Model):
    name: str | None = None
    url: str | None = None


class Info(_Model):
    title: str | None = None
    description: str | None = None
    terms_of_service: str | None = Field(default=None, alias="termsOfService")
    contact: Contact | None = None
    license: License | None = None
    version: str


class Server(_Model):
    url: str
    description: str | None = None


class Parameter(_Model):
    in_: str = Field(alias="in")  # path / query / header
    name: str
    description: str | None = None
    required: bool
    explode: bool | None = None
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any = None


class Operation(_Model):
    tags: list[str] | None = None
    operation_id: str = Field(alias="operationId")
    description: str | None = None
    parameters: list[Parameter] | None = None
    responses: dict[str, Any] = {}
    security: list[dict[str, list[str]]] | None = None


class PathItem(_Model):
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None


class OAuthFlow(_Model):
    authorization_url: str | None = Field(default=None, alias="authorizationUrl")
    token_url: str | None = Field(default=None, alias="tokenUrl")
    refresh_url: str | None = Field(default=None, alias="refreshUrl")
    scopes: dict[str, str] = {}


class SecurityScheme(_Model):
    type: str  # http / apiKey / oauth2
    description: str | None = None
    scheme: str | None = None
    bearer_format: str | None = Field(default=None, alias="bearerFormat")
    name: str | None = None
    in_: str | None = Field(default=None, alias="in")
    flows: dict[str, OAuthFlow] | None = None


class Components(_Model):
    security_schemes: dict[str, SecurityScheme] | None = Field(default=None, alias="securitySchemes")


class Document(_Model):
    openapi: str = OPENAPI_VERSION
    info: Info
    servers: list[Server] | None = None
    paths: dict[str, PathItem] = {}
    components: Components | None = None


def to_dict(document: Document) -> dict[str, Any]:
    """Plain, JSON-compatible representation with schema field names."""
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)
