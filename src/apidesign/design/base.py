"""Design graph models.

A design graph is produced once by the DSL builder (or loaded from a
snapshot) and is treated as read-only by the document generator.
Translatable fields hold either a plain string or a ``{locale: text}``
mapping; use :func:`localize` to read them.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, model_validator

from apidesign.design.errors import DuplicateSchemeError, InvalidArgumentError, UsageError

LocalizedText = str | dict[str, str]

# attribute types whose examples may legitimately be mappings
STRUCTURED_TYPES = ("object", "any")


def localize(text: Any, locale: str, default_locale: str | None = None) -> Any:
    """Resolve a translatable value for ``locale``.

    Mappings fall back to ``default_locale`` and then to ``None``; any other
    value is returned unchanged.
    """
    if not isinstance(text, dict):
        return text
    if locale in text:
        return text[locale]
    if default_locale is not None:
        return text.get(default_locale)
    return None


class SchemeKind(str, Enum):
    BASIC = "basic"
    API_KEY = "apikey"
    OAUTH2 = "oauth2"
    JWT = "jwt"
    NONE = "none"


class FlowKind(str, Enum):
    IMPLICIT = "implicit"
    PASSWORD = "password"
    CLIENT_CREDENTIALS = "clientCredentials"
    AUTHORIZATION_CODE = "authorizationCode"


class SecurityRole(str, Enum):
    USERNAME = "username"
    PASSWORD = "password"
    API_KEY = "api-key"
    ACCESS_TOKEN = "access-token"
    TOKEN = "token"


class Contact(BaseModel):
    name: str | None = None
    url: str | None = None
    email: str | None = None


class License(BaseModel):
    name: str | None = None
    url: str | None = None


class Host(BaseModel):
    name: str
    description: LocalizedText | None = None
    uris: list[str] = []


class Server(BaseModel):
    name: str
    description: LocalizedText | None = None
    hosts: list[Host] = []


class Attribute(BaseModel):
    """A single field of a payload or result type."""

    name: str
    type: str = "string"  # string / integer / number / boolean / bytes / any / array / object
    items: str | None = None  # element type when type == "array"
    required: bool = False
    example: Any = None
    description: LocalizedText | None = None
    security_role: SecurityRole | None = None
    security_scheme: str | None = None  # scheme name for api-key attributes

    @property
    def is_array(self) -> bool:
        return self.type == "array"

    def localized_example(self, locale: str, default_locale: str | None = None) -> Any:
        """Example for ``locale``; mapping examples of structured types are kept as is."""
        if self.type in STRUCTURED_TYPES:
            return self.example
        return localize(self.example, locale, default_locale)


class UserType(BaseModel):
    name: str
    description: LocalizedText | None = None
    attributes: list[Attribute] = []


class Route(BaseModel):
    verb: str  # GET / PUT / POST / DELETE / PATCH / HEAD / OPTIONS / TRACE
    path: str
    method: str = ""  # name of the owning method


class Requirement(BaseModel):
    """One OR'd security requirement: every listed scheme must be satisfied."""

    schemes: list[str] = []
    scopes: list[str] = []
    no_security: bool = False


class Method(BaseModel):
    name: str
    description: LocalizedText | None = None
    payload: UserType | None = None
    result: UserType | None = None
    routes: list[Route] = []
    headers: list[str] = []  # payload attributes mapped to request headers
    security: list[Requirement] = []

    @model_validator(mode="after")
    def own_routes(self):
        for route in self.routes:
            if not route.method:
                route.method = self.name
        return self


class Service(BaseModel):
    name: str
    description: LocalizedText | None = None
    methods: list[Method] = []
    security: list[Requirement] = []

    def method(self, name: str) -> Method | None:
        return next((m for m in self.methods if m.name == name), None)


class Scope(BaseModel):
    name: str
    description: str = "no description"


class Flow(BaseModel):
    kind: FlowKind
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None


class Scheme(BaseModel):
    kind: SchemeKind
    name: str
    description: LocalizedText | None = None
    scopes: list[Scope] = []
    flows: list[Flow] = []

    def has_scope(self, name: str) -> bool:
        return any(s.name == name for s in self.scopes)


class Api(BaseModel):
    name: str
    title: LocalizedText | None = None
    description: LocalizedText | None = None
    terms_of_service: LocalizedText | None = None
    contact: Contact | None = None
    license: License | None = None
    version: str | None = None
    servers: list[Server] = []
    security: list[Requirement] = []


class DesignGraph(BaseModel):
    """The complete, finalized description of an API."""

    api: Api
    services: list[Service] = []
    types: list[UserType] = []
    schemes: list[Scheme] = []

    def scheme(self, name: str) -> Scheme | None:
        return next((s for s in self.schemes if s.name == name), None)

    def service(self, name: str) -> Service | None:
        return next((s for s in self.services if s.name == name), None)

    def has_routes(self) -> bool:
        """True when at least one method is reachable over HTTP."""
        return any(m.routes for s in self.services for m in s.methods)

    @model_validator(mode="after")
    def unique_names(self):
        seen = set()
        for scheme in self.schemes:
            if scheme.kind == SchemeKind.NONE:
                raise InvalidArgumentError("a basic, apikey, oauth2 or jwt scheme", scheme.kind.value)
            if scheme.name in seen:
                raise DuplicateSchemeError(scheme.name)
            seen.add(scheme.name)
        _check_unique("service", [s.name for s in self.services])
        for service in self.services:
            _check_unique(f"service {service.name!r}: method", [m.name for m in service.methods])
        return self


def _check_unique(what: str, names: list[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise UsageError(f"{what} {name!r} is defined more than once")
        seen.add(name)
