"""Design DSL.

Designs are declared by calling the functions of this module with an
explicit context handle. A :class:`Design` is the top-level context; the
functions that open a nested block (``api``, ``service``, ``method``,
``http``, the security schemes, ...) call the given builder with the child
context::

    def calc(design):
        basic = dsl.basic_auth_security(design, "basic")

        def operands(p):
            dsl.attribute(p, "x", "integer", required=True)
            dsl.attribute(p, "y", "integer")

        def add(m):
            dsl.description(m, "Add two numbers")
            dsl.security(m, basic)
            dsl.payload(m, operands)
            dsl.http(m, lambda h: dsl.get(h, "/add/{x}"))

        dsl.service(design, "calc", lambda s: dsl.method(s, "add", add))

    graph = dsl.build(calc)

Usage errors do not stop evaluation: they are recorded on ``Design.errors``,
the offending declaration is skipped and :meth:`Design.finalize` reports
them all at once.
"""

import functools
import logging
from enum import Enum
from typing import Any, Callable

from apidesign.design.base import (
    Api,
    Attribute,
    Contact,
    DesignGraph,
    FlowKind,
    Host,
    License,
    LocalizedText,
    Method,
    Requirement,
    Route,
    Scheme,
    SchemeKind,
    SecurityRole,
    Server,
    Service,
    UserType,
)
from apidesign.design.errors import (
    DesignError,
    DesignErrors,
    DuplicateSchemeError,
    IncompatibleContextError,
    InvalidArgumentError,
    UnknownSchemeError,
    UsageError,
)
from apidesign.security import registry as reg

logger = logging.getLogger(__name__)


class ContextKind(str, Enum):
    TOP = "top"
    API = "api"
    SERVER = "server"
    HOST = "host"
    SERVICE = "service"
    METHOD = "method"
    TYPE = "type"
    HTTP = "http"
    SCHEME = "scheme"
    REQUIREMENT = "requirement"


class Context:
    """Handle on the design node a DSL function configures."""

    def __init__(self, kind: ContextKind, node: Any, design: "Design"):
        self.kind = kind
        self.node = node
        self.design = design

    def __repr__(self) -> str:
        return f"<Context {self.kind.value} {getattr(self.node, 'name', '')!r}>"


Builder = Callable[[Context], Any] | None


class Design(Context):
    """Top-level context. Owns the graph, its scheme registry and the errors."""

    def __init__(self, name: str = "api"):
        self.graph = DesignGraph(api=Api(name=name))
        self.registry = reg.SchemeRegistry(self.graph.schemes)
        self.errors: list[DesignError] = []
        self._api_defined = False
        self._depth = 0
        super().__init__(ContextKind.TOP, self.graph, self)

    def report(self, error: DesignError) -> None:
        logger.debug("design error: %s", error)
        self.errors.append(error)

    def execute(self, fn: Builder, ctx: Context) -> bool:
        """Run ``fn`` on ``ctx``; False if it reported any error."""
        if fn is None:
            return True
        before = len(self.errors)
        self._depth += 1
        try:
            fn(ctx)
        finally:
            self._depth -= 1
        return len(self.errors) == before

    @property
    def at_top(self) -> bool:
        return self._depth == 0

    def finalize(self) -> DesignGraph:
        """Return a read-only snapshot of the graph or raise all recorded errors."""
        if self.errors:
            raise DesignErrors(self.errors)
        return self.graph.model_copy(deep=True)


def build(fn: Callable[[Design], Any], name: str = "api") -> DesignGraph:
    """Evaluate ``fn`` against a fresh design and return the finalized graph."""
    design = Design(name)
    fn(design)
    return design.finalize()


def _dsl(*kinds: ContextKind, top: bool = False):
    """Restrict a DSL function to contexts of ``kinds`` and record its usage errors.

    ``top`` functions must also be called outside of any builder.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(ctx: Context, *args, **kwargs):
            design = ctx.design
            if ctx.kind not in kinds or (top and not design.at_top):
                kind = ctx.kind.value if design.at_top else "nested"
                design.report(IncompatibleContextError(func.__name__, kind))
                return None
            try:
                return func(ctx, *args, **kwargs)
            except (UsageError, UnknownSchemeError) as e:
                design.report(e)
                return None

        return wrapper

    return decorator


def _split_builder(args: tuple) -> tuple[tuple, Builder]:
    if args and callable(args[-1]) and not isinstance(args[-1], (str, Scheme)):
        return args[:-1], args[-1]
    return args, None


# -- top level ---------------------------------------------------------------

@_dsl(ContextKind.TOP, top=True)
def api(ctx: Design, name: str, fn: Builder = None) -> Api:
    design = ctx.design
    if design._api_defined:
        raise UsageError(f"API {name!r}: an API is already defined")
    design._api_defined = True
    design.graph.api.name = name
    design.execute(fn, Context(ContextKind.API, design.graph.api, design))
    return design.graph.api


@_dsl(ContextKind.TOP, top=True)
def service(ctx: Design, name: str, fn: Builder = None) -> Service:
    design = ctx.design
    if design.graph.service(name) is not None:
        raise UsageError(f"service {name!r} is already defined")
    svc = Service(name=name)
    design.graph.services.append(svc)
    design.execute(fn, Context(ContextKind.SERVICE, svc, design))
    return svc


@_dsl(ContextKind.TOP, top=True)
def type_(ctx: Design, name: str, fn: Builder = None) -> UserType:
    design = ctx.design
    if any(t.name == name for t in design.graph.types):
        raise UsageError(f"type {name!r} is already defined")
    ut = UserType(name=name)
    design.graph.types.append(ut)
    design.execute(fn, Context(ContextKind.TYPE, ut, design))
    return ut


def _scheme(ctx: Context, kind: SchemeKind, name: str, fn: Builder) -> Scheme | None:
    design = ctx.design
    if name in design.registry:
        raise DuplicateSchemeError(name)
    scheme = Scheme(kind=kind, name=name)
    if not design.execute(fn, Context(ContextKind.SCHEME, scheme, design)):
        return None
    return design.registry.add(scheme)


@_dsl(ContextKind.TOP, top=True)
def basic_auth_security(ctx: Design, name: str, fn: Builder = None) -> Scheme | None:
    return _scheme(ctx, SchemeKind.BASIC, name, fn)


@_dsl(ContextKind.TOP, top=True)
def api_key_security(ctx: Design, name: str, fn: Builder = None) -> Scheme | None:
    return _scheme(ctx, SchemeKind.API_KEY, name, fn)


@_dsl(ContextKind.TOP, top=True)
def oauth2_security(ctx: Design, name: str, fn: Builder = None) -> Scheme | None:
    return _scheme(ctx, SchemeKind.OAUTH2, name, fn)


@_dsl(ContextKind.TOP, top=True)
def jwt_security(ctx: Design, name: str, fn: Builder = None) -> Scheme | None:
    return _scheme(ctx, SchemeKind.JWT, name, fn)


# -- API metadata ------------------------------------------------------------

@_dsl(
    ContextKind.API,
    ContextKind.SERVER,
    ContextKind.HOST,
    ContextKind.SERVICE,
    ContextKind.METHOD,
    ContextKind.TYPE,
    ContextKind.SCHEME,
)
def description(ctx: Context, text: LocalizedText) -> None:
    ctx.node.description = text


@_dsl(ContextKind.API)
def title(ctx: Context, text: LocalizedText) -> None:
    ctx.node.title = text


@_dsl(ContextKind.API)
def version(ctx: Context, ver: str) -> None:
    ctx.node.version = ver


@_dsl(ContextKind.API)
def terms_of_service(ctx: Context, text: LocalizedText) -> None:
    ctx.node.terms_of_service = text


@_dsl(ContextKind.API)
def contact(ctx: Context, name: str | None = None, url: str | None = None, email: str | None = None) -> None:
    ctx.node.contact = Contact(name=name, url=url, email=email)


@_dsl(ContextKind.API)
def license_(ctx: Context, name: str | None = None, url: str | None = None) -> None:
    ctx.node.license = License(name=name, url=url)


@_dsl(ContextKind.API)
def server(ctx: Context, name: str, fn: Builder = None) -> Server:
    srv = Server(name=name)
    ctx.node.servers.append(srv)
    ctx.design.execute(fn, Context(ContextKind.SERVER, srv, ctx.design))
    return srv


@_dsl(ContextKind.SERVER)
def host(ctx: Context, name: str, fn: Builder = None) -> Host:
    h = Host(name=name)
    ctx.node.hosts.append(h)
    ctx.design.execute(fn, Context(ContextKind.HOST, h, ctx.design))
    return h


@_dsl(ContextKind.HOST)
def uri(ctx: Context, template: str) -> None:
    ctx.node.uris.append(template)


# -- services and methods ----------------------------------------------------

@_dsl(ContextKind.SERVICE)
def method(ctx: Context, name: str, fn: Builder = None) -> Method:
    svc: Service = ctx.node
    if svc.method(name) is not None:
        raise UsageError(f"method {name!r} is already defined in service {svc.name!r}")
    m = Method(name=name)
    svc.methods.append(m)
    ctx.design.execute(fn, Context(ContextKind.METHOD, m, ctx.design))
    return m


def _user_type(ctx: Context, kind: str, type_or_fn: UserType | Callable) -> UserType:
    if isinstance(type_or_fn, UserType):
        return type_or_fn
    if callable(type_or_fn):
        ut = UserType(name=f"{ctx.node.name}{kind}")
        ctx.design.execute(type_or_fn, Context(ContextKind.TYPE, ut, ctx.design))
        return ut
    raise InvalidArgumentError("type or builder function", type_or_fn)


@_dsl(ContextKind.METHOD)
def payload(ctx: Context, type_or_fn: UserType | Callable) -> UserType:
    ctx.node.payload = _user_type(ctx, "Payload", type_or_fn)
    return ctx.node.payload


@_dsl(ContextKind.METHOD)
def result(ctx: Context, type_or_fn: UserType | Callable) -> UserType:
    ctx.node.result = _user_type(ctx, "Result", type_or_fn)
    return ctx.node.result


@_dsl(ContextKind.METHOD)
def http(ctx: Context, fn: Builder = None) -> None:
    ctx.design.execute(fn, Context(ContextKind.HTTP, ctx.node, ctx.design))


def _route(verb: str):
    def route(ctx: Context, path: str) -> Route:
        r = Route(verb=verb, path=path, method=ctx.node.name)
        ctx.node.routes.append(r)
        return r

    route.__name__ = route.__qualname__ = verb.lower()
    route.__doc__ = f"Route the method to {verb} requests on ``path``."
    return _dsl(ContextKind.HTTP)(route)


get = _route("GET")
put = _route("PUT")
post = _route("POST")
delete = _route("DELETE")
patch = _route("PATCH")
head = _route("HEAD")
options = _route("OPTIONS")
trace = _route("TRACE")


@_dsl(ContextKind.HTTP)
def header(ctx: Context, name: str) -> None:
    """Map the payload attribute ``name`` to a request header."""
    if name not in ctx.node.headers:
        ctx.node.headers.append(name)


# -- attributes --------------------------------------------------------------

@_dsl(ContextKind.TYPE)
def attribute(
    ctx: Context,
    name: str,
    type_: str | UserType = "string",
    description: LocalizedText | None = None,
    *,
    items: str | None = None,
    example: Any = None,
    required: bool = False,
    security_role: SecurityRole | None = None,
    security_scheme: str | None = None,
) -> Attribute:
    ut: UserType = ctx.node
    if any(a.name == name for a in ut.attributes):
        raise UsageError(f"attribute {name!r} is already defined in {ut.name!r}")
    if isinstance(type_, UserType):
        type_ = "object"
    if type_ == "array" and items is None:
        items = "any"
    att = Attribute(
        name=name,
        type=type_,
        items=items,
        required=required,
        example=example,
        description=description,
        security_role=security_role,
        security_scheme=security_scheme,
    )
    ut.attributes.append(att)
    return att


@_dsl(ContextKind.TYPE)
def required(ctx: Context, *names: str) -> None:
    ut: UserType = ctx.node
    for name in names:
        att = next((a for a in ut.attributes if a.name == name), None)
        if att is None:
            raise UsageError(f"required attribute {name!r} is not defined in {ut.name!r}")
        att.required = True


def username(ctx: Context, name: str, type_: str = "string", description: LocalizedText | None = None, **kwargs) -> Attribute:
    """Attribute carrying the basic auth user name."""
    return attribute(ctx, name, type_, description, security_role=SecurityRole.USERNAME, **kwargs)


def password(ctx: Context, name: str, type_: str = "string", description: LocalizedText | None = None, **kwargs) -> Attribute:
    """Attribute carrying the basic auth password."""
    return attribute(ctx, name, type_, description, security_role=SecurityRole.PASSWORD, **kwargs)


def api_key(ctx: Context, scheme: str, name: str, type_: str = "string", description: LocalizedText | None = None, **kwargs) -> Attribute:
    """Attribute carrying the key of the API key scheme ``scheme``."""
    return attribute(
        ctx, name, type_, description,
        security_role=SecurityRole.API_KEY, security_scheme=scheme, **kwargs,
    )


def access_token(ctx: Context, name: str, type_: str = "string", description: LocalizedText | None = None, **kwargs) -> Attribute:
    """Attribute carrying an OAuth2 access token."""
    return attribute(ctx, name, type_, description, security_role=SecurityRole.ACCESS_TOKEN, **kwargs)


def token(ctx: Context, name: str, type_: str = "string", description: LocalizedText | None = None, **kwargs) -> Attribute:
    """Attribute carrying a JWT."""
    return attribute(ctx, name, type_, description, security_role=SecurityRole.TOKEN, **kwargs)


# -- security ----------------------------------------------------------------

@_dsl(ContextKind.API, ContextKind.SERVICE, ContextKind.METHOD)
def security(ctx: Context, *args: str | Scheme | Callable, fn: Builder = None) -> Requirement | None:
    """Declare a security requirement on an API, service or method.

    All listed schemes must be satisfied (AND); repeated declarations in the
    same scope are alternatives (OR). A trailing builder may list the
    required scopes with :func:`scope`.
    """
    refs, trailing = _split_builder(args)
    fn = fn or trailing
    if not refs:
        raise UsageError("security: at least one security scheme is required")
    requirement = ctx.design.registry.requirement(*refs)
    if not ctx.design.execute(fn, Context(ContextKind.REQUIREMENT, requirement, ctx.design)):
        return None
    ctx.node.security.append(requirement)
    return requirement


@_dsl(ContextKind.METHOD)
def no_security(ctx: Context) -> Requirement:
    """Remove inherited security requirements from a method."""
    requirement = Requirement(no_security=True)
    ctx.node.security.append(requirement)
    return requirement


@_dsl(ContextKind.SCHEME, ContextKind.REQUIREMENT)
def scope(ctx: Context, name: str, *desc: str) -> None:
    """Define a scope on a scheme, or require one in a security requirement."""
    if ctx.kind == ContextKind.SCHEME:
        reg.define_scope(ctx.node, name, *desc)
    else:
        schemes = [ctx.design.registry.lookup(s) for s in ctx.node.schemes]
        reg.require_scope(ctx.node, schemes, name, *desc)


@_dsl(ContextKind.SCHEME)
def authorization_code_flow(ctx: Context, authorization_url: str, token_url: str, refresh_url: str | None = None) -> None:
    reg.add_flow(ctx.node, FlowKind.AUTHORIZATION_CODE, authorization_url, token_url, refresh_url)


@_dsl(ContextKind.SCHEME)
def implicit_flow(ctx: Context, authorization_url: str, refresh_url: str | None = None) -> None:
    reg.add_flow(ctx.node, FlowKind.IMPLICIT, authorization_url=authorization_url, refresh_url=refresh_url)


@_dsl(ContextKind.SCHEME)
def password_flow(ctx: Context, token_url: str, refresh_url: str | None = None) -> None:
    reg.add_flow(ctx.node, FlowKind.PASSWORD, token_url=token_url, refresh_url=refresh_url)


@_dsl(ContextKind.SCHEME)
def client_credentials_flow(ctx: Context, token_url: str, refresh_url: str | None = None) -> None:
    reg.add_flow(ctx.node, FlowKind.CLIENT_CREDENTIALS, token_url=token_url, refresh_url=refresh_url)
