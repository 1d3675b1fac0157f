import pytest

from apidesign.design import dsl


def calc_design(design):
    def api(a):
        dsl.title(a, {"en": "Calculator", "nl": "Rekenmachine"})
        dsl.description(a, {"en": "Adds numbers", "nl": "Telt getallen op"})
        dsl.version(a, "1.0")
        dsl.contact(a, name="calc team", email="calc@example.com")
        dsl.license_(a, name="MIT", url="https://opensource.org/licenses/MIT")

        def main(srv):
            def prod(h):
                dsl.description(h, {"en": "Production", "nl": "Productie"})
                dsl.uri(h, "https://calc.example.com")
                dsl.uri(h, "http://calc.example.com")

            dsl.host(srv, "prod", prod)
            dsl.host(srv, "dev", lambda h: dsl.uri(h, "http://localhost:8000"))

        dsl.server(a, "main", main)

    def oauth2(s):
        dsl.description(s, "OAuth2 authorization code")
        dsl.authorization_code_flow(s, "/authorize", "/token", "/refresh")
        dsl.scope(s, "api:read")
        dsl.scope(s, "api:write", "Write access")

    dsl.api(design, "calc", api)
    basic = dsl.basic_auth_security(design, "basic")
    dsl.oauth2_security(design, "oauth2", oauth2)

    def add_payload(p):
        dsl.attribute(p, "x", "integer", {"en": "Left operand", "nl": "Linker operand"})
        dsl.attribute(p, "y", "integer", "Right operand", example=2)
        dsl.required(p, "x")

    def add(m):
        dsl.description(m, {"en": "Add two numbers", "nl": "Tel twee getallen op"})
        dsl.payload(m, add_payload)
        dsl.http(m, lambda h: dsl.get(h, "/add/{x}"))

    def health(m):
        dsl.no_security(m)
        dsl.http(m, lambda h: dsl.get(h, "/health"))

    def multiply_payload(p):
        dsl.access_token(p, "token", required=True)
        dsl.attribute(p, "a", "integer", required=True)
        dsl.attribute(p, "b", "integer", required=True)

    def multiply(m):
        dsl.security(m, "oauth2", lambda r: dsl.scope(r, "api:write"))
        dsl.payload(m, multiply_payload)

        def routes(h):
            dsl.post(h, "/multiply")
            dsl.get(h, "/multiply/{a}")

        dsl.http(m, routes)

    def calc(svc):
        dsl.description(svc, "The calculator service")
        dsl.security(svc, basic)
        dsl.method(svc, "add", add)
        dsl.method(svc, "health", health)
        dsl.method(svc, "multiply", multiply)

    dsl.service(design, "calc", calc)


@pytest.fixture
def calc_graph():
    return dsl.build(calc_design)
