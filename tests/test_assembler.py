import json

import pytest
import yaml
from conftest import calc_design

from apidesign.design import dsl
from apidesign.design.base import Api, DesignGraph, Method, Requirement, Route, Service
from apidesign.design.errors import ConflictingRouteError, StructuralError, UnknownSchemeError
from apidesign.generator.assembler import assemble
from apidesign.generator.document import to_dict
from apidesign.generator.encode import to_json, to_yaml


def _routed(*routes: tuple[str, str, str]) -> DesignGraph:
    """Graph with one service whose methods are given as (method, verb, path)."""
    svc = Service(name="svc")
    for name, verb, path in routes:
        m = svc.method(name)
        if m is None:
            m = Method(name=name)
            svc.methods.append(m)
        m.routes.append(Route(verb=verb, path=path, method=name))
    return DesignGraph(api=Api(name="test"), services=[svc])


class TestCalcScenario:
    def test_add_operation(self):
        def design_fn(design):
            def operands(p):
                dsl.attribute(p, "x", "integer", required=True)
                dsl.attribute(p, "y", "integer")

            def add(m):
                dsl.payload(m, operands)
                dsl.http(m, lambda h: dsl.get(h, "/add/{x}"))

            dsl.service(design, "calc", lambda s: dsl.method(s, "add", add))

        data = to_dict(assemble(dsl.build(design_fn), "en"))
        op = data["paths"]["/add/{x}"]["get"]

        assert op["operationId"] == "calc#add"
        assert [(p["in"], p["name"], p["required"]) for p in op["parameters"]] == [
            ("path", "x", True),
            ("query", "y", False),
        ]
        assert op["responses"] == {}
        assert "security" not in op

    def test_document_header(self, calc_graph):
        data = to_dict(assemble(calc_graph, "en", "en"))
        assert data["openapi"] == "3.0.0"
        assert data["info"] == {
            "title": "Calculator",
            "description": "Adds numbers",
            "contact": {"name": "calc team", "email": "calc@example.com"},
            "license": {"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
            "version": "1.0",
        }

    def test_servers_cross_product(self, calc_graph):
        data = to_dict(assemble(calc_graph, "en", "en"))
        assert data["servers"] == [
            {"url": "https://calc.example.com", "description": "Production"},
            {"url": "http://calc.example.com", "description": "Production"},
            {"url": "http://localhost:8000"},
        ]

    def test_paths_merge_verbs(self, calc_graph):
        data = to_dict(assemble(calc_graph, "en", "en"))
        assert list(data["paths"]) == ["/add/{x}", "/health", "/multiply", "/multiply/{a}"]
        assert list(data["paths"]["/multiply"]) == ["post"]
        assert data["paths"]["/multiply/{a}"]["get"]["operationId"] == "calc#multiply"

    def test_effective_security(self, calc_graph):
        paths = to_dict(assemble(calc_graph, "en", "en"))["paths"]
        assert paths["/add/{x}"]["get"]["security"] == [{"basic": []}]
        assert paths["/health"]["get"]["security"] == []
        assert paths["/multiply"]["post"]["security"] == [{"oauth2": ["api:write"]}]

    def test_security_attributes_not_parameters(self, calc_graph):
        paths = to_dict(assemble(calc_graph, "en", "en"))["paths"]
        params = paths["/multiply/{a}"]["get"]["parameters"]
        assert [(p["in"], p["name"]) for p in params] == [("path", "a"), ("query", "b")]

    def test_components(self, calc_graph):
        schemes = to_dict(assemble(calc_graph, "en", "en"))["components"]["securitySchemes"]
        assert schemes["basic"] == {"type": "http", "scheme": "basic"}
        oauth2 = schemes["oauth2"]
        assert oauth2["type"] == "oauth2"
        assert oauth2["flows"]["authorizationCode"] == {
            "authorizationUrl": "/authorize",
            "tokenUrl": "/token",
            "refreshUrl": "/refresh",
            "scopes": {"api:read": "no description", "api:write": "Write access"},
        }
        assert "`token`" in oauth2["description"]

    def test_tags(self, calc_graph):
        paths = to_dict(assemble(calc_graph, "en", "en"))["paths"]
        assert paths["/health"]["get"]["tags"] == ["calc"]

    def test_localized(self, calc_graph):
        data = to_dict(assemble(calc_graph, "nl", "en"))
        assert data["info"]["title"] == "Rekenmachine"
        assert data["servers"][0]["description"] == "Productie"
        add = data["paths"]["/add/{x}"]["get"]
        assert add["description"] == "Tel twee getallen op"
        assert add["parameters"][0]["description"] == "Linker operand"
        # untranslated strings are shared
        assert add["parameters"][1]["description"] == "Right operand"

    def test_unknown_locale_falls_back(self, calc_graph):
        data = to_dict(assemble(calc_graph, "fr", "en"))
        assert data["info"]["title"] == "Calculator"


class TestAssemble:
    def test_no_routes_produces_nothing(self):
        graph = DesignGraph(api=Api(name="test"), services=[Service(name="svc", methods=[Method(name="m")])])
        assert assemble(graph, "en") is None

    def test_no_services_produces_nothing(self):
        assert assemble(DesignGraph(api=Api(name="test")), "en") is None

    def test_version_defaults(self):
        data = to_dict(assemble(_routed(("m", "GET", "/")), "en"))
        assert data["info"]["version"] == "unversioned"
        assert data["info"]["title"] == "test"
        assert "servers" not in data
        assert "components" not in data

    def test_conflicting_routes(self):
        graph = _routed(("one", "GET", "/same"), ("two", "GET", "/same"))
        with pytest.raises(ConflictingRouteError) as exc:
            assemble(graph, "en")
        assert exc.value.operations == ("svc#one", "svc#two")

    def test_conflict_across_services(self):
        graph = _routed(("one", "GET", "/same"))
        other = Service(name="other", methods=[Method(name="two", routes=[Route(verb="GET", path="/same")])])
        graph.services.append(other)
        with pytest.raises(ConflictingRouteError):
            assemble(graph, "en")

    def test_same_path_different_verbs(self):
        graph = _routed(("read", "GET", "/items"), ("write", "POST", "/items"))
        item = to_dict(assemble(graph, "en"))["paths"]["/items"]
        assert item["get"]["operationId"] == "svc#read"
        assert item["post"]["operationId"] == "svc#write"

    def test_catch_all_path_normalized(self):
        data = to_dict(assemble(_routed(("files", "GET", "/files/{*path}")), "en"))
        assert list(data["paths"]) == ["/files/{path}"]

    def test_conflict_ignores_wildcard_names(self):
        graph = _routed(("one", "GET", "/items/{id}"), ("two", "GET", "/items/{key}"))
        with pytest.raises(ConflictingRouteError) as exc:
            assemble(graph, "en")
        assert exc.value.operations == ("svc#one", "svc#two")

    def test_wildcard_names_must_agree_across_verbs(self):
        graph = _routed(("read", "GET", "/items/{id}"), ("write", "PUT", "/items/{key}"))
        with pytest.raises(StructuralError, match="only in parameter names"):
            assemble(graph, "en")

    def test_catch_all_and_plain_wildcard_share_a_path(self):
        graph = _routed(("read", "GET", "/files/{*path}"), ("write", "PUT", "/files/{path}"))
        assert list(to_dict(assemble(graph, "en"))["paths"]) == ["/files/{path}"]

    def test_unsupported_verb(self):
        with pytest.raises(StructuralError):
            assemble(_routed(("m", "CONNECT", "/")), "en")

    def test_unknown_scheme_in_requirement(self):
        graph = _routed(("m", "GET", "/"))
        graph.api.security.append(Requirement(schemes=["ghost"]))
        with pytest.raises(UnknownSchemeError):
            assemble(graph, "en")

    def test_api_security_applies_to_every_operation(self):
        def design_fn(design):
            dsl.api_key_security(design, "key")
            dsl.api(design, "test", lambda a: dsl.security(a, "key"))

            def svc(s):
                dsl.method(s, "m", lambda m: dsl.http(m, lambda h: dsl.get(h, "/")))

            dsl.service(design, "svc", svc)

        data = to_dict(assemble(dsl.build(design_fn), "en"))
        assert data["paths"]["/"]["get"]["security"] == [{"key": []}]


class TestDeterminism:
    def test_same_input_same_output(self, calc_graph):
        first = assemble(calc_graph, "en", "en")
        second = assemble(calc_graph, "en", "en")
        assert to_json(first) == to_json(second)
        assert to_yaml(first) == to_yaml(second)

    def test_rebuilt_graph_same_output(self, calc_graph):
        rebuilt = dsl.build(calc_design)
        assert to_json(assemble(calc_graph, "nl", "en")) == to_json(assemble(rebuilt, "nl", "en"))


class TestEncoding:
    def test_json_and_yaml_agree(self, calc_graph):
        document = assemble(calc_graph, "en", "en")
        assert json.loads(to_json(document)) == yaml.safe_load(to_yaml(document))

    def test_yaml_keeps_key_order(self, calc_graph):
        text = to_yaml(assemble(calc_graph, "en", "en"))
        assert text.index("openapi:") < text.index("info:") < text.index("paths:")
