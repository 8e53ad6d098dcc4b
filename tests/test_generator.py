import json
from pathlib import Path

import pytest

from apidocs.config import Settings
from apidocs.errors import UnknownOperationError
from apidocs.generator import AUTH_DESCRIPTION, NO_AUTH_DESCRIPTION, DocumentationAssembler

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def orders_text():
    return (FIXTURES / "orders.json").read_text()


@pytest.fixture
def assembler(orders_text):
    a = DocumentationAssembler()
    assert a.generate(orders_text) is not None
    return a


class TestGenerate:
    def test_header(self, assembler):
        out = assembler.output
        assert (out.title, out.version, out.base_url) == ("Orders API", "1.2.0", "https://api.shop.test/v1")
        assert out.generation == 1
        assert out.warnings == []

    def test_intro_sections(self, assembler):
        intro = assembler.output.intro_sections
        assert [s.id for s in intro] == ["introduction", "authentication", "base-url", "status-codes"]
        assert intro[0].description == "Create, list and cancel orders."
        assert intro[1].description == AUTH_DESCRIPTION
        assert intro[2].base_url == "https://api.shop.test/v1"
        codes = [[c.code for c in g.codes] for g in intro[3].status_groups]
        assert codes == [["200", "201", "204"], ["400", "401", "403", "404", "422", "429"]]

    def test_navigation_groups(self, assembler):
        nav = assembler.output.navigation
        assert [g.tag for g in nav.groups] == ["Orders", "Customers", "General"]
        orders = nav.groups[0].entries
        assert [e.operation_id for e in orders] == [
            "get--orders", "post--orders", "get--orders--id-", "delete--orders--id-",
        ]
        assert orders[3].label == "/orders/{id}"
        assert [e.id for e in nav.intro] == ["introduction", "authentication", "base-url", "status-codes"]

    def test_sections_and_panels_correlate(self, assembler):
        out = assembler.output
        section_ids = [s.operation_id for s in out.sections]
        assert section_ids == [p.operation_id for p in out.code_panels]
        assert section_ids == [
            "get--orders", "post--orders", "get--orders--id-", "delete--orders--id-", "get--customers", "get--ping",
        ]
        nav_ids = {e.operation_id for g in out.navigation.groups for e in g.entries}
        assert nav_ids == set(section_ids)
        panel = out.code_panels[0]
        assert (panel.request_id, panel.response_id) == ("get--orders-request", "get--orders-response")
        assert panel.response_example.startswith("HTTP/1.1 200 OK")

    def test_request_body_tree(self, assembler):
        section, _ = assembler.find_operation("post--orders")
        assert section.request_body_required is True
        assert section.try_it.has_body is True
        rows = [(r.name, r.level, r.required) for r in section.request_body]
        assert rows == [
            ("customer_id", 1, True),
            ("items", 1, True),
            ("sku", 2, True),
            ("quantity", 2, False),
            ("shipping", 1, False),
            ("address", 2, False),
            ("express", 2, False),
            ("option", 1, False),
        ]
        assert section.request_body[1].group_id == "post--orders-items-items-1"
        assert section.request_body[1].array_note == "Array of object"

    def test_parameters_and_try_it(self, assembler):
        section, _ = assembler.find_operation("get--orders")
        assert [(p.name, p.location, p.type) for p in section.parameters] == [
            ("status", "query", "string"), ("limit", "query", "integer"),
        ]
        assert section.try_it.has_body is False
        assert section.try_it.fields[0].placeholder == "Filter by status"
        assert section.request_body is None

    def test_title_falls_back_to_method_and_path(self, assembler):
        section, _ = assembler.find_operation("delete--orders--id-")
        assert section.title == "DELETE /orders/{id}"

    def test_services(self, assembler):
        services = assembler.output.services
        assert services[1].display_path == '/orders (option: "standard")'
        assert services[3].label == "DELETE /orders/{id}"

    def test_code_samples_use_server_and_auth(self, assembler):
        _, panel = assembler.find_operation("#post--orders")
        assert panel.samples.curl.startswith('curl -X POST "https://api.shop.test/v1/orders"')
        assert "Bearer {access_token}" in panel.samples.python

    def test_find_unknown_operation(self, assembler):
        with pytest.raises(UnknownOperationError):
            assembler.find_operation("get--nope")

    def test_find_before_generation(self):
        with pytest.raises(UnknownOperationError):
            DocumentationAssembler().find_operation("get--orders")


class TestEdgeCases:
    def test_missing_paths_yields_intro_only(self):
        out = DocumentationAssembler().generate({"info": {"title": "T", "version": "1"}})
        assert len(out.intro_sections) == 4
        assert out.sections == [] and out.code_panels == [] and out.services == []
        assert out.navigation.groups == []
        assert "Missing or empty paths section" in out.warnings

    def test_defaults_when_info_missing(self):
        s = Settings(default_server_url="https://fallback.test")
        out = DocumentationAssembler(s).generate({"paths": {"/a": {"get": {}}}})
        assert (out.title, out.version, out.base_url) == ("API Documentation", "v1.0", "https://fallback.test")
        assert out.intro_sections[1].description == NO_AUTH_DESCRIPTION
        assert out.intro_sections[0].description == "API documentation"

    def test_yaml_document(self):
        out = DocumentationAssembler().generate((FIXTURES / "orders.yaml").read_text())
        assert out.version == "1"
        assert out.base_url == "https://api.example.com"
        assert [g.tag for g in out.navigation.groups] == ["General"]
        assert [s.operation_id for s in out.sections] == ["get--orders", "post--orders", "get--health"]

    def test_yaml_sequences_degrade_to_defaults(self):
        text = (
            "info:\n  title: Pets\n  version: 1\n"
            "servers:\n  - url: https://pets.test\n"
            "paths:\n  /pets:\n    get:\n      summary: List pets\n      tags:\n        - pets\n"
        )
        a = DocumentationAssembler()
        out = a.generate(text)
        assert out is not None, a.last_error
        assert (out.title, out.base_url) == ("Pets", "https://api.example.com")
        assert [g.tag for g in out.navigation.groups] == ["General"]
        assert [s.operation_id for s in out.sections] == ["get--pets"]
        assert any(w.startswith("Ignoring servers") for w in out.warnings)
        assert any("tags" in w for w in out.warnings)

    def test_security_mapping_generates_without_auth(self):
        out = DocumentationAssembler().generate({"security": {"bearer": []}, "paths": {"/a": {"get": {}}}})
        assert out is not None
        assert out.intro_sections[1].description == NO_AUTH_DESCRIPTION
        assert "Authorization" not in out.code_panels[0].samples.curl

    def test_collisions_reported(self):
        out = DocumentationAssembler().generate({"paths": {"/a.b": {"get": {}}, "/a-b": {"get": {}}}})
        assert [s.operation_id for s in out.sections] == ["get--a-b", "get--a-b-2"]
        assert any("get--a-b" in w for w in out.warnings)

    def test_parse_failure_keeps_previous_output(self, assembler):
        previous = assembler.output
        assert assembler.generate("{not json") is None
        assert assembler.output is previous
        assert "Invalid JSON" in assembler.last_error

    def test_cyclic_schema_keeps_previous_output(self, assembler):
        previous = assembler.output
        doc = {
            "paths": {"/n": {"post": {"requestBody": {"content": {"application/json": {
                "schema": {"$ref": "#/components/schemas/Node"},
            }}}}}},
            "components": {"schemas": {
                "Node": {"type": "object", "properties": {"next": {"$ref": "#/components/schemas/Node"}}},
            }},
        }
        assert assembler.generate(doc) is None
        assert assembler.output is previous
        assert "Cyclic" in assembler.last_error

    def test_regenerate_bumps_generation(self, assembler):
        out = assembler.regenerate()
        assert out.generation == 2
        assert out.sections == assembler.output.sections

    def test_regenerate_without_config(self):
        assert DocumentationAssembler().regenerate() is None


class TestExportAndEdit:
    def test_export_round_trip(self, assembler, orders_text):
        assert json.loads(assembler.export()) == json.loads(orders_text)

    def test_export_indented(self, assembler):
        assert assembler.export().startswith('{\n  "openapi"')

    def test_export_empty(self):
        assert DocumentationAssembler().export() == ""

    def test_add_endpoint(self, assembler):
        out = assembler.add_endpoint("/refunds", "POST", {"summary": "Create refund", "tags": ["Refunds"]})
        assert out.generation == 2
        assert out.navigation.groups[-1].tag == "Refunds"
        assert out.sections[-1].operation_id == "post--refunds"
        assert "/refunds" in json.loads(assembler.export())["paths"]

    def test_add_endpoint_does_not_mutate_caller_document(self):
        raw = {"info": {"title": "T", "version": "1"}, "paths": {"/a": {"get": {}}}}
        a = DocumentationAssembler()
        a.generate(raw)
        a.add_endpoint("/a", "post", {"summary": "Create"})
        assert list(raw["paths"]["/a"]) == ["get"]
        assert [s.operation_id for s in a.output.sections] == ["get--a", "post--a"]

    def test_add_endpoint_replaces_non_mapping_path_item(self):
        a = DocumentationAssembler()
        a.generate({"paths": {"/a": None, "/b": {"get": {}}}})
        out = a.add_endpoint("/a", "get", {"summary": "Get a"})
        assert out is not None
        assert [s.operation_id for s in out.sections] == ["get--a", "get--b"]
        assert json.loads(a.export())["paths"]["/a"] == {"get": {"summary": "Get a"}}

    def test_add_endpoint_without_document(self):
        assert DocumentationAssembler().add_endpoint("/a", "get", {}) is None
