"""Tests for the service registry and compose generation."""

from __future__ import annotations

import pytest
import yaml

from tutorial_stack.core.errors import ConfigError
from tutorial_stack.deploy.compose import (
    build_stack_compose,
    check_compose_contract,
    generate_stack_compose,
    stack_services,
    startup_order,
    write_compose_file,
)
from tutorial_stack.deploy.config import PipelineConfig
from tutorial_stack.deploy.services import SERVICES, ServiceSpec


class TestServices:
    def test_four_services(self):
        assert set(SERVICES) == {"database", "api", "frontend", "proxy"}

    def test_only_proxy_published(self):
        published = [s.name for s in SERVICES.values() if s.publish_port is not None]
        assert published == ["proxy"]

    def test_images_follow_config(self):
        by_name = {s.name: s for s in stack_services(PipelineConfig(namespace="acme", tag="v3"))}
        assert by_name["api"].image == "acme/tutorials-api:v3"
        assert by_name["frontend"].image == "acme/tutorials-frontend:v3"
        # the proxy runs from the API image
        assert by_name["proxy"].image == "acme/tutorials-api:v3"
        assert by_name["database"].image.startswith("postgres:")


class TestStartupOrder:
    def test_stack_order(self):
        order = startup_order(SERVICES.values())
        assert order.index("database") < order.index("api") < order.index("proxy")
        assert order.index("frontend") < order.index("proxy")
        assert order[-1] == "proxy"

    def test_unknown_dependency(self):
        with pytest.raises(ConfigError, match="unknown"):
            startup_order([ServiceSpec("a", "img", 1, depends_on=["ghost"])])

    def test_cycle(self):
        specs = [
            ServiceSpec("a", "img", 1, depends_on=["b"]),
            ServiceSpec("b", "img", 2, depends_on=["a"]),
        ]
        with pytest.raises(ConfigError, match="cycle"):
            startup_order(specs)


class TestGenerateCompose:
    def test_generated_document(self):
        doc = yaml.safe_load(generate_stack_compose(PipelineConfig(namespace="acme")))
        services = doc["services"]
        assert list(services) == startup_order(SERVICES.values())
        assert services["proxy"]["ports"] == ["80:8000"]
        assert "ports" not in services["api"]
        assert services["api"]["depends_on"] == {"database": {"condition": "service_healthy"}}
        assert services["api"]["image"] == "acme/tutorials-api:latest"
        assert services["database"]["volumes"] == ["tutorials-data:/var/lib/postgresql/data"]
        assert list(doc["volumes"]) == ["tutorials-data"]
        assert all(svc["restart"] == "unless-stopped" for svc in services.values())

    def test_header(self):
        text = generate_stack_compose(project_name="demo")
        assert text.startswith("# Generated by `tutorial-stack deploy compose`")
        assert yaml.safe_load(text)["name"] == "demo"

    def test_generated_satisfies_contract(self):
        assert check_compose_contract(generate_stack_compose()) == []


class TestComposeContract:
    @pytest.fixture()
    def doc(self):
        return build_stack_compose(stack_services())

    def test_extra_published_port(self, doc):
        doc["services"]["api"]["ports"] = ["8080:8080"]
        problems = check_compose_contract(doc)
        assert any("may publish ports" in p for p in problems)

    def test_missing_edge(self, doc):
        del doc["services"]["proxy"]["depends_on"]["frontend"]
        assert "'proxy' must depend on 'frontend'" in check_compose_contract(doc)

    def test_missing_service(self, doc):
        del doc["services"]["frontend"]
        assert any("expected services" in p for p in check_compose_contract(doc))

    def test_short_form_depends_on_accepted(self, doc):
        doc["services"]["api"]["depends_on"] = ["database"]
        assert check_compose_contract(doc) == []

    def test_volume_must_be_on_database(self, doc):
        doc["services"]["database"].pop("volumes")
        assert any("must be mounted on 'database'" in p for p in check_compose_contract(doc))

    def test_two_published_ports_on_proxy(self, doc):
        doc["services"]["proxy"]["ports"].append("443:8443")
        assert any("exactly one port" in p for p in check_compose_contract(doc))


class TestWriteComposeFile:
    def test_writes_file(self, tmp_path):
        path = write_compose_file("name: x\n", tmp_path / "nested" / "docker-compose.yml")
        assert (tmp_path / "nested" / "docker-compose.yml").read_text() == "name: x\n"
        assert path.endswith("docker-compose.yml")
