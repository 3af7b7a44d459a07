"""
Tests for domain models — config, outcomes and templates.
"""

import pytest
from pydantic import ValidationError

from homestack.core.models.config import HomelabConfig
from homestack.core.models.outcome import ExecutionOutcome, FailureClass, StepResult
from homestack.core.models.service import (
    ConfigFileTemplate,
    ConfigTemplate,
    ServiceDescriptor,
    ServiceTemplate,
    TemplateCommands,
)


class TestHomelabConfig:
    def test_minimal(self):
        config = HomelabConfig(ip="10.0.0.2", domain="lab.example")
        assert config.network_name == "homelab"
        assert config.services == []
        assert config.storage_password is None
        assert config.runtime == "auto"
        assert config.command_timeout == 30

    def test_domain_normalized(self):
        config = HomelabConfig(ip="10.0.0.2", domain="  Home.LAB. ")
        assert config.domain == "home.lab"

    def test_invalid_ip(self):
        with pytest.raises(ValidationError):
            HomelabConfig(ip="300.1.1.1", domain="home.lab")

    def test_empty_domain(self):
        with pytest.raises(ValidationError):
            HomelabConfig(ip="10.0.0.2", domain=" . ")

    def test_invalid_network_name(self):
        with pytest.raises(ValidationError):
            HomelabConfig(ip="10.0.0.2", domain="home.lab", network_name="bad name")

    def test_short_storage_password(self):
        with pytest.raises(ValidationError):
            HomelabConfig(ip="10.0.0.2", domain="home.lab", storage_password="short")

    def test_services_deduplicated(self):
        config = HomelabConfig(ip="10.0.0.2", domain="home.lab", services=["Redis", "redis", " grafana "])
        assert config.services == ["redis", "grafana"]

    def test_state_path_is_parent_of_config(self, tmp_path):
        config = HomelabConfig(ip="10.0.0.2", domain="home.lab", config_dir=str(tmp_path / "hs" / "config"))
        assert config.state_path == tmp_path / "hs"


class TestExecutionOutcome:
    def test_ok(self):
        outcome = ExecutionOutcome.ok("echo", stdout="x")
        assert outcome.success
        assert outcome.model_dump()["success"] is True

    def test_failed(self):
        outcome = ExecutionOutcome.failed("false", stderr="nope", exit_code=2)
        assert not outcome.success
        assert outcome.error_text == "nope"

    def test_timed_out_is_failure(self):
        outcome = ExecutionOutcome(command="sleep", exit_code=0, timed_out=True)
        assert not outcome.success
        assert outcome.error_text == "command timed out"

    def test_error_text_falls_back_to_exit_code(self):
        assert ExecutionOutcome(command="x", exit_code=4).error_text == "exit code 4"


class TestStepResult:
    def test_success(self):
        r = StepResult.success("Redis", "redis", "install", commands_run=2)
        assert r.ok
        assert not r.skipped
        assert r.failure_class is None

    def test_already_running_is_ok(self):
        r = StepResult.already_running("Redis", "redis", "install")
        assert r.ok
        assert r.commands_run == 0

    def test_skip(self):
        r = StepResult.skip("Redis", "redis", "install", "volume already exists", diagnostics=["d1"])
        assert r.skipped
        assert not r.ok
        assert r.failure_class is FailureClass.RECOVERABLE_SKIP
        assert r.diagnostics == ["d1"]


class TestServiceModels:
    def test_descriptor_is_frozen(self):
        d = ServiceDescriptor(name="Redis", type_id="redis")
        with pytest.raises(ValidationError):
            d.name = "Other"

    def test_template_placeholders(self):
        t = ServiceTemplate(
            id="x",
            commands=TemplateCommands(
                install=["docker pull x"],
                setup=["mkdir {{CONFIG_DIR}}/x"],
                run="docker run --network {{NETWORK_NAME}} x",
            ),
            access_url="https://x.{{DOMAIN}}",
        )
        assert t.placeholders() == {"CONFIG_DIR", "NETWORK_NAME", "DOMAIN"}

    def test_config_template_placeholders(self):
        t = ConfigTemplate(id="x", files=[ConfigFileTemplate(path="{{SERVICE_NAME}}/a", content="{{IP}}")])
        assert t.placeholders() == {"SERVICE_NAME", "IP"}
