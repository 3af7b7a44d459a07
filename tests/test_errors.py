"""
Tests for the error taxonomy.
"""

from homestack.core.errors import (
    CircularDependencyError,
    ConfigError,
    DistributionError,
    HomestackError,
    InstallationCancelled,
    ServiceInstallationError,
    ShellExecutionError,
    TemplateVariableError,
    error_code,
    is_recoverable,
)
from homestack.core.models.outcome import ExecutionOutcome


class TestErrors:
    def test_base_to_dict(self):
        e = ConfigError("bad", context={"path": "x"}, hint="fix it")
        d = e.to_dict()
        assert d["error"] == "ConfigError"
        assert d["message"] == "bad"
        assert d["hint"] == "fix it"
        assert d["context"] == {"path": "x"}
        assert d["recoverable"] is False

    def test_circular_dependency_message(self):
        e = CircularDependencyError(["A", "B", "A"])
        assert e.cycle == ["A", "B", "A"]
        assert "A → B → A" in e.message
        assert not e.recoverable

    def test_service_installation_error(self):
        e = ServiceInstallationError("Redis", "pull failed", phase="install", command="docker pull redis")
        assert e.service == "Redis"
        assert "Redis" in e.message
        assert "pull failed" in e.message
        assert e.context["command"] == "docker pull redis"

    def test_template_variable_error_sorts_missing(self):
        e = TemplateVariableError("redis", ["ZED", "ALPHA"])
        assert e.missing == ["ALPHA", "ZED"]
        assert "{{ALPHA}}" in e.message

    def test_shell_execution_error_is_recoverable(self):
        e = ShellExecutionError(ExecutionOutcome.failed("false", "boom"))
        assert is_recoverable(e)
        assert e.context["stderr"] == "boom"

    def test_distribution_error(self):
        e = DistributionError("ubuntu", "configure firewall", "ufw missing")
        assert e.message == "ubuntu: configure firewall failed: ufw missing"

    def test_cancelled_is_homestack_error(self):
        assert isinstance(InstallationCancelled(), HomestackError)

    def test_error_code(self):
        assert error_code(InstallationCancelled()) == "CANCELLED"
        assert error_code(ValueError("x")) == "UNKNOWN_ERROR"
        assert not is_recoverable(ValueError("x"))
