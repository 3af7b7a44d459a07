"""
Tests for use cases — install, plan and config check.
"""

from pathlib import Path

from homestack.core.data import DataRegistry
from homestack.core.engine.cancellation import CancellationToken
from homestack.core.models.service import ServiceDescriptor
from homestack.core.persistence.audit import AuditWriter
from homestack.core.use_cases.config_check import check_config
from homestack.core.use_cases.install import run_install
from homestack.core.use_cases.plan import plan_installation


def _ledger(tmp_path: Path):
    return AuditWriter(state_dir=tmp_path / "state").read_all()


# ── Install ─────────────────────────────────────────────────────────


class TestRunInstall:
    def test_mock_install(self, write_config, tmp_path: Path):
        result = run_install(config_path=write_config(services="[redis]"), mock_mode=True)
        assert result.ok
        assert result.report.status == "ok"
        assert "Redis" in result.report.order

        entries = _ledger(tmp_path)
        assert len(entries) == 1
        assert entries[0].operation_type == "install-mock"
        assert entries[0].status == "ok"
        assert entries[0].context["domain"] == "home.lab"

    def test_services_override(self, write_config):
        result = run_install(config_path=write_config(services="[redis]"), services=["grafana"], mock_mode=True)
        assert "Grafana" in result.report.order
        assert "Redis" not in result.report.order

    def test_dry_run(self, write_config, tmp_path: Path):
        result = run_install(config_path=write_config(), dry_run=True)
        assert result.ok
        assert result.report is None
        assert [p["name"] for p in result.preview] == ["Caddy", "Portainer", "Copyparty"]
        assert result.to_dict()["dry_run"] is True
        assert _ledger(tmp_path) == []

    def test_config_error(self, tmp_path: Path):
        result = run_install(config_path=tmp_path / "missing.yml")
        assert not result.ok
        assert result.error.code == "CONFIG_INVALID"
        assert result.report is None

    def test_fatal_is_recorded(self, homelab_config, mock_executor, tmp_path: Path):
        mock_executor.set_failure(r"docker pull caddy", stderr="manifest unknown")
        result = run_install(config=homelab_config, executor=mock_executor)
        assert not result.ok
        assert result.report.status == "failed"
        assert result.to_dict()["error"]["code"] == "SERVICE_INSTALL_FAILED"

        entries = _ledger(tmp_path)
        assert entries[-1].status == "failed"
        assert entries[-1].operation_type == "install"
        assert "Caddy" in entries[-1].errors[0]

    def test_unwritable_config_dir_is_reported(self, homelab_config, mock_executor, tmp_path: Path):
        homelab_config.config_path.parent.mkdir(parents=True)
        homelab_config.config_path.write_text("not a directory")
        result = run_install(config=homelab_config, executor=mock_executor)

        assert not result.ok
        assert result.error.code == "SERVICE_INSTALL_FAILED"
        assert result.error.context["service"] == "Caddy"
        assert _ledger(tmp_path)[-1].status == "failed"

    def test_cancelled(self, homelab_config, mock_executor):
        token = CancellationToken()
        token.cancel()
        result = run_install(config=homelab_config, executor=mock_executor, cancel=token)
        assert result.cancelled
        assert result.report.status == "failed"


# ── Plan ────────────────────────────────────────────────────────────


class TestPlanInstallation:
    def test_order(self, write_config):
        path = write_config(services="[outline, postgresql, redis]", storage_password="long-enough")
        result = plan_installation(path)
        assert result.error is None
        assert [i.name for i in result.plan.order][-3:] == ["PostgreSQL", "Redis", "Outline"]
        assert "commands" not in result.to_dict()

    def test_with_commands(self, write_config):
        path = write_config(services="[postgresql]", storage_password="long-enough")
        result = plan_installation(path, with_commands=True)
        postgres = result.commands[-1]
        assert postgres["name"] == "PostgreSQL"
        assert "long-enough" not in postgres["run"]

    def test_error(self, write_config):
        result = plan_installation(write_config(services="[mariadb]"))
        assert result.error["code"] == "CONFIG_INVALID"
        assert "Storage password is required for MariaDB" in result.error["message"]


# ── Config check ────────────────────────────────────────────────────


class TestCheckConfig:
    def test_valid(self, write_config):
        result = check_config(write_config(services="[redis, grafana]"))
        assert result.valid
        assert result.errors == []
        assert any("configure_dns is off" in w for w in result.warnings)

    def test_no_services_warning(self, write_config):
        result = check_config(write_config())
        assert result.valid
        assert any("only core services" in w for w in result.warnings)

    def test_unknown_service(self, write_config):
        result = check_config(write_config(services="[nosuch]"))
        assert not result.valid
        assert "Unknown service type: nosuch" in result.errors

    def test_missing_password(self, write_config):
        result = check_config(write_config(services="[postgresql]"))
        assert not result.valid
        assert "Storage password is required for PostgreSQL" in result.errors[0]

    def test_unmet_dependency_warning(self, write_config):
        result = check_config(write_config(services="[authelia]"))
        assert result.valid
        assert any(w.startswith("Authelia depends on Redis") for w in result.warnings)

    def test_cycle(self, write_config):
        catalog = DataRegistry([
            ServiceDescriptor(name="A", type_id="a", dependencies=("B",)),
            ServiceDescriptor(name="B", type_id="b", dependencies=("A",)),
        ])
        result = check_config(write_config(services="[a, b]"), catalog=catalog)
        assert not result.valid
        assert any("Circular dependency detected" in e for e in result.errors)

    def test_invalid_yaml_values(self, write_config):
        result = check_config(write_config("ip: 1.2.3\ndomain: home.lab\n"))
        assert not result.valid
        assert "ip:" in result.errors[0]

    def test_no_config_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = check_config()
        assert not result.valid
        assert result.errors == ["No homelab.yml found."]
        assert result.to_dict()["config_path"] is None
