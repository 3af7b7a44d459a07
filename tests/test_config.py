"""
Tests for configuration loading and template discovery.
"""

from pathlib import Path

import pytest

from homestack.core.config.loader import (
    ENV_STORAGE_PASSWORD,
    find_config_file,
    load_config,
    validate_selection,
)
from homestack.core.config.template_loader import TemplateSource
from homestack.core.errors import ConfigError, TemplateError, TemplateNotFoundError
from homestack.core.models.config import HomelabConfig

# ── Loader ──────────────────────────────────────────────────────────


class TestFindConfigFile:
    def test_finds_in_cwd(self, tmp_path: Path):
        (tmp_path / "homelab.yml").write_text("ip: 10.0.0.2\n")
        assert find_config_file(tmp_path) == tmp_path / "homelab.yml"

    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "homelab.yml").write_text("ip: 10.0.0.2\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == tmp_path / "homelab.yml"


class TestLoadConfig:
    def test_flat_file(self, write_config):
        config = load_config(write_config(services="[redis, grafana]"))
        assert config.ip == "192.168.1.10"
        assert config.domain == "home.lab"
        assert config.services == ["redis", "grafana"]

    def test_wrapped_under_homelab_key(self, write_config):
        path = write_config("""\
            homelab:
              ip: 10.1.1.1
              domain: lab.local
              network_name: lab
        """)
        config = load_config(path)
        assert config.ip == "10.1.1.1"
        assert config.network_name == "lab"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config("ip: [unclosed\n"))

    def test_not_a_mapping(self, write_config):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(write_config("- just\n- a list\n"))

    def test_validation_errors_listed(self, write_config):
        path = write_config("ip: not-an-ip\ndomain: home.lab\n")
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert any(err.startswith("ip:") for err in exc.value.context["errors"])

    def test_storage_password_from_env(self, write_config, monkeypatch):
        monkeypatch.setenv(ENV_STORAGE_PASSWORD, "from-the-env")
        config = load_config(write_config())
        assert config.storage_password == "from-the-env"

    def test_file_password_wins_over_env(self, write_config, monkeypatch):
        monkeypatch.setenv(ENV_STORAGE_PASSWORD, "from-the-env")
        config = load_config(write_config(storage_password="from-the-file"))
        assert config.storage_password == "from-the-file"

    def test_no_config_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No homelab.yml"):
            load_config()


class TestValidateSelection:
    def test_valid(self, homelab_config: HomelabConfig, catalog):
        config = homelab_config.model_copy(update={"services": ["postgresql", "redis"]})
        assert validate_selection(config, catalog) == []

    def test_unknown_service(self, homelab_config: HomelabConfig, catalog):
        config = homelab_config.model_copy(update={"services": ["nosuch"]})
        assert validate_selection(config, catalog) == ["Unknown service type: nosuch"]

    def test_storage_password_required(self, catalog):
        config = HomelabConfig(ip="10.0.0.2", domain="home.lab", services=["postgresql", "redis"])
        errors = validate_selection(config, catalog)
        assert len(errors) == 1
        assert "Storage password is required for PostgreSQL" in errors[0]


# ── Template source ─────────────────────────────────────────────────


def _write_template(root: Path, type_id: str, body: str, subdir: str = "services") -> None:
    directory = root / subdir
    directory.mkdir(parents=True, exist_ok=True)
    (directory / type_id).write_text(body)


class TestTemplateSource:
    def test_packaged_templates_cover_catalog(self, catalog):
        templates = TemplateSource()
        for type_id in catalog.type_ids:
            template = templates.load(type_id)
            assert template.run, type_id

    def test_load_yaml(self, tmp_path: Path):
        _write_template(tmp_path, "demo.yml", "commands:\n  install: [docker pull demo]\n  run: docker run demo\n")
        template = TemplateSource(tmp_path).load("demo")
        assert template.id == "demo"
        assert template.install == ["docker pull demo"]
        assert template.setup == []

    def test_json_fallback(self, tmp_path: Path):
        _write_template(tmp_path, "demo.json", '{"commands": {"run": "docker run demo"}}')
        assert TemplateSource(tmp_path).load("demo").run == "docker run demo"

    def test_not_found(self, tmp_path: Path):
        with pytest.raises(TemplateNotFoundError):
            TemplateSource(tmp_path).load("ghost")

    def test_empty_run_is_an_error(self, tmp_path: Path):
        _write_template(tmp_path, "demo.yml", "commands:\n  install: [docker pull demo]\n")
        with pytest.raises(TemplateError, match="commands.run"):
            TemplateSource(tmp_path).load("demo")

    def test_malformed_yaml(self, tmp_path: Path):
        _write_template(tmp_path, "demo.yml", "commands: [unclosed\n")
        with pytest.raises(TemplateError, match="invalid format"):
            TemplateSource(tmp_path).load("demo")

    def test_cached(self, tmp_path: Path):
        _write_template(tmp_path, "demo.yml", "commands:\n  run: docker run demo\n")
        source = TemplateSource(tmp_path)
        first = source.load("demo")
        (tmp_path / "services" / "demo.yml").write_text("commands:\n  run: docker run changed\n")
        assert source.load("demo") is first
        source.clear_cache()
        assert source.load("demo").run == "docker run changed"

    def test_config_template_optional(self, tmp_path: Path):
        assert TemplateSource(tmp_path).load_config_template("demo") is None

    def test_config_template(self):
        template = TemplateSource().load_config_template("loki")
        assert template is not None
        assert template.files[0].path == "loki/local-config.yaml"

    def test_list_templates(self, tmp_path: Path):
        _write_template(tmp_path, "b.yml", "commands:\n  run: x\n")
        _write_template(tmp_path, "a.json", '{"commands": {"run": "x"}}')
        _write_template(tmp_path, "notes.txt", "ignored")
        assert TemplateSource(tmp_path).list_templates() == ["a", "b"]
