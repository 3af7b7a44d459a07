"""
Tests for config file generation — rendering, Caddyfile, backup/restore.
"""

from pathlib import Path

import pytest

from homestack.core.config.template_loader import TemplateSource
from homestack.core.errors import ServiceInstallationError, TemplateVariableError
from homestack.core.models.service import GeneratedFile, ServiceDescriptor
from homestack.core.services.config_files import CADDYFILE_PATH, ConfigFileGenerator


class TestRenderService:
    def test_no_config_template(self, tmp_path: Path):
        generator = ConfigFileGenerator(tmp_path)
        assert generator.render_service("redis", TemplateSource(), {}) == []

    def test_renders_placeholders(self, tmp_path: Path):
        generator = ConfigFileGenerator(tmp_path)
        files = generator.render_service("authelia", TemplateSource(), {"DOMAIN": "home.lab"})
        config = next(f for f in files if f.path == "authelia/configuration.yml")
        assert "authelia_url: https://auth.home.lab" in config.content
        assert "{{" not in config.content

    def test_missing_placeholder(self, tmp_path: Path):
        generator = ConfigFileGenerator(tmp_path)
        with pytest.raises(TemplateVariableError):
            generator.render_service("authelia", TemplateSource(), {})


class TestCaddyfile:
    def test_routes(self, homelab_config):
        descriptors = [
            ServiceDescriptor(name="Caddy", type_id="caddy", is_core=True),
            ServiceDescriptor(name="Grafana", type_id="grafana", subdomain="grafana", port=3000),
            ServiceDescriptor(name="Redis", type_id="redis", port=6379),
        ]
        caddyfile = ConfigFileGenerator(homelab_config.config_path).caddyfile(homelab_config, descriptors)
        assert caddyfile.path == CADDYFILE_PATH
        assert "home.lab {" in caddyfile.content
        assert "grafana.home.lab {\n    reverse_proxy grafana:3000\n}" in caddyfile.content
        assert "redis" not in caddyfile.content


class TestWrite:
    def test_creates_files(self, tmp_path: Path):
        generator = ConfigFileGenerator(tmp_path)
        result = generator.write([GeneratedFile(path="a/b.conf", content="x")])
        assert (tmp_path / "a" / "b.conf").read_text() == "x"
        assert result.created == [tmp_path / "a" / "b.conf"]
        assert result.changed

    def test_backup_and_restore(self, tmp_path: Path):
        target = tmp_path / "app.conf"
        target.write_text("original")
        generator = ConfigFileGenerator(tmp_path)

        result = generator.write([GeneratedFile(path="app.conf", content="new")])
        assert target.read_text() == "new"
        backup = result.backups[target]
        assert backup.name.startswith("app.conf.bak.")
        assert backup.read_text() == "original"

        result.restore()
        assert target.read_text() == "original"

    def test_restore_removes_created(self, tmp_path: Path):
        result = ConfigFileGenerator(tmp_path).write([GeneratedFile(path="new.conf", content="x")])
        result.restore()
        assert not (tmp_path / "new.conf").exists()

    def test_unchanged_not_rewritten(self, tmp_path: Path):
        (tmp_path / "same.conf").write_text("x")
        result = ConfigFileGenerator(tmp_path).write([GeneratedFile(path="same.conf", content="x")])
        assert not result.changed
        assert list(tmp_path.glob("*.bak.*")) == []

    def test_overwrite_false_keeps_existing(self, tmp_path: Path):
        (tmp_path / "users.yml").write_text("mine")
        result = ConfigFileGenerator(tmp_path).write(
            [GeneratedFile(path="users.yml", content="default", overwrite=False)]
        )
        assert (tmp_path / "users.yml").read_text() == "mine"
        assert not result.changed

    def test_failed_write_restores_earlier_files(self, tmp_path: Path):
        (tmp_path / "app.conf").write_text("original")
        (tmp_path / "blocker").write_text("a file, not a directory")
        generator = ConfigFileGenerator(tmp_path)

        with pytest.raises(ServiceInstallationError) as exc:
            generator.write(
                [
                    GeneratedFile(path="app.conf", content="new"),
                    GeneratedFile(path="fresh.conf", content="x"),
                    GeneratedFile(path="blocker/inner.conf", content="y"),
                ],
                service="Copyparty",
            )

        assert exc.value.service == "Copyparty"
        assert exc.value.code == "SERVICE_INSTALL_FAILED"
        assert str(tmp_path) in exc.value.hint
        assert (tmp_path / "app.conf").read_text() == "original"
        assert not (tmp_path / "fresh.conf").exists()

    def test_config_dir_is_a_file(self, tmp_path: Path):
        root = tmp_path / "config"
        root.write_text("oops")
        with pytest.raises(ServiceInstallationError):
            ConfigFileGenerator(root).write([GeneratedFile(path="caddy/Caddyfile", content="x")])
        assert root.read_text() == "oops"
