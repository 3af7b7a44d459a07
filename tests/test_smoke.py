"""
Smoke tests — verify the bootstrap is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- Packaged catalog and templates agree
"""

from click.testing import CliRunner

from homestack import __version__
from homestack.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        assert __version__
        assert isinstance(__version__, str)

    def test_cli_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_commands_registered(self):
        assert {"install", "plan", "config", "services", "runtime"} <= set(cli.commands)

    def test_core_package_imports(self):
        import homestack.adapters
        import homestack.adapters.containers
        import homestack.adapters.distribution
        import homestack.core.engine.orchestrator
        import homestack.core.models
        import homestack.core.persistence
        import homestack.core.services
        import homestack.core.use_cases  # noqa: F401

    def test_every_catalog_service_has_a_template(self, catalog):
        from homestack.core.config.template_loader import TemplateSource

        templates = TemplateSource()
        assert sorted(catalog.type_ids) == templates.list_templates()

    def test_template_placeholders_are_known(self, catalog, homelab_config):
        from homestack.core.config.template_loader import TemplateSource
        from homestack.core.services.interpolation import context_keys

        templates = TemplateSource()
        known = context_keys(homelab_config)
        for type_id in catalog.type_ids:
            assert templates.load(type_id).placeholders() <= known, type_id
            config_template = templates.load_config_template(type_id)
            if config_template is not None:
                assert config_template.placeholders() <= known, type_id

    def test_container_name_matches_type_id(self, catalog):
        from homestack.core.config.template_loader import TemplateSource

        templates = TemplateSource()
        for type_id in catalog.type_ids:
            assert f"--name {type_id} " in templates.load(type_id).run, type_id
