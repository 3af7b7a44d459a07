"""
Tests for command interpolation.
"""

import pytest

from homestack.core.errors import TemplateVariableError
from homestack.core.models.config import HomelabConfig
from homestack.core.services.interpolation import (
    build_install_context,
    context_keys,
    find_placeholders,
    generate_admin_token,
    missing_placeholders,
    render,
    render_all,
)


class TestRender:
    def test_substitutes(self):
        assert render("--network {{NETWORK_NAME}}", {"NETWORK_NAME": "lab"}) == "--network lab"

    def test_repeated_placeholder(self):
        assert render("{{A}}-{{A}}", {"A": "x"}) == "x-x"

    def test_no_placeholders(self):
        assert render("docker ps", {}) == "docker ps"

    def test_missing_raises(self):
        with pytest.raises(TemplateVariableError) as exc:
            render("{{A}} {{B}}", {"A": "x"}, "demo")
        assert exc.value.missing == ["B"]
        assert exc.value.context["template"] == "demo"

    def test_render_all_is_all_or_nothing(self):
        with pytest.raises(TemplateVariableError) as exc:
            render_all(["ok {{A}}", "bad {{C}}", "bad {{B}}"], {"A": "x"})
        assert exc.value.missing == ["B", "C"]

    def test_single_braces_untouched(self):
        assert render("--format '{.Names}'", {}) == "--format '{.Names}'"


class TestPlaceholderHelpers:
    def test_find(self):
        assert find_placeholders("{{A}} and {{B_2}} not {C}") == {"A", "B_2"}

    def test_missing(self):
        assert missing_placeholders(["{{A}}", "{{B}}"], {"A": "1"}) == ["B"]


class TestInstallContext:
    def test_keys(self, homelab_config: HomelabConfig):
        context = build_install_context(homelab_config, "Redis")
        assert context["NETWORK_NAME"] == "homelab"
        assert context["DOMAIN"] == "home.lab"
        assert context["IP"] == "192.168.1.10"
        assert context["SERVICE_NAME"] == "Redis"
        assert context["STORAGE_PASSWORD"] == "s3cret-pass"
        assert context["CONFIG_DIR"] == str(homelab_config.config_path)

    def test_no_storage_password_key_when_unset(self):
        config = HomelabConfig(ip="10.0.0.2", domain="home.lab")
        assert "STORAGE_PASSWORD" not in build_install_context(config)

    def test_fresh_admin_token_each_call(self, homelab_config: HomelabConfig):
        a = build_install_context(homelab_config)["ADMIN_TOKEN"]
        b = build_install_context(homelab_config)["ADMIN_TOKEN"]
        assert len(a) == 32
        assert a != b

    def test_token_alphabet(self):
        assert generate_admin_token(64).isalnum()

    def test_context_keys(self, homelab_config: HomelabConfig):
        assert {"NETWORK_NAME", "ADMIN_TOKEN", "SERVICE_NAME"} <= context_keys(homelab_config)
