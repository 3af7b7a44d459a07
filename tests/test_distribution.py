"""
Tests for distribution strategies.
"""

import pytest

from homestack.adapters.distribution.strategy import available_distributions, get_strategy
from homestack.core.errors import DistributionError


class TestGetStrategy:
    def test_available(self):
        assert available_distributions() == ["amazon", "arch", "macos", "ubuntu"]

    def test_lookup(self, mock_executor):
        strategy = get_strategy(" Ubuntu ", mock_executor)
        assert strategy.name == "ubuntu"
        assert strategy.package_manager == "apt"

    def test_unknown(self, mock_executor):
        with pytest.raises(DistributionError, match="unsupported distribution"):
            get_strategy("gentoo", mock_executor)

    def test_windows_not_supported(self, mock_executor):
        with pytest.raises(DistributionError):
            get_strategy("mingw", mock_executor)


class TestContainerRuntime:
    def test_installs_when_missing(self, mock_executor):
        mock_executor.set_failure(r"command -v docker")
        get_strategy("ubuntu", mock_executor).install_container_runtime()
        assert mock_executor.calls_matching(r"apt-get install -y docker-ce")

    def test_only_ensures_running_when_present(self, mock_executor):
        get_strategy("ubuntu", mock_executor).install_container_runtime()
        assert mock_executor.calls_matching(r"apt-get") == []
        assert mock_executor.calls_matching(r"systemctl start docker")

    def test_failure_raises(self, mock_executor):
        mock_executor.set_failure(r"command -v docker")
        mock_executor.set_failure(r"pacman -S ", stderr="target not found")
        with pytest.raises(DistributionError) as exc:
            get_strategy("arch", mock_executor).install_container_runtime()
        assert exc.value.step == "install container runtime"
        assert "target not found" in exc.value.message


class TestFirewall:
    def test_configures(self, mock_executor):
        get_strategy("ubuntu", mock_executor).configure_firewall()
        assert mock_executor.calls_matching(r"ufw allow 443/tcp")

    def test_skips_when_already_configured(self, mock_executor):
        mock_executor.set_response(
            r"ufw status",
            stdout="Status: active\n22/tcp ALLOW Anywhere\n80/tcp ALLOW Anywhere\n443/tcp ALLOW Anywhere",
        )
        get_strategy("ubuntu", mock_executor).configure_firewall()
        assert mock_executor.calls_matching(r"ufw allow") == []

    def test_firewalld(self, mock_executor):
        get_strategy("amazon", mock_executor).configure_firewall()
        assert mock_executor.calls_matching(r"firewall-cmd --permanent --add-service=https")

    def test_macos_has_no_firewall_step(self, mock_executor):
        get_strategy("macos", mock_executor).configure_firewall()
        assert mock_executor.call_count == 0


class TestDns:
    def test_dnsmasq(self, mock_executor):
        get_strategy("ubuntu", mock_executor).configure_dns_resolution("home.lab", "10.0.0.2", ["caddy"])
        assert mock_executor.calls_matching(r"apt-get install -y dnsmasq")
        assert mock_executor.calls_matching(r"address=/home\.lab/10\.0\.0\.2")

    def test_failure(self, mock_executor):
        mock_executor.set_failure(r"restart dnsmasq", stderr="unit not found")
        with pytest.raises(DistributionError, match="configure DNS"):
            get_strategy("ubuntu", mock_executor).configure_dns_resolution("home.lab", "10.0.0.2", [])


class TestInstallPackages:
    def test_empty_is_noop(self, mock_executor):
        get_strategy("arch", mock_executor).install_packages([])
        assert mock_executor.call_count == 0

    def test_joined(self, mock_executor):
        get_strategy("amazon", mock_executor).install_packages(["curl", "jq"])
        assert mock_executor.call_log == ["sudo dnf install -y curl jq"]
