"""
Distribution recipes — per-OS shell commands as data.

Commands are ``str.format`` templates.  Available fields:
``{packages}`` (space-joined package list), ``{domain}`` and ``{ip}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DistributionRecipe:
    """Shell recipe for one distribution.

    Attributes:
        runtime_binary:  Present when the runtime is already installed.
        runtime_ensure:  Run instead of ``runtime_install`` when it is.
        firewall_status: Query whose output proves the firewall is done
                         when it contains every ``firewall_markers`` entry.
    """

    name: str
    package_manager: str
    install_packages: str
    runtime_binary: str = "docker"
    runtime_install: tuple[str, ...] = ()
    runtime_ensure: tuple[str, ...] = ()
    firewall_status: str = ""
    firewall_markers: tuple[str, ...] = ()
    firewall: tuple[str, ...] = ()
    dns_packages: tuple[str, ...] = ("dnsmasq",)
    dns: tuple[str, ...] = field(default_factory=tuple)


_DNSMASQ_LINUX = (
    "printf 'address=/{domain}/{ip}\\n' | sudo tee /etc/dnsmasq.d/homestack.conf > /dev/null",
    "sudo systemctl restart dnsmasq",
    "sudo systemctl enable dnsmasq",
)

_UFW = (
    "sudo ufw default deny incoming",
    "sudo ufw default allow outgoing",
    "sudo ufw allow 22/tcp",
    "sudo ufw allow 80/tcp",
    "sudo ufw allow 443/tcp",
    "sudo ufw --force enable",
)

_SYSTEMD_DOCKER = (
    "sudo systemctl enable docker",
    "sudo systemctl start docker",
)

RECIPES: dict[str, DistributionRecipe] = {
    "ubuntu": DistributionRecipe(
        name="ubuntu",
        package_manager="apt",
        install_packages="sudo apt-get update -q && sudo apt-get install -y {packages}",
        runtime_install=(
            "sudo apt-get update -q",
            "sudo apt-get install -y ca-certificates curl gnupg",
            "sudo install -m 0755 -d /etc/apt/keyrings",
            "curl -fsSL https://download.docker.com/linux/ubuntu/gpg"
            " | sudo gpg --dearmor --yes -o /etc/apt/keyrings/docker.gpg",
            'echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.gpg]'
            ' https://download.docker.com/linux/ubuntu $(lsb_release -cs) stable"'
            " | sudo tee /etc/apt/sources.list.d/docker.list > /dev/null",
            "sudo apt-get update -q",
            "sudo apt-get install -y docker-ce docker-ce-cli containerd.io"
            " docker-buildx-plugin docker-compose-plugin",
            *_SYSTEMD_DOCKER,
            'sudo usermod -aG docker "$(whoami)"',
        ),
        runtime_ensure=_SYSTEMD_DOCKER,
        firewall_status="sudo ufw status",
        firewall_markers=("Status: active", "22/tcp", "80/tcp", "443/tcp"),
        firewall=("sudo apt-get install -y ufw", *_UFW),
        dns=_DNSMASQ_LINUX,
    ),
    "arch": DistributionRecipe(
        name="arch",
        package_manager="pacman",
        install_packages="sudo pacman -Sy --noconfirm --needed {packages}",
        runtime_install=(
            "sudo pacman -Syu --noconfirm",
            "sudo pacman -S --noconfirm --needed docker docker-buildx",
            *_SYSTEMD_DOCKER,
            'sudo usermod -aG docker "$(whoami)"',
        ),
        runtime_ensure=_SYSTEMD_DOCKER,
        firewall_status="sudo ufw status",
        firewall_markers=("Status: active", "22/tcp", "80/tcp", "443/tcp"),
        firewall=(
            "sudo pacman -S --noconfirm --needed ufw",
            "sudo systemctl enable ufw",
            "sudo systemctl start ufw",
            *_UFW,
        ),
        dns=_DNSMASQ_LINUX,
    ),
    "amazon": DistributionRecipe(
        name="amazon",
        package_manager="dnf",
        install_packages="sudo dnf install -y {packages}",
        runtime_install=(
            "sudo dnf install -y docker",
            *_SYSTEMD_DOCKER,
            'sudo usermod -aG docker "$(whoami)"',
        ),
        runtime_ensure=_SYSTEMD_DOCKER,
        firewall_status="sudo firewall-cmd --list-services",
        firewall_markers=("ssh", "http", "https"),
        firewall=(
            "sudo dnf install -y firewalld",
            "sudo systemctl enable firewalld",
            "sudo systemctl start firewalld",
            "sudo firewall-cmd --permanent --add-service=ssh",
            "sudo firewall-cmd --permanent --add-service=http",
            "sudo firewall-cmd --permanent --add-service=https",
            "sudo firewall-cmd --reload",
        ),
        dns=_DNSMASQ_LINUX,
    ),
    "macos": DistributionRecipe(
        name="macos",
        package_manager="brew",
        install_packages="brew install {packages}",
        runtime_install=(
            "brew install colima docker",
            "colima start",
        ),
        runtime_ensure=("colima status || colima start",),
        # Application firewall is managed through System Settings
        firewall=(),
        dns=(
            'mkdir -p "$(brew --prefix)/etc/dnsmasq.d"',
            "printf 'address=/{domain}/{ip}\\n' > \"$(brew --prefix)/etc/dnsmasq.d/homestack.conf\"",
            "sudo brew services restart dnsmasq",
            "sudo mkdir -p /etc/resolver",
            "printf 'nameserver 127.0.0.1\\n' | sudo tee /etc/resolver/{domain} > /dev/null",
        ),
    ),
}
