"""
Container runtime adapter — one set of templates, two container engines.

Service templates are written against the ``docker`` CLI.  This adapter
detects which engine is actually usable on the host (docker first,
podman as fallback), rewrites command strings to that engine, and
normalizes image references: podman does not resolve short names
against Docker Hub, so ``nginx`` must become
``docker.io/library/nginx`` and ``org/app`` must become
``docker.io/org/app``.

The detected engine is cached on the adapter instance for the lifetime
of a run; ``reset()`` exists for tests.
"""

from __future__ import annotations

import logging
import re
import shlex
import shutil
from dataclasses import dataclass
from enum import StrEnum

from homestack.adapters.base import CommandExecutor
from homestack.core.errors import RuntimeDetectionError
from homestack.core.models.outcome import ExecutionOutcome

logger = logging.getLogger(__name__)


class ContainerRuntime(StrEnum):
    DOCKER = "docker"
    PODMAN = "podman"


# Probe order: first working engine wins
DETECTION_ORDER = (ContainerRuntime.DOCKER, ContainerRuntime.PODMAN)

DEFAULT_REGISTRY = "docker.io"
OFFICIAL_NAMESPACE = f"{DEFAULT_REGISTRY}/library"

# Free-space thresholds checked before image pulls (bytes)
DISK_CAUTION_BYTES = 2 * 1024**3
DISK_SEVERE_BYTES = 512 * 1024**2

PROBE_TIMEOUT = 15

# Whole-word ``docker`` invocation; leaves /var/run/docker.sock,
# docker-compose, docker.io and docker:dind alone.
_DOCKER_TOKEN = re.compile(r"(?<![\w./-])docker(?![\w.:/-])")

# Shell words (quotes kept intact) and command separators
_WORD = re.compile(r"""(?:"[^"]*"|'[^']*'|[^\s"';|&])+|&&|\|\||[;|&]""")
_SEPARATORS = {"&&", "||", ";", "|", "&"}

# Flags that never take a value
_RUN_BOOLEAN_FLAGS = {
    "-d", "--detach", "--rm", "-i", "-t", "-it", "-ti", "-dit", "-itd",
    "--interactive", "--tty", "--privileged", "--init", "-P",
    "--publish-all", "--read-only", "--sig-proxy", "--no-healthcheck",
}
_PULL_BOOLEAN_FLAGS = {
    "-q", "--quiet", "-a", "--all-tags", "--disable-content-trust",
}


def normalize_image_name(image: str, runtime: ContainerRuntime | str) -> str:
    """Return the image reference the given engine needs.

    Docker resolves short names itself, so it gets the reference
    unchanged.  For podman:

    - a reference whose first path component is a registry host
      (contains ``.`` or ``:``, or is ``localhost``) is left unchanged;
    - a single-word official image gets ``docker.io/library/``;
    - anything else gets ``docker.io/``.
    """
    if ContainerRuntime(runtime) is ContainerRuntime.DOCKER:
        return image

    if "/" in image:
        host = image.split("/", 1)[0]
        if "." in host or ":" in host or host == "localhost":
            return image
        return f"{DEFAULT_REGISTRY}/{image}"

    return f"{OFFICIAL_NAMESPACE}/{image}"


@dataclass
class _Word:
    text: str
    start: int
    end: int


def _words(command: str) -> list[_Word]:
    return [_Word(m.group(0), m.start(), m.end()) for m in _WORD.finditer(command)]


def _find_image_words(command: str) -> list[_Word]:
    """Locate the image argument of every ``pull``/``run`` invocation.

    The image is the first positional word after the subcommand.  Flags
    written ``--flag=value`` stand alone; other value flags consume the
    following word.
    """
    words = _words(command)
    found: list[_Word] = []
    i = 0
    while i < len(words):
        if words[i].text not in (ContainerRuntime.DOCKER, ContainerRuntime.PODMAN):
            i += 1
            continue

        j = i + 1
        if j < len(words) and words[j].text in ("image", "container"):
            j += 1
        if j >= len(words) or words[j].text not in ("pull", "run"):
            i += 1
            continue

        boolean_flags = _RUN_BOOLEAN_FLAGS if words[j].text == "run" else _PULL_BOOLEAN_FLAGS
        j += 1
        while j < len(words) and words[j].text not in _SEPARATORS:
            text = words[j].text
            if not text.startswith("-"):
                found.append(words[j])
                break
            if text in boolean_flags or "=" in text:
                j += 1
            elif text.startswith("--") or len(text) == 2:
                j += 2
            else:
                # short flag with attached value, e.g. -p8080:80
                j += 1
        i = j + 1

    return found


def find_images(command: str) -> list[str]:
    """Image references pulled or run by ``command``."""
    return [w.text for w in _find_image_words(command)]


class ContainerRuntimeAdapter:
    """Detect the container engine and adapt commands to it.

    Args:
        executor: Runs the probe and query commands.
        preferred: ``"auto"`` probes docker then podman; an engine name
            probes only that engine.
        disk_path: Filesystem checked for free space before pulls.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        preferred: str = "auto",
        disk_path: str = "/",
    ):
        self._executor = executor
        self._preferred = preferred
        self._disk_path = disk_path
        self._detected: ContainerRuntime | None = None

    # ── Detection ───────────────────────────────────────────────

    @property
    def current_runtime(self) -> ContainerRuntime | None:
        """The cached engine, or None before detection."""
        return self._detected

    def detect_runtime(self) -> ContainerRuntime:
        """Probe for a working engine and cache it.

        An engine counts as working when both ``--version`` and ``info``
        succeed; installed-but-stopped engines are reported and skipped.

        Raises:
            RuntimeDetectionError: no engine responded.
        """
        if self._detected is not None:
            return self._detected

        if self._preferred == "auto":
            candidates = DETECTION_ORDER
        else:
            candidates = (ContainerRuntime(self._preferred),)

        for runtime in candidates:
            version = self._executor.execute(f"{runtime} --version", timeout=PROBE_TIMEOUT)
            if not version.success:
                logger.debug("%s not installed", runtime)
                continue
            info = self._executor.execute(f"{runtime} info", timeout=PROBE_TIMEOUT)
            if not info.success:
                logger.warning("⚠️  %s is installed but not running", runtime)
                continue
            self._detected = runtime
            logger.info("✅ %s detected as container runtime", runtime)
            return runtime

        names = " or ".join(c.value.capitalize() for c in candidates)
        raise RuntimeDetectionError(
            f"No working container runtime found. Please install and start {names}.",
            suggestions=self.startup_suggestions(),
        )

    def reset(self) -> None:
        """Forget the detected engine."""
        self._detected = None

    @staticmethod
    def startup_suggestions() -> list[str]:
        return [
            "For Docker: `sudo systemctl start docker` (Linux) or start Docker Desktop",
            "For Colima: `colima start`",
            "For Podman: `systemctl --user start podman` or `podman machine start`",
            "Alternatively, install a different container runtime",
        ]

    def runtime_warnings(self) -> list[str]:
        """Caveats the operator should know about for the detected engine."""
        if self._detected is not ContainerRuntime.PODMAN:
            return []
        return [
            "Using Podman runtime, some additional setup may be required:",
            "On macOS, ensure the Podman machine is running with `podman machine start`",
            "For Portainer, run `systemctl --user enable --now podman.socket` (Linux)",
            "Rootless containers run under a user namespace",
            "Some Docker-specific features may not be available",
            "Network creation might require manual setup",
        ]

    # ── Command rewriting ───────────────────────────────────────

    def normalize(self, image: str) -> str:
        return normalize_image_name(image, self.detect_runtime())

    def process_command(self, command: str) -> str:
        """Rewrite a docker-flavoured command for the detected engine."""
        runtime = self.detect_runtime()
        if runtime is ContainerRuntime.DOCKER:
            return command

        processed = _DOCKER_TOKEN.sub(runtime.value, command)

        # Right to left so earlier spans stay valid
        for word in reversed(_find_image_words(processed)):
            if word.text[0] in "\"'$" or "{{" in word.text:
                continue
            image = normalize_image_name(word.text, runtime)
            processed = processed[: word.start] + image + processed[word.end :]

        if processed != command:
            logger.debug("Rewrote command for %s: %s", runtime, processed)
        return processed

    @staticmethod
    def pulls_image(command: str) -> bool:
        """Whether the command may pull an image (explicit pull or run)."""
        return bool(_find_image_words(command))

    # ── Host checks ─────────────────────────────────────────────

    def check_disk_space(self) -> list[str]:
        """Warn when free space is low. Never blocks the caller."""
        try:
            free = shutil.disk_usage(self._disk_path).free
        except OSError as e:
            logger.debug("Could not read disk usage for %s: %s", self._disk_path, e)
            return []

        free_gib = free / 1024**3
        if free < DISK_SEVERE_BYTES:
            message = (
                f"Only {free_gib:.2f} GiB free on {self._disk_path}; "
                "image pulls will likely fail"
            )
        elif free < DISK_CAUTION_BYTES:
            message = f"Low disk space: {free_gib:.2f} GiB free on {self._disk_path}"
        else:
            return []
        logger.warning("⚠️  %s", message)
        return [message]

    # ── Queries and resource operations ─────────────────────────

    def _run(self, args: str, timeout: int | None = None) -> ExecutionOutcome:
        return self._executor.execute(f"{self.detect_runtime()} {args}", timeout=timeout)

    def daemon_running(self) -> bool:
        return self._run("info", timeout=PROBE_TIMEOUT).success

    def container_exists(self, name: str) -> bool:
        outcome = self._run("ps -a --format '{{.Names}}'")
        if not outcome.success:
            return False
        return name in outcome.stdout.split()

    def image_exists(self, image: str) -> bool:
        return self._run(f"image inspect {shlex.quote(self.normalize(image))}").success

    def network_exists(self, name: str) -> bool:
        return self._run(f"network inspect {shlex.quote(name)}").success

    def create_network(self, name: str) -> ExecutionOutcome:
        return self._run(f"network create {shlex.quote(name)}")

    def remove_network(self, name: str) -> ExecutionOutcome:
        return self._run(f"network rm {shlex.quote(name)}")

    def remove_container(self, name: str) -> ExecutionOutcome:
        return self._run(f"rm -f {shlex.quote(name)}")

    def reload_container(self, name: str, command: str) -> ExecutionOutcome:
        """Run ``command`` inside a running container."""
        return self._run(f"exec {shlex.quote(name)} {command}")
