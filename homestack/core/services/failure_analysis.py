"""
Failure analysis — classify failed commands and explain them.

Classification is centralized here: the lifecycle manager asks
``classify_failure`` and gets a ``FailureClass`` back, nothing else
inspects error text.  A failure is a recoverable skip only when the
command is a container-runtime operation AND its outcome carries a
known-benign signature.  Everything else is fatal.
"""

from __future__ import annotations

import logging
import re
import socket
from typing import Callable

from homestack.adapters.containers.runtime import ContainerRuntimeAdapter, find_images
from homestack.core.errors import HomestackError
from homestack.core.models.outcome import ExecutionOutcome, FailureClass

logger = logging.getLogger(__name__)

# pull / volume create / network create / build / run, with optional
# ``image``/``container`` management prefix
_RUNTIME_OPERATION = re.compile(
    r"\b(?:docker|podman)\s+(?:image\s+|container\s+)?"
    r"(?:pull|volume\s+create|network\s+create|build|run)\b"
)

# Error text that means "the resource is there already" or "the registry
# refused an optional pull", not "the host is broken"
BENIGN_PATTERNS = (
    re.compile(r"already exists", re.IGNORECASE),
    re.compile(r"unauthorized", re.IGNORECASE),
)

# Generic engine exit code for errors raised by the daemon itself
BENIGN_EXIT_CODES = frozenset({125})

_NETWORK_FLAG = re.compile(r"--network(?:=|\s+)([\w.-]+)")
_PUBLISH_FLAG = re.compile(r"(?:-p|--publish)(?:=|\s+)(?:[\d.]+:)?(\d+):\d+")


def is_runtime_operation(command: str) -> bool:
    return bool(_RUNTIME_OPERATION.search(command))


def has_benign_signature(outcome: ExecutionOutcome) -> bool:
    if outcome.timed_out:
        return False
    if outcome.exit_code in BENIGN_EXIT_CODES:
        return True
    text = f"{outcome.stderr}\n{outcome.stdout}"
    return any(p.search(text) for p in BENIGN_PATTERNS)


def classify_failure(outcome: ExecutionOutcome) -> FailureClass:
    """Decide whether a failed invocation aborts the run."""
    if is_runtime_operation(outcome.command) and has_benign_signature(outcome):
        return FailureClass.RECOVERABLE_SKIP
    return FailureClass.FATAL


def suggest_remediation(outcome: ExecutionOutcome, network_name: str = "") -> dict | None:
    """Match known container-runtime failure modes.

    Returns:
        ``{"cause": "...", "suggestion": "...", "confidence": "high|medium|low"}``
        or ``None`` if the error is unrecognized.
    """
    s = f"{outcome.stderr}\n{outcome.stdout}".lower()
    engine = "podman" if "podman" in outcome.command else "docker"

    if "network" in s and "not found" in s:
        m = _NETWORK_FLAG.search(outcome.command)
        name = m.group(1) if m else (network_name or "<name>")
        return {
            "cause": f"Network {name} not found",
            "suggestion": f"Run `{engine} network create {name}`",
            "confidence": "high",
        }

    if "port is already allocated" in s or "address already in use" in s:
        return {
            "cause": "Host port already in use",
            "suggestion": "Stop the process using the port or change the published port",
            "confidence": "high",
        }

    if "cannot connect to the docker daemon" in s or "is the docker daemon running" in s:
        return {
            "cause": "Container daemon is not running",
            "suggestion": "Start it with `sudo systemctl start docker` or start Docker Desktop",
            "confidence": "high",
        }

    if "cannot connect to podman" in s or "podman machine" in s:
        return {
            "cause": "Podman service is not running",
            "suggestion": "Run `podman machine start` (macOS) or `systemctl --user start podman.socket`",
            "confidence": "high",
        }

    if "permission denied" in s and "docker.sock" in s:
        return {
            "cause": "No permission to use the Docker socket",
            "suggestion": "Add your user to the docker group: `sudo usermod -aG docker $USER`, then log in again",
            "confidence": "high",
        }

    if "pull access denied" in s or "unauthorized" in s or "manifest unknown" in s:
        return {
            "cause": "Image could not be pulled from the registry",
            "suggestion": "Check the image name and tag, or log in with `" + engine + " login`",
            "confidence": "medium",
        }

    if "no space left on device" in s:
        return {
            "cause": "Disk is full",
            "suggestion": f"Free space with `{engine} system prune` or grow the disk",
            "confidence": "high",
        }

    if "is already in use by container" in s or ("name" in s and "already in use" in s):
        return {
            "cause": "A container with this name already exists",
            "suggestion": f"Remove it with `{engine} rm -f <name>` or keep the existing one",
            "confidence": "medium",
        }

    if outcome.timed_out:
        return {
            "cause": "Command timed out",
            "suggestion": "Check network connectivity to the registry and retry",
            "confidence": "low",
        }

    return None


def port_in_use(port: int, host: str = "127.0.0.1") -> bool:
    try:
        with socket.create_connection((host, port), timeout=0.5):
            return True
    except OSError:
        return False


def collect_diagnostics(
    outcome: ExecutionOutcome,
    runtime: ContainerRuntimeAdapter,
    network_name: str = "",
    port_probe: Callable[[int], bool] = port_in_use,
) -> list[str]:
    """Best-effort host checks explaining a failed runtime command.

    Never raises: a check that cannot run is reported as such.
    """
    diagnostics: list[str] = []

    remediation = suggest_remediation(outcome, network_name)
    if remediation:
        diagnostics.append(f"{remediation['cause']} → {remediation['suggestion']}")

    try:
        if not runtime.daemon_running():
            diagnostics.append("Container runtime daemon/VM is not responding")
            return diagnostics

        m = _NETWORK_FLAG.search(outcome.command)
        network = m.group(1) if m else network_name
        if network and not runtime.network_exists(network):
            diagnostics.append(f"Network {network} does not exist")

        for image in find_images(outcome.command):
            if not runtime.image_exists(image):
                diagnostics.append(f"Image {image} is not present locally")
    except HomestackError as e:
        diagnostics.append(f"Runtime checks unavailable: {e.message}")

    for port in _PUBLISH_FLAG.findall(outcome.command):
        if port_probe(int(port)):
            diagnostics.append(f"Port {port} is already bound on this host")

    logger.debug("Diagnostics for %s: %s", outcome.command, diagnostics)
    return diagnostics
