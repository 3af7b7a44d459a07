"""
Command interpolation — ``{{NAME}}`` placeholders against an install context.

Rendering is all-or-nothing: if any placeholder is undefined the whole
render fails with ``TemplateVariableError`` naming every missing key,
and nothing is substituted.
"""

from __future__ import annotations

import secrets
import string
from typing import Iterable, Mapping

from homestack.core.errors import TemplateVariableError
from homestack.core.models.config import HomelabConfig
from homestack.core.models.service import PLACEHOLDER_PATTERN

ADMIN_TOKEN_LENGTH = 32
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def find_placeholders(text: str) -> set[str]:
    return set(PLACEHOLDER_PATTERN.findall(text))


def missing_placeholders(texts: Iterable[str], context: Mapping[str, str]) -> list[str]:
    """Placeholder names used in ``texts`` that ``context`` does not define."""
    used: set[str] = set()
    for text in texts:
        used |= find_placeholders(text)
    return sorted(used - context.keys())


def render(text: str, context: Mapping[str, str], template_id: str = "") -> str:
    """Substitute every placeholder in ``text``.

    Raises:
        TemplateVariableError: one or more placeholders are undefined.
    """
    missing = missing_placeholders([text], context)
    if missing:
        raise TemplateVariableError(template_id or "command", missing)
    return PLACEHOLDER_PATTERN.sub(lambda m: str(context[m.group(1)]), text)


def render_all(texts: Iterable[str], context: Mapping[str, str], template_id: str = "") -> list[str]:
    """Render a command list, failing before any output if anything is missing."""
    texts = list(texts)
    missing = missing_placeholders(texts, context)
    if missing:
        raise TemplateVariableError(template_id or "command", missing)
    return [render(t, context, template_id) for t in texts]


def generate_admin_token(length: int = ADMIN_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def build_install_context(config: HomelabConfig, service_name: str = "") -> dict[str, str]:
    """Fresh placeholder values for one command execution.

    A new ``ADMIN_TOKEN`` is generated on every call.  ``STORAGE_PASSWORD``
    is only defined when configured, so templates that need it fail
    loudly instead of receiving an empty string.
    """
    context = {
        "NETWORK_NAME": config.network_name,
        "DOMAIN": config.domain,
        "IP": config.ip,
        "CONFIG_DIR": str(config.config_path),
        "ADMIN_TOKEN": generate_admin_token(),
    }
    if service_name:
        context["SERVICE_NAME"] = service_name
    if config.storage_password:
        context["STORAGE_PASSWORD"] = config.storage_password
    return context


def context_keys(config: HomelabConfig) -> set[str]:
    """Placeholder names a context for ``config`` will define."""
    return set(build_install_context(config, service_name="_"))
