"""
Template source — loads service command templates and config templates.

Layout under the templates directory::

    services/<type_id>.yml   command template (required per service)
    config/<type_id>.yml     config-file template (optional)

YAML is preferred; a ``.json`` file with the same stem is accepted as a
fallback.  Parsed templates are cached per source instance.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from homestack.core.data import TEMPLATES_DIR
from homestack.core.errors import TemplateError, TemplateNotFoundError
from homestack.core.models.service import ConfigTemplate, ServiceTemplate

logger = logging.getLogger(__name__)

SERVICES_SUBDIR = "services"
CONFIG_SUBDIR = "config"
_EXTENSIONS = (".yml", ".json")


class TemplateSource:
    """Read-through cache over a templates directory.

    Args:
        templates_dir: Root holding ``services/`` and ``config/``.
            Defaults to the templates packaged with homestack.
    """

    def __init__(self, templates_dir: Path | str | None = None):
        self._root = Path(templates_dir).expanduser() if templates_dir else TEMPLATES_DIR
        self._services: dict[str, ServiceTemplate] = {}
        self._configs: dict[str, ConfigTemplate | None] = {}

    @property
    def root(self) -> Path:
        return self._root

    def load(self, template_id: str) -> ServiceTemplate:
        """Load the command template for a service.

        Raises:
            TemplateNotFoundError: no file for ``template_id``.
            TemplateError: the file is not a valid command template.
        """
        if template_id in self._services:
            return self._services[template_id]

        path = self._find(SERVICES_SUBDIR, template_id)
        if path is None:
            raise TemplateNotFoundError(
                template_id,
                f"template file not found: {template_id}.yml or {template_id}.json "
                f"in {self._root / SERVICES_SUBDIR}",
            )

        data = _read(path, template_id)
        try:
            template = ServiceTemplate.model_validate({"id": template_id, **data})
        except ValidationError as e:
            raise TemplateError(template_id, f"invalid format: {e}") from e

        if not template.run:
            raise TemplateError(template_id, "commands.run is empty")

        logger.debug(
            "Loaded template %s (%d install, %d setup)",
            template_id, len(template.install), len(template.setup),
        )
        self._services[template_id] = template
        return template

    def load_config_template(self, template_id: str) -> ConfigTemplate | None:
        """Load the optional config-file template for a service.

        Absence is normal and returns None.

        Raises:
            TemplateError: the file exists but is malformed.
        """
        if template_id in self._configs:
            return self._configs[template_id]

        path = self._find(CONFIG_SUBDIR, template_id)
        template: ConfigTemplate | None = None
        if path is None:
            logger.debug("No config template for %s", template_id)
        else:
            data = _read(path, template_id)
            try:
                template = ConfigTemplate.model_validate({"id": template_id, **data})
            except ValidationError as e:
                raise TemplateError(template_id, f"invalid config template: {e}") from e

        self._configs[template_id] = template
        return template

    def exists(self, template_id: str) -> bool:
        return self._find(SERVICES_SUBDIR, template_id) is not None

    def list_templates(self, subdir: str = SERVICES_SUBDIR) -> list[str]:
        """Template ids available in ``subdir``, sorted."""
        directory = self._root / subdir
        if not directory.is_dir():
            return []
        return sorted({p.stem for p in directory.iterdir() if p.suffix in _EXTENSIONS})

    def clear_cache(self) -> None:
        self._services.clear()
        self._configs.clear()

    def _find(self, subdir: str, template_id: str) -> Path | None:
        for ext in _EXTENSIONS:
            candidate = self._root / subdir / f"{template_id}{ext}"
            if candidate.is_file():
                return candidate
        return None


def _read(path: Path, template_id: str) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(template_id, f"cannot read {path}: {e}") from e

    try:
        data = json.loads(raw) if path.suffix == ".json" else yaml.safe_load(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise TemplateError(template_id, f"invalid format in {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise TemplateError(template_id, f"expected a mapping in {path.name}")
    return data
