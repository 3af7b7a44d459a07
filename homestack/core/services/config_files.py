"""
Config file generation — optional per-service files and the Caddyfile.

A missing config template means the service needs no files.  Existing
files are backed up to ``<name>.bak.<timestamp>`` before being replaced,
and every write returns a restore callable for the recovery manager.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, Mapping

from homestack.core.config.template_loader import TemplateSource
from homestack.core.errors import ServiceInstallationError
from homestack.core.models.config import HomelabConfig
from homestack.core.models.service import GeneratedFile, ServiceDescriptor
from homestack.core.services.interpolation import render

logger = logging.getLogger(__name__)

CADDYFILE_PATH = "caddy/Caddyfile"


@dataclass
class WriteResult:
    """Files written by one ``write`` call and how to undo it."""

    written: list[Path] = field(default_factory=list)
    created: list[Path] = field(default_factory=list)
    backups: dict[Path, Path] = field(default_factory=dict)   # target → backup

    @property
    def changed(self) -> bool:
        return bool(self.written)

    def restore(self) -> None:
        """Put backed-up files back and delete files that were new."""
        for target, backup in self.backups.items():
            shutil.copy2(backup, target)
            logger.debug("Restored %s from %s", target, backup.name)
        for target in self.created:
            target.unlink(missing_ok=True)
            logger.debug("Removed generated %s", target)


class ConfigFileGenerator:
    """Render and write service config files under ``config_dir``."""

    def __init__(self, config_dir: Path | str):
        self._root = Path(config_dir).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def render_service(
        self,
        type_id: str,
        templates: TemplateSource,
        context: Mapping[str, str],
    ) -> list[GeneratedFile]:
        """Render a service's config template; ``[]`` if it has none.

        Raises:
            TemplateError: the config template is malformed or references
                undefined placeholders.
        """
        template = templates.load_config_template(type_id)
        if template is None:
            return []
        return [
            GeneratedFile(
                path=render(f.path, context, type_id),
                content=render(f.content, context, type_id),
                reason=f"config template for {type_id}",
            )
            for f in template.files
        ]

    def caddyfile(
        self,
        config: HomelabConfig,
        descriptors: Iterable[ServiceDescriptor],
    ) -> GeneratedFile:
        """Reverse-proxy config for every service with a subdomain and port."""
        blocks = [
            f"{config.domain} {{\n"
            f"    respond \"homestack on {config.domain}\"\n"
            f"}}\n"
        ]
        for d in descriptors:
            if not d.subdomain or not d.port:
                continue
            blocks.append(
                f"{d.subdomain}.{config.domain} {{\n"
                f"    reverse_proxy {d.type_id}:{d.port}\n"
                f"}}\n"
            )
        return GeneratedFile(
            path=CADDYFILE_PATH,
            content="\n".join(blocks),
            reason="reverse proxy routes",
        )

    def write(self, files: Iterable[GeneratedFile], service: str = "config files") -> WriteResult:
        """Write files, backing up any existing file first.

        Files with ``overwrite=False`` that already exist are left alone.
        Unchanged content is not rewritten.

        Raises:
            ServiceInstallationError: a file could not be backed up or
                written; files written by this call are restored first.
        """
        result = WriteResult()
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")

        try:
            for f in files:
                self._write_one(f, stamp, result)
        except OSError as e:
            logger.error("✗ Could not write config for %s: %s", service, e)
            try:
                result.restore()
            except OSError as restore_error:
                logger.error("   restore failed: %s", restore_error)
            raise ServiceInstallationError(
                service,
                f"{e.strerror or e} ({e.filename or self._root})",
                phase="write config for",
                hint=f"Check that {self._root} is a writable directory",
            ) from e

        return result

    def _write_one(self, f: GeneratedFile, stamp: str, result: WriteResult) -> None:
        target = self._root / f.path
        if target.exists():
            if not f.overwrite:
                logger.debug("Keeping existing %s", target)
                return
            if target.read_text(encoding="utf-8") == f.content:
                logger.debug("Unchanged %s", target)
                return
            backup = target.with_name(f"{target.name}.bak.{stamp}")
            shutil.copy2(target, backup)
            result.backups[target] = backup
            logger.info("💾 Backed up %s → %s", target, backup.name)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            result.created.append(target)

        target.write_text(f.content, encoding="utf-8")
        result.written.append(target)
        logger.info("📝 Wrote %s", target)
