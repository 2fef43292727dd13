"""
storyforge.prompts.templates - Prompt Template Providers
==========================================================

A template provider turns a template id ("story-root-merge") into template
text. Templates are plain text with {name} placeholders; see
storyforge.prompts.substitution for how they are filled.

Providers:
    - PackageTemplateProvider:   templates bundled in storyforge/prompts/templates
    - DirectoryTemplateProvider: "<template_id>.txt" files in a chosen directory
    - InMemoryTemplateProvider:  a dict, for tests

The package and directory providers cache template text by id. Template
text is immutable once loaded, so the cache is never invalidated.
"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path
from typing import Optional

import structlog

from storyforge.core.config import TemplateConfig
from storyforge.core.exceptions import ConfigurationError, TemplateNotFoundError

logger = structlog.get_logger()

TEMPLATE_SUFFIX = ".txt"
_TEMPLATE_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def _check_template_id(template_id: str) -> None:
    # Ids become file names; anything else cannot name a bundled template
    if not template_id or not _TEMPLATE_ID_PATTERN.match(template_id):
        raise TemplateNotFoundError(template_id)


class TemplateProvider(ABC):
    """Abstract source of template text."""

    @abstractmethod
    async def load(self, template_id: str) -> str:
        """Return the text of a template.

        Raises:
            TemplateNotFoundError: If no template has this id.
            ConfigurationError: If the template exists but cannot be read.
        """
        ...


class _CachingTemplateProvider(TemplateProvider):
    """Shared cache for providers that read template files."""

    def __init__(self) -> None:
        self._cache: dict[str, str] = {}

    @abstractmethod
    def _read(self, template_id: str) -> Optional[str]:
        """Read template text, or None if it does not exist."""
        ...

    async def load(self, template_id: str) -> str:
        cached = self._cache.get(template_id)
        if cached is not None:
            return cached

        _check_template_id(template_id)
        try:
            text = await asyncio.to_thread(self._read, template_id)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("template_read_failed", template_id=template_id, error=str(exc))
            raise ConfigurationError(
                message=f"Template '{template_id}' could not be read: {exc}",
                error_code="TEMPLATE_UNREADABLE",
                details={"template_id": template_id, "error": str(exc)},
            ) from exc

        if text is None:
            logger.warning("template_not_found", template_id=template_id)
            raise TemplateNotFoundError(template_id)

        self._cache[template_id] = text
        logger.debug("template_loaded", template_id=template_id, length=len(text))
        return text


class PackageTemplateProvider(_CachingTemplateProvider):
    """Templates shipped inside the storyforge.prompts package."""

    def __init__(self, package: str = "storyforge.prompts") -> None:
        super().__init__()
        self._root = resources.files(package).joinpath("templates")

    def _read(self, template_id: str) -> Optional[str]:
        resource = self._root.joinpath(f"{template_id}{TEMPLATE_SUFFIX}")
        if not resource.is_file():
            return None
        return resource.read_text(encoding="utf-8")


class DirectoryTemplateProvider(_CachingTemplateProvider):
    """Templates read from "<directory>/<template_id>.txt"."""

    def __init__(self, directory: str | Path) -> None:
        super().__init__()
        self.directory = Path(directory)

    def _read(self, template_id: str) -> Optional[str]:
        path = self.directory / f"{template_id}{TEMPLATE_SUFFIX}"
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")


class InMemoryTemplateProvider(TemplateProvider):
    """Templates held in a dict.

    Example:
        >>> provider = InMemoryTemplateProvider({"story-root-create": "{user_input}"})
    """

    def __init__(self, templates: Optional[dict[str, str]] = None) -> None:
        self._templates = dict(templates or {})

    def add(self, template_id: str, text: str) -> None:
        self._templates[template_id] = text

    async def load(self, template_id: str) -> str:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None


def create_template_provider(config: TemplateConfig) -> TemplateProvider:
    """Bundled templates when no directory is configured, else that directory.

    Raises:
        ConfigurationError: If the configured directory does not exist.
    """
    if config.directory is None:
        return PackageTemplateProvider()

    directory = Path(config.directory)
    if not directory.is_dir():
        raise ConfigurationError(
            message=f"Template directory does not exist: {config.directory}",
            error_code="TEMPLATE_DIRECTORY_NOT_FOUND",
            details={"directory": config.directory},
        )
    logger.info("template_directory_configured", directory=str(directory))
    return DirectoryTemplateProvider(directory)
