"""
storyforge.prompts - Prompt Templates and Assembly
====================================================

Components:
    - TemplateProvider (ABC) + Package/Directory/InMemory implementations
    - substitute(): strict {name} placeholder substitution
    - PromptFactory: template lookup + substitution in one call
    - create_template_provider: factory keyed by config.templates

Bundled templates (storyforge/prompts/templates/):
    story-root-create, story-root-merge, world-state-create, world-state-merge
"""

from storyforge.prompts.factory import PromptFactory
from storyforge.prompts.substitution import (
    PLACEHOLDER_PATTERN,
    find_placeholders,
    substitute,
)
from storyforge.prompts.templates import (
    DirectoryTemplateProvider,
    InMemoryTemplateProvider,
    PackageTemplateProvider,
    TemplateProvider,
    create_template_provider,
)

__all__ = [
    "DirectoryTemplateProvider",
    "InMemoryTemplateProvider",
    "PLACEHOLDER_PATTERN",
    "PackageTemplateProvider",
    "PromptFactory",
    "TemplateProvider",
    "create_template_provider",
    "find_placeholders",
    "substitute",
]
