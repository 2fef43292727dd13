"""
storyforge.prompts.factory - Prompt Assembly
==============================================

PromptFactory turns a PromptInput (template id + variables) into the final
prompt text: load the template, then substitute strictly.
"""

from __future__ import annotations

import structlog

from storyforge.core.models import PromptInput
from storyforge.prompts.substitution import substitute
from storyforge.prompts.templates import TemplateProvider

logger = structlog.get_logger()


class PromptFactory:
    """Assembles prompts from a template provider.

    Example:
        >>> factory = PromptFactory(PackageTemplateProvider())
        >>> prompt = await factory.assemble(prompt_input)
    """

    def __init__(self, templates: TemplateProvider) -> None:
        self._templates = templates
        self._logger = logger.bind(component="prompt_factory")

    async def assemble(self, prompt_input: PromptInput) -> str:
        """Build the prompt text for prompt_input.

        Raises:
            TemplateNotFoundError: If the template id is unknown.
            SubstitutionError: If any placeholder is left unresolved.
        """
        template = await self._templates.load(prompt_input.template_id)
        prompt = substitute(
            template,
            prompt_input.variables,
            template_id=prompt_input.template_id,
        )
        self._logger.debug(
            "prompt_assembled",
            template_id=prompt_input.template_id,
            operation=prompt_input.operation.value,
            prompt_length=len(prompt),
        )
        return prompt
