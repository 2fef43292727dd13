"""
storyforge.prompts.substitution - Strict Placeholder Substitution
===================================================================

Placeholders are "{name}" where name is made of letters, digits and
underscores. Any other brace (the JSON examples inside templates, for
instance) is plain text and left alone.

Substitution is strict: if any placeholder has no matching variable, no
prompt is produced and SubstitutionError lists every missing name. Extra
variables the template does not use are ignored.

    >>> substitute("Hello {name}", {"name": "Ada"})
    'Hello Ada'
    >>> substitute("{a} {b}", {})
    Traceback (most recent call last):
    SubstitutionError: Missing required variables: a, b. Provided variables:
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from storyforge.core.exceptions import SubstitutionError

PLACEHOLDER_PATTERN = re.compile(r"\{([a-zA-Z0-9_]+)\}")


def find_placeholders(template: str) -> list[str]:
    """Placeholder names in order of first appearance, without duplicates."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(template):
        seen.setdefault(match.group(1), None)
    return list(seen)


def substitute(
    template: str,
    variables: Mapping[str, str],
    template_id: Optional[str] = None,
) -> str:
    """Fill every placeholder in template from variables.

    Values are inserted verbatim; a value that itself contains "{x}" is not
    substituted again.

    Raises:
        SubstitutionError: If any placeholder has no variable.
    """
    missing = [name for name in find_placeholders(template) if name not in variables]
    if missing:
        raise SubstitutionError(
            missing_variables=missing,
            template_id=template_id,
            provided_variables=sorted(variables),
        )

    return PLACEHOLDER_PATTERN.sub(lambda match: variables[match.group(1)], template)
