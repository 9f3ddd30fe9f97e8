"""
Validation for sdkgen inputs.

- templates: checks a template directory against the required template set
"""

from sdkgen.validation.templates import (
    TemplateValidationResult,
    ensure_templates,
    validate_templates,
)

__all__ = [
    "TemplateValidationResult",
    "ensure_templates",
    "validate_templates",
]
