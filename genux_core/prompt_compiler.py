"""
Prompt compiler - builds the instruction sent to the generative backend.
"""

from .exceptions import EmptyPromptError
from .models import FeatureType


PROMPT_TEMPLATE = """You are an expert web developer. Generate {language} code for a webpage feature based on the user's request.
Rules:
1. Output only clean {language} code, no markdown or explanations.
2. Ensure code is self-contained and idempotent.
3. For JavaScript, avoid global scope pollution.
4. For HTML/CSS, ensure WCAG 2.1 accessibility compliance.
5. Use modern standards (ES6+ for JS, CSS3 for CSS).
DOM Structure: {dom_structure}
User Request: {request}
Site Code: {site_code}
"""


def compile_prompt(
    prompt_text: str,
    feature_type,
    dom_structure: str = "",
    site_code: str = "",
) -> str:
    """
    Assemble the instruction payload.

    Args:
        prompt_text: The user's description of the feature
        feature_type: Requested artifact type (FeatureType or its name)
        dom_structure: Structural summary of the target region
        site_code: Raw markup of the target region

    Returns:
        The compiled prompt string
    """
    request = (prompt_text or "").strip()
    if not request:
        raise EmptyPromptError()
    ftype = FeatureType.parse(feature_type)
    return PROMPT_TEMPLATE.format(
        language=ftype.language.upper(),
        dom_structure=dom_structure or "",
        request=request,
        site_code=site_code or "",
    )
