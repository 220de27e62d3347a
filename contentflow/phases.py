"""Phase catalog for the four-stage report-writing sequence."""

from __future__ import annotations

from typing import Dict, List

from .constants import DEFAULT_LANGUAGE, LANGUAGE_NAMES
from .contracts import PhaseDefinition
from .errors import ConfigurationError

PHASE_CATALOG: List[PhaseDefinition] = [
    PhaseDefinition(
        phase=1,
        title="Market Research Summary",
        section="market_analysis",
        prompt_template=(
            "Generate authoritative market research summary on {title}. Focus on "
            "data-driven storytelling for C-level decision-makers. Under 300 words, "
            "paragraph format only. Structure: 1) Market opening with USD size 2025, "
            "forecasted 2034, CAGR 2) Market definition 3) Current momentum. Use "
            "clear, SEO-optimized language. Avoid filler phrases."
        ),
        max_tokens=400,
        temperature=0.2,
    ),
    PhaseDefinition(
        phase=2,
        title="Market Dynamics",
        section="competitive_analysis",
        prompt_template=(
            "Create Market Dynamics section for {title}. Context: {previous_content}. "
            "Structure: A) Market Drivers (2-4 key growth drivers with quantitative "
            "data) B) Market Restraints (1-3 barriers with examples) C) Market "
            "Opportunities (emerging growth areas). Analytical tone for executives. "
            "Paragraph format only, no bullet lists."
        ),
        max_tokens=500,
        temperature=0.3,
    ),
    PhaseDefinition(
        phase=3,
        title="Regional Insights & Market Segmentation",
        section="trends_analysis",
        prompt_template=(
            "Create Regional Insights and Market Segmentation for {title}. Context: "
            "{previous_content}. Part 1: Select largest market share region (North "
            "America/Asia-Pacific/Europe) with USD size, CAGR, key drivers. Part 2: "
            "Generate segmentation structure as bullet list. Part 3: Analyze top 2 "
            "primary segments with market share data and growth drivers."
        ),
        max_tokens=650,
        temperature=0.3,
    ),
    PhaseDefinition(
        phase=4,
        title="Key Market Players & Strategic Developments",
        section="key_players",
        prompt_template=(
            "Create Key Players section for {title}. Context: {previous_content}. "
            "Part 1: List top 10 verified companies (publicly traded/recognized). "
            "Part 2: Provide 1-2 real 2024-2025 developments with format "
            '"[Month] 2025: [Company] [action] to [outcome]". Use credible company '
            "names only, no placeholders."
        ),
        max_tokens=450,
        temperature=0.2,
    ),
]

_BY_PHASE: Dict[int, PhaseDefinition] = {p.phase: p for p in PHASE_CATALOG}

PHASE_COUNT = len(PHASE_CATALOG)


def definition_for(phase: int) -> PhaseDefinition:
    """Return the definition for ``phase``.

    Raises:
        ConfigurationError: No phase with that number is configured.
    """
    try:
        return _BY_PHASE[phase]
    except KeyError:
        raise ConfigurationError(f"No phase definition configured for phase {phase}")


def language_instruction(language: str, default_language: str = DEFAULT_LANGUAGE) -> str:
    """Instruction prefix forcing the model to answer in ``language``."""
    if language == default_language:
        return ""
    name = LANGUAGE_NAMES.get(language, language)
    return (
        f"IMPORTANT: Respond entirely in {name}. Every heading, sentence and "
        f"company description must be written in {name}.\n\n"
    )


def render_prompt(
    definition: PhaseDefinition,
    title: str,
    previous_content: str,
    language: str = DEFAULT_LANGUAGE,
    default_language: str = DEFAULT_LANGUAGE,
) -> str:
    """Fill the phase template with the report title and prior-phase context."""
    prompt = definition.prompt_template.replace("{title}", title).replace(
        "{previous_content}", previous_content
    )
    return language_instruction(language, default_language) + prompt
