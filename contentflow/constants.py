"""Shared constants for contentflow."""

DEFAULT_LANGUAGE = "en"

# Locales a root workflow fans out to once approved.
DEFAULT_SUPPORTED_LOCALES = ["de", "fr", "it", "ja", "ko", "es"]

LANGUAGE_NAMES = {
    "en": "English",
    "de": "German",
    "fr": "French",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "es": "Spanish",
}

DEFAULT_MODEL_NAME = "openai:gpt-4o-mini"

# Token estimator: one token per CHARS_PER_TOKEN characters, rounded up.
CHARS_PER_TOKEN = 4

INPUT_COST_PER_MILLION = 0.15
OUTPUT_COST_PER_MILLION = 0.60

DEFAULT_GATEWAY_TIMEOUT = 120.0
DEFAULT_FANOUT_DELAY = 2.0

CONTENT_GENERATION_SERVICE = "content_generation"

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert market research analyst. Provide accurate, data-driven "
    "insights with specific numbers and credible sources."
)
