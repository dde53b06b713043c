from enum import Enum
from typing import Dict, List

DEFAULT_LOCALE = "en-US"


class Tone(str, Enum):
    FORMAL = "formal"
    INFORMAL = "informal"
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"


LANGUAGE_OPTIONS: List[Dict[str, str]] = [
    {"value": "Italian", "label": "Italian", "flag": "🇮🇹"},
    {"value": "English", "label": "English", "flag": "🇺🇸"},
    {"value": "Spanish", "label": "Spanish", "flag": "🇪🇸"},
    {"value": "French", "label": "French", "flag": "🇫🇷"},
    {"value": "Tagalog", "label": "Tagalog", "flag": "🇵🇭"},
    {"value": "Hebrew", "label": "Hebrew", "flag": "🇮🇱"},
    {"value": "Japanese", "label": "Japanese", "flag": "🇯🇵"},
    {"value": "Hindi", "label": "Hindi", "flag": "🇮🇳"},
    {"value": "Arabic", "label": "Arabic", "flag": "AR"},
    {"value": "Urdu", "label": "Urdu", "flag": "URD"},
    {"value": "Greek", "label": "Greek", "flag": "🇬🇷"},
]

TONE_OPTIONS: List[Dict[str, str]] = [
    {"value": Tone.FORMAL.value, "label": "🎩 Formal"},
    {"value": Tone.INFORMAL.value, "label": "🧢 Informal"},
    {"value": Tone.PROFESSIONAL.value, "label": "💼 Professional"},
    {"value": Tone.FRIENDLY.value, "label": "😊 Friendly"},
]

LANGUAGE_CODES: Dict[str, str] = {
    "Italian": "it-IT",
    "English": "en-US",
    "Spanish": "es-ES",
    "French": "fr-FR",
    "Tagalog": "tl-PH",
    "Hebrew": "he-IL",
    "Japanese": "ja-JP",
    "Hindi": "hi-IN",
    "Arabic": "ar-001",
    "Urdu": "urd-PK",
    "Greek": "el-GR",
}

SUPPORTED_LANGUAGES = frozenset(option["value"] for option in LANGUAGE_OPTIONS)


def get_language_code(language: str) -> str:
    """Map 'Italian' → 'it-IT'; anything unknown falls back to en-US."""
    return LANGUAGE_CODES.get(language, DEFAULT_LOCALE)


def is_supported_language(language: str) -> bool:
    return language in SUPPORTED_LANGUAGES


def is_supported_tone(tone: str) -> bool:
    return tone in {t.value for t in Tone}


def options_payload() -> Dict[str, List[Dict[str, str]]]:
    """Selector data for the front end, with the recognition locale of each language."""
    languages = [
        {**option, "locale": get_language_code(option["value"])}
        for option in LANGUAGE_OPTIONS
    ]
    return {"languages": languages, "tones": list(TONE_OPTIONS)}
