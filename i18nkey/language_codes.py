"""ISO 639-1 language codes used to bind translation files to languages."""

import os
import re

# code -> English name.  The name is what goes into the translation prompt.
LANGUAGES = {
    "af": "Afrikaans",
    "ar": "Arabic",
    "az": "Azerbaijani",
    "be": "Belarusian",
    "bg": "Bulgarian",
    "bn": "Bengali",
    "bs": "Bosnian",
    "ca": "Catalan",
    "cs": "Czech",
    "cy": "Welsh",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "et": "Estonian",
    "eu": "Basque",
    "fa": "Persian",
    "fi": "Finnish",
    "fr": "French",
    "ga": "Irish",
    "gl": "Galician",
    "gu": "Gujarati",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "hy": "Armenian",
    "id": "Indonesian",
    "is": "Icelandic",
    "it": "Italian",
    "ja": "Japanese",
    "ka": "Georgian",
    "kk": "Kazakh",
    "km": "Khmer",
    "kn": "Kannada",
    "ko": "Korean",
    "ky": "Kyrgyz",
    "la": "Latin",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "mk": "Macedonian",
    "ml": "Malayalam",
    "mn": "Mongolian",
    "mr": "Marathi",
    "ms": "Malay",
    "mt": "Maltese",
    "my": "Myanmar",
    "ne": "Nepali",
    "nl": "Dutch",
    "no": "Norwegian",
    "pa": "Punjabi",
    "pl": "Polish",
    "pt": "Portuguese",
    "pt-br": "Brazilian Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "si": "Sinhala",
    "sk": "Slovak",
    "sl": "Slovenian",
    "sq": "Albanian",
    "sr": "Serbian",
    "sv": "Swedish",
    "sw": "Swahili",
    "ta": "Tamil",
    "te": "Telugu",
    "th": "Thai",
    "tl": "Filipino",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "ur": "Urdu",
    "uz": "Uzbek",
    "vi": "Vietnamese",
    "zh": "Chinese",
    "zh-cn": "Simplified Chinese",
    "zh-tw": "Traditional Chinese",
}

# tr, en-US, pt_BR
_CODE_RE = re.compile(r"^[a-zA-Z]{2}(?:[-_][a-zA-Z]{2})?$")


def get_language_name(code: str) -> str:
    """Return the English name for a code, or the upper-cased code if unknown."""
    if not code:
        return ""
    return LANGUAGES.get(code.lower().replace("_", "-"), code.upper())


def is_supported(code: str) -> bool:
    return bool(code) and code.lower().replace("_", "-") in LANGUAGES


def language_from_path(path: str) -> str:
    """Guess the language code of a translation file from its path.

    ``i18n/tr.json`` -> ``tr``; ``locales/en/common.json`` -> ``en``.
    Falls back to the file name without extension.
    """
    norm = path.replace("\\", "/")
    stem = os.path.splitext(norm.rsplit("/", 1)[-1])[0]
    if _CODE_RE.match(stem):
        return stem
    for part in reversed(norm.split("/")[:-1]):
        if _CODE_RE.match(part):
            return part
    return stem
