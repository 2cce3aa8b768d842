"""
Language labels for prompts.

Callers pass loose labels: ISO 639-1 codes (tr, de), BCP 47 tags in any case
or with underscores (pt_br, ZH-cn), or English / native names (Turkish, Deutsch).
The helpers below resolve them to a known code and a display name.
"""

from typing import Optional

# Base languages by ISO 639-1 code
ISO_639_1 = {
    'af': 'Afrikaans',
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'bn': 'Bengali',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'fa': 'Persian',
    'fi': 'Finnish',
    'fr': 'French',
    'he': 'Hebrew',
    'hi': 'Hindi',
    'hr': 'Croatian',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'is': 'Icelandic',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'ku': 'Kurdish',
    'mk': 'Macedonian',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sk': 'Slovak',
    'sq': 'Albanian',
    'sr': 'Serbian',
    'sv': 'Swedish',
    'sw': 'Swahili',
    'th': 'Thai',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'ur': 'Urdu',
    'vi': 'Vietnamese',
    'zh': 'Chinese',
}

# BCP 47 variants that deserve their own display name
BCP_47_VARIANTS = {
    'en-US': 'English (United States)',
    'en-GB': 'English (United Kingdom)',
    'es-MX': 'Spanish (Mexico)',
    'fr-CA': 'French (Canada)',
    'pt-BR': 'Portuguese (Brazil)',
    'pt-PT': 'Portuguese (Portugal)',
    'zh-CN': 'Chinese (Simplified, China)',
    'zh-TW': 'Chinese (Traditional, Taiwan)',
    'zh-HK': 'Chinese (Traditional, Hong Kong)',
}

# Everything a label may resolve to
ALL_LANGUAGE_CODES = {**ISO_639_1, **BCP_47_VARIANTS}

# Language names (English and native) -> base code
NAME_ALIASES = {
    'english': 'en', 'eng': 'en',
    'turkish': 'tr', 'türkçe': 'tr', 'turkce': 'tr',
    'german': 'de', 'deutsch': 'de',
    'french': 'fr', 'français': 'fr', 'francais': 'fr',
    'spanish': 'es', 'español': 'es', 'espanol': 'es',
    'italian': 'it', 'italiano': 'it',
    'portuguese': 'pt', 'português': 'pt',
    'russian': 'ru',
    'chinese': 'zh',
    'japanese': 'ja',
    'korean': 'ko',
    'arabic': 'ar',
    'dutch': 'nl', 'nederlands': 'nl',
    'polish': 'pl', 'polski': 'pl',
    'swedish': 'sv', 'svenska': 'sv',
    'norwegian': 'no', 'norsk': 'no', 'nb': 'no', 'nn': 'no',
    'danish': 'da', 'dansk': 'da',
    'persian': 'fa', 'farsi': 'fa',
    'ukrainian': 'uk',
    'greek': 'el',
    'hungarian': 'hu', 'magyar': 'hu',
    'finnish': 'fi', 'suomi': 'fi',
}


def _canonical_case(code: str) -> str:
    """'pt_br' -> 'pt-BR', 'ZH-cn' -> 'zh-CN'."""
    parts = code.replace('_', '-').split('-')
    head = parts[0].lower()
    tail = [p.upper() if len(p) == 2 else p.title() for p in parts[1:]]
    return '-'.join([head] + tail)


def extract_base_language(code: str) -> str:
    """Drop the region: 'zh_CN' -> 'zh', 'fr' -> 'fr'."""
    return code.replace('_', '-').split('-')[0].lower()


def normalize_language_code(label: Optional[str]) -> Optional[str]:
    """
    Resolve a loose language label to a known code.

    Returns the exact BCP 47 variant when known, otherwise the base ISO code,
    otherwise None.

    Examples:
        >>> normalize_language_code('pt_br')
        'pt-BR'
        >>> normalize_language_code('Turkish')
        'tr'
        >>> normalize_language_code('en-AU')
        'en'
    """
    if not label or not label.strip():
        return None

    raw = label.strip()
    lowered = raw.lower()
    if lowered in NAME_ALIASES:
        return NAME_ALIASES[lowered]

    canonical = _canonical_case(raw)
    if canonical in ALL_LANGUAGE_CODES:
        return canonical

    base = extract_base_language(raw)
    if base in NAME_ALIASES:
        return NAME_ALIASES[base]
    if base in ISO_639_1:
        return base
    return None


def get_language_name(label: str) -> Optional[str]:
    """
    Get the full language name for a code or loose label.

    Examples:
        >>> get_language_name('en')
        'English'
        >>> get_language_name('zh-CN')
        'Chinese (Simplified, China)'
        >>> get_language_name('klingon') is None
        True
    """
    code = normalize_language_code(label)
    if code is None:
        return None
    return ALL_LANGUAGE_CODES.get(code)
