"""Locale data: stop-words, number words, relative date words.

Supported locales: de (standard German), de-CH (Swiss-German dialect), fr, it, en.
"""

DEFAULT_LANGUAGE = "de-CH"

STOPWORDS: dict[str, frozenset[str]] = {
    "de": frozenset(
        [
            "der", "die", "das", "ein", "eine", "und", "oder", "aber", "mit", "von",
            "zu", "in", "auf", "für", "ist", "sind", "hat", "haben", "wird", "werden",
            "kann", "können", "soll", "sollen", "will", "wollen", "bitte", "danke",
        ]
    ),
    "de-CH": frozenset(
        [
            "de", "di", "s", "es", "en", "e", "und", "oder", "aber", "mit", "vo",
            "zu", "i", "uf", "für", "isch", "si", "hät", "hei", "wird", "werde",
            "cha", "chönd", "söll", "sötted", "will", "wänd", "bitte", "merci",
        ]
    ),
    "en": frozenset(
        [
            "the", "a", "an", "and", "or", "but", "with", "from", "to", "in", "on",
            "for", "is", "are", "has", "have", "will", "would", "can", "could",
            "should", "want", "please", "thank", "thanks",
        ]
    ),
    "fr": frozenset(
        [
            "le", "la", "les", "un", "une", "et", "ou", "mais", "avec", "de", "à",
            "dans", "sur", "pour", "est", "sont", "a", "ont", "sera", "seront",
            "peut", "peuvent", "doit", "doivent", "veut", "veulent", "merci",
        ]
    ),
    "it": frozenset(
        [
            "il", "la", "lo", "un", "una", "e", "o", "ma", "con", "di", "a", "in",
            "su", "per", "è", "sono", "ha", "hanno", "sarà", "saranno", "può",
            "possono", "deve", "devono", "vuole", "vogliono", "grazie",
        ]
    ),
}

# Ordering/navigation verbs that boost a partial (keyword) match
IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "bestellen",
    "kaufen",
    "zeigen",
    "gehen",
    "öffnen",
    "schließen",
)

# Standard German and Swiss-German number words
NUMBER_WORDS: dict[str, int] = {
    "null": 0, "zero": 0,
    "eins": 1, "eis": 1, "ein": 1, "eine": 1,
    "zwei": 2, "zwöi": 2,
    "drei": 3, "drü": 3, "drüü": 3,
    "vier": 4,
    "fünf": 5, "föif": 5,
    "sechs": 6, "sächs": 6,
    "sieben": 7, "sibe": 7,
    "acht": 8,
    "neun": 9, "nüün": 9,
    "zehn": 10, "zäh": 10,
    "elf": 11,
    "zwölf": 12,
    "dreizehn": 13, "drüzäh": 13,
    "vierzehn": 14, "vierzäh": 14,
    "fünfzehn": 15, "füfzäh": 15,
    "sechzehn": 16, "sächzäh": 16,
    "siebzehn": 17, "sibzäh": 17,
    "achtzehn": 18, "achzäh": 18,
    "neunzehn": 19, "nüünzäh": 19,
    "zwanzig": 20, "zwänzg": 20,
    "dreißig": 30, "dreissig": 30, "drüssg": 30,
    "vierzig": 40, "vierzg": 40,
    "fünfzig": 50, "füfzg": 50,
    "sechzig": 60, "sächzg": 60,
    "siebzig": 70, "sibzg": 70,
    "achtzig": 80, "achzg": 80,
    "neunzig": 90, "nüünzg": 90,
    "hundert": 100,
    "tausend": 1000, "tuusig": 1000,
    "million": 1_000_000,
    "milliarde": 1_000_000_000,
}

# Merged on top of NUMBER_WORDS when the matcher runs in one of these locales
LOCALE_NUMBER_WORDS: dict[str, dict[str, int]] = {
    "fr": {
        "zéro": 0, "un": 1, "une": 1, "deux": 2, "trois": 3, "quatre": 4,
        "cinq": 5, "six": 6, "sept": 7, "huit": 8, "neuf": 9, "dix": 10,
        "onze": 11, "douze": 12, "treize": 13, "quatorze": 14, "quinze": 15,
        "seize": 16, "vingt": 20, "trente": 30, "quarante": 40, "cinquante": 50,
        "soixante": 60, "cent": 100, "mille": 1000,
    },
    "it": {
        "zero": 0, "uno": 1, "una": 1, "due": 2, "tre": 3, "quattro": 4,
        "cinque": 5, "sei": 6, "sette": 7, "otto": 8, "nove": 9, "dieci": 10,
        "undici": 11, "dodici": 12, "tredici": 13, "quattordici": 14,
        "quindici": 15, "sedici": 16, "diciassette": 17, "diciotto": 18,
        "diciannove": 19, "venti": 20, "trenta": 30, "quaranta": 40,
        "cinquanta": 50, "cento": 100, "mille": 1000,
    },
    "en": {
        "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
        "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
        "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
        "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
        "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50, "hundred": 100,
        "thousand": 1000,
    },
}

# Relative date words -> symbolic tokens
DATE_WORDS: dict[str, str] = {
    "heute": "today", "hüt": "today",
    "morgen": "tomorrow", "morn": "tomorrow",
    "übermorgen": "day_after_tomorrow", "übermorge": "day_after_tomorrow",
    "gestern": "yesterday", "geschter": "yesterday",
    "vorgestern": "day_before_yesterday", "vorgeschter": "day_before_yesterday",
}

WEEKDAY_WORDS: tuple[str, ...] = (
    "montag", "dienstag", "mittwoch", "donnerstag", "freitag", "samstag", "sonntag",
    "mäntig", "ziischtig", "mittwuch", "dunschtig", "friitig", "samschtig", "sunntig",
)

MONTH_WORDS: tuple[str, ...] = (
    "januar", "februar", "märz", "april", "mai", "juni", "juli", "august",
    "september", "oktober", "november", "dezember",
)

TIME_WORDS: tuple[str, ...] = (
    "morgens", "mittags", "mittag", "abends", "abend", "nachts", "nacht",
    "früh", "spät", "jetzt", "gleich", "später", "abe",
)

BOOLEAN_TRUE_WORDS: frozenset[str] = frozenset(
    ["ja", "jo", "yes", "true", "1", "wahr", "oui", "si", "sì"]
)


def base_language(language: str) -> str:
    """Return the language part of a locale tag (``de-CH`` -> ``de``)."""
    return language.split("-")[0].lower()


def stopwords_for(language: str | None) -> frozenset[str]:
    """Return the stop-word set for a locale, falling back to its base language, then English."""
    if not language:
        language = DEFAULT_LANGUAGE
    return STOPWORDS.get(language) or STOPWORDS.get(base_language(language)) or STOPWORDS["en"]


def number_words_for(language: str | None) -> dict[str, int]:
    """Return the number-word map for a locale.

    German and Swiss-German words are always understood; French, Italian and
    English words are added for those locales.
    """
    words = dict(NUMBER_WORDS)
    if language:
        words.update(LOCALE_NUMBER_WORDS.get(base_language(language), {}))
    return words
