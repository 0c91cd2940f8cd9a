"""Blocklist configuration: disallowed terms, evasion patterns, severity subsets.

A :class:`Lexicon` is an immutable value. The built-in :data:`DEFAULT_LEXICON`
is used unless a versioned YAML file is loaded at start-up with
:func:`load_lexicon`; there is no way to add a term to a running lexicon.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import yaml

from contentguard.moderation.errors import ConfigError

# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

_DEFAULT_TERMS: tuple[str, ...] = (
    # Explicit terms
    "nude", "naked", "topless", "bottomless", "undressed", "unclothed",
    "bare", "exposed", "revealing", "provocative", "seductive", "sensual",
    "erotic", "sexual", "intimate", "adult", "mature", "explicit",
    "nsfw", "xxx", "porn", "pornographic", "lewd", "vulgar", "obscene",
    # Body parts that could be inappropriate in context
    "breast", "boob", "chest", "nipple", "genital", "penis", "vagina",
    "buttocks", "butt", "ass", "crotch", "groin", "thigh", "cleavage",
    # Clothing that might indicate nudity
    "lingerie", "underwear", "bra", "panties", "bikini", "swimsuit",
    "see-through", "transparent", "sheer", "tight", "skimpy",
    # Actions
    "strip", "undress", "remove clothes", "take off", "disrobe",
    "seduce", "tempt", "allure", "entice", "arouse",
    # Suggestive terms
    "hot", "sexy", "attractive", "gorgeous", "beautiful woman", "handsome man",
    "model pose", "fashion model", "glamour", "pin-up", "centerfold",
    # Misspellings and variations
    "nud3", "n4ked", "b00bs", "a$$", "pr0n", "18+", "adults only",
    # Other languages (basic coverage)
    "desnudo", "nudo", "nu", "nackt", "naakt", "nagi", "голый",
    # Euphemisms and slang
    "birthday suit", "in the buff", "au naturel", "skin", "flesh",
    "private parts", "intimate areas", "naughty", "dirty", "kinky",
    # Violence
    "violence", "blood", "gore", "weapon", "gun", "knife", "death",
    "kill", "murder", "torture", "abuse", "harm", "hurt", "pain",
    # Hate speech and discrimination
    "racist", "nazi", "hate", "discrimination", "offensive", "slur",
    # Drugs
    "drug", "cocaine", "heroin", "marijuana", "weed", "smoking", "alcohol",
    # Gambling
    "casino", "gambling", "poker", "betting", "lottery",
)

_DEFAULT_PATTERNS: tuple[str, ...] = (
    r"\b(no|without|remove|take off)\s+(clothes?|clothing|shirt|pants|dress)\b",
    r"\b(show|reveal|expose)\s+(body|skin|flesh)\b",
    r"\b(barely|scantily|minimally)\s+(clothed|dressed|covered)\b",
    r"\b(tight|form.?fitting|skin.?tight)\s+(clothes?|clothing|outfit)\b",
    r"\b(bedroom|bathroom|shower|bath)\s+(scene|setting)\b",
    r"\b(romantic|intimate|private)\s+(moment|scene|setting)\b",
    r"\b(18\+|adults?\s+only|mature\s+content)\b",
    r"\b(not\s+safe\s+for\s+work|nsfw)\b",
    r"\b(xxx|adult\s+content|explicit)\b",
    r"\b(strip\s+club|night\s+club|red\s+light)\b",
)

_DEFAULT_CRITICAL_TERMS: tuple[str, ...] = ("nude", "naked", "porn", "xxx", "explicit", "sexual")
_DEFAULT_HIGH_TERMS: tuple[str, ...] = ("breast", "genital", "intimate", "erotic")

_DEFAULT_SAFE_ALTERNATIVES: tuple[str, ...] = (
    "fully clothed person",
    "professional portrait",
    "casual outfit",
    "business attire",
    "winter clothing",
    "summer outfit",
    "sports uniform",
    "formal wear",
    "artistic portrait",
    "character design",
)


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(item.strip().lower() for item in items if item and item.strip()))


# ---------------------------------------------------------------------------
# Lexicon
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Lexicon:
    """Immutable blocklist consulted by the matcher and the severity ladder.

    Terms are normalised to lower case and de-duplicated, keeping their
    first position so detection order is stable.
    """

    terms: tuple[str, ...] = _DEFAULT_TERMS
    patterns: tuple[str, ...] = _DEFAULT_PATTERNS
    critical_terms: tuple[str, ...] = _DEFAULT_CRITICAL_TERMS
    high_terms: tuple[str, ...] = _DEFAULT_HIGH_TERMS
    safe_alternatives: tuple[str, ...] = _DEFAULT_SAFE_ALTERNATIVES
    version: str = "builtin"
    _compiled: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "terms", _unique(self.terms))
        object.__setattr__(self, "critical_terms", _unique(self.critical_terms))
        object.__setattr__(self, "high_terms", _unique(self.high_terms))
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(self, "safe_alternatives", tuple(self.safe_alternatives))
        try:
            compiled = tuple(re.compile(p, re.IGNORECASE) for p in self.patterns)
        except re.error as exc:
            raise ConfigError(f"Invalid lexicon pattern: {exc}") from exc
        object.__setattr__(self, "_compiled", compiled)

    @property
    def compiled_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self._compiled


DEFAULT_LEXICON = Lexicon()


def load_lexicon(path: str | Path) -> Lexicon:
    """Load a lexicon from a YAML file.

    Keys missing from the file keep their built-in values, so a file may
    override only ``terms`` for example.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read lexicon {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Lexicon {path} must be a mapping")

    kwargs: dict[str, object] = {"version": str(data.get("version", Path(path).stem))}
    for key in ("terms", "patterns", "critical_terms", "high_terms", "safe_alternatives"):
        if key not in data:
            continue
        value = data[key]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"Lexicon key '{key}' must be a list of strings")
        kwargs[key] = tuple(value)

    return Lexicon(**kwargs)
