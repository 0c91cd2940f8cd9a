"""Term/pattern matcher.

Case-insensitive substring containment against the lexicon plus a regex
pass for multi-word evasions. There is no stemming or fuzzy matching,
and no language detection.
"""

from __future__ import annotations

import re
from typing import Any

from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon
from contentguard.moderation.models import MatchResult

_PLACEHOLDER = "[FILTERED]"
_PLACEHOLDER_RE = re.compile(re.escape(_PLACEHOLDER) + r"\s*")
_WHITESPACE_RE = re.compile(r"\s+")


class TermMatcher:
    """Stateless scanner over an immutable :class:`Lexicon`."""

    def __init__(self, lexicon: Lexicon = DEFAULT_LEXICON) -> None:
        self.lexicon = lexicon
        # Whole-word matchers used by sanitize(); lookarounds instead of \b so
        # terms such as "18+" and "a$$" are bounded correctly.
        self._word_patterns = tuple(
            re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)
            for term in lexicon.terms
        )

    def match(self, text: Any) -> MatchResult:
        """Return the lexicon terms and pattern count found in *text*.

        Anything that is not a non-empty string is reported as clean.
        """
        if not text or not isinstance(text, str):
            return MatchResult(is_inappropriate=False)

        lower_text = text.lower()
        found_terms = [term for term in self.lexicon.terms if term in lower_text]
        pattern_count = sum(1 for p in self.lexicon.compiled_patterns if p.search(text))

        return MatchResult(
            is_inappropriate=bool(found_terms) or pattern_count > 0,
            found_terms=found_terms,
            found_pattern_count=pattern_count,
        )

    def sanitize(self, text: Any) -> Any:
        """Remove whole-word lexicon hits and collapse whitespace.

        Pattern-only matches are left alone. Removing a term can bring two
        words together into a new multi-word term, so passes repeat until
        the text stops changing; the result is a fixed point.
        """
        if not text or not isinstance(text, str):
            return text

        sanitized = text
        while True:
            previous = sanitized
            for pattern in self._word_patterns:
                sanitized = pattern.sub(_PLACEHOLDER, sanitized)
            sanitized = _PLACEHOLDER_RE.sub("", sanitized)
            sanitized = _WHITESPACE_RE.sub(" ", sanitized).strip()
            if sanitized == previous:
                return sanitized
