"""Keyword lexicon shared by the risk scorer, safety monitor and detector.

The lexicon is built once per process and passed by reference into every
component, so the risk score and the safety classification can never
drift apart. Term tables are tuples behind a read-only mapping.

Terms are lower-case; matching is substring-based on lower-cased text
unless a component states otherwise.
"""
import logging
import re
from enum import Enum
from types import MappingProxyType
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TermCategory(Enum):
    """Categories of the keyword lexicon."""
    DEPRESSION = "depression"
    ANXIETY = "anxiety"
    SELF_HARM = "self_harm"
    SUICIDAL_IDEATION = "suicidal_ideation"
    ISOLATION = "isolation"
    IMMEDIATE_DANGER = "immediate_danger"
    METHOD_MENTION = "method_mention"
    BENIGN = "benign"                   # Idioms that look alarming but are not
    CRISIS = "crisis"                   # Explicit suicidal / self-harm intent
    HARM_TO_OTHERS = "harm_to_others"
    CONCERNING = "concerning"           # Hopelessness, worthlessness
    HOPELESSNESS = "hopelessness"
    ESCALATION = "escalation"           # Worsening language in history
    HISTORY_THEMES = "history_themes"   # Whole words scanned across history
    FIRST_PERSON = "first_person"       # Whole words


DEFAULT_TERMS: Dict[TermCategory, Tuple[str, ...]] = {
    TermCategory.DEPRESSION: (
        "depressed",
        "depression",
        "sad",
        "hopeless",
        "empty",
        "worthless",
        "tired",
        "exhausted",
        "numb",
        "miserable",
        "crying",
        "no energy",
    ),
    TermCategory.ANXIETY: (
        "anxious",
        "anxiety",
        "worried",
        "panic",
        "nervous",
        "scared",
        "fear",
        "stress",
        "overwhelmed",
        "on edge",
        "restless",
        "terrified",
    ),
    TermCategory.SELF_HARM: (
        "hurt myself",
        "harm myself",
        "self harm",
        "self-harm",
        "cut myself",
        "cutting myself",
        "burn myself",
        "burning myself",
        "punish myself",
        "hit myself",
    ),
    TermCategory.SUICIDAL_IDEATION: (
        "kill myself",
        "end my life",
        "suicide",
        "suicidal",
        "want to die",
        "better off dead",
        "end it all",
        "can't go on",
        "no point living",
        "don't want to live",
        "better off without me",
    ),
    TermCategory.ISOLATION: (
        "alone",
        "lonely",
        "no friends",
        "isolated",
        "nobody cares",
        "no one cares",
        "no one to talk to",
        "left out",
        "nobody understands",
        "no one understands",
    ),
    TermCategory.IMMEDIATE_DANGER: (
        "right now",
        "tonight",
        "today",
        "this moment",
        "can't wait",
        "have a plan",
        "ready to",
        "going to do it",
        "about to",
    ),
    TermCategory.METHOD_MENTION: (
        "pills",
        "overdose",
        "rope",
        "noose",
        "bridge",
        "gun",
        "knife",
        "razor",
        "blade",
        "poison",
        "jump",
    ),
    TermCategory.BENIGN: (
        "die of embarrassment",
        "killing me",
        "killed it",
        "killing it",
        "dying to",
        "to die for",
        "kill for",
        "dead tired",
        "bored to death",
    ),
    TermCategory.CRISIS: (
        "suicide",
        "kill myself",
        "end my life",
        "end it all",
        "want to die",
        "better off dead",
        "better off without me",
        "don't want to live",
        "take my own life",
        "hurt myself",
        "self harm",
        "cut myself",
        "overdose",
        "jump off",
        "hang myself",
    ),
    TermCategory.HARM_TO_OTHERS: (
        "hurt someone",
        "kill someone",
        "want to hurt",
        "want to kill",
        "make them pay",
        "violent thoughts",
        "deserve to suffer",
        "violence",
        "weapon",
        "attack someone",
        "attack them",
        "attack him",
        "attack her",
        "attack people",
    ),
    TermCategory.CONCERNING: (
        "hopeless",
        "worthless",
        "can't go on",
        "no point",
        "give up",
        "giving up",
        "can't take it",
        "trapped",
        "no way out",
        "burden",
        "nothing matters",
    ),
    TermCategory.HOPELESSNESS: (
        "hopeless",
        "no hope",
        "no point",
        "no way out",
        "trapped",
        "give up",
        "giving up",
        "nothing matters",
        "pointless",
    ),
    TermCategory.ESCALATION: (
        "getting worse",
        "can't take it",
        "worse every day",
        "falling apart",
        "can't handle",
    ),
    TermCategory.HISTORY_THEMES: (
        "suicide",
        "die",
        "hurt",
        "end",
        "hopeless",
    ),
    TermCategory.FIRST_PERSON: (
        "me",
        "myself",
    ),
}

# Phrases benign-idiom masking must never erase
PROTECTED_CATEGORIES: Tuple[TermCategory, ...] = (
    TermCategory.CRISIS,
    TermCategory.SUICIDAL_IDEATION,
    TermCategory.SELF_HARM,
    TermCategory.HARM_TO_OTHERS,
)


class KeywordLexicon(Mapping):
    """Immutable, categorized term tables.

    Usage:
        lexicon = KeywordLexicon.default()
        for term in lexicon[TermCategory.ANXIETY]:
            ...
    """

    def __init__(self, terms: Optional[Mapping[TermCategory, Iterable[str]]] = None):
        """Build the lexicon.

        Args:
            terms: Category to term list. Missing categories are empty.
                Defaults to DEFAULT_TERMS.
        """
        source = DEFAULT_TERMS if terms is None else terms
        table = {
            category: tuple(term.lower() for term in source.get(category, ()))
            for category in TermCategory
        }
        self._table = MappingProxyType(table)

        # Longest idioms first so overlapping phrases are masked whole
        benign = sorted(table[TermCategory.BENIGN], key=len, reverse=True)
        self._benign_pattern = (
            re.compile("|".join(re.escape(term) for term in benign))
            if benign else None
        )
        # Lookahead alternation finds overlapping risk phrases at every offset
        protected = sorted(
            {term for category in PROTECTED_CATEGORIES for term in table[category]},
            key=len,
            reverse=True,
        )
        self._protected_pattern = (
            re.compile("(?=(" + "|".join(re.escape(term) for term in protected) + "))")
            if protected else None
        )

        logger.info(
            "KEYWORD_LEXICON_LOADED",
            extra={
                "category_count": len(table),
                "term_count": sum(len(t) for t in table.values()),
            }
        )

    @classmethod
    def default(cls) -> "KeywordLexicon":
        return cls(DEFAULT_TERMS)

    def __getitem__(self, category: TermCategory) -> Tuple[str, ...]:
        return self._table[category]

    def __iter__(self) -> Iterator[TermCategory]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    @property
    def categories(self) -> Tuple[TermCategory, ...]:
        return tuple(self._table)

    def terms(self, category: TermCategory) -> Tuple[str, ...]:
        """Return the term tuple for a category."""
        return self._table[category]

    def prepare(self, text: str) -> str:
        """Lower-case, straighten apostrophes and mask benign idioms."""
        if not text:
            return ""
        lowered = text.lower().replace("’", "'")
        return self.mask_benign(lowered)

    def mask_benign(self, text: str) -> str:
        """Blank out benign idioms in lower-cased text.

        Each idiom is replaced by spaces of the same length, so
        "this homework is killing me" no longer mentions killing. An
        idiom that overlaps a crisis, self-harm, suicidal-ideation or
        harm-to-others phrase is left intact: in "i want to die for
        real", "to die for" shares words with "want to die".
        """
        if not text or self._benign_pattern is None:
            return text

        spans = self._protected_spans(text)

        def _mask(match):
            start, end = match.span()
            if any(start < p_end and p_start < end for p_start, p_end in spans):
                return match.group(0)
            return " " * (end - start)

        return self._benign_pattern.sub(_mask, text)

    def _protected_spans(self, text: str) -> List[Tuple[int, int]]:
        if self._protected_pattern is None:
            return []
        return [
            (m.start(), m.start() + len(m.group(1)))
            for m in self._protected_pattern.finditer(text)
        ]


# Built once at import; components receive it by reference
DEFAULT_LEXICON = KeywordLexicon.default()
