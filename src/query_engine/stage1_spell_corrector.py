"""
Stage 1: Spell Correction

Domain-specific normalization of misspelled tokens ("cntract" -> "contract").

Responsibilities:
- Rewrite tokens found in the spelling dictionary, keeping surrounding
  punctuation and the rest of the text untouched
- Split word+digits tokens ("contrst78954632") and correct the word part
- Report every applied correction
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .rules import EngineConfig

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\S+")
# leading punctuation, core token, trailing punctuation
TOKEN_PARTS_RE = re.compile(r"^(\W*)(.*?)(\W*)$")
WORD_DIGITS_RE = re.compile(r"^([A-Za-z]+)(\d+)$")
# long word glued to a long number: "contract78954632"
GLUED_ID_RE = re.compile(r"\b([a-z]{4,})(\d{4,})\b")
WHITESPACE_RE = re.compile(r"\s+")


def normalize_for_matching(text: str) -> str:
    """
    Lowercase, trim and collapse whitespace; separate glued word+id tokens
    so keyword rules see the word.
    """
    lowered = WHITESPACE_RE.sub(" ", text.lower()).strip()
    return GLUED_ID_RE.sub(r"\1 \2", lowered)


@dataclass
class CorrectionResult:
    """Result of spell correction"""
    original_text: str
    corrected_text: str
    corrections: Dict[str, str] = field(default_factory=dict)

    @property
    def spell_corrected(self) -> bool:
        return bool(self.corrections)


class SpellCorrector:
    """
    Stage 1: Dictionary-based spell corrector

    Unknown tokens are never guessed at; only dictionary hits are rewritten.
    Corrections are never dictionary keys themselves, so correcting twice
    gives the same text as correcting once.
    """

    def __init__(self, config: EngineConfig):
        self.dictionary = config.spell_corrections
        logger.info(f"SpellCorrector initialized with {len(self.dictionary)} entries")

    def correct(self, text: str) -> Tuple[str, Dict[str, str]]:
        """
        Correct known misspellings.

        Args:
            text: Raw user input

        Returns:
            (corrected_text, corrections) where corrections maps each
            misspelled lookup key to the correction applied
        """
        result = self.correct_text(text)
        return result.corrected_text, result.corrections

    def correct_text(self, text: str) -> CorrectionResult:
        corrections: Dict[str, str] = {}

        def _replace(match: re.Match) -> str:
            token = match.group(0)
            lead, core, trail = TOKEN_PARTS_RE.match(token).groups()
            if not core:
                return token

            key = re.sub(r"[^a-z0-9]", "", core.lower())
            correction = self.dictionary.get(key)
            if correction:
                corrections[key] = correction
                return f"{lead}{correction}{trail}"

            glued = WORD_DIGITS_RE.match(core)
            if glued:
                word, digits = glued.groups()
                correction = self.dictionary.get(word.lower())
                if correction:
                    corrections[word.lower()] = correction
                    return f"{lead}{correction}{digits}{trail}"

            return token

        corrected = TOKEN_RE.sub(_replace, text)

        if corrections:
            logger.info(f"Spell corrections applied: {corrections}")

        return CorrectionResult(
            original_text=text,
            corrected_text=corrected,
            corrections=corrections,
        )
