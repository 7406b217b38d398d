"""
Stage 2: Entity Extraction

Pulls identifiers and modifiers out of corrected query text with an ordered
list of pattern rules. A rule never overwrites a slot filled by an earlier
rule, which is what resolves id collisions:

1. account_number  - 7+ digit runs, or digits after "account"
2. contract_number - digits or a code (ABC-789) after a contract keyword,
                     glued ids, 6 digit runs
3. part_number     - 2-3 letter prefix + 3-6 digits
4. customer_name   - after customer/client, company-suffix shape, known names
5. created_by      - "created by <name>" / "by <name>"
6. status          - status word used as a modifier ("expired contracts")
7. year            - bare year not used by an after/before/between clause
"""

import re
import logging
from typing import Dict, List, Optional

from .rules import EngineConfig, compile_any

logger = logging.getLogger(__name__)

ID_LABEL = r"\s*(?:number|num|no\.?|id|#)?\s*[:#]?\s*"
LONG_DIGITS_RE = re.compile(r"\b\d{7,}\b")
SIX_DIGITS_RE = re.compile(r"\b\d{6}\b")
GLUED_ID_RE = re.compile(r"\b[a-z]{4,}(\d{4,})\b")
PART_NUMBER_RE = re.compile(r"\b([a-z]{2,3})-?(\d{3,6})\b")
DUAL_SHAPE_RE = re.compile(r"\b[a-z]{2,3}\d{6}\b")
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
WORD_RE = re.compile(r"[a-z][\w.'&-]*")

# words that put a following year into a comparison clause
RANGE_WORDS = ("after", "before", "between", "and", "from", "to", "since", "until", "through")
STATUS_CLAUSE_WORDS = ("status", "is", "=", ":", "of")


class EntityExtractor:
    """
    Stage 2: Rule-based entity extractor

    Works on lowercase text for matching; names are returned as written in
    the corrected text, identifiers are normalized (part numbers upper-cased).
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self._compile_patterns()
        logger.info("EntityExtractor initialized")

    def _compile_patterns(self):
        """Pre-compile keyword-dependent patterns"""
        tables = self.config.tables
        contract_kw = "|".join(re.escape(k) for k in tables["contract_keywords"])
        account_kw = "|".join(re.escape(k) for k in tables["account_keywords"])
        customer_kw = "|".join(
            r"\s+".join(re.escape(w) for w in k.split())
            for k in sorted(tables["customer_keywords"], key=len, reverse=True)
        )

        self.contract_keyword_set = frozenset(k.lower() for k in tables["contract_keywords"])
        self.account_id_re = re.compile(rf"\b(?:{account_kw}){ID_LABEL}(\d{{4,}})\b")
        self.contract_id_re = re.compile(rf"\b(?:{contract_kw}){ID_LABEL}(\d{{4,12}})\b")
        # alphanumeric contract codes: "contract ABC-789"
        self.contract_code_re = re.compile(rf"\b(?:{contract_kw}){ID_LABEL}([a-z]{{2,4}}-\d{{3,}})\b")
        self.customer_re = re.compile(rf"\b(?:{customer_kw})\b(?:\s+name\b)?\s*[:=]?\s*", re.IGNORECASE)
        self.company_shape_re = re.compile(
            rf"\b((?:[A-Z][\w&]*\s+){{0,2}}[A-Z][\w&]*)\s+(?i:{self.config.company_suffix_regex})(?!\w)"
        )
        self.created_by_re = re.compile(r"\bcreated\s+by\s+([a-z][\w.'-]*)")
        self.by_re = re.compile(r"\bby\s+([a-z][\w.'-]*)")
        self.status_re = compile_any(self.config.status_vocabulary)
        self.suffix_re = re.compile(rf"^(?i:{self.config.company_suffix_regex})$")
        self.part_context_words = frozenset(w.lower() for w in tables["part_context_words"])
        self.ambiguous_prefixes = frozenset(p.lower() for p in tables["ambiguous_part_prefixes"])

    def extract(self, corrected_text: str) -> Dict[str, str]:
        """
        Extract entities from corrected text.

        Args:
            corrected_text: Output of the spell corrector

        Returns:
            entity kind -> value, only for kinds that were found
        """
        text = corrected_text or ""
        lowered = text.lower()
        entities: Dict[str, str] = {}

        def _set(key: str, value: Optional[str]):
            if value and key not in entities:
                entities[key] = value

        _set("account_number", self._extract_account(lowered))
        _set("contract_number", self._extract_contract(lowered, entities))
        _set("part_number", self._extract_part(lowered))
        _set("customer_name", self._extract_customer(text, lowered))
        _set("created_by", self._extract_creator(text, lowered, entities))
        _set("status", self._extract_status(lowered))
        _set("year", self._extract_year(lowered, entities))

        if entities:
            logger.info(f"Extracted entities: {entities}")
        return entities

    def ambiguous_identifiers(self, corrected_text: str) -> List[str]:
        """Tokens shaped like both a part number and a contract number."""
        return [m.group(0).upper() for m in DUAL_SHAPE_RE.finditer((corrected_text or "").lower())]

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _extract_account(self, lowered: str) -> Optional[str]:
        match = self.account_id_re.search(lowered)
        if match:
            return match.group(1)
        for match in LONG_DIGITS_RE.finditer(lowered):
            if not self._preceded_by(lowered, match.start(), self.contract_keyword_set):
                return match.group(0)
        return None

    def _extract_contract(self, lowered: str, entities: Dict[str, str]) -> Optional[str]:
        taken = entities.get("account_number")
        for pattern in (self.contract_id_re, GLUED_ID_RE):
            for match in pattern.finditer(lowered):
                if match.group(1) != taken:
                    return match.group(1)
        match = self.contract_code_re.search(lowered)
        if match:
            return match.group(1).upper()
        for match in SIX_DIGITS_RE.finditer(lowered):
            if match.group(0) != taken:
                return match.group(0)
        return None

    def _extract_part(self, lowered: str) -> Optional[str]:
        blocked = self.contract_keyword_set | {k.lower() for k in self.config.tables["account_keywords"]}
        for match in PART_NUMBER_RE.finditer(lowered):
            prefix = match.group(1)
            if self._preceded_by(lowered, match.start(), blocked):
                continue
            if prefix in self.ambiguous_prefixes and not self._near_context(lowered, match.start()):
                continue
            return (prefix + match.group(2)).upper()
        return None

    def _extract_customer(self, text: str, lowered: str) -> Optional[str]:
        for match in self.customer_re.finditer(text):
            name = self._take_name(text[match.end():])
            if name:
                return name

        for match in self.company_shape_re.finditer(text):
            words = match.group(0).split()
            while words and self._is_stop_word(words[0]):
                words.pop(0)
            if len(words) >= 2:
                return " ".join(words).rstrip(".,;")

        match = self.config.known_company_pattern.search(lowered)
        if match:
            return text[match.start():match.end()]
        return None

    def _extract_creator(self, text: str, lowered: str, entities: Dict[str, str]) -> Optional[str]:
        customer = (entities.get("customer_name") or "").lower().split()
        for pattern in (self.created_by_re, self.by_re):
            for match in pattern.finditer(lowered):
                word = match.group(1).rstrip(".,;'")
                original = text[match.start(1):match.start(1) + len(word)]
                if self._is_name_candidate(word, original, lowered[match.end(1):], customer):
                    return original
        return None

    def _extract_status(self, lowered: str) -> Optional[str]:
        for match in self.status_re.finditer(lowered):
            before = lowered[:match.start()].split()
            if before and before[-1] in STATUS_CLAUSE_WORDS:
                continue
            return match.group(0)
        return None

    def _extract_year(self, lowered: str, entities: Dict[str, str]) -> Optional[str]:
        identifiers = set(entities.values())
        for match in YEAR_RE.finditer(lowered):
            if match.group(0) in identifiers:
                continue
            before = lowered[:match.start()].split()
            if before and before[-1] in RANGE_WORDS:
                continue
            return match.group(0)
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _preceded_by(lowered: str, position: int, words, window: int = 2) -> bool:
        """True if one of the last `window` words before position is in words."""
        before = re.findall(r"[a-z]+", lowered[:position])[-window:]
        return any(w in words for w in before)

    def _near_context(self, lowered: str, position: int) -> bool:
        return self._preceded_by(lowered, position, self.part_context_words, window=4)

    def _is_stop_word(self, word: str) -> bool:
        cleaned = word.lower().strip(".,;:'\"")
        return cleaned in self.config.name_stop_words or cleaned in self.config.query_indicators

    def _take_name(self, remainder: str, max_words: int = 4) -> Optional[str]:
        """Collect name words until a stop word, number or punctuation."""
        words = []
        for raw in remainder.split():
            word = raw.strip("\"'")
            cleaned = word.rstrip(".,;:!?")
            if not cleaned or self._is_stop_word(cleaned) or any(ch.isdigit() for ch in cleaned):
                break
            if self.suffix_re.match(word) and words:
                words.append(word.rstrip(",;:!?"))
                break
            words.append(cleaned)
            if cleaned != word or len(words) >= max_words:
                break
        return " ".join(words) or None

    def _is_name_candidate(self, word: str, original: str, following: str, customer: List[str]) -> bool:
        if not WORD_RE.fullmatch(word) or word.isdigit():
            return False
        if word in self.config.name_stop_words or word in self.config.status_vocabulary:
            return False
        if word in customer:
            return False
        if self.config.known_company_pattern.fullmatch(word):
            return False
        # acronyms read as company names
        if original.isupper() and 2 <= len(original) <= 5:
            return False
        next_word = following.split()[:1]
        if next_word and self.suffix_re.match(next_word[0]):
            return False
        return True
