"""
Optional NLP enrichment

Named-entity candidates from a statistical NLP toolkit. They only fill entity
kinds the rule-based extractor left empty, so the engine is correct without
them. spaCy is installed with the `nlp` extra.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

# spaCy entity label -> engine entity kind
SPACY_LABELS = {
    "PERSON": "created_by",
    "ORG": "customer_name",
}


class NullEntityEnricher:
    """Default enricher: contributes nothing"""

    name = "none"

    def enrich(self, text: str) -> Dict[str, str]:
        return {}


class SpacyEntityEnricher:
    """
    spaCy NER enricher.

    The model is loaded by the constructor; a missing package or model raises
    ImportError / OSError from the constructor.
    """

    name = "spacy"

    def __init__(self, model_name: str = "en_core_web_sm"):
        import spacy

        self.model_name = model_name
        self.nlp = spacy.load(model_name)
        logger.info(f"Loaded spaCy model {model_name}")

    def enrich(self, text: str) -> Dict[str, str]:
        candidates: Dict[str, str] = {}
        for ent in self.nlp(text).ents:
            kind = SPACY_LABELS.get(ent.label_)
            if kind and kind not in candidates:
                candidates[kind] = ent.text
        return candidates


def merge_entities(entities: Dict[str, str], candidates: Dict[str, str]) -> Dict[str, str]:
    """Add enrichment candidates for kinds not already extracted."""
    merged = dict(entities)
    for kind, value in candidates.items():
        if value and kind not in merged:
            merged[kind] = value
    return merged


def create_enricher(enabled: bool, model_name: str = "en_core_web_sm"):
    """Build the configured enricher, falling back to no enrichment."""
    if not enabled:
        return NullEntityEnricher()
    try:
        return SpacyEntityEnricher(model_name)
    except (ImportError, OSError) as e:
        logger.warning(
            f"NLP enrichment disabled: {e}. "
            f"Install with: pip install .[nlp] && python -m spacy download {model_name}"
        )
        return NullEntityEnricher()
