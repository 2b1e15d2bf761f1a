"""
Command Interpreter

Classifies a transcript into an Intent: pattern table first, then a whole-utterance
fuzzy match against the equipment corpus, otherwise UNKNOWN.
"""

import re
from typing import Dict, Optional

from equiptrack.buisness.commands.intents import (
    Intent,
    IntentKind,
    EntityKind,
    CommandStage,
    EquipmentRef,
    FreeText,
    StatusRef,
    Entity,
    normalize_status,
)
from equiptrack.buisness.commands.patterns import PATTERN_TABLE, IntentPattern
from equiptrack.buisness.commands.resolver import EquipmentResolver
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.buisness.commands.interpreter")

PATTERN_CONFIDENCE = 0.85
FUZZY_INTENT_THRESHOLD = 0.7
FUZZY_CONFIDENCE_FACTOR = 0.8
UNKNOWN_CONFIDENCE = 0.1

_LEADING_ARTICLE = re.compile(r'^(?:the|a|an|my)\s+')
_TRAILING_PUNCTUATION = re.compile(r'[\s.,!?]+$')

# Keyword heuristics for fuzzy matches, in priority order
_CONTEXT_KEYWORDS = (
    (IntentKind.CHECKOUT, ('checkout', 'check out', 'borrow', 'take')),
    (IntentKind.CHECKIN, ('return', 'check in', 'checkin', 'give back')),
    (IntentKind.FIND, ('find', 'where', 'locate')),
    (IntentKind.GET_STATUS, ('status',)),
)


def normalize_transcript(transcript: str) -> str:
    """Trim, lowercase and collapse whitespace."""
    return ' '.join((transcript or '').strip().lower().split())


def clean_capture(text: str) -> str:
    text = _TRAILING_PUNCTUATION.sub('', text.strip())
    return _LEADING_ARTICLE.sub('', text).strip()


def infer_intent_from_context(text: str) -> IntentKind:
    for kind, keywords in _CONTEXT_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return kind
    return IntentKind.FIND


class CommandInterpreter:

    def __init__(self, resolver: EquipmentResolver, patterns=PATTERN_TABLE):
        self.resolver = resolver
        self.patterns = patterns

    def _extract_entities(self, pattern: IntentPattern, match: 're.Match',
                          tenant_id: Optional[int]) -> Dict[EntityKind, Entity]:
        entities: Dict[EntityKind, Entity] = {}
        for group, entity_kind in pattern.captures.items():
            captured = match.group(group)
            if not captured:
                continue
            text = clean_capture(captured)
            if not text:
                continue
            if entity_kind == EntityKind.EQUIPMENT:
                entities[entity_kind] = self.resolver.resolve_entity(text, tenant_id)
            elif entity_kind == EntityKind.STATUS:
                entities[entity_kind] = StatusRef(normalize_status(text))
        return entities

    def interpret(self, transcript: str, tenant_id: Optional[int] = None) -> Intent:
        """
        Classify ``transcript``.

        Returns:
            Intent: pattern match at 0.85, fuzzy match at score * 0.8, or UNKNOWN at 0.1
        """
        text = normalize_transcript(transcript)

        for pattern in self.patterns:
            match = pattern.regex.search(text)
            if match is None:
                continue
            entities = self._extract_entities(pattern, match, tenant_id)
            unresolved = any(isinstance(e, FreeText) for e in entities.values())
            intent = Intent(
                kind=pattern.kind,
                confidence=PATTERN_CONFIDENCE,
                transcript=transcript,
                entities=entities,
                stage=CommandStage.PARSED if unresolved else CommandStage.RESOLVED,
            )
            logger.debug(f"Pattern match {pattern.regex.pattern!r} -> {intent.kind.value}")
            return intent

        if text:
            match = self.resolver.resolve(text, tenant_id)
            if match.equipment is not None and match.score > FUZZY_INTENT_THRESHOLD:
                kind = infer_intent_from_context(text)
                logger.debug(f"Fuzzy match {match.equipment.code} ({match.score:.2f}) -> {kind.value}")
                return Intent(
                    kind=kind,
                    confidence=match.score * FUZZY_CONFIDENCE_FACTOR,
                    transcript=transcript,
                    entities={EntityKind.EQUIPMENT: EquipmentRef(match.equipment, match.score)},
                    stage=CommandStage.RESOLVED,
                )

        return Intent(
            kind=IntentKind.UNKNOWN,
            confidence=UNKNOWN_CONFIDENCE,
            transcript=transcript,
            stage=CommandStage.UNKNOWN,
        )
