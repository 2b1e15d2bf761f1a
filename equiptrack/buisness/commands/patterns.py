"""
Intent pattern table

Ordered, declarative table of phrasings. The interpreter evaluates it top to bottom
and the first match wins, so more specific phrasings of an intent must come before
looser ones that could swallow them.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from equiptrack.buisness.commands.intents import IntentKind, EntityKind

E = EntityKind.EQUIPMENT
S = EntityKind.STATUS


@dataclass(frozen=True)
class IntentPattern:
    kind: IntentKind
    regex: 're.Pattern'
    captures: Dict[int, EntityKind] = field(default_factory=dict)
    example: str = ''


def _p(kind: IntentKind, pattern: str, captures: Dict[int, EntityKind] = None, example: str = '') -> IntentPattern:
    return IntentPattern(kind, re.compile(pattern), dict(captures or {}), example)


PATTERN_TABLE: Tuple[IntentPattern, ...] = (
    # CHECKOUT
    _p(IntentKind.CHECKOUT, r'\bcheck\s+out\s+(.+)', {1: E}, "check out basketball"),
    _p(IntentKind.CHECKOUT, r'\bsign\s+out\s+(.+)', {1: E}, "sign out the projector"),
    _p(IntentKind.CHECKOUT, r'\bborrow\s+(.+)', {1: E}, "borrow tennis racket A"),
    _p(IntentKind.CHECKOUT, r'\btake\s+(.+)', {1: E}, "take the volleyball net"),
    _p(IntentKind.CHECKOUT, r'\bget\s+(?!(?:the\s+)?status\b)(.+)', {1: E}, "get BB1-001"),

    # CHECKIN
    _p(IntentKind.CHECKIN, r'\bcheck\s+in\s+(.+)', {1: E}, "check in basketball"),
    _p(IntentKind.CHECKIN, r'\bgive\s+back\s+(.+)', {1: E}, "give back the projector"),
    _p(IntentKind.CHECKIN, r'\bbring\s+back\s+(.+)', {1: E}, "bring back tennis racket A"),
    _p(IntentKind.CHECKIN, r'\bsign\s+in\s+(.+)', {1: E}, "sign in the camera"),
    _p(IntentKind.CHECKIN, r'\breturn\s+(.+)', {1: E}, "return tennis racket A"),

    # FIND
    _p(IntentKind.FIND, r'\bwhere\s+is\s+(.+)', {1: E}, "where is the volleyball net"),
    _p(IntentKind.FIND, r'\bsearch\s+for\s+(.+)', {1: E}, "search for cones"),
    _p(IntentKind.FIND, r'\blook\s+for\s+(.+)', {1: E}, "look for the stopwatch"),
    _p(IntentKind.FIND, r'\blocate\s+(.+)', {1: E}, "locate BB1-001"),
    _p(IntentKind.FIND, r'\bfind\s+(.+)', {1: E}, "find volleyball net"),

    # SET_STATUS
    _p(IntentKind.SET_STATUS, r'\bupdate\s+(.+?)\s+status\s+to\s+(.+)', {1: E, 2: S},
       "update basketball 1 status to maintenance"),
    _p(IntentKind.SET_STATUS, r'\bset\s+(.+?)\s+to\s+(.+)', {1: E, 2: S}, "set basketball 1 to damaged"),
    _p(IntentKind.SET_STATUS, r'\bmark\s+(.+?)\s+as\s+(.+)', {1: E, 2: S}, "mark the projector as lost"),
    _p(IntentKind.SET_STATUS, r'\bchange\s+(.+?)\s+to\s+(.+)', {1: E, 2: S}, "change BB1-001 to available"),

    # GET_STATUS
    _p(IntentKind.GET_STATUS, r'\bstatus\s+of\s+(.+)', {1: E}, "what is the status of basketball 1"),
    _p(IntentKind.GET_STATUS, r'\bcheck\s+status\s+(?:of\s+)?(.+)', {1: E}, "check status BB1-001"),
    _p(IntentKind.GET_STATUS, r'\bhow\s+is\s+(.+)', {1: E}, "how is the projector"),

    # LIST
    _p(IntentKind.LIST, r'\blist\s+all\s+equipment\b', example="list all equipment"),
    _p(IntentKind.LIST, r'\bshow\s+all\s+equipment\b', example="show all equipment"),
    _p(IntentKind.LIST, r'\bwhat\s+equipment\s+do\s+we\s+have\b', example="what equipment do we have"),
    _p(IntentKind.LIST, r'\binventory\s+list\b', example="inventory list"),

    # HELP
    _p(IntentKind.HELP, r'\bhelp\b', example="help"),
    _p(IntentKind.HELP, r'\bwhat\s+can\s+you\s+do\b', example="what can you do"),
    _p(IntentKind.HELP, r'\bcommands\b', example="commands"),
    _p(IntentKind.HELP, r'\bassistance\b', example="I need assistance"),
)


def describe_patterns() -> List[dict]:
    """Pattern catalogue grouped by intent, in evaluation order."""
    catalogue: Dict[IntentKind, dict] = {}
    for pattern in PATTERN_TABLE:
        entry = catalogue.setdefault(pattern.kind, {
            'intent': pattern.kind.value,
            'entities': [],
            'patterns': [],
            'examples': [],
        })
        entry['patterns'].append(pattern.regex.pattern)
        if pattern.example:
            entry['examples'].append(pattern.example)
        for entity_kind in pattern.captures.values():
            if entity_kind.value not in entry['entities']:
                entry['entities'].append(entity_kind.value)
    return list(catalogue.values())
