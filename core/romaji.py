"""Romaji matching against tokenized readings.

The matcher is called once per keystroke with the learner's pending
buffer for the current token and reports whether the token is complete,
still being typed, or wrong.
"""

from .kana import (
    PhoneticToken, DOUBLING_ESCAPES, NASAL, NASAL_DISAMBIGUATION_LEADS
)

NASAL_DOUBLED = 'nn'
NASAL_SINGLE = 'n'


class MatchOutcome:
    """Result of matching one input buffer against one token."""

    def __init__(self, matched: bool, consumed: int, partial: bool):
        self.matched = matched
        self.consumed = consumed
        self.partial = partial

    def to_dict(self) -> dict:
        return {
            'matched': self.matched,
            'consumed': self.consumed,
            'partial': self.partial
        }

    def __eq__(self, other):
        if not isinstance(other, MatchOutcome):
            return NotImplemented
        return (self.matched, self.consumed, self.partial) == \
            (other.matched, other.consumed, other.partial)

    def __repr__(self):
        return f"MatchOutcome(matched={self.matched}, consumed={self.consumed}, partial={self.partial})"


NO_MATCH = MatchOutcome(False, 0, False)
PARTIAL = MatchOutcome(False, 0, True)


def matched(consumed: int) -> MatchOutcome:
    return MatchOutcome(True, consumed, False)


def needs_double_n(tokens: list[PhoneticToken], index: int) -> bool:
    """True if the ん at index must be typed "nn" because of what follows it."""
    if index < 0 or index >= len(tokens) or tokens[index].unit != NASAL:
        return False
    if index + 1 >= len(tokens):
        return False
    return tokens[index + 1].unit[0] in NASAL_DISAMBIGUATION_LEADS


def _match_escapes(partial_input: str) -> MatchOutcome | None:
    for escape in DOUBLING_ESCAPES:
        if escape.startswith(partial_input):
            if partial_input == escape:
                return matched(len(escape))
            return PARTIAL
    return None


def _match_doubling_marker(tokens: list[PhoneticToken], index: int, partial_input: str) -> MatchOutcome:
    if index + 1 >= len(tokens):
        return _match_escapes(partial_input) or NO_MATCH

    next_token = tokens[index + 1]
    for spelling in next_token.romanizations:
        consonant = spelling[0]
        if (consonant + spelling).startswith(partial_input):
            if partial_input == consonant:
                # The extra consonant satisfies the marker; the next token
                # consumes its own spelling on the following call.
                return matched(1)
            return PARTIAL

    return _match_escapes(partial_input) or NO_MATCH


def _match_nasal(tokens: list[PhoneticToken], index: int, partial_input: str) -> MatchOutcome:
    if needs_double_n(tokens, index):
        if partial_input == NASAL_DOUBLED:
            return matched(2)
        if NASAL_DOUBLED.startswith(partial_input):
            return PARTIAL
        return NO_MATCH

    if partial_input in (NASAL_SINGLE, NASAL_DOUBLED):
        return matched(len(partial_input))
    if NASAL_DOUBLED.startswith(partial_input):
        return PARTIAL
    return NO_MATCH


def match_romaji(tokens: list[PhoneticToken], index: int, partial_input: str) -> MatchOutcome:
    """Match partial_input against tokens[index].

    Spellings are tried in declared order; the first one that is a prefix
    of the input, or that the input is a prefix of, decides the outcome.
    Input that runs past a full spelling is reported matched with only
    that spelling consumed.
    """
    if index < 0 or index >= len(tokens):
        return NO_MATCH

    token = tokens[index]
    if token.is_doubling_marker:
        return _match_doubling_marker(tokens, index, partial_input)
    if token.unit == NASAL:
        return _match_nasal(tokens, index, partial_input)

    for spelling in token.romanizations:
        if spelling.startswith(partial_input):
            if partial_input == spelling:
                return matched(len(spelling))
            return PARTIAL
        if partial_input.startswith(spelling):
            return matched(len(spelling))

    return NO_MATCH


def spell_token(tokens: list[PhoneticToken], index: int) -> str:
    """Canonical spelling of tokens[index] in its context."""
    if index < 0 or index >= len(tokens):
        return ''
    token = tokens[index]
    if token.is_doubling_marker:
        if index + 1 < len(tokens) and tokens[index + 1].romanizations:
            return tokens[index + 1].romanizations[0][0]
        return DOUBLING_ESCAPES[0]
    if token.unit == NASAL:
        return NASAL_DOUBLED if needs_double_n(tokens, index) else NASAL_SINGLE
    return token.romanizations[0] if token.romanizations else token.unit


def canonical_romaji(tokens: list[PhoneticToken]) -> str:
    """Full canonical romaji for a token sequence."""
    return ''.join(spell_token(tokens, i) for i in range(len(tokens)))
