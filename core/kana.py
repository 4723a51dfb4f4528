"""Kana tables and the reading tokenizer.

Readings are folded to hiragana before lookup so one romaji table serves
both syllabaries. The tokenizer scans left to right, preferring a
two-character combination (きゃ, しゅ, ...) over a single character.
"""

# Hiragana to romaji, first spelling is the canonical one
HIRAGANA_TO_ROMAJI = {
    # Vowels
    'あ': ['a'], 'い': ['i'], 'う': ['u'], 'え': ['e'], 'お': ['o'],
    # K-row
    'か': ['ka'], 'き': ['ki'], 'く': ['ku'], 'け': ['ke'], 'こ': ['ko'],
    # S-row
    'さ': ['sa'], 'し': ['si', 'shi'], 'す': ['su'], 'せ': ['se'], 'そ': ['so'],
    # T-row
    'た': ['ta'], 'ち': ['ti', 'chi'], 'つ': ['tu', 'tsu'], 'て': ['te'], 'と': ['to'],
    # N-row
    'な': ['na'], 'に': ['ni'], 'ぬ': ['nu'], 'ね': ['ne'], 'の': ['no'],
    # H-row
    'は': ['ha'], 'ひ': ['hi'], 'ふ': ['hu', 'fu'], 'へ': ['he'], 'ほ': ['ho'],
    # M-row
    'ま': ['ma'], 'み': ['mi'], 'む': ['mu'], 'め': ['me'], 'も': ['mo'],
    # Y-row
    'や': ['ya'], 'ゆ': ['yu'], 'よ': ['yo'],
    # R-row
    'ら': ['ra'], 'り': ['ri'], 'る': ['ru'], 'れ': ['re'], 'ろ': ['ro'],
    # W-row and the moraic nasal
    'わ': ['wa'], 'を': ['wo', 'o'], 'ん': ['n', 'nn'],
    # Voiced rows
    'が': ['ga'], 'ぎ': ['gi'], 'ぐ': ['gu'], 'げ': ['ge'], 'ご': ['go'],
    'ざ': ['za'], 'じ': ['ji', 'zi'], 'ず': ['zu'], 'ぜ': ['ze'], 'ぞ': ['zo'],
    'だ': ['da'], 'ぢ': ['di', 'ji'], 'づ': ['du', 'zu'], 'で': ['de'], 'ど': ['do'],
    'ば': ['ba'], 'び': ['bi'], 'ぶ': ['bu'], 'べ': ['be'], 'ぼ': ['bo'],
    'ぱ': ['pa'], 'ぴ': ['pi'], 'ぷ': ['pu'], 'ぺ': ['pe'], 'ぽ': ['po'],
    'ゔ': ['vu'],
    # Small kana on their own
    'ゃ': ['ya', 'xya', 'lya'], 'ゅ': ['yu', 'xyu', 'lyu'], 'ょ': ['yo', 'xyo', 'lyo'],
    'ぁ': ['a', 'xa', 'la'], 'ぃ': ['i', 'xi', 'li'], 'ぅ': ['u', 'xu', 'lu'],
    'ぇ': ['e', 'xe', 'le'], 'ぉ': ['o', 'xo', 'lo'],
    # Combinations
    'きゃ': ['kya'], 'きゅ': ['kyu'], 'きょ': ['kyo'],
    'しゃ': ['sha', 'sya'], 'しゅ': ['shu', 'syu'], 'しょ': ['sho', 'syo'],
    'ちゃ': ['cha', 'tya'], 'ちゅ': ['chu', 'tyu'], 'ちょ': ['cho', 'tyo'],
    'にゃ': ['nya'], 'にゅ': ['nyu'], 'にょ': ['nyo'],
    'ひゃ': ['hya'], 'ひゅ': ['hyu'], 'ひょ': ['hyo'],
    'みゃ': ['mya'], 'みゅ': ['myu'], 'みょ': ['myo'],
    'りゃ': ['rya'], 'りゅ': ['ryu'], 'りょ': ['ryo'],
    'ぎゃ': ['gya'], 'ぎゅ': ['gyu'], 'ぎょ': ['gyo'],
    'じゃ': ['ja', 'zya'], 'じゅ': ['ju', 'zyu'], 'じょ': ['jo', 'zyo'],
    'びゃ': ['bya'], 'びゅ': ['byu'], 'びょ': ['byo'],
    'ぴゃ': ['pya'], 'ぴゅ': ['pyu'], 'ぴょ': ['pyo'],
    # Loanword combinations (mostly seen in katakana)
    'ふぁ': ['fa'], 'ふぃ': ['fi'], 'ふぇ': ['fe'], 'ふぉ': ['fo'],
    'てぃ': ['thi'], 'でぃ': ['dhi'], 'うぃ': ['wi'], 'うぇ': ['we'],
    # Long vowel mark
    'ー': ['-'],
}

DOUBLING_MARKER = 'っ'
DOUBLING_ESCAPES = ['xtu', 'xtsu']
NASAL = 'ん'
LONG_VOWEL_MARK = 'ー'

# Units that force ん to be typed "nn" when they follow it
NASAL_DISAMBIGUATION_LEADS = 'あいうえおやゆよぁぃぅぇぉゃゅょ'

PUNCTUATION = '。、？！「」『』（）・～…'

KATAKANA_FIRST = 0x30a1
KATAKANA_LAST = 0x30f6
KATAKANA_OFFSET = 0x30a0 - 0x3040


class PhoneticToken:
    """One matchable unit of a reading."""

    def __init__(self, unit: str, romanizations: list[str], is_doubling_marker: bool = False,
                 source: str = None):
        self.unit = unit
        self.romanizations = tuple(romanizations)
        self.is_doubling_marker = is_doubling_marker
        # Text as it appeared before folding to hiragana
        self.source = source if source is not None else unit

    @property
    def is_katakana(self) -> bool:
        return self.source != self.unit

    def to_dict(self) -> dict:
        return {
            'unit': self.unit,
            'romanizations': list(self.romanizations),
            'is_doubling_marker': self.is_doubling_marker,
            'source': self.source
        }

    def __eq__(self, other):
        if not isinstance(other, PhoneticToken):
            return NotImplemented
        return (self.unit == other.unit and self.romanizations == other.romanizations
                and self.is_doubling_marker == other.is_doubling_marker
                and self.source == other.source)

    def __hash__(self):
        return hash((self.unit, self.romanizations, self.is_doubling_marker, self.source))

    def __repr__(self):
        return f"PhoneticToken({self.unit!r}, {list(self.romanizations)!r})"


def fold_char(char: str) -> str:
    """Fold a single katakana character to hiragana. ー is left alone."""
    code = ord(char)
    if KATAKANA_FIRST <= code <= KATAKANA_LAST:
        return chr(code - KATAKANA_OFFSET)
    return char


def to_hiragana(text: str) -> str:
    """Fold katakana in text to hiragana, character by character.

    Two-character katakana combinations (キャ) fold to their hiragana
    combination (きゃ) since each half folds independently.
    """
    return ''.join(fold_char(c) for c in text)


def is_punctuation(text: str) -> bool:
    """True if text consists only of punctuation and whitespace."""
    if not text:
        return False
    return all(c in PUNCTUATION or c.isspace() for c in text)


def tokenize(reading: str) -> list[PhoneticToken]:
    """Split a reading into phonetic tokens."""
    folded = to_hiragana(reading)
    tokens = []
    i = 0
    while i < len(folded):
        if i + 1 < len(folded):
            combo = folded[i:i + 2]
            if combo in HIRAGANA_TO_ROMAJI:
                tokens.append(PhoneticToken(combo, HIRAGANA_TO_ROMAJI[combo],
                                            source=reading[i:i + 2]))
                i += 2
                continue

        char = folded[i]
        source = reading[i]
        if char == DOUBLING_MARKER:
            # Spelling depends on the following token
            tokens.append(PhoneticToken(char, [], is_doubling_marker=True, source=source))
        elif char in HIRAGANA_TO_ROMAJI:
            tokens.append(PhoneticToken(char, HIRAGANA_TO_ROMAJI[char], source=source))
        else:
            # Punctuation, kanji or anything else matches literally
            tokens.append(PhoneticToken(char, [char], source=source))
        i += 1
    return tokens
