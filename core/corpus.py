"""Built-in practice sentences and corpus loading."""

import json
import logging
from pathlib import Path

from .models import Sentence, SentenceToken

logger = logging.getLogger(__name__)


def _kana(text: str) -> list[SentenceToken]:
    """One segment per character, for plain kana items."""
    return [SentenceToken(c, c) for c in text]


def _k(surface: str, reading: str) -> SentenceToken:
    return SentenceToken(surface, reading, True)


def _t(text: str) -> SentenceToken:
    return SentenceToken(text, text)


# Items grouped from the vowel row up to N5 sentences with kanji
SENTENCES = [
    # Rows
    Sentence('1', _kana('あいうえお'), 1),
    Sentence('2', _kana('かきくけこ'), 1),
    Sentence('3', _kana('さしすせそ'), 1),
    Sentence('4', _kana('たちつてと'), 1),
    Sentence('5', _kana('なにぬねの'), 1),
    # Words
    Sentence('6', _kana('こんにちは'), 1),
    Sentence('7', _kana('ありがとう'), 1),
    Sentence('8', _kana('おはよう'), 1),
    # Katakana
    Sentence('9', _kana('アイウエオ'), 1.5),
    Sentence('10', _kana('コーヒー'), 1.5),
    # Sentences with kanji
    Sentence('11', [_k('今日', 'きょう'), _t('は'), _t('いい'), _k('天気', 'てんき'),
                    _t('です'), _t('。')], 2, 'N5'),
    Sentence('12', [_k('私', 'わたし'), _t('は'), _k('学生', 'がくせい'), _t('です'), _t('。')],
             2, 'N5'),
    Sentence('13', [_k('日本語', 'にほんご'), _t('を'), _k('勉強', 'べんきょう'), _t('し'), _t('て'),
                    _t('います'), _t('。')], 2.5, 'N5'),
    Sentence('14', [_t('お'), _k('名前', 'なまえ'), _t('は'), _k('何', 'なん'), _t('です'), _t('か'),
                    _t('？')], 2, 'N5'),
    Sentence('15', [_t('これ'), _t('は'), _k('本', 'ほん'), _t('です'), _t('。')], 2, 'N5'),
    Sentence('16', [_k('明日', 'あした'), _t('は'), _k('学校', 'がっこう'), _t('に'), _k('行', 'い'),
                    _t('きます'), _t('。')], 2.5, 'N5'),
    Sentence('17', [_k('毎日', 'まいにち'), _k('日本語', 'にほんご'), _t('を'), _k('練習', 'れんしゅう'),
                    _t('し'), _t('ます'), _t('。')], 3, 'N5'),
    Sentence('18', [_k('食', 'た'), _t('べ'), _k('物', 'もの'), _t('が'), _k('好', 'す'), _t('き'),
                    _t('です'), _t('。')], 2.5, 'N5'),
    Sentence('19', [_k('電車', 'でんしゃ'), _t('で'), _k('会社', 'かいしゃ'), _t('に'), _k('行', 'い'),
                    _t('きます'), _t('。')], 3, 'N5'),
    Sentence('20', [_t('どこ'), _t('に'), _k('住', 'す'), _t('んで'), _t('います'), _t('か'),
                    _t('？')], 2.5, 'N5'),
]


def load_corpus(path: str | Path) -> list[Sentence]:
    """Load sentences from a JSON list of {id, tokens, difficulty, jlpt?}."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    sentences = [Sentence.from_dict(item) for item in data]
    logger.info(f"Loaded {len(sentences)} sentences from {path}")
    return sentences


def get_corpus(path: str | Path = None) -> list[Sentence]:
    """Corpus from a file when one is given, the built-in set otherwise."""
    if path:
        return load_corpus(path)
    return list(SENTENCES)


def get_sentence(corpus: list[Sentence], sentence_id: str) -> Sentence | None:
    return next((s for s in corpus if s.id == sentence_id), None)
