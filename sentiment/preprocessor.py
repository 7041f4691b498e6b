"""
Text preprocessing functionality for the sentiment classifier.

This module handles text normalization, tokenization, language detection,
negation marking and stop-word filtering for the Naive Bayes model.
"""

import re
import logging
import unicodedata
from typing import Dict, List, Pattern, Set

from nltk.sentiment.util import mark_negation
from nltk.tokenize import TweetTokenizer

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ('en', 'es', 'de', 'fr')

NEGATION_SUFFIX = "_NEG"

# Minimal per-language stop word lists, without negation words
STOPWORDS: Dict[str, Set[str]] = {
    'en': {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "were", "will", "with",
    },
    'es': {
        "el", "la", "de", "que", "y", "a", "en", "un", "es", "se",
        "te", "lo", "le", "da", "su", "por", "son", "con", "para",
    },
    'de': {
        "der", "die", "das", "und", "ist", "mit", "ein", "eine",
        "zu", "auf", "für", "von", "dem", "den", "des", "im", "am", "zum",
    },
    'fr': {
        "le", "de", "et", "à", "un", "il", "être", "en", "avoir",
        "que", "pour", "dans", "ce", "son", "une", "sur", "avec", "se",
    },
}

LANGUAGE_PATTERNS: Dict[str, List[Pattern]] = {
    'en': [re.compile(r"\b(the|and|or|but|in|on|at|to|for|of|with|by)\b", re.IGNORECASE)],
    'es': [
        re.compile(r"\b(que|qué|el|la|los|las|es|son|está|están|muy|pero|con|por|para|desde|hasta|como|cuando|donde|dónde)\b", re.IGNORECASE),
        re.compile(r"ñ"),
        re.compile(r"[¿¡]"),
    ],
    'de': [
        re.compile(r"\b(der|die|das|den|dem|des|ein|eine|einen|einem|einer|eines|ist|sind|war|waren|hat|haben|wird|werden|kann|können|soll|sollen|und|oder|aber|wenn|weil|dass|daß|mit|von|zu|für|auf|in|an|über|unter|nicht|kein|keine|sehr|auch|nur|noch|schon|immer|nie|wieder)\b", re.IGNORECASE),
        re.compile(r"[ßäöü]"),
    ],
    'fr': [
        re.compile(r"\b(le|la|les|un|une|des|de|du|ce|cette|ces|est|sont|était|étaient|etait|etaient|a|ont|sera|seront|peut|peuvent|et|ou|mais|si|parce\s+que|avec|pour|dans|sur|sous|entre|chez|ne|pas|non|très|tres|aussi|seulement|déjà|deja|jamais|toujours)\b", re.IGNORECASE),
        re.compile(r"[çéèêàùôîïë]"),
    ],
}

_WHITESPACE_RE = re.compile(r"\s+")

_tokenizer = TweetTokenizer(preserve_case=False, reduce_len=True, strip_handles=True)


def normalize_text(text: str) -> str:
    """Lower-case the text and collapse runs of whitespace."""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def detect_language(text: str, default_lang: str = 'en') -> str:
    """
    Guess the language of a text using keyword and character heuristics.

    Args:
        text: Input text
        default_lang: Language returned when no pattern matches

    Returns:
        One of SUPPORTED_LANGUAGES
    """
    normalized = text.lower()
    scores = {lang: 0 for lang in SUPPORTED_LANGUAGES}

    for lang, patterns in LANGUAGE_PATTERNS.items():
        for pattern in patterns:
            scores[lang] += len(pattern.findall(normalized))

    # Ties resolve in SUPPORTED_LANGUAGES order
    best = max(SUPPORTED_LANGUAGES, key=lambda lang: scores[lang])
    return best if scores[best] > 0 else default_lang


def get_stop_words(language: str = 'en') -> Set[str]:
    """
    Gets stop words for the specified language.

    Args:
        language: Language code

    Returns:
        Set of stop words, falling back to English for unknown languages
    """
    return STOPWORDS.get(language, STOPWORDS['en'])


def _is_punctuation(token: str) -> bool:
    return all(unicodedata.category(char).startswith('P') for char in token)


def strip_negation(token: str) -> str:
    """Return the token without its negation marker."""
    return token[:-len(NEGATION_SUFFIX)] if token.endswith(NEGATION_SUFFIX) else token


def _keep_token(token: str, stop_words: Set[str]) -> bool:
    base = strip_negation(token)
    if not base or _is_punctuation(base):
        return False
    # Single ASCII characters carry no signal; single emoji do
    if len(base) <= 1 and base.isascii():
        return False
    return base not in stop_words


def tokenize(text: str,
             default_lang: str = 'en',
             detect_lang: bool = True,
             remove_stopwords: bool = True,
             handle_negation: bool = True) -> List[str]:
    """
    Turns raw text into the list of tokens fed to the classifier by:
    - Converting to lowercase and normalizing whitespace
    - Tokenizing with a tweet-aware tokenizer (emoji, hashtags, contractions)
    - Marking tokens that follow a negation with the _NEG suffix (optional)
    - Removing punctuation, single characters and stop words (optional)

    Args:
        text: Input text to process
        default_lang: Language assumed when detection is off or inconclusive
        detect_lang: Whether to detect the language for stop-word selection
        remove_stopwords: Whether to remove stop words
        handle_negation: Whether to mark negated tokens

    Returns:
        List of normalized tokens, possibly empty
    """
    if not text or not isinstance(text, str):
        return []

    normalized = normalize_text(text)
    if not normalized:
        return []

    tokens = _tokenizer.tokenize(normalized)

    if handle_negation:
        tokens = mark_negation(tokens)

    stop_words: Set[str] = set()
    if remove_stopwords:
        language = detect_language(normalized, default_lang) if detect_lang else default_lang
        stop_words = get_stop_words(language)

    return [token for token in tokens if _keep_token(token, stop_words)]
