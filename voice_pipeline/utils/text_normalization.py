"""
Text normalization utilities for matching spoken text.

Transcribed speech arrives with arbitrary casing, accents and punctuation.
These helpers fold text into a comparable form so that names, keywords and
date phrases match regardless of how the STT engine rendered them.
"""

import re
import unicodedata


def fold_text(text: str) -> str:
    """
    Fold text for case-insensitive, diacritic-tolerant comparison.

    Normalization steps:
    1. Decompose characters (NFD)
    2. Drop combining marks (accents)
    3. Convert to lowercase
    4. Normalize apostrophes and collapse whitespace

    Args:
        text: Input text to fold

    Returns:
        Folded text string

    Examples:
        >>> fold_text("Chez le Médecin")
        'chez le medecin'

        >>> fold_text("  Zoé   doit ")
        'zoe doit'
    """
    if not text:
        return ""

    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    folded = stripped.lower().replace('’', "'")
    return re.sub(r'\s+', ' ', folded).strip()


def contains_substring(folded_text: str, needle: str) -> bool:
    """
    Check whether needle appears anywhere in already-folded text.

    Args:
        folded_text: Text previously passed through fold_text
        needle: Raw needle (folded here)

    Returns:
        True if the folded needle is a substring of folded_text
    """
    folded_needle = fold_text(needle)
    return bool(folded_needle) and folded_needle in folded_text


def contains_phrase(folded_text: str, phrase: str) -> bool:
    """
    Check whether phrase appears as whole words in already-folded text.

    A trailing plural 's' is tolerated so 'devoir' matches 'devoirs'.

    Args:
        folded_text: Text previously passed through fold_text
        phrase: Raw keyword or phrase (folded here)

    Returns:
        True if the phrase is found on word boundaries

    Examples:
        >>> contains_phrase(fold_text("I know it"), "now")
        False

        >>> contains_phrase(fold_text("do it now!"), "now")
        True
    """
    folded_phrase = fold_text(phrase)
    if not folded_phrase:
        return False
    pattern = r'(?<!\w)' + re.escape(folded_phrase) + r's?(?!\w)'
    return re.search(pattern, folded_text) is not None


def clean_transcription_text(text: str) -> str:
    """
    Tidy raw transcription output.

    Collapses whitespace, removes spaces before punctuation, adds a space
    after punctuation, drops leading punctuation and collapses trailing
    punctuation into a single period.

    Args:
        text: Raw text from the STT collaborator

    Returns:
        Cleaned text

    Examples:
        >>> clean_transcription_text("  , acheter du pain ,demain  !! ")
        'acheter du pain, demain.'
    """
    if not text:
        return ""

    cleaned = re.sub(r'\s+', ' ', text.strip())
    cleaned = re.sub(r'\s+([.,!?;:])', r'\1', cleaned)
    # Digits keep their separators so dates like 12.05.2025 survive
    cleaned = re.sub(r'(?<!\d)([.,!?;:])(?=[^\s.,!?;:])', r'\1 ', cleaned)
    cleaned = re.sub(r'^[\s.,!?;:]+', '', cleaned)
    cleaned = re.sub(r'[\s.,!?;:]+$', '.', cleaned)
    return cleaned


def capitalize_first(text: str) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    if not text:
        return text
    return text[0].upper() + text[1:]
