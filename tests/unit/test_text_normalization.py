"""
Unit tests for text normalization utilities.
"""

import pytest

from voice_pipeline.utils.text_normalization import (
    capitalize_first,
    clean_transcription_text,
    contains_phrase,
    contains_substring,
    fold_text
)


class TestFoldText:
    """Test suite for fold_text."""

    def test_removes_accents_and_case(self):
        """Test diacritics and case are folded away."""
        assert fold_text('Chez le Médecin') == 'chez le medecin'

    def test_collapses_whitespace(self):
        """Test runs of whitespace collapse to one space."""
        assert fold_text('  Zoé   doit \n partir ') == 'zoe doit partir'

    def test_normalizes_apostrophes(self):
        """Test typographic apostrophes become ASCII."""
        assert fold_text('Aujourd’hui') == "aujourd'hui"

    def test_empty(self):
        """Test empty input yields empty output."""
        assert fold_text('') == ''


class TestContains:
    """Test suite for substring and phrase matching."""

    def test_substring_matches_inside_words(self):
        """Test substring matching ignores word boundaries."""
        assert contains_substring(fold_text('Lucasine arrive'), 'Lucas') is True

    def test_substring_empty_needle(self):
        """Test an empty needle never matches."""
        assert contains_substring('anything', '') is False

    def test_phrase_requires_word_boundaries(self):
        """Test phrase matching respects word boundaries."""
        assert contains_phrase(fold_text('I know it'), 'now') is False
        assert contains_phrase(fold_text('do it now!'), 'now') is True

    def test_phrase_tolerates_plural(self):
        """Test a trailing plural s still matches."""
        assert contains_phrase(fold_text('faire les devoirs'), 'devoir') is True

    def test_phrase_is_accent_insensitive(self):
        """Test accents on either side are ignored."""
        assert contains_phrase(fold_text('rendez-vous chez le medecin'), 'médecin') is True


class TestCleanTranscriptionText:
    """Test suite for transcription cleanup."""

    @pytest.mark.parametrize('raw,expected', [
        ('  , acheter du pain ,demain  !! ', 'acheter du pain, demain.'),
        ('bonjour', 'bonjour'),
        ('rendez-vous le 12.05.2025', 'rendez-vous le 12.05.2025'),
        ('', ''),
    ])
    def test_clean(self, raw, expected):
        """Test whitespace and punctuation are tidied."""
        assert clean_transcription_text(raw) == expected

    def test_capitalize_first(self):
        """Test only the first character changes."""
        assert capitalize_first('rendez-vous Lucas') == 'Rendez-vous Lucas'
        assert capitalize_first('') == ''
