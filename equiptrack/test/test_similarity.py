"""
Tests for edit-distance similarity
"""
import pytest

from equiptrack.buisness.commands.similarity import levenshtein_distance, similarity


def test_levenshtein_distance():
    assert levenshtein_distance('kitten', 'sitting') == 3
    assert levenshtein_distance('', 'abc') == 3
    assert levenshtein_distance('abc', '') == 3
    assert levenshtein_distance('same', 'same') == 0
    assert levenshtein_distance('ab', 'ba') == 2


def test_levenshtein_is_symmetric():
    assert levenshtein_distance('racket', 'tennis racket a') == levenshtein_distance('tennis racket a', 'racket')


def test_one_edit_in_ten_scores_point_nine():
    assert similarity('basketball', 'basketbell') == pytest.approx(0.9)


def test_similarity_bounds():
    assert similarity('', '') == 1.0
    assert similarity('abc', 'abc') == 1.0
    assert similarity('abc', 'xyz') == 0.0
    assert similarity('basketball', 'basketball 1') == pytest.approx(10 / 12)
