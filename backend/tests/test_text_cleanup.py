import pytest

from resume_intake.utils.text_cleanup import clean_lines, clean_text, normalize, truncate_at_word


def test_truncates_at_last_word_boundary():
    assert normalize("abcdef ghij", 9) == "abcdef"


def test_short_text_is_returned_unchanged():
    assert normalize("Jane Doe, Python developer", 8000) == "Jane Doe, Python developer"


def test_whitespace_is_collapsed():
    assert clean_text("  Jane\n\n Doe\t\tEngineer  ") == "Jane Doe Engineer"


def test_typographic_characters_are_replaced():
    assert clean_text("Jane’s • résumé – 2024") == "Jane's | résumé - 2024"


def test_disallowed_symbols_and_underscore_runs_are_removed():
    assert clean_text("Name: ______ ★ Jane ©") == "Name: Jane"


def test_result_never_exceeds_max_length():
    text = " ".join(["experience"] * 500)
    for limit in (0, 1, 10, 55, 100, 1000):
        assert len(normalize(text, limit)) <= limit


def test_truncation_does_not_split_words():
    text = " ".join(["python", "django", "postgres"] * 50)
    result = normalize(text, 100)
    assert set(result.split()) <= {"python", "django", "postgres"}


def test_hard_cut_when_no_space_in_lookback_window():
    assert truncate_at_word("a" * 50, 10) == "a" * 10
    assert truncate_at_word("word " + "b" * 300, 250, lookback=100) == ("word " + "b" * 300)[:250]


def test_normalize_is_idempotent():
    raw = "JOHN  SMITH\n• Python • SQL…  " + "details " * 200
    once = normalize(raw, 300)
    assert normalize(once, 300) == once


def test_negative_max_length_is_rejected():
    with pytest.raises(ValueError):
        truncate_at_word("text", -1)


def test_clean_lines_keeps_line_breaks():
    assert clean_lines("Jane  Doe\n\n  • Python\t SQL \n") == "Jane Doe\n| Python SQL"


def test_truncation_may_cut_at_a_line_break():
    assert truncate_at_word("Summary\nBackend", 10) == "Summary"
