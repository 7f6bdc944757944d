from certgen.layout import LayoutResult, wrap_text

from tests.conftest import char_width


def test_short_text_stays_on_one_line():
    result = wrap_text("ANA LEE", char_width, 100)
    assert result.lines == ("ANA LEE",)
    assert result.line_count == 1


def test_breaks_before_exceeding_max_width():
    # "aaa bbb" is 70px, "aaa bbb ccc" is 110px
    result = wrap_text("aaa bbb ccc ddd", char_width, 80)
    assert result.lines == ("aaa bbb", "ccc ddd")
    assert result.text == "aaa bbb\nccc ddd"


def test_candidate_equal_to_max_width_fits():
    result = wrap_text("abcd efgh", char_width, 90)
    assert result.lines == ("abcd efgh",)


def test_overwide_word_sits_alone():
    result = wrap_text("hi supercalifragilistic yo", char_width, 50)
    assert result.lines == ("hi", "supercalifragilistic", "yo")


def test_overwide_first_word_has_no_empty_line_before_it():
    result = wrap_text("supercalifragilistic yo", char_width, 50)
    assert result.lines == ("supercalifragilistic", "yo")
    assert all(result.lines)


def test_empty_input_yields_zero_lines():
    for text in ("", "   ", "\n\t"):
        result = wrap_text(text, char_width, 100)
        assert result == LayoutResult(())
        assert result.line_count == 0
        assert result.text == ""


def test_wrap_is_deterministic():
    text = "the quick brown fox jumps over the lazy dog " * 3
    assert wrap_text(text, char_width, 120) == wrap_text(text, char_width, 120)


def test_word_order_preserved_and_whitespace_normalized():
    text = "  young   coders\tsummer\nschool of   the arts "
    result = wrap_text(text, char_width, 110)
    assert " ".join(result.lines) == " ".join(text.split())


def test_every_multi_word_line_respects_width():
    text = "a bb ccc dddd eeeee ffffffffffffffff gg hhh"
    result = wrap_text(text, char_width, 60)
    for line in result.lines:
        assert char_width(line) <= 60 or " " not in line


def test_measure_sees_trimmed_candidates():
    seen = []

    def measure(candidate):
        seen.append(candidate)
        return char_width(candidate)

    wrap_text("one two", measure, 1000)
    assert seen == ["one", "one two"]
