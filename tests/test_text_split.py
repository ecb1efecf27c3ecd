from srtalign.text_split import (
    has_dangling_formatting,
    has_long_line,
    has_unbalanced_brackets,
    is_splittable,
    normalize_line_breaks,
    normalize_whitespace,
    split_balanced,
    split_line_to_fit,
)


def test_split_balanced_picks_closest_boundary():
    split = split_balanced("one two three four")
    assert split.first_part == "one two"
    assert split.second_part == "three four"
    assert split.first_ratio == 7 / 17


def test_split_balanced_conserves_words():
    text = "Hello there, how are you\ndoing today"
    split = split_balanced(text)
    assert f"{split.first_part} {split.second_part}" == "Hello there, how are you doing today"
    assert 0 < split.first_ratio < 1


def test_single_word_is_not_split():
    split = split_balanced("Supercalifragilistic")
    assert split == ("Supercalifragilistic", "", 1.0)


def test_is_splittable():
    assert not is_splittable("Hi there")
    assert not is_splittable("Supercalifragilistic")
    assert is_splittable("Hello there friend")


def test_split_line_to_fit():
    line = "The quick brown fox jumps over the lazy dog again"
    assert split_line_to_fit(line, 37) == ["The quick brown fox jumps", "over the lazy dog again"]
    assert split_line_to_fit("short line", 37) == ["short line"]


def test_has_long_line():
    assert has_long_line("short\n" + "x" * 38, 37)
    assert not has_long_line("short\nalso short", 37)


def test_normalize_whitespace():
    assert normalize_whitespace("a \n b\t c ") == "a b c"


def test_normalize_line_breaks_drops_blank_lines():
    assert normalize_line_breaks("a\n\nb") == "a\nb"
    assert normalize_line_breaks("a\r\n \t\r\nb") == "a\nb"
    assert normalize_line_breaks("\n  \ntext\n") == "text"
    assert normalize_line_breaks("keep  \n  indent") == "keep  \n  indent"
    assert normalize_line_breaks(" \n ") == ""


def test_dangling_formatting():
    assert has_dangling_formatting(", and then we left")
    assert has_dangling_formatting(") he said")
    assert has_dangling_formatting("and she said (")
    assert not has_dangling_formatting("Hello.")
    assert not has_dangling_formatting("   ")


def test_unbalanced_brackets():
    assert not has_unbalanced_brackets("(a [b] c)")
    assert has_unbalanced_brackets("(a]")
    assert has_unbalanced_brackets("a)")
    assert has_unbalanced_brackets("(a")
