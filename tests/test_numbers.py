import pytest

from utils.numbers import extract_numbers, get_ordinal_suffix


@pytest.mark.parametrize("number, suffix", [
    (1, "ST"), (2, "ND"), (3, "RD"), (4, "TH"),
    (11, "TH"), (12, "TH"), (13, "TH"),
    (21, "ST"), (22, "ND"), (23, "RD"),
    (100, "TH"), (101, "ST"), (111, "TH"), (112, "TH"), (113, "TH"),
])
def test_ordinal_suffix_table(number, suffix):
    assert get_ordinal_suffix(number) == suffix


def test_extract_numbers_reads_digits_inside_words():
    assert extract_numbers("Happy 40th Birthday") == [40]


def test_extract_numbers_reads_written_numbers():
    assert extract_numbers("Happy Fortieth birthday") == [40]
    assert extract_numbers("turning twenty-one") == [21]


def test_extract_numbers_ignores_out_of_range_and_dedupes():
    assert extract_numbers("Class of 2024, 5 and five 0") == [5]


def test_extract_numbers_empty_message():
    assert extract_numbers("") == []
    assert extract_numbers(None) == []
