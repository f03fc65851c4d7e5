import pytest

from obracket import obracket_result
from obracket.obracket_result import TableReader, normalize, read_table, Symbol
from obracket.obracket_datatypes import Table
from obracket.obracket_params import BlockParams


def test_table_with_empty_sentinel():
    out = normalize("((1 2) (nil 4))", nil_to="N/A")
    assert isinstance(out, Table)
    assert out.rows == [[1, 2], ["N/A", 4]]
    assert len(out) == 2


def test_plain_text_is_scalar():
    assert normalize("hello world") == "hello world"


# Each entry: (test_id, text, expected rows)
READ_TEST_CASES = [
    ("flat", "(1 2 3)", [1, 2, 3]),
    ("quoted_output", "'((1 2) (3 4))\n", [[1, 2], [3, 4]]),
    ("strings", '(("a b" "c\\"d"))', [["a b", 'c"d']]),
    ("symbols", "((x y) (z nil))", [["x", "y"], ["z", "nil"]]),
    ("floats_and_signs", "(1.5 -2 +3 .5 1e3)", [1.5, -2, 3, 0.5, 1000.0]),
    ("booleans", "(#t #f #true #false)", [True, False, True, False]),
    ("empty", "()", []),
    ("nested_empty", "(() (1))", [[], [1]]),
    ("whitespace", "  (\n 1\t2 )  ", [1, 2]),
]


@pytest.mark.parametrize("test_id, text, expected", READ_TEST_CASES, ids=[c[0] for c in READ_TEST_CASES])
def test_read_table(test_id, text, expected):
    assert read_table(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "42",
    "\"just a string\"",
    "(1 2",
    "(1 2))",
    "((1 2) (3 4)) trailing",
    "(1 2)(3 4)",
    "#(1 2)",
])
def test_malformed_or_non_table_is_scalar(text):
    assert read_table(text) is None
    assert normalize(text) == text


def test_none_output_stays_none():
    assert normalize(None) is None


def test_string_nil_is_not_replaced():
    out = normalize('(nil "nil")', nil_to="-")
    assert out.rows == ["-", "nil"]


def test_symbols_are_marked():
    rows = read_table("(a \"a\")")
    assert isinstance(rows[0], Symbol)
    assert not isinstance(rows[1], Symbol)


def test_nil_replaced_at_every_depth():
    out = normalize("(nil (nil (nil)))", nil_to="")
    assert out.rows == ["", ["", [""]]]


def test_naming_hints_from_params():
    params = BlockParams.from_mapping({"colnames": ["a", "b"], "rownames": "yes"})
    out = normalize("((1 2))", params)
    assert out.colnames == ["a", "b"]
    assert out.rownames == "yes"
    assert out == Table([[1, 2]], colnames=["a", "b"], rownames="yes")


def test_naming_hints_from_mapping():
    out = normalize("((1 2))", {"colnames": "no"})
    assert out.colnames == "no"
    assert out.rownames is None


class BrokenGrammarParser:
    @classmethod
    def from_file(cls, path):
        raise FileNotFoundError(path)


def test_grammar_load_failure_is_not_hidden(monkeypatch):
    monkeypatch.setattr(TableReader, "_parser", None)
    monkeypatch.setattr(obracket_result, "Parser", BrokenGrammarParser)
    with pytest.raises(FileNotFoundError):
        read_table("(1 2)")
    with pytest.raises(FileNotFoundError):
        normalize("(1 2)")
