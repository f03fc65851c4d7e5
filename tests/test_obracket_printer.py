import pytest

from obracket.obracket_printer import Printer, bind, supports_binding, is_identifier
from obracket.obracket_datatypes import ParamsError


@pytest.fixture
def printer():
    return Printer()


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("str", "hello", '"hello"'),
    ("str_escapes", 'say "hi" \\ bye', '"say \\"hi\\" \\\\ bye"'),
    ("int", 123, "123"),
    ("float", -1.5, "-1.5"),
    ("float_inf", float("inf"), "+inf.0"),
    ("float_neg_inf", float("-inf"), "-inf.0"),
    ("float_nan", float("nan"), "+nan.0"),
    ("nested_inf", [1.0, float("inf")], "'(1.0 +inf.0)"),
    ("bool_true", True, "#t"),
    ("bool_false", False, "#f"),
    ("none", None, "'()"),
    ("list", [1, 2, 3], "'(1 2 3)"),
    ("tuple", (1, "a"), "'(1 \"a\")"),
    ("empty_list", [], "'()"),
    ("nested_list", [[1, 2], [None, 4]], "'((1 2) (() 4))"),
    ("alist", {"a": 1}, "'((\"a\" . 1))"),
]


@pytest.mark.parametrize("test_id, obj, expected", FORMAT_TEST_CASES, ids=[c[0] for c in FORMAT_TEST_CASES])
def test_pformat(printer, test_id, obj, expected):
    assert printer.pformat(obj) == expected


def test_bind_scalar_and_sequence_in_order():
    text = bind([("x", 1), ("ys", [1, 2, "z"]), ("name", "bob")])
    assert text == "(define-values (x ys name) (values 1 '(1 2 \"z\") \"bob\"))"


def test_bind_non_finite_floats():
    text = bind([("lo", float("-inf")), ("hi", float("inf"))])
    assert text == "(define-values (lo hi) (values -inf.0 +inf.0))"


def test_bind_empty():
    assert bind([]) == ""
    assert bind(None) == ""


@pytest.mark.parametrize("name", ["bad name", "(x)", "12", "", "#x", 'q"'])
def test_bind_rejects_invalid_identifiers(name):
    with pytest.raises(ParamsError):
        bind([(name, 1)])


@pytest.mark.parametrize("name", ["x", "list->vector", "a-b", "x1", "set!", "λ"])
def test_valid_identifiers(name):
    assert is_identifier(name)


@pytest.mark.parametrize("lang, ok", [
    ("racket", True),
    ("racket/base", True),
    ("typed/racket", True),
    ("scheme", True),
    ("datalog", False),
    ("scribble/manual", False),
])
def test_supports_binding(lang, ok):
    assert supports_binding(lang) is ok
