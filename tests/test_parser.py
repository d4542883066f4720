import pytest

from codesheet.errors import EmptyInputError, NoDataError, NoHeaderError, NoRowsError, RowParseError
from codesheet.parser import (
    canonical_header,
    coerce_cell,
    describe_text,
    parse,
    parse_bytes,
    parse_number,
    tokenize_row,
)


def test_tokenize_quoted_fields():
    assert tokenize_row('a,"b,c","d""e"') == ["a", "b,c", 'd"e']


def test_tokenize_strips_whitespace_around_quotes():
    assert tokenize_row('  x , "y" ,z  ') == ["x", "y", "z"]


def test_tokenize_unterminated_quote_raises():
    with pytest.raises(RowParseError):
        tokenize_row('a,"b', row=4)


@pytest.mark.parametrize("raw", ["10'", "10 ft", "10SF", "10%", '10"', "10 feet", "10 sq. ft.", "10 Sq Ft"])
def test_numbers_with_units(raw):
    assert coerce_cell(raw) == 10


def test_coerce_keeps_non_numeric_text():
    assert coerce_cell("abc") == "abc"
    assert coerce_cell("R-5") == "R-5"
    assert coerce_cell("26-50") == "26-50"
    assert coerce_cell("") == ""


def test_coerce_numbers_and_booleans():
    assert coerce_cell("12.5") == 12.5
    assert isinstance(coerce_cell("12"), int)
    assert coerce_cell("-3") == -3
    assert coerce_cell("TRUE") is True
    assert coerce_cell("false") is False


def test_parse_number_rejects_thousands_separator():
    assert parse_number("3,000 SF") is None
    assert parse_number(True) is None
    assert parse_number(7.5) == 7.5


def test_canonical_header():
    assert canonical_header("Front Setback (ft)") == "front_setback_ft"
    assert canonical_header("Max  FAR") == "max_far"
    assert canonical_header("zoning_district") == "zoning_district"


def test_parse_basic_table():
    ds = parse("Zoning District,Max FAR,Height\nR-5 Residential,0.5,30 ft\n")

    assert ds.headers == ("zoning_district", "max_far", "height")
    assert ds.original_headers["zoning_district"] == "Zoning District"
    assert ds.records == ({"zoning_district": "R-5 Residential", "max_far": 0.5, "height": 30},)


def test_literal_headers_never_become_record_keys():
    ds = parse("Zoning District,FAR\nR-5,0.5\n")
    assert set(ds.records[0]) == {"zoning_district", "far"}


def test_line_endings_and_blank_rows():
    ds = parse("a,b\r\n1,2\r3,4\n\n   \n5,6")
    assert len(ds) == 3


def test_short_rows_are_padded():
    ds = parse("a,b,c\n1\n")
    assert ds.records[0] == {"a": 1, "b": "", "c": ""}


def test_long_rows_keep_header_width_and_warn():
    ds = parse("a,b\n1,2,3\n")
    assert ds.records[0] == {"a": 1, "b": 2}
    assert ds.warnings[0].row == 2


def test_bad_row_is_skipped_not_fatal():
    ds = parse('a,b\n1,2\n3,"unterminated\n4,5\n')

    assert len(ds) == 2
    assert [r["a"] for r in ds.records] == [1, 4]
    assert len(ds.skipped_rows) == 1
    assert ds.skipped_rows[0].row == 3


def test_duplicate_and_blank_headers_get_unique_keys():
    ds = parse("Height,height,\n1,2,3\n")
    assert ds.headers == ("height", "height_2", "column_3")


@pytest.mark.parametrize(
    "text,error",
    [
        ("", EmptyInputError),
        (None, EmptyInputError),
        (b"a,b", EmptyInputError),
        ("  \n\r\n  ", NoRowsError),
        ('"",""\n1,2\n', NoHeaderError),
        ('a,"b\n1,2\n', NoHeaderError),
        ("a,b\n", NoDataError),
        ('a,b\n"x,1\n"y,2\n', NoDataError),
    ],
)
def test_structural_errors(text, error):
    with pytest.raises(error):
        parse(text)


def test_parse_bytes_consumes_bom():
    ds, encoding = parse_bytes(b"\xef\xbb\xbfcounty,use_type\nhonolulu,retail\n")
    assert ds.headers[0] == "county"
    assert encoding["decode_used"] == "utf-8-sig"


def test_parse_bytes_latin1():
    raw = "name,city\nPaul,Montréal\n".encode("latin-1")
    ds, encoding = parse_bytes(raw)
    assert ds.headers == ("name", "city")
    assert ds.records[0]["city"].startswith("Montr")
    assert encoding["decode_used"]


def test_parse_bytes_empty():
    with pytest.raises(EmptyInputError):
        parse_bytes(b"")


def test_describe_text():
    info = describe_text('a,b\n1,"x,y"\n')
    assert info["summary"] == "2 rows, 2 columns in header"
    assert info["first_row"] == "a,b"
    assert info["first_rows"][1] == ["1", "x,y"]


def test_inch_marks_are_literal_text():
    assert tokenize_row('B,10",5\'6"') == ["B", '10"', "5'6\""]

    ds = parse('occupancy,height\nB,10"\nM,12\n')
    assert [r["height"] for r in ds.records] == [10, 12]
    assert ds.skipped_rows == ()


def test_quote_opens_only_at_field_start():
    assert tokenize_row('a"b,"c"d') == ['a"b', "cd"]


def test_escaped_edge_quotes_are_kept():
    assert tokenize_row('"""hi""",x') == ['"hi"', "x"]
    assert parse('a\n"""hi"""\n').records[0]["a"] == '"hi"'
