from codesheet.export import encode_csv
from codesheet.parser import parse

RECORDS = [{"a": "x,y", "b": 'say "hi"', "c": 3, "d": True}]


def test_quoting():
    assert encode_csv(RECORDS) == 'a,b,c,d\n"x,y","say ""hi""",3,true\n'


def test_parse_reads_back_what_encode_writes():
    ds = parse(encode_csv(RECORDS))
    assert list(ds.records) == RECORDS


def test_column_selection_and_missing_cells():
    records = [{"a": 1, "b": 2.0}, {"a": 2}]
    assert encode_csv(records, columns=["b", "a"]) == "b,a\n2,1\n,2\n"


def test_floats_are_written_without_exponents():
    records = [{"a": 1e-07, "b": 0.5, "c": 1.5e20}]
    text = encode_csv(records)

    assert text == "a,b,c\n0.0000001,0.5,150000000000000000000\n"
    assert list(parse(text).records) == records
