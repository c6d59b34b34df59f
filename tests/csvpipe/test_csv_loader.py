import pytest

from payloadtools.csvpipe.loader import iter_row_values, parse_csv, read_csv_file, split_line
from payloadtools.errors import EmptyCSVError


def test_quoted_comma_preserved():
    doc = parse_csv('a,b\n1,"x,y"\n')
    assert doc.headers == ["a", "b"]
    assert doc.rows == [["1", "x,y"]]


def test_escaped_quote():
    doc = parse_csv('a\n"he said ""hi"""\n')
    assert doc.rows[0] == ['he said "hi"']


def test_ragged_rows_dropped():
    doc = parse_csv("a,b\n1\n3,4\n5,6,7\n")
    assert doc.rows == [["3", "4"]]


def test_bom_and_crlf():
    doc = parse_csv("\ufeffName,Amt\r\nBob,1.5\r\nAmy,2\r\n")
    assert doc.headers == ["Name", "Amt"]
    assert doc.rows == [["Bob", "1.5"], ["Amy", "2"]]


def test_headers_trimmed_and_unquoted():
    doc = parse_csv("\"Name\", 'Amt' ,City\nBob,1,X\n")
    assert doc.headers == ["Name", "Amt", "City"]


def test_fields_trimmed():
    doc = parse_csv("a, b \n 1 , 2 ")
    assert doc.rows == [["1", "2"]]


def test_duplicate_headers_made_unique():
    doc = parse_csv("a,a,b\n1,2,3\n")
    assert doc.headers == ["a", "a.1", "b"]
    assert doc.row_values(0) == {"a": "1", "a.1": "2", "b": "3"}


@pytest.mark.parametrize("text", ["", "   \n  ", "\ufeff"])
def test_empty_input_fails(text):
    with pytest.raises(EmptyCSVError):
        parse_csv(text)


def test_header_only():
    doc = parse_csv("a,b\n")
    assert doc.headers == ["a", "b"]
    assert doc.rows == []


def test_split_line_empty_fields():
    assert split_line("a,,c,") == ["a", "", "c", ""]


def test_read_file_and_row_values(tmp_path):
    p = tmp_path / "in.csv"
    p.write_text("\ufeffAmt,Email\n58.80,a@x.com\n1,b@x.com\n", encoding="utf-8")
    doc = read_csv_file(p)
    assert list(iter_row_values(doc)) == [
        {"Amt": "58.80", "Email": "a@x.com"},
        {"Amt": "1", "Email": "b@x.com"},
    ]
