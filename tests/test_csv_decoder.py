import textwrap

from potluck.ingest import decode, split_csv_line
from potluck.models import SignupRecord


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n").rstrip()


# ---- split_csv_line ------------------------------------------------------------


def test_split_plain_fields():
    assert split_csv_line("Alex,Chips,2,salted") == ["Alex", "Chips", "2", "salted"]


def test_split_quoted_field_with_comma():
    assert split_csv_line('Alex,"Chips, salted",2,') == ["Alex", "Chips, salted", "2", ""]


def test_split_escaped_quote_inside_quotes():
    assert split_csv_line('"a,b""c"') == ['a,b"c']


def test_split_empty_fields_and_trailing_comma():
    assert split_csv_line(",,") == ["", "", ""]
    assert split_csv_line("") == [""]


def test_split_keeps_whitespace_for_caller_to_trim():
    assert split_csv_line(' Alex , "Chips" ') == [" Alex ", ' Chips ']


# ---- decode --------------------------------------------------------------------


def test_decode_fewer_than_two_lines_is_empty():
    assert decode("") == []
    assert decode("   \n  ") == []
    assert decode("name,item,qty,note,createdAt") == []
    assert decode("name,item,qty,note,createdAt\n") == []


def test_decode_reverses_row_order_and_trims_values():
    text = _dedent(
        """
        name,item,qty,note,createdAt
        Alex , Chips ,2 paquets,,2024-01-01T10:00:00Z
        Sam,Cups,,"plastic, please",2024-01-02T10:00:00Z
        """
    )

    rows = decode(text)

    assert rows == [
        SignupRecord("Sam", "Cups", "", "plastic, please", "2024-01-02T10:00:00Z"),
        SignupRecord("Alex", "Chips", "2 paquets", "", "2024-01-01T10:00:00Z"),
    ]


def test_decode_strips_byte_order_mark():
    text = "\ufeffname,item,qty,note,createdAt\nAlex,Chips,,,\n"

    rows = decode(text)

    assert [(r.name, r.item) for r in rows] == [("Alex", "Chips")]


def test_decode_handles_crlf_line_endings():
    text = "name,item\r\nAlex,Chips\r\nSam,Cups\r\n"
    assert [r.name for r in decode(text)] == ["Sam", "Alex"]


def test_decode_drops_rows_without_name_and_item():
    text = _dedent(
        """
        name,item,qty,note,createdAt
        ,,3,orphan note,2024-01-01T00:00:00Z
        "  ","  ",,,
        Alex,,,,
        ,Chips,,,
        """
    )

    rows = decode(text)

    assert [(r.name, r.item) for r in rows] == [("", "Chips"), ("Alex", "")]
    assert all(r.name or r.item for r in rows)


def test_decode_ignores_unknown_headers_and_defaults_missing_ones():
    text = _dedent(
        """
        Timestamp , item,name,extra
        ignored,Chips,Alex,whatever
        """
    )

    (row,) = decode(text)

    assert row == SignupRecord(name="Alex", item="Chips", qty="", note="", created_at="")


def test_decode_headers_are_case_sensitive():
    text = "Name,Item\nAlex,Chips\n"
    assert decode(text) == []


def test_decode_short_rows_read_missing_cells_as_empty():
    text = "name,item,qty,note,createdAt\nAlex,Chips\n"
    assert decode(text) == [SignupRecord("Alex", "Chips", "", "", "")]


def test_decode_quoted_escape_round_trip_in_note():
    text = 'name,item,note\nAlex,Chips,"a,b""c"\n'
    (row,) = decode(text)
    assert row.note == 'a,b"c'


def test_decoded_record_serializes_with_sheet_column_names():
    (row,) = decode("name,item,qty,note,createdAt\nAlex,Chips,2,bio,2024-01-01T00:00:00Z\n")
    assert row.as_dict() == {
        "name": "Alex",
        "item": "Chips",
        "qty": "2",
        "note": "bio",
        "createdAt": "2024-01-01T00:00:00Z",
    }
