import pytest

from app.models.schemas import Record
from app.services.errors import InputNotFoundError, InputParseError
from app.services.identity import find_duplicate_identities, identity_of
from app.services.record_source import load_records
from conftest import make_row


def test_positions_are_one_based_and_ordered(recordings_csv):
    records = load_records(recordings_csv)

    assert len(records) == 300
    assert [r.position for r in records[:3]] == [1, 2, 3]
    assert records[221].position == 222
    assert records[221].topic == "Session 222"
    assert records[221].identity == "uuid-222=="


def test_missing_file_raises_not_found(tmp_path):
    with pytest.raises(InputNotFoundError):
        load_records(str(tmp_path / "nope.csv"))


def test_empty_file_raises_parse_error(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(InputParseError):
        load_records(str(path))


def test_headerless_file_raises_parse_error(tmp_path):
    path = tmp_path / "headerless.csv"
    path.write_text("81234,abc==,Algebra,coach@example.com,2025-06-01T10:00:00Z\n"
                    "81235,def==,Geometry,coach@example.com,2025-06-02T10:00:00Z\n")
    with pytest.raises(InputParseError, match="expected columns"):
        load_records(str(path))


def test_row_with_too_many_fields_raises_parse_error(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("uuid,topic\n"
                    "abc==,Algebra\n"
                    "def==,Geometry,extra,more\n")
    with pytest.raises(InputParseError):
        load_records(str(path))


def test_blank_header_column_raises_parse_error(tmp_path):
    path = tmp_path / "blank.csv"
    path.write_text("uuid,,topic\nabc==,x,Algebra\n")
    with pytest.raises(InputParseError, match="blank column"):
        load_records(str(path))


def test_duplicate_recognized_column_raises_parse_error(tmp_path):
    path = tmp_path / "dup.csv"
    path.write_text("uuid,topic,uuid\nabc==,Algebra,def==\n")
    with pytest.raises(InputParseError, match="duplicate"):
        load_records(str(path))


def test_duplicate_extra_column_raises_parse_error(tmp_path):
    path = tmp_path / "dup_notes.csv"
    path.write_text("uuid,notes,notes\nabc==,x,y\n")
    with pytest.raises(InputParseError, match="duplicate column 'notes'"):
        load_records(str(path))


def test_column_names_ending_in_digits_are_kept(tmp_path):
    path = tmp_path / "versions.csv"
    path.write_text("uuid,topic,version.1\nabc==,Algebra,2\n")
    [record] = load_records(str(path))

    assert record.row["version.1"] == "2"


def test_values_are_trimmed_and_strings_kept(tmp_path):
    path = tmp_path / "spaces.csv"
    path.write_text(" uuid , meeting_id ,topic\n  abc==  , 00123 ,  Algebra  \n")
    [record] = load_records(str(path))

    assert record.identity == "abc=="
    # Leading zeros survive because nothing is parsed as a number
    assert record.meeting_id == "00123"
    assert record.topic == "Algebra"


def test_extra_and_missing_optional_columns_are_tolerated(write_csv):
    path = write_csv(
        [{"uuid": "abc==", "topic": "Algebra", "recording_count": "3"}],
        header=["uuid", "topic", "recording_count"]
    )
    [record] = load_records(path)

    assert record.row["recording_count"] == "3"
    assert record.host_email == ""
    assert record.start_time == ""


def test_short_rows_are_padded(tmp_path):
    path = tmp_path / "short.csv"
    path.write_text("topic,uuid,uuid_base64\nAlgebra\n")
    [record] = load_records(str(path))

    assert record.topic == "Algebra"
    assert record.identity is None


def test_blank_lines_and_bom_are_ignored(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffuuid,topic\nabc==,Algebra\n\n\ndef==,Geometry\n".encode("utf-8"))
    records = load_records(str(path))

    assert [r.identity for r in records] == ["abc==", "def=="]
    assert [r.position for r in records] == [1, 2]


def test_header_only_file_has_no_records(write_csv):
    assert load_records(write_csv([])) == []


def test_identity_prefers_uuid_then_base64():
    assert identity_of({"uuid": "abc==", "uuid_base64": "b64"}) == "abc=="
    assert identity_of({"uuid": "  ", "uuid_base64": "b64"}) == "b64"
    assert identity_of({"uuid_base64": "b64"}) == "b64"
    assert identity_of({"uuid": "", "uuid_base64": ""}) is None
    assert identity_of({"topic": "Algebra"}) is None


def test_identity_of_accepts_records():
    record = Record(position=1, row=make_row(1, uuid="", uuid_base64="b64=="))
    assert identity_of(record) == "b64=="


def test_find_duplicate_identities(write_csv):
    rows = [make_row(1), make_row(2, uuid="uuid-001=="), make_row(3), make_row(4, uuid="")]
    records = load_records(write_csv(rows))

    assert find_duplicate_identities(records) == ["uuid-001=="]
