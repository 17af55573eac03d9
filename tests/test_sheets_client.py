from unittest.mock import MagicMock

import pytest

from app.services.sheets_client import SheetsClient, _column_letter


def sheets_service(responses):
    """Mock Sheets service whose values().get() answers by range."""
    service = MagicMock()

    def get(spreadsheetId, range):
        request = MagicMock()
        request.execute.return_value = {"values": responses[range]} if responses.get(range) is not None else {}
        return request

    service.spreadsheets.return_value.values.return_value.get.side_effect = get
    return service


def test_count_rows_excludes_header():
    service = sheets_service({"'Zoom API - Raw'!A:A": [["uuid"]] + [["x"]] * 12})

    assert SheetsClient("sheet-id", service=service).count_rows("Zoom API - Raw") == 12


def test_empty_tab_counts_zero():
    service = sheets_service({"'Empty'!A:A": None})

    assert SheetsClient("sheet-id", service=service).count_rows("Empty") == 0


def test_count_tabs():
    service = sheets_service({
        "'Zoom API - Raw'!A:A": [["uuid"], ["a"], ["b"]],
        "'Zoom API - Standardized'!A:A": [["uuid"], ["a"]]
    })

    counts = SheetsClient("sheet-id", service=service).count_tabs(["Zoom API - Raw", "Zoom API - Standardized"])

    assert [(c.tab, c.rows) for c in counts] == [("Zoom API - Raw", 2), ("Zoom API - Standardized", 1)]


def test_column_values_reads_named_column():
    service = sheets_service({
        "'Zoom API - Raw'!1:1": [["meeting_id", "topic", " uuid "]],
        "'Zoom API - Raw'!C2:C": [["a=="], [], [" "], ["b== "]]
    })

    values = SheetsClient("sheet-id", service=service).column_values("Zoom API - Raw", "uuid")

    assert values == ["a==", "b=="]


def test_column_values_missing_column():
    service = sheets_service({"'Tab'!1:1": [["topic"]]})

    with pytest.raises(ValueError, match="uuid"):
        SheetsClient("sheet-id", service=service).column_values("Tab", "uuid")


def test_spreadsheet_id_required():
    with pytest.raises(ValueError):
        SheetsClient("", service=MagicMock())


@pytest.mark.parametrize("index, letter", [(0, "A"), (2, "C"), (25, "Z"), (26, "AA"), (27, "AB"), (701, "ZZ"), (702, "AAA")])
def test_column_letter(index, letter):
    assert _column_letter(index) == letter
