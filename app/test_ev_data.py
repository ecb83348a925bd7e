import pytest
import requests

import ev_data
from aggregations import aggregate
from ev_data import DashboardDataError, NetworkError, ParseError, fetch_csv, load_records, parse_csv

csv_contents = """VIN (1-10),County,City,State,Postal Code,Model Year,Make,Model,Electric Vehicle Type,Clean Alternative Fuel Vehicle Eligibility,Electric Range
5YJ3E1EB4L,Yakima,Yakima,WA,98908,2020,TESLA,MODEL 3,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,322
5YJ3E1EA7K,San Diego,San Diego,CA,92101,2019,TESLA,MODEL 3,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,220
7JRBR0FL9M,Lane,Eugene,OR,97401,2021,VOLVO,S60,Plug-in Hybrid Electric Vehicle (PHEV),Not eligible due to low battery range,22
1N4AZ0CP4F,Snohomish,Everett,WA,98201,2015,NISSAN,LEAF,Battery Electric Vehicle (BEV),Clean Alternative Fuel Vehicle Eligible,84
"""

csv_contents_trailing_bad_row = csv_contents + "WDC0G5EB0K,Yakima,Naches,WA\n"


def make_response(body: bytes, status_code: int = 200, content_type: str = "text/csv") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    resp.headers["Content-Type"] = content_type
    resp._content = body
    resp.url = "https://example.test/ev.csv"
    return resp


class TestParseCsv:

    def test_rows_become_records_keyed_by_header(self):
        records = parse_csv(csv_contents)
        assert len(records) == 4
        assert records[0]["City"] == "Yakima"
        assert records[0]["Make"] == "TESLA"
        assert records[2]["Electric Vehicle Type"] == "Plug-in Hybrid Electric Vehicle (PHEV)"
        assert list(records[3].keys())[:4] == ["VIN (1-10)", "County", "City", "State"]

    def test_quoted_fields_keep_their_commas(self):
        text = 'State,City,Make\nWA,"Seattle, King",TESLA\n'
        assert parse_csv(text) == [{"State": "WA", "City": "Seattle, King", "Make": "TESLA"}]

    def test_blank_lines_are_skipped(self):
        text = "State,Make\n\nWA,TESLA\n\nCA,NISSAN\n\n"
        assert parse_csv(text) == [
            {"State": "WA", "Make": "TESLA"},
            {"State": "CA", "Make": "NISSAN"},
        ]

    def test_byte_order_mark_is_not_part_of_the_header(self):
        assert parse_csv("\ufeffState,Make\nWA,TESLA\n") == [{"State": "WA", "Make": "TESLA"}]

    def test_empty_text_has_no_records(self):
        assert parse_csv("") == []

    def test_header_only(self):
        assert parse_csv("State,City,Make\n") == []

    def test_trailing_malformed_row_discards_everything(self):
        with pytest.raises(ParseError) as excinfo:
            parse_csv(csv_contents_trailing_bad_row)
        assert excinfo.value.errors == [(6, 11, 4)]
        assert "expected 11 fields but parsed 4" in str(excinfo.value)

    def test_every_bad_row_is_reported(self):
        text = "State,Make\nWA\nCA,TESLA\nOR,FORD,extra\n"
        with pytest.raises(ParseError) as excinfo:
            parse_csv(text)
        assert excinfo.value.errors == [(2, 2, 1), (4, 2, 3)]

    def test_parse_error_is_a_dashboard_error(self):
        with pytest.raises(DashboardDataError):
            parse_csv("State,Make\nWA\n")


class TestFetchCsv:

    def test_reads_local_file(self, tmp_path):
        path = tmp_path / "ev.csv"
        path.write_text(csv_contents, encoding="utf-8")
        assert fetch_csv(str(path)) == csv_contents

    def test_file_byte_order_mark_is_dropped(self, tmp_path):
        path = tmp_path / "ev.csv"
        path.write_text("State,City,Make\nWA,Seattle,TESLA\n", encoding="utf-8-sig")
        records = parse_csv(fetch_csv(str(path)))
        assert list(records[0]) == ["State", "City", "Make"]
        assert aggregate(records).state == {"WA": 1}

    def test_missing_file_is_a_network_error(self, tmp_path):
        with pytest.raises(NetworkError):
            fetch_csv(str(tmp_path / "missing.csv"))

    def test_static_path_resolves_against_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / "Electric_Vehicle_Population_Data.csv").write_text(csv_contents, encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert fetch_csv("/Electric_Vehicle_Population_Data.csv") == csv_contents

    def test_fetches_url(self, monkeypatch):
        calls = []

        def fake_get(url):
            calls.append(url)
            return make_response(csv_contents.encode("utf-8"))

        monkeypatch.setattr(ev_data.requests, "get", fake_get)
        assert fetch_csv("https://example.test/ev.csv") == csv_contents
        assert calls == ["https://example.test/ev.csv"]

    def test_url_body_without_charset_is_read_as_utf8(self, monkeypatch):
        body = "State,City,Make\nPR,Bayam\u00f3n,NISSAN\n".encode("utf-8")
        monkeypatch.setattr(ev_data.requests, "get", lambda url: make_response(body))
        records = parse_csv(fetch_csv("https://example.test/ev.csv"))
        assert records == [{"State": "PR", "City": "Bayam\u00f3n", "Make": "NISSAN"}]

    def test_url_body_byte_order_mark_is_dropped(self, monkeypatch):
        body = "State,City,Make\nWA,Seattle,TESLA\n".encode("utf-8-sig")
        monkeypatch.setattr(ev_data.requests, "get", lambda url: make_response(body))
        assert parse_csv(fetch_csv("https://example.test/ev.csv"))[0]["State"] == "WA"

    def test_non_utf8_body_is_a_parse_error(self, monkeypatch):
        monkeypatch.setattr(ev_data.requests, "get", lambda url: make_response(b"State\n\xff\xfe\xfa\n"))
        with pytest.raises(ParseError):
            fetch_csv("https://example.test/ev.csv")

    def test_http_error_status_is_a_network_error(self, monkeypatch):
        monkeypatch.setattr(ev_data.requests, "get", lambda url: make_response(b"", status_code=404))
        with pytest.raises(NetworkError):
            fetch_csv("https://example.test/ev.csv")

    def test_connection_failure_is_a_network_error(self, monkeypatch):
        def fake_get(url):
            raise requests.exceptions.ConnectionError("connection refused")

        monkeypatch.setattr(ev_data.requests, "get", fake_get)
        with pytest.raises(NetworkError) as excinfo:
            fetch_csv("http://example.test/ev.csv")
        assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)


def test_load_records(tmp_path):
    path = tmp_path / "ev.csv"
    path.write_text(csv_contents, encoding="utf-8")
    records = load_records(str(path))
    assert [r["State"] for r in records] == ["WA", "CA", "OR", "WA"]
