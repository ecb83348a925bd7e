# ============================================================
# EV Population Data: loading & CSV parsing
# ============================================================

import csv
import io
import logging
import os
from typing import Dict, List, Tuple

import requests

log = logging.getLogger(__name__)

# ------------------------------------------------------------
# File Paths & Columns
# ------------------------------------------------------------
DATA_SOURCE = "data/Electric_Vehicle_Population_Data.csv"

STATE = "State"
CITY = "City"
MODEL_YEAR = "Model Year"
EV_TYPE = "Electric Vehicle Type"
CAFV = "Clean Alternative Fuel Vehicle Eligibility"
# Column name used by the published Washington State dataset
CAFV_PUBLISHED = "Clean Alternative Fuel Vehicle (CAFV) Eligibility"
MAKE = "Make"

REQUIRED_COLUMNS = (STATE, CITY, MODEL_YEAR, EV_TYPE, CAFV, MAKE)

Record = Dict[str, str]


# ------------------------------------------------------------
# Errors
# ------------------------------------------------------------
class DashboardDataError(Exception):
    """Base class for anything that stops the dashboard from loading."""


class NetworkError(DashboardDataError):
    pass


class ParseError(DashboardDataError):
    """Raised when any row of the CSV is malformed.

    `errors` holds one (line number, expected fields, actual fields) tuple per
    bad row.
    """

    def __init__(self, errors: List[Tuple[int, int, int]], message: str = "") -> None:
        self.errors = list(errors)
        if not message:
            message = "; ".join(
                f"line {line}: expected {expected} fields but parsed {actual}"
                for line, expected, actual in self.errors
            )
        super().__init__(message)


# ------------------------------------------------------------
# Loader
# ------------------------------------------------------------
def _resolve_path(source: str) -> str:
    # "/file.csv" is a static path relative to where the app is served from
    if source.startswith("/") and not os.path.exists(source):
        return os.path.join(os.getcwd(), source.lstrip("/"))
    return source


def fetch_csv(source: str = DATA_SOURCE) -> str:
    """Return the raw CSV text behind `source` (an http(s) URL or a file path)."""
    log.info("Fetching EV population data from %s", source)
    if source.startswith(("http://", "https://")):
        try:
            resp = requests.get(source)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to fetch {source}: {e}") from e
        # servers rarely send a charset for text/csv; the dataset is UTF-8
        try:
            return resp.content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError([], f"{source} is not UTF-8: {e}") from e

    try:
        with open(_resolve_path(source), "r", encoding="utf-8-sig", newline="") as f:
            return f.read()
    except OSError as e:
        raise NetworkError(f"Failed to read {source}: {e}") from e
    except UnicodeDecodeError as e:
        raise ParseError([], f"{source} is not UTF-8: {e}") from e


# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------
def parse_csv(text: str) -> List[Record]:
    """Parse CSV text into one record per data row, keyed by the header row.

    Blank lines are skipped. A single malformed row rejects the whole file.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header: List[str] = []
    records: List[Record] = []
    errors: List[Tuple[int, int, int]] = []

    try:
        for row in reader:
            if not row:
                continue
            if not header:
                header = row
                continue
            if len(row) != len(header):
                errors.append((reader.line_num, len(header), len(row)))
                continue
            records.append(dict(zip(header, row)))
    except csv.Error as e:
        raise ParseError([], f"line {reader.line_num}: {e}") from e

    if errors:
        raise ParseError(errors)

    present = set(header)
    if CAFV_PUBLISHED in present:
        present.add(CAFV)
    missing = [c for c in REQUIRED_COLUMNS if c not in present]
    if header and missing:
        log.warning("CSV header is missing columns: %s", ", ".join(missing))

    log.info("Parsed %d EV records", len(records))
    return records


def load_records(source: str = DATA_SOURCE) -> List[Record]:
    return parse_csv(fetch_csv(source))
