# ============================================================
# Aggregations: one pass over the records, six count tables
# ============================================================

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from ev_data import (
    CAFV,
    CAFV_PUBLISHED,
    CITY,
    DATA_SOURCE,
    EV_TYPE,
    MAKE,
    MODEL_YEAR,
    STATE,
    DashboardDataError,
    Record,
    load_records,
)

log = logging.getLogger(__name__)

LOADING = "loading"
LOADED = "loaded"

TRACKED_MAKES = ("TESLA", "NISSAN")
OTHER_MAKE = "Other"
MAKE_BUCKETS = TRACKED_MAKES + (OTHER_MAKE,)

CountTable = Mapping[str, int]


def _frozen(table: Dict[str, int]) -> CountTable:
    return MappingProxyType(dict(table))


def _empty_make_table() -> CountTable:
    return _frozen({bucket: 0 for bucket in MAKE_BUCKETS})


@dataclass(frozen=True)
class CountTables:
    """Every breakdown shown on the dashboard, plus the record count behind them."""

    total: int = 0
    state: CountTable = field(default_factory=lambda: _frozen({}))
    city: CountTable = field(default_factory=lambda: _frozen({}))
    model_year: CountTable = field(default_factory=lambda: _frozen({}))
    ev_type: CountTable = field(default_factory=lambda: _frozen({}))
    cafv: CountTable = field(default_factory=lambda: _frozen({}))
    make: CountTable = field(default_factory=_empty_make_table)
    phase: str = LOADING

    @classmethod
    def empty(cls) -> "CountTables":
        return cls()

    @property
    def loaded(self) -> bool:
        return self.phase == LOADED


def classify_make(make: str) -> str:
    # Exact, case-sensitive match; every other manufacturer is pooled
    if make in TRACKED_MAKES:
        return make
    return OTHER_MAKE


def _cafv_value(record: Record) -> str:
    if CAFV in record:
        return record[CAFV]
    return record.get(CAFV_PUBLISHED, "")


def _bump(table: Dict[str, int], key: str) -> None:
    table[key] = table.get(key, 0) + 1


def aggregate(records: Iterable[Record]) -> CountTables:
    """Tally records into the six dashboard breakdowns in a single pass."""
    state: Dict[str, int] = {}
    city: Dict[str, int] = {}
    model_year: Dict[str, int] = {}
    ev_type: Dict[str, int] = {}
    cafv: Dict[str, int] = {}
    make: Dict[str, int] = {bucket: 0 for bucket in MAKE_BUCKETS}
    total = 0

    for record in records:
        total += 1
        _bump(state, record.get(STATE, ""))
        _bump(city, record.get(CITY, ""))
        _bump(model_year, record.get(MODEL_YEAR, ""))
        _bump(ev_type, record.get(EV_TYPE, ""))
        _bump(cafv, _cafv_value(record))
        make[classify_make(record.get(MAKE, ""))] += 1

    log.debug("Aggregated %d records into %d states, %d cities", total, len(state), len(city))

    return CountTables(
        total=total,
        state=_frozen(state),
        city=_frozen(city),
        model_year=_frozen(model_year),
        ev_type=_frozen(ev_type),
        cafv=_frozen(cafv),
        make=_frozen(make),
        phase=LOADED,
    )


def load_tables(source: str = DATA_SOURCE) -> CountTables:
    # Failures are logged and leave the dashboard on the empty snapshot
    try:
        records = load_records(source)
    except DashboardDataError as e:
        log.error("Error loading EV data: %s", e)
        return CountTables.empty()
    return aggregate(records)
