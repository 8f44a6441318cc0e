from __future__ import annotations

import io
import json

from copper.control.estimator import FilterState
from copper.log.buffer import LogEntry
from copper.log.sinks import LOG_COLUMNS, JsonlLogSink, TextLogSink


def _entry() -> LogEntry:
    fs = FilterState(
        x_hat_minus=0.2, x_hat=19.5, p_minus=1.00001, h=6.0,
        k=0.1666, p=0.0016, q=0.00001, r=0.01,
    )
    return LogEntry(
        id=7,
        user_tag=42,
        constraint_achieved=120.0,
        filter_state=fs,
        workload=0.05,
        u=5.0,
        e=-20.0,
        cost=50.0,
    )


def test_text_header_layout():
    out = io.StringIO()
    TextLogSink(out).write_header()
    line = out.getvalue()
    assert line == " ".join(c.rjust(16) for c in LOG_COLUMNS) + "\n"
    assert line.split() == [
        "ID", "USER_TAG", "CONSTRAINT",
        "X_HAT_MINUS", "X_HAT", "P_MINUS", "H", "K", "P",
        "WORKLOAD", "XUP", "ERROR", "COST",
    ]


def test_text_record_layout():
    out = io.StringIO()
    TextLogSink(out).write_record(_entry())
    line = out.getvalue()

    assert line.endswith("\n")
    # 13 right-aligned 16-wide columns separated by single spaces
    assert len(line) == 13 * 16 + 12 + 1
    fields = line.split()
    assert fields[0] == "7"
    assert fields[1] == "42"
    assert fields[2] == "120.000000"
    assert fields[4] == "19.500000"
    assert fields[10] == "5.000000"
    assert fields[11] == "-20.000000"
    assert fields[12] == "50.000000"


def test_jsonl_header_and_record():
    out = io.StringIO()
    sink = JsonlLogSink(out)
    sink.write_header()
    sink.write_record(_entry())

    header, record = [json.loads(line) for line in out.getvalue().splitlines()]
    assert header == {"columns": list(LOG_COLUMNS)}
    assert set(record) == set(LOG_COLUMNS)
    assert record["ID"] == 7
    assert record["USER_TAG"] == 42
    assert record["X_HAT"] == 19.5
    assert record["COST"] == 50.0


def test_entry_as_record_column_order():
    assert list(_entry().as_record()) == list(LOG_COLUMNS)
