# tests/test_display.py
from __future__ import annotations

import io
import json
import math

import pytest

from zaremba.display import (
    LATEX_HEADER,
    RecordPrinter,
    load_records_jsonl,
    print_statistics,
    records_to_latex,
)
from zaremba.fmt import (
    format_duration,
    format_factorization,
    format_float,
    format_record_line,
    format_single_line,
    strip_ansi,
)
from zaremba.output_manager import OutputManager
from zaremba.records import RecordEvent, scan_for_records
from zaremba.runtime import APPLY
from zaremba.utility import UserInputError

# ---------- helpers -----------------------------------------------------------


def _om(**kw) -> tuple[OutputManager, io.StringIO]:
    buf = io.StringIO()
    return OutputManager(stream=buf, **kw), buf


# ---------- fmt ---------------------------------------------------------------

def test_format_float_default_is_round_trip():
    assert format_float(0.6931471805599453) == "0.6931471805599453"
    assert format_float(math.nan) == "nan"
    assert format_float(math.inf) == "inf"


def test_format_float_fixed_digits_from_profile():
    APPLY({"FORMATTING": {"FLOAT_DIGITS": 4}})
    assert format_float(0.6931471805599453) == "0.6931"
    assert format_float(math.nan) == "nan"


def test_format_factorization():
    assert format_factorization({}) == "1"
    assert format_factorization({3: 1, 2: 3, 5: 2}) == "2^3 × 3 × 5^2"


def test_format_duration():
    assert format_duration(0.25) == "250 ms"
    assert format_duration(2.5) == "2.500 s"
    assert format_duration(75) == "1:15.000"


def test_single_and_record_lines():
    z, tau, ratio = 1.0114042647073518, 4, 0.7295739585136225
    assert format_single_line(6, z, tau, ratio) == (
        "z(6) = 1.0114042647073518\ttau(6) = 4\tz(6)/ln(tau(6)) = 0.7295739585136225"
    )
    assert format_record_line(6, "both", z, tau, ratio).startswith("6\trecord=both\tz(6) = ")


# ---------- single-n report ---------------------------------------------------

def test_print_statistics_text_block():
    om, buf = _om()
    res = print_statistics(12, "12", om=om)
    out = buf.getvalue()
    assert res.tau == 6
    assert "Zaremba statistics:" in out
    assert "2^2 × 3" in out
    assert "1, 2, 3, 4, 6, 12" in out
    assert "tau(n):" in out and " 6" in out
    assert "z(n):" in out and "1.565053409136" in out
    assert "\x1b[" not in out  # not a terminal, so colors are stripped


def test_print_statistics_n_equal_one_marks_ratio_undefined():
    om, buf = _om()
    print_statistics(1, om=om)
    out = buf.getvalue()
    assert "nan" in out
    assert "undefined" in out


def test_print_statistics_truncates_divisor_list():
    APPLY({"DISPLAY_SETTINGS": {"MAX_DIVISORS_SHOWN": 3}})
    om, buf = _om()
    print_statistics(720720, om=om)
    assert "1, 2, 3, …" in buf.getvalue()


def test_print_statistics_json():
    om, buf = _om()
    print_statistics(4, om=om, fmt="json")
    obj = json.loads(buf.getvalue())
    assert obj["n"] == 4 and obj["tau"] == 3
    assert obj["z"] == pytest.approx(0.6931471805599453)


# ---------- record printer / LaTeX --------------------------------------------

def test_record_printer_text_lines():
    om, buf = _om()
    printer = RecordPrinter(om)
    scan_for_records(10, printer)
    lines = buf.getvalue().splitlines()
    assert printer.count == 3
    assert [ln.split("\t")[0] for ln in lines] == ["3", "4", "6"]
    assert all("\trecord=both\t" in ln for ln in lines)


def test_json_lines_round_trip_into_latex(tmp_path):
    om, buf = _om()
    scan_for_records(30, RecordPrinter(om, fmt="json"))
    path = tmp_path / "records.jsonl"
    path.write_text(buf.getvalue() + "\n\n", encoding="utf-8")

    records = load_records_jsonl(path)
    assert [r.n for r in records][:3] == [3, 4, 6]
    rows = records_to_latex(records)
    assert rows[0] == LATEX_HEADER
    assert rows[1].startswith("3 & ")
    assert rows[1].endswith(r"both \\")
    assert len(rows) == len(records) + 1


def test_latex_record_type_labels():
    rows = records_to_latex([
        RecordEvent(n=8, kind="z", z=1.0, tau=4, ratio=0.5),
        RecordEvent(n=9, kind="ratio", z=0.5, tau=3, ratio=0.7),
        RecordEvent(n=12, kind="both", z=2.0, tau=6, ratio=0.9),
    ])
    assert [r.rsplit(" & ", 1)[1] for r in rows[1:]] == [r"Z \\", r"V \\", r"both \\"]


def test_latex_accepts_boolean_flags_without_kind(tmp_path):
    path = tmp_path / "r.jsonl"
    path.write_text(json.dumps({"n": 8, "z": 1.0, "tau": 4, "ratio": 0.5,
                                "is_z_record": True, "is_ratio_record": False}) + "\n", encoding="utf-8")
    (rec,) = load_records_jsonl(path)
    assert rec == RecordEvent(n=8, kind="z", z=1.0, tau=4, ratio=0.5)


@pytest.mark.parametrize("line,msg", [
    ('{"n": 5, "z": 0.3, "tau": 2, "ratio": 0.4, "is_z_record": false, "is_ratio_record": false}', "non-record"),
    ('{"n": 5, "z": 0.3}', "malformed"),
    ("not json", "not valid JSON"),
    ("[1, 2]", "JSON object"),
])
def test_latex_rejects_bad_entries(tmp_path, line, msg):
    path = tmp_path / "bad.jsonl"
    path.write_text(line + "\n", encoding="utf-8")
    with pytest.raises(UserInputError, match=msg):
        load_records_jsonl(path)


def test_missing_records_file(tmp_path):
    with pytest.raises(UserInputError, match="cannot read"):
        load_records_jsonl(tmp_path / "nope.jsonl")


# ---------- output manager ----------------------------------------------------

def test_output_manager_single_file_append(workspace):
    for _ in range(2):
        om, _buf = _om(output_file="logs/out.txt", quiet=True)
        om.write("\x1b[31mred\x1b[0m line")
        om.close()
    text = (workspace / "logs" / "out.txt").read_text(encoding="utf-8")
    assert text == "red line\n\nred line\n\n"


def test_output_manager_per_run_file(workspace):
    om, buf = _om(output_file="runs/", label="records_100")
    om.write("a")
    om.write("b")
    om.close()
    om.close()
    assert buf.getvalue() == "a\nb\n"
    assert (workspace / "runs" / "records_100.txt").read_text(encoding="utf-8") == "a\nb\n"


def test_output_manager_directory_needs_label():
    with pytest.raises(ValueError):
        OutputManager(output_file="runs/")


def test_strip_ansi():
    assert strip_ansi("\x1b[1m\x1b[33mx\x1b[0m") == "x"
    assert strip_ansi(None) == ""
