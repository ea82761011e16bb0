# src/zaremba/cli.py

"""
Zaremba records - z(n), tau(n) and z(n)/ln(tau(n)) record-setters

Description:
    z(n) is the sum of ln(d)/d over all divisors d of n. `single` reports
    z(n), tau(n) and the ratio z(n)/ln(tau(n)) for one n; `records` scans
    n = 1 .. max_n - 1 and prints every n where z or the ratio beats all
    earlier values (or, with --waterfall, only the waterfall numbers).
    `waterfall`, `factor`, `k-primes` and `max-v` work with waterfall numbers
    (OEIS A025487) and bounded searches for the largest ratio.

usage: see zaremba -h
"""

from __future__ import annotations

import argparse
import faulthandler
import io
import math
import sys
import textwrap
import traceback
from importlib.resources import files as pkg_files
from time import perf_counter

from colorama import Fore, Style, just_fix_windows_console

from zaremba import __version__ as _ver
from zaremba import config as CONFIG
from zaremba.display import (
    RecordPrinter,
    load_records_jsonl,
    print_factor_report,
    print_kprimes,
    print_statistics,
    print_waterfall,
    records_to_latex,
)
from zaremba.expreval import parse_positive_int
from zaremba.fmt import format_duration, format_float, format_json
from zaremba.output_manager import OutputManager
from zaremba.progress import Progress
from zaremba.records import scan_for_records, scan_waterfall_records
from zaremba.runtime import APPLY, CFG, ensure_runtime_deps
from zaremba.runtime import current as _rt_current
from zaremba.runtime import reset as _rt_reset
from zaremba.utility import UserInputError, flatten_dotted, typename, validate_output_setting
from zaremba.vsearch import max_v_bootstrap
from zaremba.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    try:
        faulthandler.enable(file=sys.__stderr__)
    except (AttributeError, ValueError, io.UnsupportedOperation):
        # no real stderr fd (embedded hosts, captured streams)
        pass

    if sys.excepthook is not sys.__excepthook__:
        return

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _debug(msg: str) -> None:
    tag = f"{Fore.BLUE}[debug]{Style.RESET_ALL}" if sys.stderr.isatty() else "[debug]"
    print(f"{tag} {msg}", file=sys.stderr)


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    examples:
      zaremba single 360
      zaremba records 1e6 --json --output records.jsonl
      zaremba latex ~/Documents/Zaremba/records.jsonl
      zaremba records 1e15 --waterfall --json
      zaremba waterfall 5400
      zaremba factor 10080
      zaremba k-primes --k 9 --V 1.7059578102443238

    other commands:
      init [--overwrite]   Create the workspace and copy the packaged profiles.
      profiles             List profiles with their descriptions.
      where                Show the workspace and package paths.
    """)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--profile", default=None, help="Settings profile to use (remembered for later runs)")
    common.add_argument("--output", default=None, help="Write results to a file (also prints unless --quiet)")
    common.add_argument("--json", action="store_true", help="JSON output (one object per line)")
    common.add_argument("--quiet", action="store_true", help="Suppress screen output (use with --output)")
    common.add_argument("--no-progress", action="store_true", help="Do not draw a progress bar during scans")
    common.add_argument("--debug", action="store_true", help="Show profile settings, timings and tracebacks")

    p = argparse.ArgumentParser(
        prog="zaremba",
        description="Zaremba records — z(n) = Σ ln(d)/d over divisors, tau(n), z(n)/ln(tau(n))",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    sub = p.add_subparsers(dest="mode", metavar="{single,records,latex,waterfall,factor,k-primes,max-v}", required=True)

    sp = sub.add_parser("single", parents=[common], help="Compute z(n), tau(n) and the ratio for one n")
    sp.add_argument("n", help="positive integer (expressions like 2**10*3 or 1e6 are accepted)")

    sp = sub.add_parser("records", parents=[common], help="Print record-setters for z(n) or the ratio below max-n")
    sp.add_argument("max_n", metavar="max-n", help="scan n = 1 .. max-n - 1")
    sp.add_argument("--waterfall", action="store_true",
                    help="Only evaluate waterfall numbers (OEIS A025487); reaches much larger max-n")

    sp = sub.add_parser("latex", parents=[common], help="Reformat a JSON-lines records file as a LaTeX table")
    sp.add_argument("records_file", metavar="records-file")

    sp = sub.add_parser("waterfall", parents=[common], help="List waterfall numbers up to max-n with their primorial exponents")
    sp.add_argument("max_n", metavar="max-n", help="largest value to list (inclusive)")

    sp = sub.add_parser("factor", parents=[common], help="Prime and primorial exponents of a waterfall number")
    sp.add_argument("n", help="waterfall number to factor")

    sp = sub.add_parser("k-primes", parents=[common],
                        help="Search v(n) record candidates built from exactly the first k primes")
    sp.add_argument("--k", dest="k", required=True, help="number of distinct consecutive primes in n")
    sp.add_argument("--V", dest="v_record", type=float, required=True, help="largest known v(n) record")

    sub.add_parser("max-v", parents=[common], help="Bootstrap the largest v(n) with k-primes searches")

    sp = sub.add_parser("init", parents=[common], help=argparse.SUPPRESS)
    sp.add_argument("--overwrite", action="store_true", help="Replace existing profiles with the packaged ones")

    sub.add_parser("profiles", parents=[common], help=argparse.SUPPRESS)
    sub.add_parser("where", parents=[common], help=argparse.SUPPRESS)

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv) or _rt_current().debug
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _select_profile_name(explicit: str | None) -> str:
    """
    Precedence:
      1) explicit --profile
      2) last used (from workspace)
      3) 'default'
    """
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    if last and CONFIG.has_profile(last):
        return last
    return "default"


def _apply_profile(args) -> str:
    if args.profile and not CONFIG.has_profile(args.profile):
        raise UserInputError(
            f"Unknown profile: '{args.profile}'. "
            f"Available profiles: {', '.join(CONFIG.list_all_profiles()) or '(none)'}"
        )

    profile_name = _select_profile_name(args.profile)
    if not CONFIG.has_profile(profile_name):
        # workspace without the packaged default: run on built-in defaults
        if args.debug:
            _debug(f"profile '{profile_name}' not found, using built-in defaults")
        return profile_name

    selected = CONFIG.load_settings(profile_name)
    APPLY(selected)
    if args.profile:
        CONFIG.write_current_profile(args.profile)

    if args.debug:
        _debug(f"active profile: {selected.name}")
        if selected._source:
            _debug(f"profile file: {selected._source}")
        flat = flatten_dotted(_rt_current().settings)
        for k in sorted(flat, key=str.lower):
            v = flat[k]
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
    return selected.name


# ---- main ----
def _main_impl(argv=None) -> int:

    just_fix_windows_console()

    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # usage errors (wrong argument count, unknown mode) and --help/--version
        return int(e.code or 0)

    rt = _rt_reset()
    if not ensure_runtime_deps(strict=True):
        return 1

    if args.mode == "init":
        ws, copied = seed_workspace(overwrite=args.overwrite)
        note = " (overwrote existing files)" if args.overwrite else ""
        print(f"Workspace ready at: {ws}{note}")
        print(f"Copied -> profiles: {copied}")
        return 0

    ensure_workspace_seeded()
    _apply_profile(args)
    if args.debug:
        rt.debug = True
    _install_loud_error_handlers(rt.debug)

    if args.mode == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('zaremba')}")
        return 0

    if args.mode == "profiles":
        current = CONFIG.read_current_profile() or "default"
        for name, desc in CONFIG.list_profiles_with_descriptions():
            mark = "*" if name == current else " "
            print(f"{mark} {name:13} — {desc}")
        return 0

    # --- output routing (CLI --output overrides profile OUTPUT_FILE) ---
    try:
        cli_target = validate_output_setting(args.output)
        target = cli_target if cli_target is not None else validate_output_setting(CFG("OUTPUT.OUTPUT_FILE", None))
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None
    fmt = "json" if args.json else str(CFG("OUTPUT.FORMAT", "text"))

    def make_output_manager(label: str) -> OutputManager:
        return OutputManager(output_file=target, quiet=args.quiet, label=label)

    if args.mode == "single":
        n = parse_positive_int(args.n, what="n")
        with make_output_manager(f"single_{n}") as om:
            print_statistics(n, args.n, om=om, fmt=fmt)
        return 0

    if args.mode == "records":
        max_n = parse_positive_int(args.max_n, what="max-n")
        show_bar = rt.show_progress and not args.no_progress and not args.quiet and sys.stderr.isatty()
        bar = Progress(max_n, enabled=show_bar)
        scan = scan_waterfall_records if args.waterfall else scan_for_records
        label = f"records_waterfall_{max_n}" if args.waterfall else f"records_{max_n}"

        t0 = perf_counter()
        with make_output_manager(label) as om:
            printer = RecordPrinter(om, fmt)
            try:
                state = scan(max_n, printer, progress=bar if show_bar else None)
            finally:
                bar.done()
        if rt.debug:
            what = "waterfall n" if args.waterfall else "n"
            _debug(f"scanned {what} < {max_n} in {format_duration(perf_counter() - t0)}: "
                   f"{state.records} record(s), max z = {format_float(state.record_z)}, "
                   f"max ratio = {format_float(state.record_ratio)}")
        return 0

    if args.mode == "latex":
        records = load_records_jsonl(args.records_file)
        with make_output_manager("latex") as om:
            for row in records_to_latex(records):
                om.write(row)
        return 0

    if args.mode == "waterfall":
        max_n = parse_positive_int(args.max_n, what="max-n")
        with make_output_manager(f"waterfall_{max_n}") as om:
            count = print_waterfall(max_n, om=om, fmt=fmt)
        if rt.debug:
            _debug(f"{count} waterfall number(s) <= {max_n}")
        return 0

    if args.mode == "factor":
        n = parse_positive_int(args.n, what="n")
        with make_output_manager(f"factor_{n}") as om:
            print_factor_report(n, om=om, fmt=fmt)
        return 0

    if args.mode == "k-primes":
        k = parse_positive_int(args.k, what="--k")
        if not (args.v_record > 0.0 and math.isfinite(args.v_record)):
            raise UserInputError(f"Invalid input: --V must be a positive number, got {args.v_record}.")
        with make_output_manager(f"kprimes_{k}") as om:
            print_kprimes(k, args.v_record, om=om, fmt=fmt)
        return 0

    if args.mode == "max-v":
        with make_output_manager("max_v") as om:
            if fmt == "json":
                report = _debug if rt.debug else None
            else:
                def report(msg: str) -> None:
                    om.write(f"{Style.DIM}{msg}{Style.RESET_ALL}")
            for best in max_v_bootstrap(report=report):
                if fmt == "json":
                    om.write(format_json({"n": best.n, "tau": best.tau, "z": best.z, "v": best.v,
                                          "primes": list(best.primes), "primorials": list(best.primorials)}))
                else:
                    om.write(format_float(best.v))
        return 0

    print(f"Did not understand command: {args.mode}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
