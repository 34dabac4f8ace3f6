#!/usr/bin/env python3
"""
Tower Stats — Entry Point
==========================

Parses OCR text of battle-report screenshots and prints the run record.

Usage:
    python main.py                                 # Parse the built-in sample
    python main.py report.txt other.txt            # Parse OCR text files
    python main.py --add report.txt                # ...and add clean runs to the store
    python main.py --photo-date 2024-05-01T18:30:00 report.txt
    OPENAI_API_KEY=sk-... python main.py           # LLM + half-split dual pairing
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from tower_stats.config import load_settings
from tower_stats.models import ParseReport, Severity
from tower_stats.pipeline import RunParsingPipeline
from tower_stats.store import JsonFileBlobStore, RecordStore

# ─── Load .env if available (optional dependency) ────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


# ─── Sample OCR Output — Two Stacked Columns, Ugly on Purpose ───────

RAW_OCR_TEXT = """\
18:42
BATTLE REPORT
Game Time
Real Time
Tier
Wave
Killed By
Coins Earned
Cash Earned
Interest Earned
Gem Blocks Tapped
Cells Earned
Reroll Shards Earned
1d 13h 24m 10s
6h 52m 455
11
3127
Boss
1.23T
$45.67B
$1.20B
3
845.2K
2.31K"""


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _show(value: str) -> str:
    return value if value else f"{_RED}(invalid){_RESET}"


def _print_record_details(record) -> None:
    """Print run record fields."""
    if record.photo_date:
        print(f"  Photo Date:  {record.photo_date:%Y-%m-%d %H:%M}")
    print(f"  Game Time:   {_show(record.game_time)}")
    print(f"  Real Time:   {_show(record.real_time)} {_DIM}({record.duration_seconds:,}s){_RESET}")
    print(f"  Tier:        {_show(record.tier)}")
    print(f"  Wave:        {_show(record.wave)}")
    print(f"  Killed By:   {_show(record.killed_by)}")
    print(f"  Coins:       {_show(record.coins_earned)} {_DIM}→{_RESET} {record.coins_value:,.0f}")
    print(f"  Cash:        {_show(record.cash_earned)}")
    print(f"  Interest:    {_show(record.interest_earned)}")
    print(f"  Gem Blocks:  {_show(record.gem_blocks_tapped)}")
    print(f"  Cells:       {_show(record.cells_earned)} {_DIM}→{_RESET} {record.cells_value:,.0f}")
    print(f"  Shards:      {_show(record.reroll_shards_earned)} {_DIM}→{_RESET} {record.shards_value:,.0f}")
    print(f"  Coins/s:     {record.coin_efficiency:,.0f}")
    print(f"  Cells/s:     {record.cell_efficiency:,.2f}")
    print(f"  Shards/s:    {record.shard_efficiency:,.2f}")


def _print_findings_group(findings, color: str, label: str) -> None:
    """Print a categorized group of findings (errors or warnings)."""
    if not findings:
        return
    print(f"\n  {color}{_BOLD}{label} ({len(findings)}){_RESET}")
    for f in findings:
        print(f"    {color}[{f.code}]{_RESET} {f.field}")
        print(f"    {f.message}")
        for k, v in f.details.items():
            print(f"      {_DIM}{k}: {v}{_RESET}")
        print()


def _print_info_group(findings) -> None:
    """Print informational findings (compact format)."""
    if not findings:
        return
    print(f"  {_CYAN}INFO ({len(findings)}){_RESET}")
    for f in findings:
        print(f"    [{f.code}] {f.message}")
    print()


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(report: ParseReport, source: str) -> int:
    """Pretty-print the parse report with ANSI color codes.

    Returns:
        0 if the record parsed cleanly, 1 if it has parsing errors.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  RUN REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Source:      {source}")
    print(f"  Audit Hash:  {_DIM}{report.original_hash[:16]}...{_RESET}")
    print(f"  Pairing:     {report.pairing_method}")
    print(f"{'─' * _WIDTH}")

    _print_record_details(report.record)

    print(f"{'─' * _WIDTH}")

    errors = [f for f in report.findings if f.severity == Severity.ERROR]
    warnings = [f for f in report.findings if f.severity == Severity.WARNING]
    infos = [f for f in report.findings if f.severity == Severity.INFO]

    _print_findings_group(errors, _RED, "ERRORS")
    _print_findings_group(warnings, _YELLOW, "WARNINGS")
    _print_info_group(infos)

    print(f"{'=' * _WIDTH}")
    if report.has_parsing_error:
        print(f"  {_RED}{_BOLD}PARSING ERROR  --  {len(errors)} field(s) need correction{_RESET}")
    else:
        print(f"  {_GREEN}{_BOLD}RUN PARSED CLEANLY{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 1 if report.has_parsing_error else 0


# ─── Main ────────────────────────────────────────────────────────────


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parse battle-report OCR text into run records.")
    parser.add_argument("files", nargs="*", type=Path, help="OCR text files (default: built-in sample)")
    parser.add_argument("--add", action="store_true", help="add clean, non-duplicate runs to the store")
    parser.add_argument("--photo-date", type=datetime.fromisoformat, default=None, help="ISO capture time")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the parsing pipeline on each input and print the reports."""
    args = _parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pipeline = RunParsingPipeline(settings=settings)
    store = RecordStore(JsonFileBlobStore(settings.store_path)) if args.add else None

    sources = [(str(path), path.read_text(encoding="utf-8")) for path in args.files]
    if not sources:
        sources = [("built-in sample", RAW_OCR_TEXT)]

    exit_code = 0
    for source, text in sources:
        report = pipeline.run(text, args.photo_date)
        exit_code = max(exit_code, print_report(report, source))

        if store is not None:
            if pipeline.ingest(report, store):
                print(f"  {_GREEN}Added to {settings.store_path} ({len(store)} run(s) stored){_RESET}\n")
            elif store.contains_exact(report.record):
                print(f"  {_YELLOW}Already added{_RESET}\n")
            else:
                print(f"  {_YELLOW}Not added (duplicate or parsing error){_RESET}\n")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
