"""
Riga di comando: `bollettino-aria --date 21/08/2025 --province Bologna`.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from bollettino_aria.cleaning import parse_day
from bollettino_aria.config import load_settings
from bollettino_aria.pipeline import default_day, run_all
from bollettino_aria.stations import PROVINCES, province_code, province_name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bollettino-aria",
        description="Bollettino giornaliero della qualità dell'aria per le province dell'Emilia-Romagna.",
    )
    parser.add_argument("--date", help="giorno da elaborare (dd/mm/YYYY); default: due giorni fa")
    parser.add_argument("--province", action="append", default=None,
                        help=f"provincia da elaborare, ripetibile (default: tutte). Valori: {', '.join(PROVINCES)}")
    parser.add_argument("--out", type=Path, help="cartella di pubblicazione (default: docs)")
    parser.add_argument("--chart-format", choices=["png", "pdf"], default="png")
    parser.add_argument("--archive", action="store_true", help="salva anche CSV e SQLite dei dati scaricati")
    parser.add_argument("--env-file", help="file .env alternativo")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s - %(levelname)s - %(message)s")

    try:
        settings = load_settings(args.env_file)
        day = parse_day(args.date) if args.date else default_day()
        provinces = [province_name(province_code(p)) for p in args.province] if args.province else None
    except (ValueError, KeyError) as e:
        logging.error(e)
        return 2
    if args.out:
        settings = replace(settings, out_dir=args.out)

    logging.info(f"Bollettino del {day:%d/%m/%Y} in {settings.out_dir}")
    results = run_all(day, settings, provinces=provinces,
                      chart_format=args.chart_format, archive=args.archive)
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
