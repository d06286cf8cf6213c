"""Process-mode entrypoint.

    python main.py --mode run --date 2025-12-25
    python main.py --mode batch --from 2025-12-01 --to 2025-12-25
    python main.py --mode test-parse [--file PATH] [--code 7203]
    python main.py --mode serve [--host 127.0.0.1] [--port 8080]
    python main.py --mode prices

Every network mode falls back to ``mock_data/`` when EDINET_API_KEY is unset.
"""

from __future__ import annotations

import argparse
import os
import sys

import db
from config import Config, edinet_api_key
from jobs.edinet_collect import EdinetCollector, run_collect
from jobs.price_fetch import PriceFetcher
from logging_utils import get_logger, logs_dir
from settings import SETTINGS
from utils.migrate_sqlite_schema import migrate_engine
from utils.security_codes import InvalidSecurityCodeError, to_short_code
from utils.stock_store import upsert_figures
from utils.time_utils import parse_ymd_date
from utils.xbrl_extractor import extract_figures_from_file

logger = get_logger(__name__)

MODES = ("run", "batch", "test-parse", "serve", "prices")

LOCAL_TEST_NAME = "LOCAL PARSE TEST"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Collect EDINET financial figures and serve a screening dashboard"
    )
    p.add_argument("--mode", choices=MODES, default="run", help="Execution mode")
    p.add_argument(
        "--date",
        default=str(SETTINGS["DEFAULT_TARGET_DATE"]),
        help="Target submission date for run mode (YYYY-MM-DD)",
    )
    p.add_argument("--from", dest="date_from", default=None, help="Batch start date (YYYY-MM-DD)")
    p.add_argument("--to", dest="date_to", default=None, help="Batch end date (YYYY-MM-DD)")
    p.add_argument(
        "--file",
        default=str(SETTINGS["LOCAL_PARSE_FILE"]),
        help="Local .xbrl or .zip for test-parse mode",
    )
    p.add_argument("--code", default="7203", help="Code to store the test-parse result under")
    p.add_argument("--host", default=str(SETTINGS["SERVER_HOST"]))
    p.add_argument("--port", type=int, default=int(SETTINGS["SERVER_PORT"]))
    p.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run (e.g. DEBUG, INFO, WARNING)",
    )
    return p.parse_args(argv)


def _mode_run(args: argparse.Namespace) -> None:
    target = parse_ymd_date(args.date)
    with db.SessionLocal() as s:
        summary = run_collect(session=s, target_date=target, api_key=edinet_api_key())
    logger.info("collect complete | date=%s %s", target, summary)
    print(
        f"\ncollect {target}: stored={summary['stored']} "
        f"insufficient={summary['insufficient']} failed={summary['failed']} "
        f"skipped={summary['skipped']}"
    )


def _mode_batch(args: argparse.Namespace) -> None:
    if not args.date_from or not args.date_to:
        raise SystemExit("batch mode requires --from and --to (YYYY-MM-DD)")

    collector = EdinetCollector(
        start=parse_ymd_date(args.date_from),
        end=parse_ymd_date(args.date_to),
        api_key=edinet_api_key(),
        session_factory=db.SessionLocal,
        day_delay_seconds=Config.BATCH_DAY_DELAY_SECONDS,
    )
    result = collector.run()
    logger.info(
        "batch complete | days=%s processed=%s stored=%s failed=%s",
        len(result.details),
        result.processed,
        result.stored,
        result.failed,
    )
    print(f"\nbatch: days={len(result.details)} stored={result.stored} failed={result.failed}")


def _mode_test_parse(args: argparse.Namespace) -> None:
    """Parse one local filing and store it as a verification record."""

    try:
        code = to_short_code(args.code)
    except InvalidSecurityCodeError as e:
        raise SystemExit(f"test-parse: invalid --code: {e}") from e

    figures = extract_figures_from_file(args.file)
    with db.SessionLocal() as s:
        upsert_figures(s, code=code, name=LOCAL_TEST_NAME, figures=figures)
        s.commit()

    logger.info("test-parse stored | code=%s file=%s figures=%s", code, args.file, figures.as_dict())
    for k, v in figures.as_dict().items():
        print(f"{k:>20}: {v:,}")


def _mode_prices(_args: argparse.Namespace) -> None:
    fetcher = PriceFetcher(
        api_key=edinet_api_key(),
        session_factory=db.SessionLocal,
        delay_seconds=Config.PRICE_FETCH_DELAY_SECONDS,
    )
    result = fetcher.run()
    logger.info(
        "price fetch complete | codes=%s bars=%s failed=%s",
        result.processed,
        result.stored,
        result.failed,
    )
    print(f"\nprices: codes={result.processed} bars={result.stored} failed={result.failed}")


def _mode_serve(args: argparse.Namespace) -> None:
    from app import create_app

    app = create_app()
    logger.info("Starting server | host=%s port=%s", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=False, use_reloader=False)


_HANDLERS = {
    "run": _mode_run,
    "batch": _mode_batch,
    "test-parse": _mode_test_parse,
    "serve": _mode_serve,
    "prices": _mode_prices,
}


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    if args.log_level:
        os.environ["LOG_LEVEL"] = str(args.log_level)

    logger.info(
        "starting | mode=%s cwd=%s argv=%s db=%s logs=%s mock=%s",
        args.mode,
        os.getcwd(),
        list(sys.argv[1:] if argv is None else argv),
        db.database_path(),
        logs_dir(),
        not edinet_api_key(),
    )

    try:
        if args.mode != "serve":
            # serve migrates inside create_app()
            migrate_engine(db.engine)
        _HANDLERS[args.mode](args)
    except SystemExit:
        raise
    except Exception:
        # Always emit a traceback to both console and file.
        logger.exception("%s crashed | logs=%s", args.mode, logs_dir())
        raise


if __name__ == "__main__":
    main()
