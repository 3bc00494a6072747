import argparse
import logging
import os
import sys
import time
from functools import partial
from typing import Callable, List, Optional, Sequence, Tuple

from batch import run_batch
from browser import BrowserSession
from config import FORMATS, AuditConfig, config_from_env, prepare_output_dir
from errors import InvalidInputError, SetupError
from lighthouse import AuditResult, invoke, lighthouse_version
from report_pdf import PDF_FILENAME, build_pdf
from summary import SUMMARY_FILENAME, RunSummary, format_summary, summarize, write_summary_json
from targets import collect_targets


def audit_urls(
    targets: Sequence[str],
    config: AuditConfig,
    session: Optional[BrowserSession] = None,
    invoker: Optional[Callable] = None,
    on_result: Optional[Callable[[AuditResult], None]] = None,
) -> Tuple[RunSummary, List[AuditResult]]:
    """
    Acquire a browser, audit every target in windows of config.concurrency,
    and summarize. The browser session is released exactly once, whatever
    fails along the way.
    """
    session = session if session is not None else BrowserSession()
    invoker = invoker or partial(invoke, config=config)

    started = time.time()
    try:
        endpoint = session.acquire(config.chrome_endpoint)
        print(f"🌐 Connected to Chrome version: {endpoint.version}")
        print(f"📡 Using debugging endpoint: {endpoint.address}")

        results = run_batch(targets, config.concurrency, endpoint, invoker, on_result=on_result)
        summary = summarize(results, started, time.time())
    finally:
        session.release()

    return summary, results


def _print_result(result: AuditResult) -> None:
    if result.succeeded:
        print(f"✅ {result.target} -> {result.output_path}")
    else:
        print(f"❌ {result.target}: {result.error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighthouse-batch",
        description="Run Lighthouse audits for a list of URLs against a local or remote Chrome.",
    )
    parser.add_argument("urls", nargs="*", help="URLs to audit (scheme defaults to https://)")
    parser.add_argument("--url", action="append", default=[], help="URL to audit (repeatable)")
    parser.add_argument("--url-file", help="File with one URL per line; lines starting with # are ignored")
    parser.add_argument("--output-dir", help="Directory for reports (default: $AUDIT_OUTPUT_DIR or ./reports)")
    parser.add_argument("--output-path", help="Explicit report path (single URL only)")
    parser.add_argument("--format", choices=FORMATS, default="json", help="Report format (default: json)")
    parser.add_argument("--categories", help="Comma-separated categories, e.g. performance,accessibility")
    parser.add_argument("--chrome-endpoint", help="Remote Chrome debugging endpoint (default: launch local Chrome)")
    parser.add_argument("--concurrency", help="Audits run at the same time (default: $AUDIT_CONCURRENCY or 3)")
    parser.add_argument("--lighthouse-path", help="Lighthouse executable (default: $LIGHTHOUSE_PATH or lighthouse)")
    parser.add_argument("--timeout", help="Per-URL timeout in seconds (default: none)")
    parser.add_argument("--pdf", action="store_true", help="Also write a PDF summary of the run")
    parser.add_argument("--check", action="store_true", help="Check that Lighthouse runs before auditing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def _setup(args: argparse.Namespace) -> Tuple[AuditConfig, List[str]]:
    config = config_from_env(
        output_dir=args.output_dir,
        output_path=args.output_path,
        output_format=args.format,
        categories=args.categories,
        chrome_endpoint=args.chrome_endpoint,
        concurrency=args.concurrency,
        lighthouse_path=args.lighthouse_path,
        timeout=args.timeout,
    )
    targets = collect_targets(list(args.urls) + list(args.url), args.url_file)
    if config.output_path and len(targets) > 1:
        raise InvalidInputError(
            f"--output-path only works with a single URL ({len(targets)} given).",
            remedy="Use --output-dir for multiple URLs.",
        )
    prepare_output_dir(config)
    if args.check:
        try:
            version = lighthouse_version(config.lighthouse_path)
        except RuntimeError as e:
            raise SetupError(str(e), remedy="npm install -g lighthouse") from e
        print(f"🔦 Lighthouse {version}")
    return config, targets


def _fail(e: SetupError) -> int:
    print(f"❌ {e}", file=sys.stderr)
    if e.remedy:
        print(f"💡 {e.remedy}", file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.urls and not args.url and not args.url_file:
        parser.print_help()
        return 1

    try:
        config, targets = _setup(args)
    except SetupError as e:
        return _fail(e)

    print(f"🔍 Auditing {len(targets)} URL(s), {config.concurrency} at a time")
    try:
        summary, results = audit_urls(targets, config, on_result=_print_result)
    except SetupError as e:
        return _fail(e)

    print()
    print(format_summary(summary))

    out_dir = os.path.dirname(config.output_path) if config.output_path else config.output_dir
    summary_path = write_summary_json(summary, results, os.path.join(out_dir, SUMMARY_FILENAME))
    print(f"\n🗂  Summary: {summary_path}")
    if args.pdf:
        pdf_path = build_pdf(summary, results, os.path.join(out_dir, PDF_FILENAME))
        print(f"📄 PDF summary: {pdf_path}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
