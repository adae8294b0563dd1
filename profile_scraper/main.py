from __future__ import annotations
import argparse, sys
from pathlib import Path

from .config import HEADLESS
from .cookie_bridge import load_cookie_file
from .exceptions import ConfigurationError, MissingCredentialError
from .io_utils import JsonlResultStore, OUTPUT_DEFAULT, export_excel, read_task_input
from .linkedin_scraper import LinkedInScraper
from .models import Exhausted, ScrapeTask


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Extract a LinkedIn profile (or search result pages) into an append-only JSONL store."
    )
    p.add_argument("--input", required=True, help="task .json with sessionCredential, targetUrl and options")
    p.add_argument("--cookies", help="cookie .json overriding the task's sessionCredential")
    p.add_argument("--target", help="URL overriding the task's targetUrl")
    p.add_argument("--mode", choices=("profile", "search"), default="profile",
                   help="single profile, or paginated search results")
    p.add_argument("--output", default=str(OUTPUT_DEFAULT), help="result store .jsonl (appended to)")
    p.add_argument("--excel", help="also export the whole result store to this .xlsx after the run")
    p.add_argument("--headed", action="store_true", help="show the browser window")
    return p.parse_args(argv)


def build_task(args) -> ScrapeTask:
    """Everything here runs before a browser exists; ConfigurationError propagates."""
    try:
        options = read_task_input(Path(args.input).expanduser().resolve())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot read task input {args.input}: {e}") from e
    if args.cookies:
        try:
            options["sessionCredential"] = load_cookie_file(Path(args.cookies).expanduser().resolve())
        except (OSError, ValueError) as e:
            raise MissingCredentialError(f"cannot read cookies {args.cookies}: {e}") from e
    if args.target:
        options["targetUrl"] = args.target
    return ScrapeTask.from_input(options)


def main(argv=None) -> int:
    args = parse_args(argv)
    task = build_task(args)
    print(f"✅ Using {len(task.session_credential)} cookies")

    store = JsonlResultStore(Path(args.output).expanduser().resolve())
    exhausted = False
    with LinkedInScraper(headless=HEADLESS and not args.headed) as scraper:
        if args.mode == "search":
            exhausted = scraper.scrape_search(task, store).exhausted
        else:
            exhausted = isinstance(scraper.scrape_profile(task, store), Exhausted)

    if args.excel:
        count = export_excel(store, Path(args.excel).expanduser().resolve())
        print(f"ℹ️  Exported {count} records to {args.excel}")

    print(f"{'⛔' if exhausted else '🎉'}  Finished. Results in {store.path}")
    return 1 if exhausted else 0


if __name__ == "__main__":
    sys.exit(main())
