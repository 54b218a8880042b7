from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from contextlib import closing
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Iterable, List, Optional, Sequence

import httpx
from dotenv import load_dotenv

from pqrunner.batch.report import write_report
from pqrunner.data.questions import iter_questions
from pqrunner.errors import FileReadError, ParseError, StreamError
from pqrunner.llm.promptql_client import PromptQLClient
from pqrunner.stream.fold import QueryResult, StreamFold
from pqrunner.ui.presenter import NullPresenter, Presenter, TerminalPresenter
from pqrunner.utils.logging import setup_logging

load_dotenv()

logger = logging.getLogger(__name__)

USAGE_ERROR = "Please provide a path to the CSV file as a command line argument"


@dataclass(frozen=True)
class RunConfig:
    delay_s: float = 1.0
    compute_sentences: bool = True


def get_run_config() -> RunConfig:
    return RunConfig(delay_s=float(os.getenv("PQRUNNER_DELAY", "1.0")))


def run_one_question(
    question: str,
    *,
    client: PromptQLClient,
    presenter: Presenter,
    compute_sentences: bool = True,
) -> QueryResult:
    """
    Stream one question through the fold and show its summary.

    Stream failures are logged and recorded on the result; they never
    propagate past this function.
    """
    presenter.stop_working()
    presenter.start_question(question)
    fold = StreamFold(question, presenter, compute_sentences=compute_sentences)

    t0 = perf_counter()
    try:
        with closing(client.query_stream(question)) as chunks:
            for chunk in chunks:
                if not fold.feed(chunk):
                    break
    except (StreamError, httpx.HTTPError) as e:
        logger.error("Query failed for question=%r: %s", question, e, exc_info=True)
        presenter.show_error(str(e))
        fold.fail(str(e))

    result = fold.finish()
    result.elapsed_s = perf_counter() - t0
    presenter.show_summary(result)

    logger.info(
        "Question done: completed=%s artifacts=%s errors=%s time=%.2fs",
        result.completed,
        result.artifact_count,
        len(result.errors),
        result.elapsed_s,
    )
    return result


def run_batch(
    questions: Iterable[str],
    *,
    client: PromptQLClient,
    presenter: Presenter,
    cfg: Optional[RunConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[QueryResult]:
    """Run questions one at a time with a pause between consecutive queries."""
    cfg = cfg or get_run_config()
    results: List[QueryResult] = []
    for n, q in enumerate(questions, start=1):
        if n > 1 and cfg.delay_s > 0:
            sleep(cfg.delay_s)
        logger.info("Q%s starting", n)
        results.append(
            run_one_question(
                q,
                client=client,
                presenter=presenter,
                compute_sentences=cfg.compute_sentences,
            )
        )
    return results


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pqrunner",
        description="Send every question in a CSV file to PromptQL and print the streamed answers.",
    )
    p.add_argument("csv_path", nargs="?", help="CSV file with a 'Question' column")
    p.add_argument("--delay", type=float, default=None, help="seconds to wait between questions")
    p.add_argument("--report", default=None, help="write a markdown results table to this path")
    p.add_argument("--no-sentences", action="store_true", help="skip the last-two-sentences summary")
    p.add_argument("--quiet", action="store_true", help="do not print streamed output")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    client: Optional[PromptQLClient] = None,
    presenter: Optional[Presenter] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if not args.csv_path:
        print(USAGE_ERROR, file=sys.stderr)
        return 1

    base = get_run_config()
    cfg = RunConfig(
        delay_s=base.delay_s if args.delay is None else args.delay,
        compute_sentences=not args.no_sentences,
    )
    if presenter is None:
        presenter = NullPresenter() if args.quiet else TerminalPresenter()

    owns_client = client is None
    client = client or PromptQLClient()
    try:
        results = run_batch(
            iter_questions(args.csv_path),
            client=client,
            presenter=presenter,
            cfg=cfg,
            sleep=sleep,
        )
    except (FileReadError, ParseError) as e:
        logger.error("Aborting run: %s", e)
        print(f"Error processing CSV file or running queries: {e}", file=sys.stderr)
        return 1
    finally:
        if owns_client:
            client.close()

    failed = sum(1 for r in results if not r.ok)
    logger.info("Run complete: questions=%s failed=%s", len(results), failed)

    if args.report:
        out = write_report(results, args.report, source=args.csv_path)
        print(f"Wrote: {out}")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
