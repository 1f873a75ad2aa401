"""
Guest Scout - Command Line Entry Point

Evaluate a list of discovered candidates for a podcast topic, or ask the
language model for suggestions and evaluate those.

Examples:
    python cli.py evaluate candidates.json --topic "AI, startup"
    python cli.py evaluate candidates.json --topic AI --no-network
    python cli.py suggest --topic "Climate tech" --expertise "Battery research"
    python cli.py config
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from async_utils import run_async
from celebrity_filter import CelebrityCheckSettings
from config import Config
from error_handling import GuestScoutError
from guest_pipeline import GuestPipeline, PipelineOptions, PipelineResult
from guest_suggester import GuestSearchParams, GuestSuggester
from llm_response import candidates_from_suggestions, parse_guest_suggestions
from models import Candidate
from pipeline_state import PipelineState
from search_providers import (
    GoogleSearchClient,
    NullReferenceProvider,
    NullSearchProvider,
    WikipediaClient,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Console Output
# =============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"

    @classmethod
    def enabled(cls) -> bool:
        return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def colorize(text: str, color: str) -> str:
    """Colorize text if colors are enabled."""
    if Colors.enabled():
        return f"{color}{text}{Colors.RESET}"
    return text


@dataclass
class ProgressBar:
    """Progress bar driven by the pipeline's (processed, total) callback."""

    width: int = 30
    prefix: str = "Evaluating "
    fill: str = "#"
    empty: str = "-"
    start_time: float = field(default_factory=time.time)

    def __call__(self, processed: int, total: int) -> None:
        filled = int(self.width * processed / total) if total else self.width
        bar = self.fill * filled + self.empty * (self.width - filled)
        elapsed = time.time() - self.start_time
        sys.stderr.write(
            f"\r{self.prefix}|{bar}| {processed}/{total} ({elapsed:.1f}s)"
        )
        if processed >= total:
            sys.stderr.write("\n")
        sys.stderr.flush()


# =============================================================================
# Helpers
# =============================================================================


def load_candidates(path: Path) -> list[Candidate]:
    """Load candidates from a JSON list in the guest-suggestion shape."""
    text = path.read_text(encoding="utf-8")
    return candidates_from_suggestions(parse_guest_suggestions(text), source=path.name)


def print_result(result: PipelineResult) -> None:
    print(colorize(f"\nRecommended guests ({len(result.filtered)})", Colors.BOLD))
    for rank, entry in enumerate(result.filtered, start=1):
        candidate = entry.candidate
        context = ", ".join(p for p in (candidate.title, candidate.company) if p)
        line = f"{rank:>3}. {candidate.name}"
        if context:
            line += f" ({context})"
        if entry.score is None:
            line += colorize("  unscored", Colors.DIM)
        else:
            line += f"  score {entry.score.total:.1f}"
            if entry.qualified:
                line += colorize("  qualified", Colors.GREEN)
            if entry.score.flags:
                line += colorize(f"  [{'; '.join(entry.score.flags)}]", Colors.YELLOW)
        print(line)

    if result.excluded:
        print(colorize(f"\nExcluded ({len(result.excluded)})", Colors.BOLD))
        for entry in result.excluded:
            print(f"  - {entry.candidate.name}: {colorize(entry.reason, Colors.RED)}")

    print(f"\n{result.summary.describe()}")


def result_to_json(result: PipelineResult) -> str:
    payload = {
        "filtered": [
            {
                "candidate": e.candidate.to_dict(),
                "score": e.score.to_dict() if e.score else None,
                "qualified": e.qualified,
            }
            for e in result.filtered
        ],
        "excluded": [
            {
                "candidate": e.candidate.to_dict(),
                "reason": e.reason,
                "matchedSource": e.evidence.matched_source.value if e.evidence else None,
            }
            for e in result.excluded
        ],
        "summary": result.summary.describe(),
    }
    return json.dumps(payload, indent=2, default=str)


def build_options(args: argparse.Namespace) -> PipelineOptions:
    return PipelineOptions.from_config(
        exclude_celebrities=not args.include_celebrities,
        min_appearances=args.min_appearances,
        max_appearances=args.max_appearances,
        required_topics=args.require_topic or [],
        qualified_only=args.qualified_only,
    )


async def evaluate_candidates(
    candidates: list[Candidate],
    topic: str,
    options: PipelineOptions,
    offline: bool,
    known_figures: Optional[Path],
) -> PipelineResult:
    state = PipelineState.create(
        cache_ttl=Config.LOOKUP_CACHE_TTL_SECONDS, known_figures_path=known_figures
    )
    settings = CelebrityCheckSettings.from_config()
    if offline:
        pipeline = GuestPipeline.create(
            NullSearchProvider(),
            NullReferenceProvider(),
            state=state,
            options=options,
            collect_metrics=False,
            settings=settings,
        )
        return await pipeline.run(candidates, topic, on_progress=ProgressBar())

    async with GoogleSearchClient(
        Config.GOOGLE_API_KEY,
        Config.GOOGLE_SEARCH_ENGINE_ID,
        timeout=Config.HTTP_TIMEOUT_SECONDS,
    ) as search, WikipediaClient(timeout=Config.HTTP_TIMEOUT_SECONDS) as reference:
        pipeline = GuestPipeline.create(
            search, reference, state=state, options=options, settings=settings
        )
        return await pipeline.run(candidates, topic, on_progress=ProgressBar())


# =============================================================================
# Commands
# =============================================================================


def check_search_config() -> bool:
    problems = Config.validate()
    if problems:
        for problem in problems:
            logger.error(f"Configuration: {problem}")
        logger.error("Configuration validation failed. Please check your .env file.")
        return False
    return True


def cmd_evaluate(args: argparse.Namespace) -> int:
    if not args.no_network and not check_search_config():
        return 1

    candidates = load_candidates(Path(args.file))
    if not candidates:
        logger.error(f"No candidates found in {args.file}")
        return 1

    result = run_async(
        evaluate_candidates(
            candidates, args.topic, build_options(args), args.no_network, args.known_figures
        )
    )
    if args.json:
        print(result_to_json(result))
    else:
        print_result(result)
    return 0


def cmd_suggest(args: argparse.Namespace) -> int:
    params = GuestSearchParams(
        podcast_topic=args.topic,
        guest_expertise=args.expertise,
        keywords=args.keywords,
        audience_size=args.audience_size,
        linkedin_url=args.linkedin_url,
        twitter_handle=args.twitter_handle,
    )
    candidates = run_async(GuestSuggester().suggest(params))
    if args.no_evaluate:
        print(json.dumps([c.to_dict() for c in candidates], indent=2))
        return 0

    if not args.no_network and not check_search_config():
        return 1
    result = run_async(
        evaluate_candidates(
            candidates, args.topic, build_options(args), args.no_network, args.known_figures
        )
    )
    if args.json:
        print(result_to_json(result))
    else:
        print_result(result)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    Config.print_config()
    problems = Config.validate()
    for problem in problems:
        print(f"  ! {problem}")
    return 0 if not problems else 1


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-network",
        action="store_true",
        help="Skip external lookups (known-figures list and scoring only)",
    )
    parser.add_argument(
        "--include-celebrities",
        action="store_true",
        help="Do not exclude high-profile figures",
    )
    parser.add_argument(
        "--qualified-only",
        action="store_true",
        help="Exclude candidates below the quality thresholds",
    )
    parser.add_argument("--min-appearances", type=int, default=0)
    parser.add_argument("--max-appearances", type=int, default=None)
    parser.add_argument(
        "--require-topic",
        action="append",
        help="Keep only candidates with an expertise tag containing this (repeatable)",
    )
    parser.add_argument(
        "--known-figures",
        type=Path,
        default=None,
        help="JSON list of well-known figures to exclude",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON output")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Guest Scout - Find and rank podcast guests"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate = subparsers.add_parser("evaluate", help="Evaluate candidates from a file")
    evaluate.add_argument("file", help="JSON list of candidate objects")
    evaluate.add_argument("--topic", required=True, help="Comma-separated topic terms")
    add_filter_arguments(evaluate)
    evaluate.set_defaults(handler=cmd_evaluate)

    suggest = subparsers.add_parser("suggest", help="Ask the language model for guests")
    suggest.add_argument("--topic", required=True, help="Podcast topic")
    suggest.add_argument("--expertise", default="", help="Desired guest expertise")
    suggest.add_argument("--keywords", default="", help="Extra keywords")
    suggest.add_argument("--audience-size", default=None)
    suggest.add_argument("--linkedin-url", default=None)
    suggest.add_argument("--twitter-handle", default=None)
    suggest.add_argument(
        "--no-evaluate", action="store_true", help="Print raw suggestions only"
    )
    add_filter_arguments(suggest)
    suggest.set_defaults(handler=cmd_suggest)

    config = subparsers.add_parser("config", help="Show configuration and exit")
    config.set_defaults(handler=cmd_config)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(
        logging, Config.LOG_LEVEL.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        return args.handler(args)
    except (GuestScoutError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
