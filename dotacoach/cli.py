"""CLI entry points."""

from typing import Callable, List, Optional, Sequence
import argparse
import json
import logging
import sys

from dotacoach.config import Config
from dotacoach.exceptions import DotaCoachError
from dotacoach.ops.logging import configure_logging
from dotacoach.ops.metrics import InMemoryMetricsRecorder
from dotacoach.pipeline import MatchAnalysisPipeline

logger = logging.getLogger(__name__)

PipelineFactory = Callable[[Config], MatchAnalysisPipeline]


def _default_factory(config: Config) -> MatchAnalysisPipeline:
    return MatchAnalysisPipeline.from_config(config, metrics=InMemoryMetricsRecorder())


def _emit(payload, pretty: bool) -> None:
    json.dump(payload, sys.stdout, indent=2 if pretty else None, sort_keys=pretty)
    sys.stdout.write("\n")


def _load_config(config_path: Optional[str]) -> Config:
    config = Config.load(config_path)
    configure_logging(level=config.log_level)
    logger.debug("Loaded config: %s", config.to_dict())
    return config


def run_analyze(
    match_id: int,
    account_id: int,
    config_path: Optional[str] = None,
    pretty: bool = False,
    factory: PipelineFactory = _default_factory,
) -> int:
    config = _load_config(config_path)
    try:
        with factory(config) as pipeline:
            result = pipeline.analyze(match_id, account_id)
    except DotaCoachError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1
    _emit(result.to_dict(), pretty)
    return 0


def run_warm(
    match_ids: List[int],
    config_path: Optional[str] = None,
    factory: PipelineFactory = _default_factory,
) -> int:
    config = _load_config(config_path)
    with factory(config) as pipeline:
        results = pipeline.warm(match_ids)
    failed = [r for r in results if not r.success]
    _emit(
        {
            "warmed": len(results) - len(failed),
            "failed": {r.request.endpoint: str(r.error) for r in failed},
        },
        pretty=False,
    )
    return 1 if failed and len(failed) == len(results) else 0


def run_trends(
    account_id: int,
    match_ids: List[int],
    config_path: Optional[str] = None,
    pretty: bool = False,
    factory: PipelineFactory = _default_factory,
) -> int:
    config = _load_config(config_path)
    with factory(config) as pipeline:
        summary = pipeline.trends(match_ids, account_id)
    _emit(summary, pretty)
    return 0 if summary["matches"] else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dotacoach", description="Dota 2 match performance analysis")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze one player in one match")
    analyze.add_argument("match_id", type=int)
    analyze.add_argument("account_id", type=int)
    analyze.add_argument("--config", dest="config_path", help="Path to .env or JSON config file")
    analyze.add_argument("--pretty", action="store_true", help="Indent JSON output")

    warm = subparsers.add_parser("warm", help="Pre-fetch matches into the cache")
    warm.add_argument("match_ids", type=int, nargs="+")
    warm.add_argument("--config", dest="config_path", help="Path to .env or JSON config file")

    trends = subparsers.add_parser("trends", help="Percentile trends across matches")
    trends.add_argument("account_id", type=int)
    trends.add_argument("match_ids", type=int, nargs="+")
    trends.add_argument("--config", dest="config_path", help="Path to .env or JSON config file")
    trends.add_argument("--pretty", action="store_true", help="Indent JSON output")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "analyze":
        return run_analyze(
            match_id=args.match_id,
            account_id=args.account_id,
            config_path=getattr(args, "config_path", None),
            pretty=getattr(args, "pretty", False),
        )
    if args.command == "warm":
        return run_warm(
            match_ids=args.match_ids,
            config_path=getattr(args, "config_path", None),
        )
    if args.command == "trends":
        return run_trends(
            account_id=args.account_id,
            match_ids=args.match_ids,
            config_path=getattr(args, "config_path", None),
            pretty=getattr(args, "pretty", False),
        )

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
