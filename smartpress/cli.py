"""Command-line front end.

Usage:
    smartpress photo.png --target 200KB
    smartpress report.pdf --target 1.5MB --oracle gemini
    smartpress notes.txt -t 4096 -o notes.txt.gz -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from smartpress.classifier import classify, guess_media_type
from smartpress.config import CompressionConfig, ConvergenceConfig
from smartpress.core.errors import RequestError, SmartPressError
from smartpress.core.llm import create_llm_client
from smartpress.models import CompressionResult, ProgressEvent, RunPhase
from smartpress.oracle import HeuristicOracle, LLMStrategyOracle, StrategyOracle
from smartpress.runner import start_run
from smartpress.sizes import (
    format_size,
    is_aggressive_target,
    output_filename,
    parse_size,
    parse_target,
    suggest_target,
)

logger = logging.getLogger(__name__)

ORACLES = ("heuristic", "gemini", "anthropic")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartpress",
        description="Iteratively compress a file until it fits a target size",
    )
    parser.add_argument("input", type=Path, help="File to compress")
    parser.add_argument(
        "-t", "--target",
        help="Target size, e.g. 500KB, 1.5MB or 2048 (bytes). Default: 40%% of the input",
    )
    parser.add_argument("-o", "--output", type=Path, help="Output path. Default: smart_<name> next to the input")
    parser.add_argument("--media-type", help="Declared media type. Default: guessed from the file name")
    parser.add_argument("--oracle", choices=ORACLES, default="heuristic", help="Strategy source")
    parser.add_argument("--model", help="Model name for LLM oracles")
    parser.add_argument("--max-iterations", type=int, default=ConvergenceConfig.max_iterations)
    parser.add_argument("--tolerance", type=float, default=ConvergenceConfig.tolerance)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_oracle(name: str, config: CompressionConfig, model: Optional[str] = None) -> StrategyOracle:
    """Instantiate the oracle selected on the command line."""
    if name == "heuristic":
        return HeuristicOracle()
    client = create_llm_client(name, config.llm, model=model)
    return LLMStrategyOracle(client, config.llm, model=model)


def _print_event(event: ProgressEvent) -> None:
    if event.phase != RunPhase.RUNNING or event.achieved_size is None:
        return
    strategy = event.strategy
    print(
        f"[{event.percent:3d}%] iteration {event.iteration}: "
        f"{strategy.method} (quality {strategy.quality:.2f}, scale {strategy.effective_scale:.2f}) "
        f"-> {format_size(event.achieved_size)}"
    )


def _print_summary(result: CompressionResult, output: Path) -> None:
    print(f"Original:   {format_size(result.original_size)} ({result.original_size:,} bytes)")
    print(f"Compressed: {format_size(result.compressed_size)} ({result.compressed_size:,} bytes)")
    print(f"Savings:    {result.savings_percent:.1f}%")
    print(f"Method:     {result.strategy_used.method}")
    print(f"Reasoning:  {result.strategy_used.reasoning}")
    if result.status == RunPhase.EXHAUSTED:
        print(
            f"Target of {format_size(result.target_size)} not reached after "
            f"{result.iterations} iterations; kept the last attempt."
        )
    print(f"Wrote {output}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.max_iterations < 1:
        print(f"Error: --max-iterations must be at least 1, got {args.max_iterations}")
        return 2
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        data = args.input.read_bytes()
    except OSError as e:
        print(f"Cannot read {args.input}: {e}")
        return 1

    media_type = args.media_type or guess_media_type(args.input.name)
    config = CompressionConfig(
        convergence=ConvergenceConfig(
            max_iterations=args.max_iterations,
            tolerance=args.tolerance,
        )
    )

    try:
        if args.target:
            target = parse_target(args.target)
        else:
            target = parse_size(*suggest_target(len(data)))
        if is_aggressive_target(len(data), target):
            print("Warning: target is below 5% of the original; quality may suffer badly.")
        oracle = build_oracle(args.oracle, config, args.model)
        print(
            f"{args.input.name}: {format_size(len(data))}, "
            f"{classify(media_type).value}, target {format_size(target)}"
        )
        result = asyncio.run(
            start_run(data, media_type, target, oracle=oracle, config=config, on_event=_print_event)
        )
    except RequestError as e:
        print(f"Error: {e}")
        return 2
    except SmartPressError as e:
        print(f"Compression failed: {e}")
        return 1

    output = args.output or args.input.with_name(output_filename(args.input.name, result.format))
    try:
        output.write_bytes(result.data)
    except OSError as e:
        print(f"Cannot write {output}: {e}")
        return 1
    _print_summary(result, output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
