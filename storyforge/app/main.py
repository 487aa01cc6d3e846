"""
StoryForge Main Application.

Command-line entry point: runs the full pipeline over a set of unit
descriptions and writes the graph, artifacts and reports to disk.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storyforge.app.config import StoryForgeConfig
    from storyforge.phases.pipeline import PipelineResult

UNIT_SEPARATOR = "---"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="storyforge",
        description="StoryForge - graph-backed user story generation",
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="StoryForge 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the full pipeline")
    run.add_argument(
        "inputs",
        nargs="+",
        help=f"Description files; units within a file are separated by '{UNIT_SEPARATOR}' lines",
    )
    run.add_argument(
        "--reference", "-r",
        action="append",
        default=[],
        help="Reference document name (repeatable)",
    )
    run.add_argument(
        "--image",
        action="append",
        default=[],
        help="Attached image name (repeatable)",
    )
    run.add_argument(
        "--output", "-o",
        default="storyforge_output",
        help="Output directory (default: storyforge_output)",
    )
    run.add_argument(
        "--stream",
        action="store_true",
        help="Stream model replies and log progress events",
    )

    config_cmd = subparsers.add_parser("config", help="Show or initialize configuration")
    config_cmd.add_argument(
        "--init",
        action="store_true",
        help="Write the current configuration to disk",
    )

    return parser.parse_args(argv)


def setup_environment(args: argparse.Namespace) -> "StoryForgeConfig":
    """Load configuration and configure logging.

    Args:
        args: Parsed command line arguments

    Returns:
        Loaded configuration
    """
    from storyforge.app.config import StoryForgeConfig, set_config
    from storyforge.utils.logging import setup_logging

    config_path = Path(args.config) if args.config else None
    config = StoryForgeConfig.load(config_path)

    if args.log_level:
        config.log_level = args.log_level

    setup_logging(
        level=config.log_level,
        log_dir=config.data_dir / "logs",
        console_output=True,
        file_output=True,
    )

    set_config(config)
    return config


def read_descriptions(paths: list[str]) -> list[str]:
    """Read unit descriptions from files, splitting on separator lines."""
    descriptions: list[str] = []
    for path in paths:
        text = Path(path).read_text(encoding="utf-8")
        chunk: list[str] = []
        for line in text.splitlines():
            if line.strip() == UNIT_SEPARATOR:
                descriptions.append("\n".join(chunk).strip())
                chunk = []
            else:
                chunk.append(line)
        descriptions.append("\n".join(chunk).strip())
    return [d for d in descriptions if d]


def write_outputs(result: "PipelineResult", output_dir: Path) -> None:
    """Write graph, artifacts (JSON + markdown) and the full report."""
    stories_dir = output_dir / "stories"
    stories_dir.mkdir(parents=True, exist_ok=True)

    (output_dir / "graph.json").write_text(
        json.dumps(result.graph.to_wire(), indent=2), encoding="utf-8",
    )
    for artifact_id, markdown in result.render().items():
        (stories_dir / f"{artifact_id}.md").write_text(markdown + "\n", encoding="utf-8")
        (stories_dir / f"{artifact_id}.json").write_text(
            json.dumps(result.artifacts[artifact_id].to_wire(), indent=2), encoding="utf-8",
        )
    (output_dir / "report.json").write_text(
        json.dumps(result.to_dict(), indent=2), encoding="utf-8",
    )


async def run_pipeline(args: argparse.Namespace, config: "StoryForgeConfig") -> int:
    """Run every pass and write the results.

    Returns:
        Exit code (0 on success, 1 on invalid input)
    """
    from storyforge.core.event_bus import EventBus
    from storyforge.core.events import TOPIC_PASS_STARTED
    from storyforge.infrastructure.llm.provider_factory import ProviderFactory
    from storyforge.phases import PASS_LABELS
    from storyforge.phases.pipeline import PipelineOrchestrator
    from storyforge.utils.logging import get_logger

    logger = get_logger("app")

    descriptions = read_descriptions(args.inputs)
    if not descriptions:
        logger.error("No unit descriptions found in the input files")
        return 1

    bus = EventBus()

    async def on_pass_started(payload: dict) -> None:
        label = PASS_LABELS.get(payload.get("pass", ""), payload.get("pass"))
        logger.info(f"{label} started")

    await bus.subscribe(TOPIC_PASS_STARTED, on_pass_started)

    llm = ProviderFactory.from_config(config.llm)
    async with llm:
        pipeline = PipelineOrchestrator(llm, config, event_bus=bus, stream=args.stream)
        result = await pipeline.run(
            descriptions,
            reference_documents=args.reference or None,
            image_names=args.image or None,
        )
    await bus.drain()

    output_dir = Path(args.output)
    write_outputs(result, output_dir)
    logger.info(
        f"Wrote {len(result.artifacts)} artifact(s) to {output_dir} "
        f"(refinement: {result.metadata['refinement_status']})"
    )
    return 0


def show_config(args: argparse.Namespace, config: "StoryForgeConfig") -> int:
    """Print the effective configuration, optionally saving it."""
    print(json.dumps(config.to_dict(), indent=2))
    if args.init:
        path = config.save(Path(args.config) if args.config else None)
        print(f"Configuration written to {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for StoryForge.

    Returns:
        Exit code
    """
    from storyforge.core.errors import StoryForgeError
    from storyforge.infrastructure.llm.base import LLMError
    from storyforge.utils.logging import get_logger, log_error

    args = parse_args(argv)

    try:
        config = setup_environment(args)
        if args.command == "config":
            return show_config(args, config)
        return asyncio.run(run_pipeline(args, config))

    except KeyboardInterrupt:
        print("\nStoryForge terminated by user.")
        return 0
    except (StoryForgeError, LLMError, ValueError, OSError) as e:
        log_error(get_logger("app"), args.command, e)
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
