#!/usr/bin/env python
"""
Run the comic book generator on a JSON file of audience inputs.

Reads the inputs from a file (or stdin), runs the workflow and writes the
final output JSON to a file (or stdout).
"""

# Standard library imports
import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

# Local imports
from comicbook_lib.api.comicbook import generate_comic
from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.exceptions import ComicBookException
from comicbook_lib.core.logger import get_logger, setup_logging
from comicbook_lib.generation.port import GenerationPort

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a short comic book story from audience story elements."
    )
    parser.add_argument(
        "--input", "-i",
        help="JSON file with audience inputs (reads stdin if omitted)",
    )
    parser.add_argument(
        "--output", "-o",
        help="Where to write the final output JSON (stdout if omitted)",
    )
    parser.add_argument("--scenes", type=int, help="Number of scenes to generate")
    parser.add_argument(
        "--revision-limit", type=int,
        help="Story plan critiques before approval is forced",
    )
    parser.add_argument(
        "--scene-mode", choices=["sequential", "fanout"],
        help="Generate scenes one after another or in parallel",
    )
    parser.add_argument(
        "--review", action="store_true", default=None,
        help="Critique the story plan before writing scenes",
    )
    parser.add_argument(
        "--visuals", action="store_true", default=None,
        help="Generate a visual description and image prompt for every scene",
    )
    parser.add_argument(
        "--lenient-inputs", action="store_true",
        help="Drop malformed inputs instead of failing",
    )
    parser.add_argument("--genre", help="Story genre (default: murder mystery)")
    parser.add_argument(
        "--provider", choices=["openai", "anthropic", "gemini", "groq"],
        help="LLM provider",
    )
    parser.add_argument("--model", help="Model name for the provider")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser.parse_args(argv)


def load_inputs(path: Optional[str]) -> Any:
    """Load audience inputs from ``path`` or stdin.

    Accepts a bare list, ``{"audience_inputs": [...]}`` or the doubly wrapped form.
    """
    text = Path(path).read_text(encoding="utf-8") if path else sys.stdin.read()
    data = json.loads(text)
    if isinstance(data, dict) and "audience_inputs" in data:
        return data["audience_inputs"]
    return data


def settings_from_args(args: argparse.Namespace) -> ComicSettings:
    return ComicSettings.from_env(
        scene_count=args.scenes,
        revision_limit=args.revision_limit,
        scene_mode=args.scene_mode,
        narrative_review=args.review,
        visuals=args.visuals,
        strict_inputs=False if args.lenient_inputs else None,
        genre=args.genre,
        llm={"provider": args.provider, "model": args.model},
    )


def main(argv: Optional[List[str]] = None, port: Optional[GenerationPort] = None) -> int:
    args = parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        audience_inputs = load_inputs(args.input)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Could not read audience inputs: {e}")
        return 1

    try:
        settings = settings_from_args(args)
        final_output = generate_comic(audience_inputs, settings=settings, port=port)
    except ComicBookException as e:
        logger.error(f"Comic generation failed: {e}")
        return 1

    result = json.dumps(final_output.to_json_dict(), indent=2, ensure_ascii=False)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result + "\n", encoding="utf-8")
        logger.info(f"Comic written to {args.output}")
    else:
        print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
