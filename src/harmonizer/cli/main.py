"""CLI entry point for the repository harmonizer."""
import argparse
from dotenv import load_dotenv
import json
import sys
import traceback

from harmonizer.agents.exceptions import AgentError, MalformedModelResponseError
from harmonizer.core.config import HarmonizerConfig, load_config
from harmonizer.core.logging import redact_sensitive, setup_logging
from harmonizer.models import PipelineResult
from harmonizer.orchestrator.exceptions import (
    HarmonizeValidationError,
    OrchestratorError,
)
from harmonizer.remote.exceptions import RemoteApiError

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_AGENT_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_REMOTE_ERROR = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="harmonizer",
        description="Harmonize repository files with a language model and open a PR",
    )
    parser.add_argument("paths", nargs="+", help="Repository paths to collect")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Create a branch, commit the rewrites and open a pull request "
        "(default: preview only)",
    )
    parser.add_argument("--owner", type=str, default=None, help="Repository owner")
    parser.add_argument("--repo", type=str, default=None, help="Repository name")
    parser.add_argument(
        "--base-branch", type=str, default=None, help="Base branch (default: main)"
    )
    parser.add_argument("--note", type=str, default=None, help="Mission note for the model")
    parser.add_argument("--title", type=str, default=None, help="Pull request title")
    parser.add_argument(
        "--description", type=str, default=None, help="Pull request description"
    )
    parser.add_argument("--caller", type=str, default=None, help="Caller label for the manifest")
    parser.add_argument(
        "--write-manifest",
        action="store_true",
        help="Also commit a markdown run manifest on the new branch",
    )
    parser.add_argument(
        "--llm-provider",
        type=str,
        default=None,
        choices=("openai", "anthropic"),
        help="LLM provider for the rewrite call (default: openai)",
    )
    parser.add_argument("--model", type=str, default=None, help="Model ID to use")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Print config and exit without running"
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    return parser


def resolve_config(args: argparse.Namespace) -> HarmonizerConfig:
    """Load configuration and layer CLI model overrides on top."""
    config = load_config(args.config)
    if args.llm_provider:
        config.model.provider = args.llm_provider
    if args.model:
        config.model.model = args.model
    return config


def print_result_human(result: PipelineResult) -> None:
    """Print results in human-readable format."""
    print(f"\n{'='*60}")
    print(f"Harmonizer Results ({result.mode})")
    print(f"{'='*60}")

    print(f"\nFiles collected: {result.collected_count}")
    if result.skipped:
        print(f"Skipped ({len(result.skipped)}):")
        for entry in result.skipped:
            print(f"  - {entry.path}: {entry.reason.value}")

    if result.summary:
        print(f"\nSummary: {result.summary}")

    if result.outcome is None:
        print(f"\nProposed files ({len(result.files)}):")
        for change in result.files:
            rationale = f" - {change.rationale}" if change.rationale else ""
            print(f"  {change.path}{rationale}")
    else:
        outcome = result.outcome
        print(f"\nBranch: {outcome.branch_name}")
        print(f"Pull request #{outcome.pull_request_number}: {outcome.pull_request_url}")
        print(f"\nChanged files ({len(outcome.changed_files)}):")
        for changed in outcome.changed_files:
            print(f"  {changed.status.value}: {changed.path}")
        if outcome.manifest_path:
            print(f"Manifest: {outcome.manifest_path}")

    print(f"\n{'='*60}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
        if isinstance(exc, MalformedModelResponseError) and exc.raw_reply:
            print(f"Raw model reply:\n{exc.raw_reply}", file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING", structured=False)

    try:
        config = resolve_config(args)
    except Exception as exc:
        return _handle_error("Invalid configuration", exc, args.verbose, EXIT_INVALID_INPUT)

    if args.dry_run:
        payload = {
            "paths": args.paths,
            "apply": args.apply,
            "config": redact_sensitive(config.model_dump()),
        }
        print(json.dumps(payload, indent=2))
        return EXIT_SUCCESS

    from harmonizer.orchestrator.pipeline import HarmonizePipeline

    try:
        pipeline = HarmonizePipeline(config)
        result = pipeline.run(
            args.paths,
            apply=args.apply,
            owner=args.owner,
            repo=args.repo,
            base_branch=args.base_branch,
            note=args.note,
            title=args.title,
            description=args.description,
            caller=args.caller,
            write_manifest=args.write_manifest or None,
        )

        if args.output_json:
            print(json.dumps(result.to_response(), indent=2))
        else:
            print_result_human(result)
        return EXIT_SUCCESS

    except HarmonizeValidationError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except AgentError as exc:
        return _handle_error("Agent error", exc, args.verbose, EXIT_AGENT_ERROR)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except RemoteApiError as exc:
        return _handle_error("Remote API error", exc, args.verbose, EXIT_REMOTE_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
