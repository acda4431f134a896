"""CLI entrypoints for assessor commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from .config import ConfigError, load_config, load_rubric
from .errors import AssessorError
from .evidence import build_submission
from .factory import build_collector, build_pipeline
from .logging import configure_logging
from .models import SourceType

_URL_FIELDS = {
    SourceType.GITHUB_REPO: "url",
    SourceType.WEBSITE: "url",
    SourceType.SCREENSHOT: "image_url",
}


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .assessor.yml or the directory containing it.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assessor",
        description="Gather evidence from submissions and assess them against a rubric.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    repo_parser = subparsers.add_parser(
        "repo",
        help="Print the evidence summary for a GitHub repository.",
    )
    _add_verbose_option(repo_parser, suppress_default=True)
    _add_config_option(repo_parser)
    repo_parser.add_argument("url", help="Repository URL, e.g. https://github.com/owner/repo")

    website_parser = subparsers.add_parser(
        "website",
        help="Print the evidence summary for a deployed website.",
    )
    _add_verbose_option(website_parser, suppress_default=True)
    _add_config_option(website_parser)
    website_parser.add_argument("url", help="Website URL; https:// is assumed when omitted.")

    assess_parser = subparsers.add_parser(
        "assess",
        help="Assess a submission against a rubric and print the verdict as JSON.",
    )
    _add_verbose_option(assess_parser, suppress_default=True)
    _add_config_option(assess_parser)
    assess_parser.add_argument(
        "reference",
        help="Repository or website URL, image URL, or a path to a text file for text/document submissions.",
    )
    assess_parser.add_argument(
        "--type",
        dest="source_type",
        choices=[kind.value for kind in SourceType],
        default=SourceType.GITHUB_REPO.value,
        help="Submission type (default: github_repo).",
    )
    assess_parser.add_argument(
        "--rubric",
        type=Path,
        required=True,
        help="Path to a rubric YAML file.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for assessor commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "repo":
        collector = build_collector(config)
        try:
            evidence = collector.collect(build_submission(SourceType.GITHUB_REPO, url=args.url))
        except AssessorError as exc:
            parser.exit(1, f"assessor repo failed: {exc}\n")
        print(evidence.summary_text)
    elif args.command == "website":
        collector = build_collector(config)
        try:
            evidence = collector.collect(build_submission(SourceType.WEBSITE, url=args.url))
        except AssessorError as exc:
            parser.exit(1, f"assessor website failed: {exc}\n")
        print(evidence.summary_text)
    elif args.command == "assess":
        try:
            rubric = load_rubric(args.rubric)
            submission = _submission_from_args(args.source_type, args.reference)
            outcome = build_pipeline(config).run(submission, rubric, subject_key="cli")
        except (ConfigError, OSError) as exc:
            parser.exit(1, f"{exc}\n")
        except AssessorError as exc:
            parser.exit(1, f"assessor assess failed: {exc}\nRun with --verbose for more details.\n")
        payload = outcome.verdict.to_dict()
        payload["comparison"] = {
            "total_criteria": outcome.comparison.total_criteria,
            "criteria_met": outcome.comparison.criteria_met,
            "completion_percentage": outcome.comparison.completion_percentage,
        }
        payload["reference_example_used"] = outcome.reference_example_used
        print(json.dumps(payload, indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _submission_from_args(source_type: str, reference: str):
    kind = SourceType(source_type)
    if kind in (SourceType.TEXT, SourceType.DOCUMENT):
        path = Path(reference).expanduser()
        text = path.read_text(encoding="utf-8")
        if kind is SourceType.TEXT:
            return build_submission(kind, text=text)
        return build_submission(kind, content=text, filename=path.name, file_type=path.suffix.lstrip(".") or None)
    return build_submission(kind, **{_URL_FIELDS[kind]: reference})


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
