#!/usr/bin/env python3
"""Export a form's structure as JSON and/or Markdown."""

from __future__ import annotations

import argparse
import json

from form_export.config import settings
from form_export.forms import FormProviderError, build_form_provider
from form_export.observability import configure_logging
from form_export.runner import EXPORT_FORMATS, ExportRunConfig, run_export

FORMAT_CHOICES = {
    "json": ("json",),
    "markdown": ("markdown",),
    "both": EXPORT_FORMATS,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export a form's structure as JSON and/or Markdown.")
    parser.add_argument(
        "--form-id",
        default=settings.form_id,
        help="Form id (or snapshot id/path for the file provider). Defaults to FORM_ID.",
    )
    parser.add_argument(
        "--format",
        choices=sorted(FORMAT_CHOICES),
        default="both",
        help="Which artifacts to produce.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Directory or s3://bucket/prefix for the artifacts. Pass '' to skip persistence. Defaults to EXPORT_LOCATION.",
    )
    parser.add_argument(
        "--provider",
        choices=["google", "file"],
        default=None,
        help="Form data source. Defaults to FORM_PROVIDER.",
    )
    parser.add_argument("--snapshot-root", default=None, help="Directory holding <form-id>.json snapshots.")
    parser.add_argument("--timezone", default=None, help="IANA zone used for export file timestamps.")
    parser.add_argument("--log-level", default=None, help="Logging level. Defaults to LOG_LEVEL.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    form_id = (args.form_id or "").strip()
    if not form_id:
        parser.error("a form id is required (--form-id or FORM_ID)")

    overrides = {
        key: value
        for key, value in {
            "form_provider": args.provider,
            "snapshot_root": args.snapshot_root,
            "export_location": args.output,
            "export_timezone": args.timezone,
            "log_level": args.log_level,
        }.items()
        if value is not None
    }
    run_settings = settings.model_copy(update=overrides)
    configure_logging(run_settings.log_level)

    try:
        provider = build_form_provider(run_settings)
    except FormProviderError as exc:
        parser.error(str(exc))

    config = ExportRunConfig.from_settings(run_settings, source_id=form_id)
    result = run_export(provider, config, formats=FORMAT_CHOICES[args.format], app_settings=run_settings)

    summary = {
        "form_id": result.form_id,
        "ok": result.ok,
        "fetched": result.fetched,
        "error": result.error,
        "artifacts": [
            {
                "format": artifact.format,
                "file_name": artifact.file_name,
                "location": artifact.location,
                "error": artifact.error,
            }
            for artifact in result.artifacts
        ],
    }
    print(json.dumps(summary, indent=2))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
