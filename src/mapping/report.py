"""Mapping report exporters (text, JSON, CSV)."""

import csv
import io
import json
import logging
from datetime import datetime
from typing import Optional

from constants import Constants, OutputFormats
from mapping.models import MappingReport

logger = logging.getLogger(__name__)


def render_text(report: MappingReport, generated_at: Optional[datetime] = None) -> str:
    """Render the ``source -> target`` mapping file with a commented header."""
    stamp = (generated_at or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")
    lines = [
        f"# {Constants.SOURCE_DISTRO_LABEL} to {Constants.TARGET_DISTRO_LABEL} "
        f"Package Mapping | Generated on {stamp}",
        "# Format: source_package -> target_package",
        f"# Mapped: {report.found}, Not Found: {report.not_found}",
    ]
    if report.cancelled:
        lines.append("# Run was interrupted; list is partial.")
    for source, target in report.pairs():
        lines.append(f"{source} -> {target or Constants.NOT_FOUND_MARKER}")
    return "\n".join(lines) + "\n"


def render_successful(report: MappingReport) -> str:
    """Render only the found ``source -> target`` lines, the target install list."""
    lines = [f"{source} -> {target}" for source, target in report.pairs() if target]
    return "".join(line + "\n" for line in lines)


def export_successful(report: MappingReport, path: str) -> int:
    """Write the found-only mapping to path and return the number of lines.

    Raises:
        OSError: If the file cannot be written.
    """
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(render_successful(report))
    logger.info("Successfully mapped packages saved to: %s", path)
    return report.found


def report_to_dict(report: MappingReport) -> dict:
    """Plain-data form of the report used by the JSON exporter."""
    return {
        "summary": {
            "processed": report.processed,
            "found": report.found,
            "notFound": report.not_found,
            "cancelled": report.cancelled,
        },
        "mappings": [
            {
                "source": r.source_name,
                "target": r.target_name,
                "outcome": r.outcome.value,
                "fromCache": r.from_cache,
            }
            for r in report.results
        ],
    }


def render_csv(report: MappingReport) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Source Package", "Target Package", "Outcome", "From Cache"])
    for r in report.results:
        writer.writerow([r.source_name, r.target_name or "", r.outcome.value, r.from_cache])
    return buf.getvalue()


def infer_format(path: str, explicit: Optional[str] = None) -> str:
    """Pick the output format from the flag, then the file extension, else text."""
    if explicit:
        return explicit.lower()
    lower = path.lower()
    if lower.endswith(".json"):
        return OutputFormats.JSON.value
    if lower.endswith(".csv"):
        return OutputFormats.CSV.value
    return OutputFormats.TEXT.value


def export_report(report: MappingReport, path: str, fmt: Optional[str] = None) -> str:
    """Write the report to path and return the format used.

    Raises:
        OSError: If the file cannot be written.
        ValueError: If the format is unknown.
    """
    fmt = infer_format(path, fmt)
    if fmt == OutputFormats.JSON.value:
        content = json.dumps(report_to_dict(report), ensure_ascii=False, indent=4) + "\n"
    elif fmt == OutputFormats.CSV.value:
        content = render_csv(report)
    elif fmt == OutputFormats.TEXT.value:
        content = render_text(report)
    else:
        raise ValueError(f"unsupported output format: {fmt}")

    newline = "" if fmt == OutputFormats.CSV.value else None
    with open(path, "w", encoding="utf-8", newline=newline) as fh:
        fh.write(content)
    logger.info("%s mapping file has been successfully exported at: %s", fmt.upper(), path)
    return fmt
