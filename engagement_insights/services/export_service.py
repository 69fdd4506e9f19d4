"""
Export of scrape results as CSV or JSON.

The CSV column order and header text are consumed by existing tools and
must stay exactly ``Name,Company,Job Title,Profile URL``.
"""
import csv
import io
from typing import Iterable, Optional, Union
from engagement_insights.models import EnrichedProfile, OutputFormat, ScrapeResult
from engagement_insights.utils.text import normalize_field

CSV_HEADERS = ["Name", "Company", "Job Title", "Profile URL"]


def profiles_to_csv(profiles: Iterable[EnrichedProfile]) -> str:
    """Header row, then one fully quoted row per profile."""
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for profile in profiles:
        writer.writerow([
            normalize_field(profile.name),
            normalize_field(profile.company),
            normalize_field(profile.job_title),
            profile.profile_url or "",
        ])
    return buffer.getvalue()


def render_result(
    result: ScrapeResult,
    fmt: Union[OutputFormat, str] = OutputFormat.JSON,
    indent: Optional[int] = 2
) -> str:
    """Serialize a result for the requested output format."""
    fmt = OutputFormat(fmt)
    if fmt == OutputFormat.CSV:
        return profiles_to_csv(result.profiles)
    return result.model_dump_json(indent=indent)
