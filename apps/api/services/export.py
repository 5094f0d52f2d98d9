"""Export and distribution of a segment's matched customers."""

import csv
import io
import re
from datetime import datetime
from typing import Any, Dict, List, Sequence, Union

from packages.shared.profiles import ComputedProfile

EXPORT_HEADER = ["Name", "Email", "Role", "Lifetime Value", "Joined"]


def _export_amount(value: float) -> Union[int, float]:
    """Whole amounts as int so they render without a trailing .0."""
    if float(value).is_integer():
        return int(value)
    return round(value, 2)


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    return ""


def export_segment_csv(profiles: Sequence[ComputedProfile]) -> str:
    """
    Serialize matched customers as CSV.

    Columns are fixed: name, email, role, lifetime value (realized), joined
    date. Text fields are always double-quoted; rows are newline-delimited.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for profile in profiles:
        writer.writerow(
            [
                profile.full_name or "",
                profile.email or "",
                profile.role or "",
                _export_amount(profile.realized_value),
                _format_date(profile.created_at),
            ]
        )
    return buffer.getvalue()


def export_filename(segment_name: str) -> str:
    """File name for a segment export (whitespace runs become underscores)."""
    stem = re.sub(r"\s+", "_", segment_name.strip()) or "segment"
    return f"{stem}_export.csv"


def extract_emails(profiles: Sequence[ComputedProfile]) -> List[str]:
    """Non-empty emails of the matched customers, in order."""
    return [profile.email for profile in profiles if profile.email]


def build_campaign_audience(
    segment_id: Any, segment_name: str, profiles: Sequence[ComputedProfile]
) -> Dict[str, Any]:
    """Audience payload handed to the campaign tool."""
    recipients = [
        {"customer_id": str(profile.id), "email": profile.email, "full_name": profile.full_name}
        for profile in profiles
        if profile.email
    ]
    return {
        "segment_id": str(segment_id),
        "segment_name": segment_name,
        "recipient_count": len(recipients),
        "skipped_without_email": len(profiles) - len(recipients),
        "recipients": recipients,
    }
