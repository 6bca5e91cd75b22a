"""
Drain deadline encoding in compute instance labels.

The drain-at label is the only state the scheduler keeps between cycles.
"""

import re
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from errors import InvalidDeadlineEncodingError

DRAIN_AT_LABEL = "spotter-drain-at"
EPOCH_SECONDS_RE = re.compile(r"-?[0-9]+")


def encode_deadline(deadline: datetime) -> str:
    """Encode a deadline as whole epoch seconds."""
    return str(int(deadline.timestamp()))


def read_deadline(labels: Optional[Mapping[str, str]]) -> Optional[datetime]:
    """
    Read the drain deadline from an instance's labels.

    Args:
        labels: Instance labels (may be None for unlabelled instances)

    Returns:
        Aware UTC datetime, or None if no deadline has been assigned yet

    Raises:
        InvalidDeadlineEncodingError: If the label is not an integer timestamp
    """
    if not labels or DRAIN_AT_LABEL not in labels:
        return None

    raw = labels[DRAIN_AT_LABEL]
    # Only plain base-10 digits; int() would also take "1_7", "+17" or padding
    if not isinstance(raw, str) or not EPOCH_SECONDS_RE.fullmatch(raw):
        raise InvalidDeadlineEncodingError(
            f"Label {DRAIN_AT_LABEL}={raw!r} is not an epoch timestamp"
        )
    seconds = int(raw)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidDeadlineEncodingError(
            f"Label {DRAIN_AT_LABEL}={raw!r} is out of range"
        )


def write_deadline(
    labels: Optional[Mapping[str, str]], deadline: datetime
) -> Dict[str, str]:
    """Return a copy of labels with the drain deadline set."""
    updated = dict(labels or {})
    updated[DRAIN_AT_LABEL] = encode_deadline(deadline)
    return updated
