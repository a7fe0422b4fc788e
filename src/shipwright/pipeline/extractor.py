"""
shipwright.pipeline.extractor - Artifact Extraction from Build Events
=======================================================================

Packer reports what it built as machine-readable events:

    1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6
    └timestamp┘└─source─┘└─type──┘ │  │  └──── dataValue ─────┘
                               streamIndex dataKey

Only events whose dataKey is exactly "id" matter. Their dataValue is
`region:artifactId`, split on the FIRST colon, so an artifact id that itself
contains colons is kept whole.

Parsing is best effort: anything malformed or irrelevant is skipped without
touching the artifact map and without raising, because a bad line must not
abort a build that is otherwise succeeding.

Only one artifact per region is tracked. A later event for the same region
replaces the earlier one.
"""

from __future__ import annotations

import threading
from typing import MutableMapping, Sequence

import structlog


logger = structlog.get_logger()

# Field positions in a machine-readable event.
DATA_KEY_INDEX = 4
DATA_VALUE_INDEX = 5


def extract_artifact(
    fields: Sequence[str],
    artifact_map: MutableMapping[str, str],
) -> None:
    """Record the artifact described by one event, if it describes one.

    Args:
        fields: The event's fields, in order.
        artifact_map: Region → artifact id, updated in place.
    """
    # Short events (ui lines, truncated output) carry no dataKey.
    if len(fields) <= DATA_KEY_INDEX:
        return
    if fields[DATA_KEY_INDEX] != "id":
        return
    if len(fields) <= DATA_VALUE_INDEX:
        logger.debug("artifact_event_without_value", fields=list(fields))
        return

    region, sep, artifact_id = fields[DATA_VALUE_INDEX].partition(":")
    if not sep:
        logger.debug("artifact_event_unparseable", value=fields[DATA_VALUE_INDEX])
        return

    artifact_map[region] = artifact_id
    logger.debug("artifact_extracted", region=region, artifact_id=artifact_id)


class ArtifactCollector:
    """Thread-safe accumulator of region → artifact id.

    An instance is the `on_event` callback for one build. Each call is a
    critical section, so a tool that reports from several workers cannot
    interleave two updates. Last write wins per region.

    Example:
        >>> collector = ArtifactCollector()
        >>> collector(["1440649959", "amazon-ebs", "artifact", "0", "id", "us-east-1:ami-9d66def6"])
        >>> collector.snapshot()
        {'us-east-1': 'ami-9d66def6'}
    """

    def __init__(self) -> None:
        self._artifacts: dict[str, str] = {}
        self._lock = threading.Lock()

    def __call__(self, fields: Sequence[str]) -> None:
        with self._lock:
            extract_artifact(fields, self._artifacts)

    def snapshot(self) -> dict[str, str]:
        """A copy of the collected artifacts."""
        with self._lock:
            return dict(self._artifacts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)
