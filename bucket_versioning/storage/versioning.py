"""
Version / delete-marker reconciliation.

S3 reports an object's history as two separate lists, ``Versions`` and
``DeleteMarkers``.  These helpers merge them into a single newest-first
sequence and pick the delete marker an undelete should remove.

Entries without ``last_modified`` sort as the oldest.  ``sorted`` is
stable, so entries sharing a timestamp keep the order they arrived in;
that order is whatever the backend returned and is not a contract.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from bucket_versioning.storage.errors import NoDeleteMarkerFound
from bucket_versioning.storage.models import DeleteMarker, ObjectVersion, VersionEntry


def _timestamp(entry: VersionEntry) -> float:
    last_modified: Optional[datetime] = entry.last_modified
    return last_modified.timestamp() if last_modified else 0.0


def newest_first(entries: Iterable[VersionEntry]) -> List[VersionEntry]:
    """Sort entries by ``last_modified`` descending (stable)."""
    return sorted(entries, key=_timestamp, reverse=True)


def merge_version_history(
    versions: Sequence[ObjectVersion],
    delete_markers: Sequence[DeleteMarker],
) -> List[VersionEntry]:
    """Concatenate versions and delete markers, newest first."""
    return newest_first([*versions, *delete_markers])


def latest_delete_marker(entries: Iterable[VersionEntry], key: str) -> DeleteMarker:
    """
    Return the most recent delete marker recorded for exactly *key*.

    Listings are prefix-filtered, so ``a.txt`` also matches ``a.txt.bak``;
    the exact-key check discards those siblings.

    Raises:
        NoDeleteMarkerFound: If *key* has no delete marker.
    """
    markers = [e for e in entries if e.is_delete_marker and e.key == key]
    if not markers:
        raise NoDeleteMarkerFound(key)
    return newest_first(markers)[0]
