"""Diff classification enum for snapshot comparison.

This module contains the classification assigned to each method key when two
snapshots are compared.
"""

from enum import StrEnum


class EnumDiffClassification(StrEnum):
    """Classification of one method between a baseline and a current snapshot.

    Attributes:
        IMPROVED: Present in both, average got faster beyond the threshold.
        REGRESSED: Present in both, average got slower beyond the threshold.
        NEW: Only present in the current snapshot.
        REMOVED: Only present in the baseline snapshot.
        UNCHANGED: Present in both, change within the threshold.

    Example:
        >>> from perfxray.enums import EnumDiffClassification
        >>> EnumDiffClassification.REGRESSED.value
        'regressed'
    """

    IMPROVED = "improved"
    REGRESSED = "regressed"
    NEW = "new"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


__all__ = ["EnumDiffClassification"]
