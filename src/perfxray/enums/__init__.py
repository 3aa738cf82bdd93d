"""
perfxray Enums Package.

    from perfxray.enums import EnumDiffClassification, EnumLogLevel
"""

from perfxray.enums.enum_diff_classification import EnumDiffClassification
from perfxray.enums.enum_log_level import EnumLogLevel

__all__ = [
    "EnumDiffClassification",
    "EnumLogLevel",
]
