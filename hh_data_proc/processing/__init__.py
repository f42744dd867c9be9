"""
Processing Module
=================

Event loop, default kinematic feature transform and Parquet partition output.
"""

from hh_data_proc.processing.features import (
    FEATURE_NAMES,
    FeatureContext,
    KinematicFeatureTransform,
    KinematicInputs,
)
from hh_data_proc.processing.writer import (
    FeatureRow,
    PartitionWriter,
    read_partitions,
    strata_summary,
)
from hh_data_proc.processing.pipeline import (
    EventPipeline,
    LoopSummary,
    process_file,
    process_sources,
)

__all__ = [
    "FEATURE_NAMES",
    "FeatureContext",
    "KinematicFeatureTransform",
    "KinematicInputs",
    "FeatureRow",
    "PartitionWriter",
    "read_partitions",
    "strata_summary",
    "EventPipeline",
    "LoopSummary",
    "process_file",
    "process_sources",
]
