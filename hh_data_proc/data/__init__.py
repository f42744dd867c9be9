"""
Event Categorisation Module
===========================

Pure, I/O-free logic applied to each event's tags:
- Tag decoding into typed category flags
- Sample classification (signal / background / data)
- Selection predicate and its configuration
- Multi-tag reconciliation and weight resolution
- Stratification keys and even/odd routing

Key Components:
    decode_tag: Tag name -> DecodedTag
    classify_sample: Sample token -> SampleInfo
    SelectionConfig: Selection switches and run options
    reconcile_tags: Per-event merge of tag decisions
    strat_key: Category tuple -> 64-bit key
"""

from hh_data_proc.data.categories import (
    JET_CATEGORIES,
    REGIONS,
    BOOSTED_JET_CAT,
    NO_CATEGORY_JET_CAT,
    SIGNAL_REGION,
    Spin,
    Channel,
    Year,
    get_channel,
    get_year,
    get_jet_cat_name,
    get_region_name,
)
from hh_data_proc.data.samples import SampleInfo, classify_sample, class_label, get_sample_name
from hh_data_proc.data.tags import DecodedTag, decode_tag
from hh_data_proc.data.selection import (
    SelectionConfig,
    accept_tag,
    default_selection,
    inference_selection,
    full_selection,
)
from hh_data_proc.data.reconcile import MergedDecision, reconcile_tags, resolve_weight
from hh_data_proc.data.strat_key import strat_key, decode_strat_key
from hh_data_proc.data.routing import route_event

__all__ = [
    "JET_CATEGORIES",
    "REGIONS",
    "BOOSTED_JET_CAT",
    "NO_CATEGORY_JET_CAT",
    "SIGNAL_REGION",
    "Spin",
    "Channel",
    "Year",
    "get_channel",
    "get_year",
    "get_jet_cat_name",
    "get_region_name",
    "SampleInfo",
    "classify_sample",
    "class_label",
    "get_sample_name",
    "DecodedTag",
    "decode_tag",
    "SelectionConfig",
    "accept_tag",
    "default_selection",
    "inference_selection",
    "full_selection",
    "MergedDecision",
    "reconcile_tags",
    "resolve_weight",
    "strat_key",
    "decode_strat_key",
    "route_event",
]
