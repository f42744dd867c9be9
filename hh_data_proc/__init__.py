"""
hh_data_proc
============

Builds flat feature tables for di-Higgs (bb + tautau) classifier training
from tagged per-event inputs.

Subpackages:
    data: Tag decoding, sample classification, selection, reconciliation,
          stratification keys and routing
    ingest: Columnar input stores (ROOT, Parquet)
    processing: Feature transform, partition writers and the event pipeline
"""

__version__ = "0.1.0"
