"""
Output Partitions
=================

Append-only Parquet tables for processed events. Each input source produces
two disjoint partitions (``data_0`` for even event ids, ``data_1`` for odd)
under ``{out_dir}/{year}_{channel}/``.

Rows are buffered and written as row groups, preserving append order. A run
that fails mid-pass leaves incomplete files behind; they are not recovered
and must be regenerated.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from hh_data_proc.data.routing import PARTITION_NAMES

logger = logging.getLogger(__name__)

META_SCHEMA = [
    ('weight', pa.float64()),
    ('sample', pa.int32()),
    ('region', pa.int32()),
    ('jet_cat', pa.int32()),
    ('cut', pa.bool_()),
    ('scale', pa.bool_()),
    ('syst_unc', pa.bool_()),
    ('class_id', pa.int32()),
    ('strat_key', pa.uint64()),
]


@dataclass(frozen=True)
class FeatureRow:
    """One output record."""
    features: np.ndarray
    weight: float
    sample: int
    region: int
    jet_cat: int
    cut: bool
    scale: bool
    syst_unc: bool
    class_id: int
    strat_key: int


def output_schema(feature_names: Sequence[str]) -> pa.Schema:
    return pa.schema([(name, pa.float32()) for name in feature_names] + META_SCHEMA)


class PartitionWriter:
    """Buffered append-only writer for one partition file."""

    def __init__(self, path: Path, feature_names: Sequence[str], row_group_size: int = 50_000):
        self.path = Path(path)
        self.feature_names = list(feature_names)
        self.row_group_size = row_group_size
        self.schema = output_schema(self.feature_names)
        self.n_rows = 0
        self._buffer: List[FeatureRow] = []
        self._writer = pq.ParquetWriter(str(self.path), self.schema, compression='snappy')

    def append(self, row: FeatureRow):
        if len(row.features) != len(self.feature_names):
            raise ValueError(
                f"Feature vector has {len(row.features)} entries, expected {len(self.feature_names)}"
            )
        self._buffer.append(row)
        self.n_rows += 1
        if len(self._buffer) >= self.row_group_size:
            self.flush()

    def flush(self):
        if not self._buffer:
            return
        features = np.stack([row.features for row in self._buffer]).astype(np.float32)
        columns: Dict[str, object] = {
            name: features[:, i] for i, name in enumerate(self.feature_names)
        }
        for name, _ in META_SCHEMA:
            columns[name] = [getattr(row, name) for row in self._buffer]
        self._writer.write_table(pa.Table.from_pydict(columns, schema=self.schema))
        self._buffer = []

    def close(self):
        if self._writer is None:
            return
        self.flush()
        self._writer.close()
        self._writer = None


class PartitionSet:
    """The even/odd pair of partition writers for one input source."""

    def __init__(self, out_dir: Path, feature_names: Sequence[str], row_group_size: int = 50_000):
        self.out_dir = Path(out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self.paths = [self.out_dir / f"{name}.parquet" for name in PARTITION_NAMES]
        self.writers: List[PartitionWriter] = []
        try:
            for path in self.paths:
                self.writers.append(PartitionWriter(path, feature_names, row_group_size))
        except Exception:
            self.close()
            raise

    def append(self, partition: int, row: FeatureRow):
        self.writers[partition].append(row)

    @property
    def counts(self) -> List[int]:
        return [w.n_rows for w in self.writers]

    def close(self):
        for writer in self.writers:
            writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def read_partitions(out_dir: str) -> Dict[str, pd.DataFrame]:
    """
    Load both partitions of a processed source.

    Args:
        out_dir: Directory holding data_0.parquet and data_1.parquet

    Returns:
        Dict partition name -> DataFrame
    """
    out_dir = Path(out_dir)
    frames = {}
    for name in PARTITION_NAMES:
        path = out_dir / f"{name}.parquet"
        if not path.exists():
            raise FileNotFoundError(f"Partition not found: {path}")
        frames[name] = pq.read_table(path).to_pandas()
    return frames


def strata_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-stratum event counts and weight sums.

    Returns:
        DataFrame indexed by strat_key with columns
        [n_events, sum_weight, sample, jet_cat, region, cut, syst_unc]
    """
    summary = df.groupby('strat_key').agg(
        n_events=('weight', 'size'),
        sum_weight=('weight', 'sum'),
        sample=('sample', 'first'),
        jet_cat=('jet_cat', 'first'),
        region=('region', 'first'),
        cut=('cut', 'first'),
        syst_unc=('syst_unc', 'first'),
    )
    return summary.sort_values('n_events', ascending=False)
