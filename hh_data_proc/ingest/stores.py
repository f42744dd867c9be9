"""
Columnar Event Stores
=====================

Read-only access to per-event input tables.

An input source for one channel and year consists of:
- an event table (one row per event) with a list of tag ids (``dataIds``),
  a per-tag weight vector (``weight``) and kinematic scalar columns
- an auxiliary tag directory (``aux``) whose rows hold parallel lists of tag
  ids (``dataIds``) and tag names (``dataId_names``)

Two backends:
- ROOT files via uproot: ``{in_dir}/{year}_{channel}.root`` with the event
  tree named after the channel and the directory tree ``aux``
- Parquet via pyarrow: ``{in_dir}/{year}_{channel}.parquet`` and
  ``{in_dir}/{year}_{channel}_aux.parquet``

Usage:
------
    from hh_data_proc.ingest import open_event_store

    with open_event_store('inputs', 'muTau', '2016') as store:
        directory = store.read_tag_directory()
        for chunk in store.iterate(['dataIds', 'weight'], chunk_size=10_000):
            ...
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

import pyarrow.parquet as pq
import uproot

from hh_data_proc.errors import ContractViolation

logger = logging.getLogger(__name__)

TAG_ID_COLUMN = 'dataIds'
TAG_NAME_COLUMN = 'dataId_names'
WEIGHT_COLUMN = 'weight'
AUX_TREE = 'aux'


class EventStore:
    """
    Base class for columnar event stores.

    Subclasses implement opening/closing, row counting, tag-directory reading
    and chunked column iteration. Stores are context managers.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def open(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def num_entries(self) -> int:
        raise NotImplementedError

    def columns(self) -> List[str]:
        raise NotImplementedError

    def _read_aux(self) -> Tuple[Sequence, Sequence]:
        """Return per-row lists of tag ids and tag names from the aux table."""
        raise NotImplementedError

    def iterate(self, columns: Sequence[str], chunk_size: int = 10_000) -> Iterator[Dict[str, Sequence]]:
        """
        Iterate over the event table in chunks.

        Args:
            columns: Column names to read
            chunk_size: Rows per chunk

        Yields:
            Dict mapping column name to a per-row sequence (lists for list columns)
        """
        raise NotImplementedError

    def read_tag_directory(self) -> Mapping[int, str]:
        """
        Build the tag id -> tag name lookup with one full scan of the aux table.

        Returns:
            Read-only mapping, shared unchanged for the rest of the pass

        Raises:
            ContractViolation: Mismatched list lengths, or one id mapped to two names
        """
        ids_per_row, names_per_row = self._read_aux()
        directory: Dict[int, str] = {}
        for row, (ids, names) in enumerate(zip(ids_per_row, names_per_row)):
            if len(ids) != len(names):
                raise ContractViolation(
                    f"Aux row {row} has {len(ids)} tag ids but {len(names)} names"
                )
            for tag_id, name in zip(ids, names):
                tag_id = int(tag_id)
                name = name.decode() if isinstance(name, bytes) else str(name)
                if directory.get(tag_id, name) != name:
                    raise ContractViolation(
                        f"Tag id {tag_id} maps to both '{directory[tag_id]}' and '{name}'"
                    )
                directory[tag_id] = name

        logger.info(f"Loaded {len(directory)} tag names from {self.path}")
        return MappingProxyType(directory)


class RootEventStore(EventStore):
    """ROOT-file event store read through uproot."""

    def __init__(self, path: Path, tree: str, aux_tree: str = AUX_TREE):
        super().__init__(path)
        self.tree_name = tree
        self.aux_tree_name = aux_tree
        self._file = None

    def open(self):
        if not self.path.exists():
            raise FileNotFoundError(f"Input file not found: {self.path}")
        self._file = uproot.open(self.path)
        for name in (self.tree_name, self.aux_tree_name):
            if name not in self._file:
                self._file.close()
                raise FileNotFoundError(f"Tree '{name}' not found in {self.path}")

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def _tree(self):
        if self._file is None:
            raise RuntimeError("Store is not open")
        return self._file[self.tree_name]

    @property
    def num_entries(self) -> int:
        return self._tree.num_entries

    def columns(self) -> List[str]:
        return list(self._tree.keys())

    def _read_aux(self) -> Tuple[Sequence, Sequence]:
        arrays = self._file[self.aux_tree_name].arrays(
            [TAG_ID_COLUMN, TAG_NAME_COLUMN], library='np'
        )
        return arrays[TAG_ID_COLUMN], arrays[TAG_NAME_COLUMN]

    def iterate(self, columns: Sequence[str], chunk_size: int = 10_000) -> Iterator[Dict[str, Sequence]]:
        for arrays in self._tree.iterate(list(columns), step_size=chunk_size, library='np'):
            yield arrays


class ParquetEventStore(EventStore):
    """Parquet event store read through pyarrow, with a separate aux file."""

    def __init__(self, path: Path, aux_path: Path):
        super().__init__(path)
        self.aux_path = Path(aux_path)
        self._file = None

    def open(self):
        for p in (self.path, self.aux_path):
            if not p.exists():
                raise FileNotFoundError(f"Input file not found: {p}")
        self._file = pq.ParquetFile(str(self.path))

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def num_entries(self) -> int:
        return self._file.metadata.num_rows

    def columns(self) -> List[str]:
        return list(self._file.schema_arrow.names)

    def _read_aux(self) -> Tuple[Sequence, Sequence]:
        table = pq.read_table(str(self.aux_path), columns=[TAG_ID_COLUMN, TAG_NAME_COLUMN])
        data = table.to_pydict()
        return data[TAG_ID_COLUMN], data[TAG_NAME_COLUMN]

    def iterate(self, columns: Sequence[str], chunk_size: int = 10_000) -> Iterator[Dict[str, Sequence]]:
        for batch in self._file.iter_batches(batch_size=chunk_size, columns=list(columns)):
            yield batch.to_pydict()


def source_name(channel: str, year: str) -> str:
    return f"{year}_{channel}"


def open_event_store(in_dir: str, channel: str, year: str) -> EventStore:
    """
    Create the store for ``{in_dir}/{year}_{channel}``, choosing the backend
    by which file exists (ROOT preferred).

    Returns:
        Unopened EventStore (use as a context manager)

    Raises:
        FileNotFoundError: If neither a ROOT nor a Parquet input exists
    """
    base = Path(in_dir) / source_name(channel, year)
    root_path = base.with_suffix('.root')
    parquet_path = base.with_suffix('.parquet')

    if root_path.exists():
        return RootEventStore(root_path, tree=channel)
    if parquet_path.exists():
        return ParquetEventStore(parquet_path, Path(in_dir) / f"{source_name(channel, year)}_aux.parquet")
    raise FileNotFoundError(
        f"No input for {source_name(channel, year)}: expected {root_path} or {parquet_path}"
    )
