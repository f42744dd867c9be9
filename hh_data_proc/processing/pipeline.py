"""
Event Processing Pipeline
=========================

One sequential pass over an input source, producing the even/odd feature
tables.

Per event:
1. Fetch the event's tag ids and resolve them to names (tag directory built
   once before the loop, read-only afterwards)
2. Decode and classify every tag
3. Reconcile the tags into one decision; rejected events are skipped
4. Compute the stratification key and the canonical weight
5. Fetch the kinematic columns and run the feature transform
6. Route by event-id parity and append to the partition

Error handling:
- Selection rejections are counted and skipped
- Contract violations (bad tag shape/vocabulary, unknown tag id, strat key
  overflow, weight check failure) are logged with the event context and
  re-raised: the whole run aborts
- Missing inputs fail before any event is read

Usage:
------
    from hh_data_proc.processing import process_file
    from hh_data_proc.data import SelectionConfig

    summary = process_file('inputs', 'outputs', 'muTau', '2016',
                           config=SelectionConfig(n_events=10_000))
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from tqdm.auto import tqdm

from hh_data_proc.data.categories import Spin, get_channel, get_year
from hh_data_proc.data.reconcile import reconcile_tags, resolve_weight
from hh_data_proc.data.routing import route_event
from hh_data_proc.data.selection import SelectionConfig, default_selection
from hh_data_proc.data.strat_key import strat_key
from hh_data_proc.data.tags import decode_tag
from hh_data_proc.errors import ContractViolation, UnknownTagId
from hh_data_proc.ingest.stores import (
    TAG_ID_COLUMN,
    WEIGHT_COLUMN,
    open_event_store,
    source_name,
)
from hh_data_proc.processing.features import (
    FeatureContext,
    KinematicFeatureTransform,
    KinematicInputs,
    kinematic_columns,
)
from hh_data_proc.processing.writer import FeatureRow, PartitionSet

logger = logging.getLogger(__name__)


@dataclass
class LoopSummary:
    """Counters and outputs of one processed source."""
    source: str
    n_read: int = 0
    n_accepted: int = 0
    n_skipped: int = 0
    n_partition: List[int] = field(default_factory=lambda: [0, 0])
    output_paths: List[Path] = field(default_factory=list)
    reached_limit: bool = False


class EventPipeline:
    """
    Processes input sources into even/odd feature tables.

    Attributes:
        config: Selection switches and run options
        transform: Feature transform (``feature_names`` + ``process``)
        event_id_column: Column holding the event identity used for routing.
                         None uses the entry index in the input table.
        chunk_size: Rows read per chunk from the input store
        row_group_size: Rows per Parquet row group in the outputs
    """

    def __init__(
        self,
        config: Optional[SelectionConfig] = None,
        transform: Optional[Any] = None,
        event_id_column: Optional[str] = None,
        chunk_size: int = 10_000,
        row_group_size: int = 50_000,
        show_progress: bool = True,
    ):
        self.config = config if config is not None else default_selection()
        self.transform = transform if transform is not None else KinematicFeatureTransform()
        self.event_id_column = event_id_column
        self.chunk_size = chunk_size
        self.row_group_size = row_group_size
        self.show_progress = show_progress

    def input_columns(self) -> List[str]:
        columns = [TAG_ID_COLUMN, WEIGHT_COLUMN] + kinematic_columns(self.config.use_deep_csv)
        if self.event_id_column:
            columns.append(self.event_id_column)
        return columns

    def process_event(
        self,
        row: Mapping[str, Any],
        directory: Mapping[int, str],
        context: FeatureContext,
    ) -> Optional[FeatureRow]:
        """
        Run one event through decode -> reconcile -> transform.

        Args:
            row: Column name -> value for this event
            directory: Tag id -> tag name lookup
            context: Channel/year context (signal parameters are filled in here)

        Returns:
            FeatureRow, or None if the event is rejected

        Raises:
            ContractViolation: Any fatal data-contract breach
        """
        names = []
        for tag_id in row[TAG_ID_COLUMN]:
            if int(tag_id) not in directory:
                raise UnknownTagId(f"Tag id {int(tag_id)} not found in tag directory")
            names.append(directory[int(tag_id)])

        tags = [decode_tag(name) for name in names]
        decision = reconcile_tags(tags, self.config)
        if not decision.accept:
            return None

        lead = decision.lead
        key = strat_key(lead.sample, decision.jet_cat, lead.region, decision.cut, lead.syst_unc)
        weight = resolve_weight(row[WEIGHT_COLUMN], decision.accepted)

        inputs = KinematicInputs.from_row(row, self.config.use_deep_csv)
        event_context = FeatureContext(
            channel=context.channel,
            year=context.year,
            res_mass=lead.res_mass,
            spin=lead.spin,
            klambda=lead.klambda,
        )
        features = self.transform.process(inputs, decision.is_boosted, event_context)

        return FeatureRow(
            features=features,
            weight=weight,
            sample=lead.sample,
            region=lead.region,
            jet_cat=decision.jet_cat,
            cut=decision.cut,
            scale=lead.scale,
            syst_unc=lead.syst_unc,
            class_id=lead.class_id,
            strat_key=key,
        )

    def loop_file(self, in_dir: str, out_dir: str, channel: str, year: str) -> LoopSummary:
        """
        Process ``{in_dir}/{year}_{channel}`` into ``{out_dir}/{year}_{channel}/data_{0,1}.parquet``.

        Even event ids go to data_0, odd ones to data_1. Stops after
        ``config.n_events`` written rows if set.

        Returns:
            LoopSummary

        Raises:
            ValueError: Invalid channel or year
            FileNotFoundError: Input source missing
            ContractViolation: Fatal data-contract breach (run aborted)
        """
        context = FeatureContext(get_channel(channel), get_year(year), 0.0, Spin.nonres, 1.0)
        source = source_name(channel, year)
        summary = LoopSummary(source=source)
        limit = self.config.n_events

        logger.info("=" * 70)
        logger.info(f"Processing {source}")
        logger.info("=" * 70)

        store = open_event_store(in_dir, channel, year)
        with store:
            columns = self.input_columns()
            missing = sorted(set(columns) - set(store.columns()))
            if missing:
                raise ValueError(f"Input {store.path} is missing columns: {missing}")

            directory = store.read_tag_directory()
            n_total = store.num_entries

            with PartitionSet(Path(out_dir) / source, self.transform.feature_names,
                              self.row_group_size) as partitions:
                summary.output_paths = list(partitions.paths)
                with tqdm(total=n_total, desc=source, unit="evt", ncols=80,
                          disable=not self.show_progress) as pbar:
                    for chunk in store.iterate(columns, self.chunk_size):
                        n_chunk = len(chunk[TAG_ID_COLUMN])
                        for i in range(n_chunk):
                            if limit is not None and summary.n_accepted >= limit:
                                summary.reached_limit = True
                                break

                            row = {c: chunk[c][i] for c in columns}
                            entry = summary.n_read
                            event_id = int(row[self.event_id_column]) if self.event_id_column else entry
                            summary.n_read += 1

                            try:
                                feature_row = self.process_event(row, directory, context)
                            except ContractViolation as e:
                                names = [directory.get(int(t), '?') for t in row[TAG_ID_COLUMN]]
                                logger.error(
                                    f"Aborting {source} at entry {entry} (event {event_id}, "
                                    f"tags {names}): {e}"
                                )
                                raise

                            if feature_row is None:
                                summary.n_skipped += 1
                                logger.debug(f"Skipped entry {entry} (event {event_id}): no tag passed selection")
                                continue

                            partitions.append(route_event(event_id), feature_row)
                            summary.n_accepted += 1

                        pbar.update(n_chunk)
                        if summary.reached_limit:
                            break

                summary.n_partition = partitions.counts

        self._log_summary(summary)
        return summary

    def _log_summary(self, summary: LoopSummary):
        """Log run summary statistics."""
        logger.info("=" * 70)
        logger.info(f"Summary: {summary.source}")
        logger.info("=" * 70)
        logger.info(f"Events read:      {summary.n_read:,}")
        logger.info(f"Events accepted:  {summary.n_accepted:,}")
        logger.info(f"Events skipped:   {summary.n_skipped:,}")
        logger.info(f"data_0 (even id): {summary.n_partition[0]:,}")
        logger.info(f"data_1 (odd id):  {summary.n_partition[1]:,}")
        if summary.reached_limit:
            logger.info(f"Stopped at row limit {self.config.n_events:,}")
        logger.info("=" * 70)


# Convenience functions

def process_file(
    in_dir: str,
    out_dir: str,
    channel: str,
    year: str,
    config: Optional[SelectionConfig] = None,
    requested: Optional[Sequence[str]] = None,
    event_id_column: Optional[str] = None,
    chunk_size: int = 10_000,
    row_group_size: int = 50_000,
    show_progress: bool = True,
) -> LoopSummary:
    """
    Process one input source with the default feature transform.

    Args:
        in_dir: Directory holding ``{year}_{channel}`` inputs
        out_dir: Output root directory
        channel: tauTau, muTau or eTau
        year: 2016, 2017 or 2018
        config: Selection switches (default_selection() if None)
        requested: Feature subset; None returns all features
        event_id_column: Event identity column for routing (entry index if None)

    Returns:
        LoopSummary
    """
    transform = KinematicFeatureTransform(return_all=requested is None, requested=requested)
    pipeline = EventPipeline(
        config=config,
        transform=transform,
        event_id_column=event_id_column,
        chunk_size=chunk_size,
        row_group_size=row_group_size,
        show_progress=show_progress,
    )
    return pipeline.loop_file(in_dir, out_dir, channel, year)


def process_sources(
    in_dir: str,
    out_dir: str,
    channels: Sequence[str],
    years: Sequence[str],
    n_workers: int = 1,
    **kwargs,
) -> List[LoopSummary]:
    """
    Process every (channel, year) source.

    Sources are independent: with ``n_workers > 1`` each one runs in its own
    process, owning its own input and output files.

    Args:
        in_dir: Input directory
        out_dir: Output root directory
        channels: Channel names
        years: Year strings
        n_workers: Number of worker processes
        **kwargs: Forwarded to process_file

    Returns:
        One LoopSummary per source, in (channel, year) order
    """
    sources = [(c, y) for c in channels for y in years]
    for channel, year in sources:  # Fail on bad names before spawning anything
        get_channel(channel)
        get_year(year)

    if n_workers <= 1 or len(sources) <= 1:
        return [process_file(in_dir, out_dir, c, y, **kwargs) for c, y in sources]

    kwargs.setdefault('show_progress', False)
    with ProcessPoolExecutor(max_workers=min(n_workers, len(sources))) as pool:
        futures = [pool.submit(process_file, in_dir, out_dir, c, y, **kwargs) for c, y in sources]
        return [f.result() for f in futures]
