#!/usr/bin/env python
"""
Event Processing Script
=======================

Convert tagged per-event inputs into even/odd feature tables for classifier
training.

For every requested channel and year, reads ``{in_dir}/{year}_{channel}.root``
(or ``.parquet`` with a ``_aux.parquet`` tag directory) and writes
``{out_dir}/{year}_{channel}/data_0.parquet`` (even event ids) and
``data_1.parquet`` (odd event ids).

Usage:
    # All channels and years, default selection
    python scripts/process_files.py --in-dir inputs --out-dir outputs

    # One source, first 10k accepted events
    python scripts/process_files.py --in-dir inputs --out-dir outputs \\
        --channels muTau --years 2016 --n-events 10000

    # Background-estimation tables: all regions, data included, 3 processes
    python scripts/process_files.py --in-dir inputs --out-dir outputs \\
        --inc-other-regions --inc-data --n-workers 3

Any contract violation in the inputs (malformed tag, unknown category or
sample, strat key overflow, weight check failure) aborts the run; the outputs
of the aborted source are unusable and must be regenerated.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hh_data_proc.data.categories import Channel
from hh_data_proc.data.selection import SelectionConfig
from hh_data_proc.errors import ContractViolation
from hh_data_proc.processing import process_sources


def main():
    parser = argparse.ArgumentParser(
        description="Process tagged event inputs into even/odd feature tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # All channels and years
  python scripts/process_files.py --in-dir inputs --out-dir outputs

  # Cut applied, nominal klambda only, DeepCSV b-tagging
  python scripts/process_files.py --in-dir inputs --out-dir outputs --apply-cut --nominal-kl --use-deep-csv

  # Restrict the feature set
  python scripts/process_files.py --in-dir inputs --out-dir outputs --features h_bb_mass,h_tt_vis_mass,mt2
"""
    )

    parser.add_argument('--in-dir', type=str, required=True,
                        help='Directory holding {year}_{channel}.root or .parquet inputs')
    parser.add_argument('--out-dir', type=str, required=True,
                        help='Output root directory')
    parser.add_argument('--channels', type=str, default='tauTau,muTau,eTau',
                        help='Comma-separated channels (default: tauTau,muTau,eTau)')
    parser.add_argument('--years', type=str, default='2016,2017,2018',
                        help='Comma-separated years (default: 2016,2017,2018)')
    parser.add_argument('--n-events', type=int, default=-1,
                        help='Maximum rows written per source (default: -1 = all)')

    # Selection switches
    parser.add_argument('--apply-cut', action='store_true', default=False,
                        help='Require the mass-window cut to have passed')
    parser.add_argument('--inc-all-jets', action='store_true', default=False,
                        help='Include the inclusive 2j category')
    parser.add_argument('--inc-other-regions', action='store_true', default=False,
                        help='Include regions other than OS isolated')
    parser.add_argument('--inc-data', action='store_true', default=False,
                        help='Include collider data')
    parser.add_argument('--inc-unc', action='store_true', default=False,
                        help='Include systematic variations')
    parser.add_argument('--nominal-kl', action='store_true', default=False,
                        help='Keep only klambda = 1 signal')
    parser.add_argument('--use-deep-csv', action='store_true', default=False,
                        help='Use DeepCSV instead of CSV b-tag scores')

    # Output options
    parser.add_argument('--features', type=str, default=None,
                        help='Comma-separated feature subset (default: all features)')
    parser.add_argument('--event-id-column', type=str, default=None,
                        help='Input column holding the event id used for the even/odd split '
                             '(default: entry index)')
    parser.add_argument('--chunk-size', type=int, default=10_000,
                        help='Rows read per chunk (default: 10000)')
    parser.add_argument('--n-workers', type=int, default=1,
                        help='Sources processed in parallel processes (default: 1)')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    channels = [c.strip() for c in args.channels.split(',') if c.strip()]
    years = [y.strip() for y in args.years.split(',') if y.strip()]
    requested = [f.strip() for f in args.features.split(',')] if args.features else None

    in_dir = Path(args.in_dir)
    if not in_dir.is_dir():
        print(f"❌ Error: input directory not found: {in_dir}")
        sys.exit(1)

    config = SelectionConfig(
        apply_cut_requirement=args.apply_cut,
        include_all_jet_categories=args.inc_all_jets,
        include_non_signal_regions=args.inc_other_regions,
        include_real_data=args.inc_data,
        include_systematic_variations=args.inc_unc,
        restrict_to_nominal_coupling=args.nominal_kl,
        n_events=args.n_events,
        use_deep_csv=args.use_deep_csv,
    )

    print("\n" + "=" * 70)
    print("HH bbtautau: Event Processing")
    print("=" * 70)
    print(f"Input:        {in_dir}")
    print(f"Output:       {args.out_dir}")
    print(f"Channels:     {channels} (known: {[c.name for c in Channel]})")
    print(f"Years:        {years}")
    print(f"Features:     {requested if requested else 'all'}")
    print(f"Workers:      {args.n_workers}")
    print(config)
    print("=" * 70 + "\n")

    try:
        summaries = process_sources(
            str(in_dir), args.out_dir, channels, years,
            n_workers=args.n_workers,
            config=config,
            requested=requested,
            event_id_column=args.event_id_column,
            chunk_size=args.chunk_size,
        )
    except ContractViolation as e:
        print(f"\n❌ Aborted: input contract violation: {e}")
        print("   Outputs of the failed source are incomplete and must be regenerated.")
        sys.exit(2)
    except (FileNotFoundError, ValueError) as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)

    print(f"\n✓ Processing complete!")
    for s in summaries:
        print(f"✓ {s.source}: {s.n_accepted:,} / {s.n_read:,} events kept "
              f"(data_0: {s.n_partition[0]:,}, data_1: {s.n_partition[1]:,})")
    print()


if __name__ == '__main__':
    main()
