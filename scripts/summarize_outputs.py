#!/usr/bin/env python3
"""
Summarise processed even/odd feature tables.

For one processed source directory (``{out_dir}/{year}_{channel}``) this script
reports, per partition:
1. Row counts and weight sums per class (signal / background / data)
2. The most populated strata, with their keys decoded back to
   (sample, jet category, region, cut, systematic)
3. Whether the even/odd partitions hold the same set of strata
"""

import argparse
import time
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from hh_data_proc.data.categories import get_jet_cat_name, get_region_name
from hh_data_proc.data.samples import get_sample_name
from hh_data_proc.processing.writer import read_partitions, strata_summary

CLASS_NAMES = {1: 'signal', 0: 'background', -1: 'data'}


def summarize_outputs(source_dir: str, top: int = 10):
    """
    Print a summary of both partitions of a processed source.

    Args:
        source_dir: Directory holding data_0.parquet and data_1.parquet
        top: Number of strata listed per partition
    """
    print(f"Reading from: {source_dir}")
    print("=" * 80)

    start = time.time()
    frames = read_partitions(source_dir)
    elapsed = time.time() - start
    print(f"   ✓ Read {sum(len(df) for df in frames.values()):,} rows in {elapsed:.1f}s")

    strata = {}
    for name, df in frames.items():
        print(f"\n{name}: {len(df):,} rows")
        print("-" * 80)
        for class_id, group in df.groupby('class_id'):
            label = CLASS_NAMES.get(class_id, str(class_id))
            print(f"   {label:<11} {len(group):>10,} rows   sum(weight) = {group['weight'].sum():.4g}")

        summary = strata_summary(df)
        strata[name] = set(summary.index)
        print(f"\n   {len(summary):,} strata, top {min(top, len(summary))}:")
        for key, row in summary.head(top).iterrows():
            print(f"     {int(key):>20}  {get_sample_name(int(row['sample'])):<13} "
                  f"{get_jet_cat_name(int(row['jet_cat'])):<14} {get_region_name(int(row['region'])):<16} "
                  f"cut={bool(row['cut'])!s:<5} central={bool(row['syst_unc'])!s:<5} "
                  f"n={int(row['n_events']):,}")

    print("\n" + "=" * 80)
    only_even = strata['data_0'] - strata['data_1']
    only_odd = strata['data_1'] - strata['data_0']
    if only_even or only_odd:
        print(f"⚠️  Strata present in one partition only: "
              f"data_0={len(only_even)}, data_1={len(only_odd)}")
    else:
        print("✓ Both partitions cover the same strata")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Summarise processed even/odd feature tables")
    parser.add_argument("source_dir", help="Processed source directory, e.g. outputs/2016_muTau")
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Strata listed per partition (default: 10)",
    )

    args = parser.parse_args()

    if not Path(args.source_dir).is_dir():
        print(f"❌ Error: directory not found: {args.source_dir}")
        sys.exit(1)

    summarize_outputs(args.source_dir, top=args.top)
