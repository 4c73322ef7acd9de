#!/usr/bin/env python3
"""
Aggregate statistics over the rows produced by pdr_find.

Reads outList.txt (one row per simulation run), writes count/mean/std/min/max
per metric to a CSV and optionally one plot per metric against the run index.

Usage:
 python -m tsch_sim_helper.summary [--input outList.txt] [--out-file outList_summary.csv] [--plots-dir plots]
"""
import argparse
import os
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

METRIC_COLUMNS = ['PDR', 'Links#', 'latency', 'collision', 'slotCycle', 'slotCycleRatio']
LATENCY_GROUP = ['latency', 'collision', 'slotCycle', 'slotCycleRatio']

AXIS_LABELS = {
    'PDR': 'Packet Delivery Ratio (%)',
    'Links#': 'Links',
    'latency': 'Average Latency',
    'collision': 'MAC RX Collisions',
    'slotCycle': 'Slot Cycle',
    'slotCycleRatio': 'Slot Cycle Ratio',
}


def load_summary(path: str) -> pd.DataFrame:
    """
    Read a pdr_find table into a DataFrame with one numeric column per metric.

    A row holding only the latency group (no PDR/Links# buffered before it)
    is aligned to the right with PDR and Links# left empty. Any other row
    without exactly one value per column raises ValueError naming the line.
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as fh:
        lines = fh.read().splitlines()

    header = lines[0].split() if lines else []
    if header != METRIC_COLUMNS:
        raise ValueError(f"{path}: expected header '{' '.join(METRIC_COLUMNS)}'")

    records = []
    for line_no, line in enumerate(lines[1:], 2):
        fields = line.split()
        if not fields:
            continue
        if len(fields) == len(LATENCY_GROUP):
            fields = [None] * (len(METRIC_COLUMNS) - len(LATENCY_GROUP)) + fields
        elif len(fields) != len(METRIC_COLUMNS):
            raise ValueError(
                f"{path}:{line_no}: expected {len(METRIC_COLUMNS)} values, found {len(fields)}"
            )
        if fields[0] is not None:
            fields[0] = fields[0].rstrip('%')
        records.append(fields)

    df = pd.DataFrame(records, columns=METRIC_COLUMNS, dtype=object)
    for col in METRIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce')
    df.insert(0, 'run', range(len(df)))
    return df


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    rows = []
    for col in METRIC_COLUMNS:
        values = df[col].dropna()
        rows.append({
            'metric': col,
            'count': int(values.count()),
            'mean': values.mean() if len(values) else None,
            'std': values.std() if len(values) > 1 else None,
            'min': values.min() if len(values) else None,
            'max': values.max() if len(values) else None,
        })
    return pd.DataFrame(rows, columns=['metric', 'count', 'mean', 'std', 'min', 'max'])


def plot_metrics(df: pd.DataFrame, output_dir: str) -> List[Path]:
    os.makedirs(output_dir, exist_ok=True)
    written: List[Path] = []
    for col in METRIC_COLUMNS:
        data = df[['run', col]].dropna()
        if data.empty:
            continue
        fig, ax = plt.subplots()
        ax.plot(data['run'], data[col], marker='o', linestyle='-')
        ax.set_xlabel("Run Index")
        ax.set_ylabel(AXIS_LABELS[col])
        ax.set_title(f"{AXIS_LABELS[col]} per Run")
        ax.grid(True)
        fig.tight_layout()
        # '#' is awkward in file names
        out_path = Path(output_dir) / f"{col.replace('#', '_count')}_per_run.png"
        fig.savefig(out_path, dpi=300)
        plt.close(fig)
        written.append(out_path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Summarize the metrics extracted by pdr_find')
    parser.add_argument('--input', default='outList.txt', help='Table written by pdr_find (default: outList.txt)')
    parser.add_argument('--out-file', default='outList_summary.csv', help='Output CSV with per-metric statistics')
    parser.add_argument('--plots-dir', default=None, help='Optional directory for per-metric plots')
    args = parser.parse_args(argv)

    if not os.path.exists(args.input):
        print(f"ERROR: input file not found: {args.input}")
        return 1

    try:
        df = load_summary(args.input)
        stats = summarize(df)
        stats.to_csv(args.out_file, index=False)
        print(f"Wrote statistics for {len(df)} runs to: {args.out_file}")
        for _, row in stats.iterrows():
            print(f"   {row['metric']:>15}: mean={row['mean']} min={row['min']} max={row['max']}")

        if args.plots_dir:
            plots = plot_metrics(df, args.plots_dir)
            print(f"Saved {len(plots)} plots to: {args.plots_dir}")
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
