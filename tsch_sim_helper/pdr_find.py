#!/usr/bin/env python3
"""
Collect the end-of-run statistics of a batch of TSCH simulation logs into one
space-separated table.

The simulator prints three summary lines at the end of every run:

    packet stats: PDR=95.00% generated=100 received=95 lost=5 (...)
    link stats: Links#=12 PAR=98.00% tx=340 acked=333
    latency=5 collision=2 slot cycle=10 slot cycle ratio=0.5

Values are copied as they appear in the log. PDR and Links# are buffered and
the row is completed by the next latency line.

Usage:
 python -m tsch_sim_helper.pdr_find [--dir .] [--last-index 99 | --until-missing] [--output outList.txt]
"""
import argparse
import os
from collections import namedtuple
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

HEADER = "PDR Links# latency collision slotCycle slotCycleRatio"
DEFAULT_OUTPUT = "outList.txt"

Field = namedtuple('Field', ['name', 'label', 'terminator'])
LineRule = namedtuple('LineRule', ['fields', 'ends_row'])

LogSequence = namedtuple(
    'LogSequence',
    ['directory', 'base_name', 'extension', 'first_index', 'last_index'],
    defaults=('.', 'log', '.txt', 0, 99),
)

ExtractionResult = namedtuple('ExtractionResult', ['output', 'files', 'rows'])

# Evaluated in this order for every line; a rule fires when the line
# contains the label of its first field.
DEFAULT_RULES: Tuple[LineRule, ...] = (
    LineRule((Field('PDR', 'PDR=', ' '),), ends_row=False),
    LineRule((Field('Links#', 'Links#=', ' '),), ends_row=False),
    LineRule(
        (
            Field('latency', 'latency=', ' '),
            Field('collision', 'collision=', ' '),
            Field('slotCycle', 'slot cycle=', ' '),
            Field('slotCycleRatio', 'slot cycle ratio=', None),
        ),
        ends_row=True,
    ),
)


class MalformedRecordError(ValueError):
    """A line selected by a rule does not carry the expected fields."""

    def __init__(self, message: str, path: Optional[str] = None, line_no: Optional[int] = None,
                 label: Optional[str] = None) -> None:
        self.path = path
        self.line_no = line_no
        self.label = label
        where = ''
        if path is not None:
            where = f"{path}:{line_no}: " if line_no is not None else f"{path}: "
        super().__init__(f"{where}{message}")


def log_file_name(base_name: str, extension: str, index: int) -> str:
    if index == 0:
        return f"{base_name}{extension}"
    return f"{base_name}_{index}{extension}"


def iter_log_paths(sequence: LogSequence) -> Iterator[Path]:
    """
    Yield the log paths of a sequence in ascending index order.

    With a fixed last_index every name in range is yielded and a missing file
    fails when it is opened. With last_index=None the sequence ends at the
    first missing file.
    """
    directory = Path(sequence.directory)
    index = sequence.first_index
    while sequence.last_index is None or index <= sequence.last_index:
        path = directory / log_file_name(sequence.base_name, sequence.extension, index)
        if sequence.last_index is None and not path.exists():
            return
        yield path
        index += 1


def extract_fields(line: str, rule: LineRule, path: Optional[str] = None,
                   line_no: Optional[int] = None) -> List[str]:
    values: List[str] = []
    cursor = 0
    for field in rule.fields:
        start = line.find(field.label, cursor)
        if start < 0:
            raise MalformedRecordError(f"missing '{field.label}'", path, line_no, field.label)
        value_start = start + len(field.label)
        if field.terminator is None:
            values.append(line[value_start:])
        else:
            end = line.find(field.terminator, value_start)
            if end < 0:
                raise MalformedRecordError(
                    f"value of '{field.label}' is not followed by {field.terminator!r}",
                    path, line_no, field.label,
                )
            values.append(line[value_start:end])
        # later labels are searched from this match onwards
        cursor = start
    return values


def extract_line(line: str, rules: Sequence[LineRule] = DEFAULT_RULES, path: Optional[str] = None,
                 line_no: Optional[int] = None) -> List[Tuple[List[str], bool]]:
    """Return (values, ends_row) for every rule that fires on the line."""
    groups: List[Tuple[List[str], bool]] = []
    for rule in rules:
        if rule.fields[0].label in line:
            groups.append((extract_fields(line, rule, path, line_no), rule.ends_row))
    return groups


def extract_metrics(
    sequence: LogSequence = LogSequence(),
    output: str = DEFAULT_OUTPUT,
    rules: Sequence[LineRule] = DEFAULT_RULES,
) -> ExtractionResult:
    files: List[str] = []
    rows = 0
    pending: List[str] = []

    out_dir = os.path.dirname(output)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    with open(output, 'w', encoding='utf-8', newline='\n') as out:
        out.write(HEADER + '\n')

        for path in iter_log_paths(sequence):
            print(path)
            with open(path, 'r', encoding='utf-8', errors='ignore') as fh:
                for line_no, line in enumerate(fh, 1):
                    line = line.rstrip('\n')
                    for values, ends_row in extract_line(line, rules, str(path), line_no):
                        pending.extend(values)
                        if ends_row:
                            out.write(' '.join(pending) + '\n')
                            pending = []
                            rows += 1
            files.append(str(path))

        if pending:
            # Unterminated values are kept as written fragments, without a newline
            out.write(''.join(value + ' ' for value in pending))
            print(f"Warning: {len(pending)} value(s) without a following latency line at end of {output}")

    print(f"Data written into file {output}")
    return ExtractionResult(output, files, rows)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Extract PDR, links, latency and slot cycle metrics from simulation logs')
    parser.add_argument('--dir', default='.', help='Directory containing log.txt, log_1.txt, ... (default: current dir)')
    parser.add_argument('--base-name', default='log', help='Log file base name (default: log)')
    parser.add_argument('--first-index', type=int, default=0, help='First log index to read (0 is log.txt)')
    parser.add_argument('--last-index', type=int, default=99, help='Last log index to read, inclusive (default: 99)')
    parser.add_argument('--until-missing', action='store_true', help='Stop at the first missing log instead of failing')
    parser.add_argument('--output', default=DEFAULT_OUTPUT, help='Output file (default: outList.txt)')
    args = parser.parse_args(argv)

    sequence = LogSequence(
        directory=args.dir,
        base_name=args.base_name,
        first_index=args.first_index,
        last_index=None if args.until_missing else args.last_index,
    )

    try:
        extract_metrics(sequence, args.output)
    except (OSError, MalformedRecordError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
