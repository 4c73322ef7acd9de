#!/usr/bin/env python3
"""
Convert a plain list of node positions into entries for the simulator's
POSITIONS array.

Input is a sequence of `id x y` triples separated by any whitespace:

    1 2.0 3.0
    2 4.5 6.25

Each triple becomes one line of out.txt:

    {"ID": 1, "X": 2.0, "Y": 3.0},
    {"ID": 2, "X": 4.5, "Y": 6.25},

Usage:
 python -m tsch_sim_helper.set_position [--input position.txt] [--output out.txt] [--json-array]
"""
import argparse
import math
import os
import re
from collections import namedtuple
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO

DEFAULT_INPUT = "position.txt"
DEFAULT_OUTPUT = "out.txt"

PositionRecord = namedtuple('PositionRecord', ['id', 'x', 'y'])

_int_re = re.compile(r'[+-]?\d+')
_float_re = re.compile(r'[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


class PositionError(ValueError):
    def __init__(self, message: str, source: Optional[str] = None, record: Optional[int] = None) -> None:
        self.source = source
        self.record = record
        where = f"{source}: " if source else ''
        if record is not None:
            where += f"record {record}: "
        super().__init__(f"{where}{message}")


class TruncatedInputError(PositionError):
    """The token stream ended in the middle of an id/x/y triple."""


class MalformedPositionError(PositionError):
    """A token could not be read as the expected id or coordinate."""


def iter_tokens(stream: TextIO) -> Iterator[str]:
    for line in stream:
        yield from line.split()


def _parse_id(token: str, source: Optional[str], record: int) -> int:
    if not _int_re.fullmatch(token):
        raise MalformedPositionError(f"node id {token!r} is not an integer", source, record)
    return int(token)


def _parse_coordinate(token: str, axis: str, source: Optional[str], record: int) -> float:
    if not _float_re.fullmatch(token):
        raise MalformedPositionError(f"{axis} coordinate {token!r} is not a number", source, record)
    value = float(token)
    if not math.isfinite(value):
        raise MalformedPositionError(f"{axis} coordinate {token!r} is not finite", source, record)
    return value


def read_positions(stream: TextIO, source: Optional[str] = None) -> Iterator[PositionRecord]:
    tokens = iter_tokens(stream)
    record = 0
    for id_token in tokens:
        record += 1
        rest = [token for _, token in zip(range(2), tokens)]
        if len(rest) < 2:
            missing = 'x and y' if not rest else 'y'
            raise TruncatedInputError(f"truncated input, node {id_token} has no {missing} coordinate", source, record)
        node_id = _parse_id(id_token, source, record)
        x = _parse_coordinate(rest[0], 'X', source, record)
        y = _parse_coordinate(rest[1], 'Y', source, record)
        yield PositionRecord(node_id, x, y)


def format_position(record: PositionRecord, trailing_comma: bool = True) -> str:
    # repr keeps the shortest decimal form of each float (2.0, 6.25, ...)
    text = f'{{"ID": {record.id}, "X": {record.x!r}, "Y": {record.y!r}}}'
    return text + ',' if trailing_comma else text


def assemble_json_array(lines: Iterable[str]) -> str:
    """Join converter lines into one JSON array, dropping the last trailing comma."""
    body = [line.rstrip('\n') for line in lines]
    if body and body[-1].endswith(','):
        body[-1] = body[-1][:-1]
    return '[\n' + ''.join(line + '\n' for line in body) + ']\n'


def convert_positions(source: str = DEFAULT_INPUT, output: str = DEFAULT_OUTPUT, json_array: bool = False) -> int:
    out_dir = os.path.dirname(output)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    count = 0
    with open(source, 'r', encoding='utf-8', errors='replace') as fh, open(output, 'w', encoding='utf-8', newline='\n') as out:
        if json_array:
            lines: List[str] = [format_position(rec) for rec in read_positions(fh, source)]
            out.write(assemble_json_array(lines))
            count = len(lines)
        else:
            for rec in read_positions(fh, source):
                out.write(format_position(rec) + '\n')
                count += 1

    print(f"Data written into file {output}")
    return count


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Convert "id x y" node positions into simulator POSITIONS entries')
    parser.add_argument('--input', default=DEFAULT_INPUT, help='Whitespace-separated id/x/y triples (default: position.txt)')
    parser.add_argument('--output', default=DEFAULT_OUTPUT, help='Output file (default: out.txt)')
    parser.add_argument('--json-array', action='store_true', help='Wrap the entries in [ ] without the final comma')
    args = parser.parse_args(argv)

    try:
        convert_positions(args.input, args.output, json_array=args.json_array)
    except (OSError, PositionError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
