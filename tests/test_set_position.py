import io
import json

import pytest

from tsch_sim_helper.set_position import (
    MalformedPositionError,
    PositionRecord,
    TruncatedInputError,
    assemble_json_array,
    convert_positions,
    format_position,
    main,
    read_positions,
)


def test_scenario_output(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / 'position.txt').write_text("1 2.0 3.0\n2 4.5 6.25\n")

    count = convert_positions()

    assert count == 2
    assert (tmp_path / 'out.txt').read_text() == (
        '{"ID": 1, "X": 2.0, "Y": 3.0},\n'
        '{"ID": 2, "X": 4.5, "Y": 6.25},\n'
    )
    assert capsys.readouterr().out.strip() == 'Data written into file out.txt'


def test_whitespace_between_tokens_is_insignificant():
    records = list(read_positions(io.StringIO("  1\t2.0\n\n3.0 2\n4.5 6.25 3 -1 1e3")))
    assert records == [
        PositionRecord(1, 2.0, 3.0),
        PositionRecord(2, 4.5, 6.25),
        PositionRecord(3, -1.0, 1000.0),
    ]


def test_integer_coordinates_print_as_floats():
    assert format_position(PositionRecord(7, 10.0, 0.1)) == '{"ID": 7, "X": 10.0, "Y": 0.1},'
    records = list(read_positions(io.StringIO("7 10 5")))
    assert format_position(records[0]) == '{"ID": 7, "X": 10.0, "Y": 5.0},'


def test_format_without_trailing_comma():
    assert format_position(PositionRecord(1, 2.5, 3.0), trailing_comma=False) == '{"ID": 1, "X": 2.5, "Y": 3.0}'


def test_empty_input_yields_nothing():
    assert list(read_positions(io.StringIO("\n  \n"))) == []


@pytest.mark.parametrize('text, record', [
    ("1 2.0 3.0\n2", 2),
    ("1 2.0 3.0\n2 4.5", 2),
    ("1", 1),
])
def test_truncated_input(text, record):
    with pytest.raises(TruncatedInputError) as excinfo:
        list(read_positions(io.StringIO(text), source='position.txt'))
    assert excinfo.value.record == record
    assert 'truncated input' in str(excinfo.value)
    assert 'position.txt' in str(excinfo.value)


@pytest.mark.parametrize('text', [
    "1.5 2.0 3.0",
    "a 2.0 3.0",
    "1 x 3.0",
    "1 2.0 nan",
    "1 inf 3.0",
    "1 1_000 2.0",
    "1 2.0 -3_5.5",
    "1 0x10 2.0",
])
def test_malformed_tokens(text):
    with pytest.raises(MalformedPositionError):
        list(read_positions(io.StringIO(text)))


def test_records_before_error_are_yielded_in_order():
    reader = read_positions(io.StringIO("3 1.0 1.0\n1 2.0 2.0\n9"))
    assert next(reader) == PositionRecord(3, 1.0, 1.0)
    assert next(reader) == PositionRecord(1, 2.0, 2.0)
    with pytest.raises(TruncatedInputError):
        next(reader)


def test_assembled_output_is_valid_json(tmp_path):
    source = tmp_path / 'position.txt'
    output = tmp_path / 'out.txt'
    source.write_text("1 2.0 3.0\n2 4.5 6.25\n3 -0.125 1e-05\n")

    convert_positions(str(source), str(output))

    lines = output.read_text().splitlines()
    assert len(lines) == 3
    data = json.loads(assemble_json_array(lines))
    assert data == [
        {'ID': 1, 'X': 2.0, 'Y': 3.0},
        {'ID': 2, 'X': 4.5, 'Y': 6.25},
        {'ID': 3, 'X': -0.125, 'Y': 1e-05},
    ]


def test_json_array_option(tmp_path):
    source = tmp_path / 'position.txt'
    output = tmp_path / 'positions.json'
    source.write_text("1 2.0 3.0\n2 4.5 6.25\n")

    assert convert_positions(str(source), str(output), json_array=True) == 2

    text = output.read_text()
    assert text.startswith('[\n{"ID": 1')
    assert json.loads(text)[1] == {'ID': 2, 'X': 4.5, 'Y': 6.25}


def test_assemble_empty():
    assert json.loads(assemble_json_array([])) == []


def test_main_missing_input(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert 'ERROR' in capsys.readouterr().out


def test_main_truncated_input(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / 'nodes.txt').write_text("1 2.0 3.0\n2 4.5\n")

    assert main(['--input', 'nodes.txt', '--output', 'nodes_out.txt']) == 1

    out = capsys.readouterr().out
    assert 'nodes.txt' in out
    assert 'record 2' in out
    assert (tmp_path / 'nodes_out.txt').read_text() == '{"ID": 1, "X": 2.0, "Y": 3.0},\n'


def test_undecodable_bytes_are_reported(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / 'position.txt').write_bytes(b"1 2.0 3.\xff0\n")

    assert main([]) == 1
    assert 'record 1' in capsys.readouterr().out
