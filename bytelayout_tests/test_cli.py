# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import json
import sys

import pytest

from bytelayout.cli import decode_file, gen_codec, inspect_layout
from bytelayout.cli.main import CliManager
from bytelayout.cli.util import (
    LoggingOptions,
    LoggingOutput,
    load_type,
    process_logging_options,
    process_logging_output,
)
from bytelayout.serialization import Deserializer
from bytelayout_tests.fixtures import RECORD_BYTES, Header, Record, make_record

HEADER_BYTES = bytes.fromhex('01020304ff0b0a')


@pytest.fixture
def logging_calls(monkeypatch) -> list:
    calls: list = []

    def fake_setup_logging(*, logging_output, logging_options) -> None:
        calls.append((logging_output, logging_options))

    monkeypatch.setattr('bytelayout.cli.util.setup_logging', fake_setup_logging)
    return calls


def run_cli(monkeypatch, *args: str) -> int:
    monkeypatch.setattr(sys, 'argv', ['bytelayout-cli', *args])
    return CliManager().execute_from_command_line()


def test_help(monkeypatch, capsys) -> None:
    assert run_cli(monkeypatch, 'help') == 0
    output = capsys.readouterr().out
    for cmd in ('gen_codec', 'inspect_layout', 'decode_file'):
        assert cmd in output


def test_no_command(monkeypatch, capsys) -> None:
    assert run_cli(monkeypatch) == 0
    assert 'Available subcommands' in capsys.readouterr().out


def test_unknown_command(monkeypatch, capsys) -> None:
    assert run_cli(monkeypatch, 'frobnicate') == -1
    assert 'Unknown command: "frobnicate"' in capsys.readouterr().out


def test_command_help(monkeypatch, capsys, logging_calls) -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_cli(monkeypatch, 'inspect_layout', '--help')
    assert exc_info.value.args[0] == 0
    assert '--json' in capsys.readouterr().out


def test_dispatch_with_logging_options(monkeypatch, capsys, logging_calls) -> None:
    assert run_cli(monkeypatch, 'inspect_layout', '--json-logs', '--debug', 'bytelayout_tests.fixtures:Header') == 0
    assert logging_calls == [(LoggingOutput.JSON, LoggingOptions(debug=True))]
    assert capsys.readouterr().out.startswith('Header: 7 bytes, pod=True')


def test_process_logging_arguments() -> None:
    argv = ['--disable-logs', 'x:Y', '--json']
    assert process_logging_output(argv) == LoggingOutput.NULL
    assert argv == ['x:Y', '--json']
    assert process_logging_options(argv) == LoggingOptions(debug=False)
    assert process_logging_output([]) == LoggingOutput.PRETTY


def test_inspect_layout(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, 'argv', ['inspect_layout', 'bytelayout_tests.fixtures:Record'])
    inspect_layout.main()
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == 'Record: 29 bytes, pod=False'
    assert len(lines) == 8
    assert 'checked: u32 big (skip 2)' in lines[6]


def test_inspect_layout_padding(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, 'argv', ['inspect_layout', 'bytelayout_tests.fixtures:Packet'])
    inspect_layout.main()
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == 'Packet: 18 bytes, pod=False'
    assert lines[2].endswith('(align 4, padding 3)')
    assert lines[3].endswith('(conditional)')
    assert lines[4].endswith('(skip 1, align 4, padding 3)')


def test_inspect_layout_json(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, 'argv', ['inspect_layout', 'bytelayout_tests.fixtures:Header', '--json'])
    inspect_layout.main()
    description = json.loads(capsys.readouterr().out)
    assert description['size'] == 7
    assert description['pod'] is True
    assert description['backend'] == 'source'
    assert [(f['name'], f['offset'], f['size'], f['byte_order']) for f in description['fields']] == [
        ('magic', 0, 4, 'big'),
        ('version', 4, 1, None),
        ('length', 5, 2, 'little'),
    ]


def test_gen_codec(monkeypatch, tmp_path) -> None:
    output = tmp_path / 'record_codec.py'
    monkeypatch.setattr(sys, 'argv', ['gen_codec', 'bytelayout_tests.fixtures:Record', '--output', str(output)])
    gen_codec.main()
    source = output.read_text()
    assert source.startswith('# Generated by bytelayout, do not edit.')

    namespace: dict = {}
    exec(compile(source, str(output), 'exec'), namespace)
    assert namespace['decode_Record'](Deserializer.build_bytes_deserializer(RECORD_BYTES)) == make_record()


def test_gen_codec_stdout(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, 'argv', ['gen_codec', 'bytelayout_tests.fixtures:Header', '--header', '# custom'])
    gen_codec.main()
    source = capsys.readouterr().out
    assert source.startswith('# custom\n')
    assert 'def pack_into_Header(buffer, offset, value):' in source


def test_decode_file(monkeypatch, capsys, tmp_path) -> None:
    path = tmp_path / 'headers.bin'
    path.write_bytes(HEADER_BYTES + bytes.fromhex('00000002 01 0100'))
    monkeypatch.setattr(sys, 'argv', ['decode_file', 'bytelayout_tests.fixtures:Header', str(path)])
    decode_file.main()
    assert json.loads(capsys.readouterr().out) == [
        {'magic': 0x01020304, 'version': 0xff, 'length': 0x0a0b},
        {'magic': 2, 'version': 1, 'length': 1},
    ]


def test_decode_file_offset_and_count(monkeypatch, capsys, tmp_path) -> None:
    path = tmp_path / 'records.bin'
    path.write_bytes(b'\xee' + RECORD_BYTES * 2)
    monkeypatch.setattr(sys, 'argv', ['decode_file', 'bytelayout_tests.fixtures:Record', str(path), '--offset', '1',
                                      '--count', '1', '--indent', '2'])
    decode_file.main()
    values = json.loads(capsys.readouterr().out)
    assert len(values) == 1
    assert values[0]['name'] == '61626364'
    assert values[0]['colors'] == ['RED', 'BLUE']


def test_decode_to_json(tmp_path) -> None:
    path = tmp_path / 'header.bin'
    path.write_bytes(HEADER_BYTES)
    with open(path, 'rb') as fp:
        assert decode_file.decode_to_json(Header, fp) == [{'magic': 0x01020304, 'version': 0xff, 'length': 0x0a0b}]


@pytest.mark.parametrize(
    'path',
    [
        'bytelayout_tests.fixtures',
        'bytelayout_tests.fixtures:Missing',
        'bytelayout_tests.does_not_exist:Record',
        'bytelayout_tests.fixtures:Color',
    ]
)
def test_load_type_errors(path: str, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        load_type(path)
    assert exc_info.value.code == 2
    assert capsys.readouterr().err


def test_load_type() -> None:
    assert load_type('bytelayout_tests.fixtures:Record') is Record
