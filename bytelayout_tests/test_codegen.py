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

import io
import struct
from dataclasses import dataclass
from typing import Annotated

import pytest
from structlog.testing import capture_logs

from bytelayout import decode, decode_bytes, encode, encode_bytes, from_bytes, get_layout_record, layout, pod
from bytelayout.codegen import ClosureEmitter, SourceEmitter, get_emitter
from bytelayout.exceptions import NotImportableError
from bytelayout.serialization import DecodeValueError, Deserializer, EncodeValueError, Serializer, UnexpectedEofError
from bytelayout.types import Array, Be, Bytes, Check, EnumRepr, Le, Skip, bool8, f32, f64, i16, u8, u16, u32
from bytelayout_tests.fixtures import (
    RECORD_BYTES,
    ClosureHeader,
    Color,
    Header,
    LayoutHeader,
    Polygon,
    Point,
    Record,
    is_even,
    make_record,
)


@layout
@dataclass
class Checked:
    value: Annotated[u8, Check(lambda v: v < 10)]


BACKENDS = ['source', 'closure']
HEADER_TYPES = [Header, LayoutHeader, ClosureHeader]
HEADER_BYTES = bytes.fromhex('01020304ff0b0a')


def declare_shape(backend: str) -> tuple[type, type]:
    @pod(backend=backend)
    @dataclass
    class Vec:
        x: Le[i16]
        y: Le[i16]

    @layout(backend=backend)
    @dataclass
    class Shape:
        kind: EnumRepr[Color, u8]
        origin: Vec
        corners: Array[Vec, 2]
        tag: Bytes[3]
        flags: Array[bool8, 2]
        scale: Be[f64]
        code: Annotated[Le[u32], Skip(3), Check(is_even)]
        grid: Be[Array[Array[u16, 2], 2]]

    return Vec, Shape


def make_shape(vec: type, shape: type, **kwargs):
    values = dict(
        kind=Color.BLUE,
        origin=vec(-1, 2),
        corners=(vec(3, -4), vec(0x0506, 0)),
        tag=b'abc',
        flags=(True, False),
        scale=0.5,
        code=0x01020304,
        grid=((1, 2), (3, 0xffff)),
    )
    values.update(kwargs)
    return shape(**values)


SHAPE_BYTES = b''.join([
    b'\x03',
    struct.pack('<hh', -1, 2),
    struct.pack('<4h', 3, -4, 0x0506, 0),
    b'abc',
    b'\x01\x00',
    struct.pack('>d', 0.5),
    b'\x00\x00\x00',
    struct.pack('<I', 0x01020304),
    struct.pack('>4H', 1, 2, 3, 0xffff),
])


@pytest.mark.parametrize('cls', HEADER_TYPES)
def test_header_encoding(cls) -> None:
    assert encode_bytes(cls(0x01020304, 0xff, 0x0a0b)) == HEADER_BYTES
    assert decode_bytes(cls, HEADER_BYTES) == cls(0x01020304, 0xff, 0x0a0b)


@pytest.mark.parametrize('cls', HEADER_TYPES)
def test_header_truncated(cls) -> None:
    for size in range(len(HEADER_BYTES)):
        with pytest.raises(UnexpectedEofError):
            decode_bytes(cls, HEADER_BYTES[:size])
        with pytest.raises(UnexpectedEofError):
            decode(cls, Deserializer.build_stream_deserializer(io.BytesIO(HEADER_BYTES[:size])))


def test_header_backends() -> None:
    assert get_layout_record(Header).backend == 'source'
    assert get_layout_record(ClosureHeader).backend == 'closure'
    assert get_layout_record(Header).codec.procedures.source is not None
    assert get_layout_record(ClosureHeader).codec.procedures.source is None


@pytest.mark.parametrize('backend', BACKENDS)
def test_shape_encoding(backend: str) -> None:
    vec, shape = declare_shape(backend)
    value = make_shape(vec, shape)
    assert get_layout_record(shape).layout.size == len(SHAPE_BYTES) == 41
    assert encode_bytes(value) == SHAPE_BYTES
    assert decode_bytes(shape, SHAPE_BYTES) == value


def test_backends_produce_identical_bytes() -> None:
    encoded = {}
    for backend in BACKENDS:
        vec, shape = declare_shape(backend)
        encoded[backend] = [
            encode_bytes(make_shape(vec, shape)),
            encode_bytes(make_shape(vec, shape, kind=Color.RED, flags=(False, True), scale=-1e100, code=0)),
            encode_bytes(make_shape(vec, shape, origin=vec(-32768, 32767), grid=((0, 0), (0, 0)))),
        ]
    assert encoded['source'] == encoded['closure']


@pytest.mark.parametrize('backend', BACKENDS)
def test_backends_report_identical_errors(backend: str) -> None:
    vec, shape = declare_shape(backend)
    with pytest.raises(EncodeValueError, match='check failed'):
        encode_bytes(make_shape(vec, shape, code=3))
    with pytest.raises(EncodeValueError, match='out of range'):
        encode_bytes(make_shape(vec, shape, origin=vec(40000, 0)))
    with pytest.raises(EncodeValueError, match='expected exactly 2 elements'):
        encode_bytes(make_shape(vec, shape, corners=(vec(0, 0),)))
    with pytest.raises(EncodeValueError, match='expected exactly 3 bytes'):
        encode_bytes(make_shape(vec, shape, tag=b'ab'))
    with pytest.raises(EncodeValueError):
        encode_bytes(make_shape(vec, shape, kind=2))
    with pytest.raises(EncodeValueError):
        get_layout_record(shape).codec.to_bytes(vec(0, 0))


@pytest.mark.parametrize('backend', BACKENDS)
def test_skipped_bytes_are_ignored_on_decode(backend: str) -> None:
    vec, shape = declare_shape(backend)
    data = bytearray(SHAPE_BYTES)
    data[26:29] = b'\xff\xfe\xfd'
    assert decode_bytes(shape, bytes(data)) == make_shape(vec, shape)


@pytest.mark.parametrize('backend', BACKENDS)
def test_invalid_bytes_on_decode(backend: str) -> None:
    vec, shape = declare_shape(backend)
    bad_kind = bytearray(SHAPE_BYTES)
    bad_kind[0] = 9
    with pytest.raises(DecodeValueError):
        decode_bytes(shape, bytes(bad_kind))
    bad_flag = bytearray(SHAPE_BYTES)
    bad_flag[16] = 2
    with pytest.raises(DecodeValueError):
        decode_bytes(shape, bytes(bad_flag))
    odd_code = bytearray(SHAPE_BYTES)
    odd_code[29] = 0x05
    with pytest.raises(DecodeValueError, match='check failed'):
        decode_bytes(shape, bytes(odd_code))


@pytest.mark.parametrize('backend', BACKENDS)
def test_f32_fields_round_trip(backend: str) -> None:
    @layout(backend=backend)
    @dataclass
    class Sample:
        valid: bool8
        level: Be[f32]
        history: Le[Array[f32, 2]]

    single, = struct.unpack('<f', struct.pack('<f', 0.1))
    sample = Sample(True, -0.375, (single, float('-inf')))
    data = encode_bytes(sample)
    assert data == b'\x01' + struct.pack('>f', -0.375) + struct.pack('<2f', single, float('-inf'))
    assert decode_bytes(Sample, data) == sample

    with pytest.raises(EncodeValueError, match='not exactly representable as f32'):
        encode_bytes(Sample(True, 0.1, (0.0, 0.0)))
    with pytest.raises(EncodeValueError, match='not exactly representable as f32'):
        encode_bytes(Sample(True, 0.0, (0.0, 0.1)))


def test_record_encoding() -> None:
    assert encode_bytes(make_record()) == RECORD_BYTES
    assert decode_bytes(Record, RECORD_BYTES) == make_record()


def test_record_validate_hook() -> None:
    invalid = make_record(flag=True, color=Color.RED)
    data = encode_bytes(invalid)
    with pytest.raises(DecodeValueError, match='validate'):
        decode_bytes(Record, data)
    assert decode_bytes(Record, encode_bytes(make_record(flag=True))).flag is True


@pytest.mark.parametrize('backend', BACKENDS)
@pytest.mark.parametrize('declare', [layout, pod])
def test_post_init_errors_on_decode(backend: str, declare) -> None:
    @declare(backend=backend)
    @dataclass
    class Positive:
        value: u8

        def __post_init__(self) -> None:
            if self.value == 0:
                raise ValueError('zero')

    assert decode_bytes(Positive, b'\x01') == Positive(1)
    with pytest.raises(DecodeValueError, match='rejected the decoded fields: zero'):
        decode_bytes(Positive, b'\x00')
    if declare is pod:
        with pytest.raises(DecodeValueError):
            from_bytes(Positive, b'\x00')
        with pytest.raises(DecodeValueError):
            get_layout_record(Positive).codec.unpack_from(b'\xff\x00', 1)


def test_failed_encode_keeps_written_prefix() -> None:
    serializer = Serializer.build_bytes_serializer()
    with pytest.raises(EncodeValueError):
        encode(make_record(checked=11), serializer)
    assert bytes(serializer.finalize()) == RECORD_BYTES[:21]


def test_decode_consumes_exactly_one_value() -> None:
    deserializer = Deserializer.build_bytes_deserializer(RECORD_BYTES + b'\xaa')
    assert decode(Record, deserializer) == make_record()
    assert deserializer.read_byte() == 0xaa
    deserializer.finalize()


def test_nested_pod_backends() -> None:
    polygon = Polygon(points=(Point(1, 2), Point(3, 4), Point(5, 6)), tag=b'ok', weights=(0.25, 4.0),
                      grid=((9, 8), (7, 6)))
    source_bytes = encode_bytes(polygon)
    closure = ClosureEmitter().emit(get_layout_record(Polygon).layout, pod=True)
    serializer = Serializer.build_bytes_serializer()
    closure.encode(polygon, serializer)
    assert bytes(serializer.finalize()) == source_bytes
    assert closure.unpack_from(source_bytes, 0) == polygon


def test_empty_layout() -> None:
    @pod
    @dataclass
    class Empty:
        pass

    assert encode_bytes(Empty()) == b''
    assert decode_bytes(Empty, b'') == Empty()


def test_codec_generated_is_logged() -> None:
    with capture_logs() as logs:
        @layout(backend='closure')
        @dataclass
        class Logged:
            value: u8

    generated = [log for log in logs if log['event'] == 'codec generated']
    assert len(generated) == 1
    assert generated[0]['backend'] == 'closure'
    assert generated[0]['log_level'] == 'debug'


def test_generated_source_is_logged() -> None:
    with capture_logs() as logs:
        @layout
        @dataclass
        class Logged:
            value: Be[u16]

    sources = [log['source'] for log in logs if log['event'] == 'generated source']
    assert len(sources) == 1
    # local classes are named after their qualified name
    assert 'def encode_test_generated_source_is_logged__locals__Logged(value, serializer):' in sources[0]


def test_get_emitter() -> None:
    assert isinstance(get_emitter(), SourceEmitter)
    assert isinstance(get_emitter('closure'), ClosureEmitter)
    emitter = ClosureEmitter()
    assert get_emitter(emitter) is emitter
    with pytest.raises(ValueError):
        get_emitter('assembly')


def test_render_module() -> None:
    source = SourceEmitter().render_module(Record)
    assert source.startswith('# Generated by bytelayout, do not edit.\n')
    assert 'def encode_Record(value, serializer):' in source
    assert 'def unpack_from_Header(buffer, offset=0):' in source
    assert "_bl_rt.import_object('bytelayout_tests.fixtures', 'Record')" in source
    assert "_bl_rt.import_object('bytelayout_tests.fixtures', 'is_even')" in source

    namespace: dict = {}
    exec(compile(source, 'record_codec.py', 'exec'), namespace)
    serializer = Serializer.build_bytes_serializer()
    namespace['encode_Record'](make_record(), serializer)
    assert bytes(serializer.finalize()) == RECORD_BYTES
    deserializer = Deserializer.build_bytes_deserializer(RECORD_BYTES)
    assert namespace['decode_Record'](deserializer) == make_record()
    deserializer.finalize()


def test_render_module_header() -> None:
    source = SourceEmitter().render_module(Header, header='# header codec')
    assert source.splitlines()[0] == '# header codec'
    assert 'def pack_into_Header(buffer, offset, value):' in source


def test_render_module_of_local_type() -> None:
    vec, shape = declare_shape('source')
    with pytest.raises(NotImportableError):
        SourceEmitter().render_module(shape)


def test_render_module_with_lambda_check() -> None:
    assert encode_bytes(Checked(3)) == b'\x03'
    with pytest.raises(NotImportableError):
        SourceEmitter().render_module(Checked)


def test_render_module_undeclared() -> None:
    with pytest.raises(TypeError):
        SourceEmitter().render_module(int)
