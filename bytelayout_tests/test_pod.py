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

import dataclasses
import struct

import pytest

from bytelayout import EndianValue, as_bytes, as_bytes_mut, from_bytes, into_vec, is_pod, sizeof, to_vec
from bytelayout.endian import BOOL, U16, U32, ByteOrder
from bytelayout.exceptions import LengthMismatchError, NotPodError
from bytelayout.serialization import EncodeValueError
from bytelayout.types import Array, Be, Bytes, Le, f64, u8, u16, u32
from bytelayout_tests.fixtures import Header, LayoutHeader, Point, Polygon, Record

HEADER_BYTES = bytes.fromhex('01020304ff0b0a')


def make_polygon() -> Polygon:
    return Polygon(
        points=(Point(1, -1), Point(2, -2), Point(0x0102, 0)),
        tag=b'PG',
        weights=(1.0, -2.5),
        grid=((1, 2), (3, 4)),
    )


def test_header_as_bytes() -> None:
    header = Header(0x01020304, 0xff, 0x0a0b)
    view = as_bytes(header)
    assert isinstance(view, memoryview)
    assert view.readonly
    assert bytes(view) == HEADER_BYTES
    assert len(view) == sizeof(Header) == 7


def test_header_from_bytes() -> None:
    assert from_bytes(Header, HEADER_BYTES) == Header(0x01020304, 0xff, 0x0a0b)
    assert from_bytes(Header, bytearray(HEADER_BYTES)) == Header(0x01020304, 0xff, 0x0a0b)
    assert from_bytes(Header, memoryview(HEADER_BYTES)) == Header(0x01020304, 0xff, 0x0a0b)


@pytest.mark.parametrize('size', [0, 6, 8])
def test_from_bytes_wrong_length(size: int) -> None:
    data = (HEADER_BYTES * 2)[:size]
    with pytest.raises(LengthMismatchError) as exc_info:
        from_bytes(Header, data)
    assert exc_info.value.expected == 7
    assert exc_info.value.actual == size


def test_nested_pod() -> None:
    polygon = make_polygon()
    data = bytes(as_bytes(polygon))
    assert sizeof(Polygon) == len(data) == 26
    assert data[:12] == struct.pack('<6h', 1, -1, 2, -2, 0x0102, 0)
    assert data[12:14] == b'PG'
    assert data[14:22] == struct.pack('>2f', 1.0, -2.5)
    assert data[22:] == b'\x01\x02\x03\x04'
    assert from_bytes(Polygon, data) == polygon


def test_as_bytes_checks_values() -> None:
    with pytest.raises(EncodeValueError):
        as_bytes(Header(0x01020304, 256, 0))
    with pytest.raises(EncodeValueError):
        as_bytes(Header(0x01020304, -1, 0))
    with pytest.raises(EncodeValueError):
        as_bytes(Polygon(points=(Point(0, 0),), tag=b'PG', weights=(0.0, 0.0), grid=((0, 0), (0, 0))))


def test_f32_fields_round_trip() -> None:
    polygon = make_polygon()
    with pytest.raises(EncodeValueError):
        as_bytes(dataclasses.replace(polygon, weights=(0.1, 0.0)))

    single, = struct.unpack('>f', struct.pack('>f', 0.1))
    polygon = dataclasses.replace(polygon, weights=(single, float('inf')))
    assert from_bytes(Polygon, as_bytes(polygon)) == polygon
    assert to_vec(from_bytes(Polygon, to_vec(polygon))) == to_vec(polygon)


def test_to_vec_and_into_vec() -> None:
    header = Header(0x01020304, 0xff, 0x0a0b)
    vec = to_vec(header)
    assert isinstance(vec, bytearray)
    assert vec == HEADER_BYTES
    vec.append(0)
    assert bytes(as_bytes(header)) == HEADER_BYTES
    moved = into_vec(header)
    assert moved == HEADER_BYTES
    assert moved is not vec
    assert header == Header(0x01020304, 0xff, 0x0a0b)


def test_as_bytes_mut() -> None:
    header = Header(0x01020304, 0xff, 0x0a0b)
    with as_bytes_mut(header) as buffer:
        assert buffer == HEADER_BYTES
        buffer[4] = 0x01
        buffer[5:7] = b'\x00\x01'
    assert header == Header(0x01020304, 0x01, 0x0100)


def test_as_bytes_mut_untouched_on_error() -> None:
    header = Header(1, 2, 3)
    with pytest.raises(RuntimeError):
        with as_bytes_mut(header) as buffer:
            buffer[0] = 0xff
            raise RuntimeError('abort')
    assert header == Header(1, 2, 3)


def test_as_bytes_mut_resize() -> None:
    header = Header(1, 2, 3)
    with pytest.raises(LengthMismatchError):
        with as_bytes_mut(header) as buffer:
            buffer.append(0)
    assert header == Header(1, 2, 3)


def test_as_bytes_mut_frozen() -> None:
    with pytest.raises(NotPodError):
        with as_bytes_mut(Point(1, 2)):
            pass


def test_not_pod_values() -> None:
    header = LayoutHeader(0x01020304, 0xff, 0x0a0b)
    with pytest.raises(NotPodError):
        as_bytes(header)
    with pytest.raises(NotPodError):
        to_vec(header)
    with pytest.raises(NotPodError):
        from_bytes(LayoutHeader, HEADER_BYTES)
    with pytest.raises(NotPodError):
        from_bytes(Record, bytes(29))
    with pytest.raises(NotPodError):
        as_bytes(b'raw bytes')
    with pytest.raises(NotPodError):
        with as_bytes_mut(header):
            pass


def test_is_pod() -> None:
    assert is_pod(Header)
    assert is_pod(Polygon)
    assert not is_pod(LayoutHeader)
    assert not is_pod(Record)
    assert is_pod(Be[u32])
    assert is_pod(u8)
    assert is_pod(Bytes[3])
    assert is_pod(Le[Array[f64, 4]])
    assert not is_pod(u16)
    assert not is_pod(int)


def test_sizeof() -> None:
    assert sizeof(Record) == 29
    assert sizeof(Be[Array[u16, 3]]) == 6
    assert sizeof(Bytes[0]) == 0


def test_primitive_annotations() -> None:
    assert bytes(to_vec(EndianValue(0x0102, U16, ByteOrder.LITTLE))) == b'\x02\x01'
    assert from_bytes(Be[u16], b'\x01\x02') == 0x0102
    assert from_bytes(Le[Array[u16, 2]], b'\x01\x00\x02\x00') == (1, 2)
    with pytest.raises(LengthMismatchError):
        from_bytes(Be[u16], b'\x01')


def test_endian_values() -> None:
    value = EndianValue(0x01020304, U32, ByteOrder.BIG)
    assert bytes(as_bytes(value)) == b'\x01\x02\x03\x04'
    with pytest.raises(NotPodError):
        as_bytes(EndianValue(True, BOOL, ByteOrder.BIG))
    with pytest.raises(NotPodError):
        with as_bytes_mut(value):
            pass
