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

import pytest

from bytelayout.serialization import (
    Deserializer,
    Serializer,
    TrailingDataError,
    UnderlyingIOError,
    UnexpectedEofError,
    WriteZeroError,
)
from bytelayout.serialization.adapters import MaxBytesExceededError


class TrickleReader:
    """Returns at most `chunk` bytes per read."""

    def __init__(self, data: bytes, chunk: int = 1) -> None:
        self._data = data
        self._chunk = chunk
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if size < 0:
            size = len(self._data)
        n = min(size, self._chunk)
        chunk, self._data = self._data[:n], self._data[n:]
        return chunk


class TrickleWriter:
    """Accepts at most `chunk` bytes per write, then nothing once `capacity` is reached."""

    def __init__(self, chunk: int = 1, capacity: int | None = None) -> None:
        self.data = bytearray()
        self._chunk = chunk
        self._capacity = capacity

    def write(self, data) -> int:
        n = min(len(data), self._chunk)
        if self._capacity is not None:
            n = min(n, self._capacity - len(self.data))
        self.data += bytes(data[:n])
        return n

    def flush(self) -> None:
        pass


class FailingStream:
    def read(self, size: int = -1) -> bytes:
        raise OSError('device gone')

    def write(self, data) -> int:
        raise OSError('device gone')

    def flush(self) -> None:
        raise OSError('device gone')


def test_read_exact_across_short_reads() -> None:
    reader = TrickleReader(b'\x01\x02\x03\x04\x05')
    de = Deserializer.build_stream_deserializer(reader)
    assert de.read_bytes(4) == b'\x01\x02\x03\x04'
    assert reader.reads >= 4
    assert de.read_byte() == 5
    assert de.cur_pos() == 5
    assert de.is_empty()
    de.finalize()


def test_read_exact_zero_bytes() -> None:
    de = Deserializer.build_stream_deserializer(io.BytesIO(b''))
    assert de.read_bytes(0) == b''
    assert de.is_empty()


def test_read_past_end_raises_eof() -> None:
    de = Deserializer.build_stream_deserializer(TrickleReader(b'\x01\x02\x03', chunk=2))
    with pytest.raises(UnexpectedEofError):
        de.read_bytes(4)


def test_read_from_empty_stream() -> None:
    de = Deserializer.build_stream_deserializer(io.BytesIO(b''))
    with pytest.raises(UnexpectedEofError):
        de.read_byte()


def test_trailing_data() -> None:
    de = Deserializer.build_stream_deserializer(io.BytesIO(b'\x01\x02'))
    de.read_byte()
    with pytest.raises(TrailingDataError):
        de.finalize()


def test_read_all() -> None:
    de = Deserializer.build_stream_deserializer(TrickleReader(b'abcdef', chunk=4))
    assert de.read_bytes(1) == b'a'
    assert de.read_all() == b'bcdef'
    assert de.cur_pos() == 6


def test_read_failure_is_wrapped() -> None:
    de = Deserializer.build_stream_deserializer(FailingStream())
    with pytest.raises(UnderlyingIOError) as exc_info:
        de.read_bytes(1)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_stream_left_after_last_consumed_byte() -> None:
    stream = io.BytesIO(b'\x01\x02\x03\x04')
    de = Deserializer.build_stream_deserializer(stream)
    de.read_bytes(2)
    assert stream.tell() == 2
    assert stream.read() == b'\x03\x04'


def test_write_all_across_short_writes() -> None:
    writer = TrickleWriter(chunk=3)
    se = Serializer.build_stream_serializer(writer)
    se.write_bytes(b'0123456789')
    se.write_byte(0xff)
    assert bytes(writer.data) == b'0123456789\xff'
    assert se.cur_pos() == 11


def test_write_zero() -> None:
    writer = TrickleWriter(chunk=2, capacity=5)
    se = Serializer.build_stream_serializer(writer)
    with pytest.raises(WriteZeroError):
        se.write_bytes(b'0123456789')
    assert bytes(writer.data) == b'01234'
    assert se.cur_pos() == 5


def test_write_failure_is_wrapped() -> None:
    se = Serializer.build_stream_serializer(FailingStream())
    with pytest.raises(UnderlyingIOError) as exc_info:
        se.write_bytes(b'\x00')
    assert isinstance(exc_info.value.__cause__, OSError)
    with pytest.raises(UnderlyingIOError):
        se.flush()


def test_bytes_serializer_round_trip() -> None:
    se = Serializer.build_bytes_serializer()
    se.write_bytes(b'\x01\x02')
    se.write_byte(3)
    data = bytes(se.finalize())
    assert data == b'\x01\x02\x03'
    de = Deserializer.build_bytes_deserializer(data)
    assert bytes(de.read_bytes(3)) == data
    de.finalize()


def test_bytes_deserializer_eof() -> None:
    de = Deserializer.build_bytes_deserializer(b'\x01')
    with pytest.raises(UnexpectedEofError):
        de.read_bytes(2)


def test_max_bytes_deserializer() -> None:
    de = Deserializer.build_bytes_deserializer(b'\x01\x02\x03').with_max_bytes(2)
    assert bytes(de.read_bytes(2)) == b'\x01\x02'
    with pytest.raises(MaxBytesExceededError):
        de.read_byte()


def test_max_bytes_serializer() -> None:
    se = Serializer.build_bytes_serializer().with_max_bytes(2)
    se.write_bytes(b'\x01\x02')
    with pytest.raises(MaxBytesExceededError):
        se.write_byte(3)
