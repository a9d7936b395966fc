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

"""
Serializer/Deserializer implementations over binary file-like objects.

Any object with a `read(n)` (for reading) or `write(data)` (for writing) method that follows the `io` conventions can
be used: regular files opened in binary mode, `io.BytesIO`, `socket.makefile('rb')`, raw unbuffered streams, etc.

Short reads and short writes are handled here, so the codec layer only ever sees "exact" semantics:

- a read that returns `b''` means the source is exhausted, if fewer bytes than requested were read by then,
  `UnexpectedEofError` is raised;
- a write that accepts 0 bytes (or `None`, for non-blocking raw streams) before all data is written raises
  `WriteZeroError`;
- any `OSError` raised by the stream is wrapped in `UnderlyingIOError`.

>>> import io
>>> sink = io.BytesIO()
>>> se = Serializer.build_stream_serializer(sink)
>>> se.write_bytes(b'\\x01\\x02\\x03')
>>> se.cur_pos()
3
>>> sink.getvalue()
b'\\x01\\x02\\x03'

>>> de = Deserializer.build_stream_deserializer(io.BytesIO(b'\\x01\\x02\\x03'))
>>> de.peek_byte()
1
>>> bytes(de.read_bytes(2))
b'\\x01\\x02'
>>> try:
...     de.read_bytes(2)
... except UnexpectedEofError as e:
...     print(*e.args)
not enough bytes to read: needed 2, 1 available
"""

from typing import BinaryIO

from structlog import get_logger
from typing_extensions import override

from bytelayout.serialization.deserializer import Deserializer
from bytelayout.serialization.exceptions import TrailingDataError, UnderlyingIOError, UnexpectedEofError, WriteZeroError
from bytelayout.serialization.serializer import Serializer
from bytelayout.serialization.types import Buffer

logger = get_logger()


class StreamSerializer(Serializer):
    """Serializer that writes directly to a binary stream, nothing is buffered by this class."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._pos = 0

    @override
    def cur_pos(self) -> int:
        return self._pos

    @override
    def write_byte(self, data: int) -> None:
        self.write_bytes(bytes((data,)))

    @override
    def write_bytes(self, data: Buffer) -> None:
        view = memoryview(data).cast('B')
        written = 0
        while written < len(view):
            try:
                n = self._stream.write(view[written:])
            except OSError as e:
                raise UnderlyingIOError(f'write failed after {written} of {len(view)} bytes: {e}') from e
            if not n:
                raise WriteZeroError(f'sink accepted {written} of {len(view)} bytes')
            written += n
            self._pos += n

    def flush(self) -> None:
        try:
            self._stream.flush()
        except OSError as e:
            raise UnderlyingIOError(f'flush failed: {e}') from e


class StreamDeserializer(Deserializer):
    """Deserializer that reads from a binary stream.

    Only the bytes that were peeked are kept in memory, reads never request more than what is needed from the stream,
    so the stream position is left right after the last byte consumed (plus any peeked bytes).
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._peeked = bytearray()
        self._pos = 0
        self._eof = False

    def _fill(self, n: int) -> None:
        """Try to have at least `n` bytes in the peek buffer, stops early only at the end of the stream."""
        while len(self._peeked) < n and not self._eof:
            try:
                chunk = self._stream.read(n - len(self._peeked))
            except OSError as e:
                raise UnderlyingIOError(f'read failed at position {self._pos + len(self._peeked)}: {e}') from e
            if chunk is None:
                # non-blocking stream without data available
                raise UnderlyingIOError('read would block')
            if not chunk:
                self._eof = True
                logger.debug('end of stream reached', pos=self._pos + len(self._peeked))
                break
            self._peeked += chunk

    @override
    def finalize(self) -> None:
        if not self.is_empty():
            raise TrailingDataError('trailing data')

    @override
    def cur_pos(self) -> int:
        return self._pos

    @override
    def is_empty(self) -> bool:
        self._fill(1)
        return not self._peeked

    @override
    def peek_byte(self) -> int:
        self._fill(1)
        if not self._peeked:
            raise UnexpectedEofError('not enough bytes to read')
        return self._peeked[0]

    @override
    def peek_bytes(self, n: int, *, exact: bool = True) -> bytes:
        if n < 0:
            raise ValueError('value cannot be negative')
        self._fill(n)
        if exact and len(self._peeked) < n:
            raise UnexpectedEofError(f'not enough bytes to read: needed {n}, {len(self._peeked)} available')
        return bytes(self._peeked[:n])

    @override
    def read_byte(self) -> int:
        b = self.peek_byte()
        del self._peeked[:1]
        self._pos += 1
        return b

    @override
    def read_bytes(self, n: int, *, exact: bool = True) -> bytes:
        b = self.peek_bytes(n, exact=exact)
        del self._peeked[:len(b)]
        self._pos += len(b)
        return b

    @override
    def read_all(self) -> bytes:
        chunks = [bytes(self._peeked)]
        self._peeked.clear()
        while not self._eof:
            try:
                chunk = self._stream.read()
            except OSError as e:
                raise UnderlyingIOError(f'read failed: {e}') from e
            if chunk is None:
                raise UnderlyingIOError('read would block')
            if not chunk:
                self._eof = True
                break
            chunks.append(chunk)
        data = b''.join(chunks)
        self._pos += len(data)
        return data
