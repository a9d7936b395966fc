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

from bytelayout.exceptions import BytelayoutError


class SerializationError(BytelayoutError):
    """Base class for errors raised while encoding to a Serializer or decoding from a Deserializer."""
    pass


class UnexpectedEofError(SerializationError):
    """The source ended before the requested number of bytes could be read."""
    pass


class WriteZeroError(SerializationError):
    """The sink stopped accepting bytes before the whole sequence was written."""
    pass


class UnderlyingIOError(SerializationError):
    """Wraps a failure surfaced by the underlying byte source/sink, the original error is kept as `__cause__`."""
    pass


class TrailingDataError(SerializationError):
    """A deserializer was finalized while there were still bytes left to read."""
    pass


class EncodeValueError(SerializationError, ValueError):
    """A value cannot be encoded with the requested encoding (out of range, wrong type, wrong length, failed check)."""
    pass


class DecodeValueError(SerializationError, ValueError):
    """The bytes read are not a legal value of the requested type (bad bool byte, unknown enum value, failed check)."""
    pass
