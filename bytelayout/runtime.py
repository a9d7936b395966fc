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
Helpers called by the generated encode/decode procedures and by the codec objects.

Generated modules import this module, so it must stay importable on its own and its names are part of what a rendered
codec module depends on.
"""

from __future__ import annotations

import importlib
import struct
from collections.abc import Sequence
from contextlib import contextmanager
from enum import Enum
from types import SimpleNamespace
from typing import Any, Callable, Iterator

from bytelayout.endian import Primitive, bool_from_byte, check_primitive_value
from bytelayout.exceptions import LengthMismatchError
from bytelayout.serialization.exceptions import DecodeValueError, EncodeValueError, SerializationError
from bytelayout.serialization.types import Buffer

__all__ = [
    'bool_from_byte',
    'check_array',
    'check_available',
    'check_decode',
    'check_encode',
    'check_fixed_bytes',
    'check_primitive_value',
    'check_primitive_values',
    'construct',
    'decoded_fields',
    'enum_from_value',
    'enum_to_value',
    'expect_instance',
    'import_object',
    'pack_value',
    'packing',
    'run_validate',
]


def expect_instance(value: Any, cls: type) -> None:
    if not isinstance(value, cls):
        raise EncodeValueError(f'expected {cls.__qualname__}, got {type(value).__name__}')


def check_array(values: Any, length: int) -> None:
    if isinstance(values, (str, bytes, bytearray)) or not isinstance(values, Sequence):
        raise EncodeValueError(f'expected a sequence, got {type(values).__name__}')
    if len(values) != length:
        raise EncodeValueError(f'expected exactly {length} elements, got {len(values)}')


def check_primitive_values(values: Any, length: int, primitive: Primitive) -> None:
    check_array(values, length)
    for value in values:
        check_primitive_value(value, primitive)


def check_fixed_bytes(data: Any, length: int) -> Buffer:
    """Return `data` if it is a bytes-like object of exactly `length` bytes."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise EncodeValueError(f'expected bytes, got {type(data).__name__}')
    size = memoryview(data).nbytes
    if size != length:
        raise EncodeValueError(f'expected exactly {length} bytes, got {size}')
    return data


def enum_to_value(member: Any, enum_type: type[Enum], primitive: Primitive) -> int:
    if not isinstance(member, enum_type):
        raise EncodeValueError(f'expected {enum_type.__qualname__}, got {type(member).__name__}')
    value = member.value
    check_primitive_value(value, primitive)
    return value


def enum_from_value(enum_type: type[Enum], value: int) -> Any:
    try:
        return enum_type(value)
    except ValueError as e:
        raise DecodeValueError(f'{value} is not a valid {enum_type.__qualname__}') from e


def pack_value(packer: struct.Struct, *values: Any) -> bytes:
    try:
        return packer.pack(*values)
    except (struct.error, OverflowError) as e:
        raise EncodeValueError(f'cannot pack {values!r} with {packer.format!r}: {e}') from e


@contextmanager
def packing() -> Iterator[None]:
    """Map the errors of `struct` inside the block to `EncodeValueError`."""
    try:
        yield
    except (struct.error, OverflowError) as e:
        raise EncodeValueError(str(e)) from e


def check_available(buffer: Buffer, offset: int, size: int) -> None:
    available = memoryview(buffer).nbytes - offset
    if offset < 0 or available < size:
        raise LengthMismatchError(size, max(available, 0))


def check_encode(predicate: Callable[[Any], bool], value: Any, where: str) -> None:
    if not predicate(value):
        raise EncodeValueError(f'{where}: check failed for {value!r}')


def check_decode(predicate: Callable[[Any], bool], value: Any, where: str) -> None:
    if not predicate(value):
        raise DecodeValueError(f'{where}: check failed for {value!r}')


def construct(cls: type, /, **kwargs: Any) -> Any:
    """Build a decoded value, a `ValueError` raised by its constructor (`__post_init__`) becomes a decode error."""
    try:
        return cls(**kwargs)
    except SerializationError:
        raise
    except ValueError as e:
        raise DecodeValueError(f'{cls.__qualname__} rejected the decoded fields: {e}') from e


def decoded_fields(**fields: Any) -> SimpleNamespace:
    """What the predicate of a conditional field gets when decoding: the fields decoded before it."""
    return SimpleNamespace(**fields)


def run_validate(value: Any) -> None:
    """Run the `validate()` hook of a freshly decoded value, a `ValueError` it raises becomes a decode error."""
    try:
        value.validate()
    except SerializationError:
        raise
    except ValueError as e:
        raise DecodeValueError(f'{type(value).__qualname__}.validate() rejected the value: {e}') from e


def import_object(module_name: str, qualname: str) -> Any:
    obj: Any = importlib.import_module(module_name)
    for part in qualname.split('.'):
        obj = getattr(obj, part)
    return obj
