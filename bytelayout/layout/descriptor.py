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

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from bytelayout.endian import ByteOrder, Primitive, PrimitiveKind
from bytelayout.types import Cond


class FieldType(ABC):
    """A resolved field type, the nodes of the type tree of a layout."""

    __slots__ = ()

    @property
    @abstractmethod
    def size(self) -> int:
        """Static size in bytes, there is no variable sized field type."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_pod(self) -> bool:
        """Whether every bit pattern of `size` bytes is a legal value."""
        raise NotImplementedError

    @abstractmethod
    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PrimitiveType(FieldType):
    primitive: Primitive
    byte_order: ByteOrder | None

    @property
    def size(self) -> int:
        return self.primitive.size

    @property
    def is_pod(self) -> bool:
        if self.primitive.kind is PrimitiveKind.BOOL:
            return False
        return self.byte_order is not None or not self.primitive.needs_byte_order

    @property
    def effective_byte_order(self) -> ByteOrder:
        # single byte primitives have no order, any choice gives the same bytes
        if self.byte_order is None:
            assert not self.primitive.needs_byte_order
            return ByteOrder.BIG
        return self.byte_order

    def struct_format(self, count: int = 1) -> str:
        return self.primitive.struct_format(self.effective_byte_order, count)

    def describe(self) -> str:
        if self.primitive.needs_byte_order and self.byte_order is not None:
            return f'{self.primitive.name} {self.byte_order.value}'
        return self.primitive.name


@dataclass(frozen=True, slots=True)
class EnumType(FieldType):
    enum_type: type[Enum]
    representation: PrimitiveType

    @property
    def size(self) -> int:
        return self.representation.size

    @property
    def is_pod(self) -> bool:
        return False

    def describe(self) -> str:
        return f'{self.enum_type.__qualname__}({self.representation.describe()})'


@dataclass(frozen=True, slots=True)
class FixedBytesType(FieldType):
    length: int

    @property
    def size(self) -> int:
        return self.length

    @property
    def is_pod(self) -> bool:
        return True

    def describe(self) -> str:
        return f'bytes[{self.length}]'


@dataclass(frozen=True, slots=True)
class ArrayType(FieldType):
    element: FieldType
    length: int

    @property
    def size(self) -> int:
        return self.element.size * self.length

    @property
    def is_pod(self) -> bool:
        return self.element.is_pod

    def describe(self) -> str:
        return f'[{self.element.describe()}; {self.length}]'


@dataclass(frozen=True, slots=True)
class CompositeType(FieldType):
    """A nested dataclass, already declared with `@layout` or `@pod`."""
    cls: type
    layout: TypeLayoutDescriptor
    pod: bool

    @property
    def size(self) -> int:
        return self.layout.size

    @property
    def is_pod(self) -> bool:
        return self.pod

    def describe(self) -> str:
        return self.cls.__qualname__


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    name: str
    type: FieldType
    # the order declared on the field, or the class default, None when it does not apply
    byte_order: ByteOrder | None
    ordinal: int
    skip: int = 0
    # zero bytes after the skipped ones, up to the declared alignment
    padding: int = 0
    alignment: int = 1
    checks: tuple[Callable[[Any], bool], ...] = ()
    condition: Cond | None = None

    @property
    def leading(self) -> int:
        """Bytes before the value of the field: the skipped bytes and the alignment padding."""
        return self.skip + self.padding

    @property
    def size(self) -> int:
        """Size of the field including its leading bytes."""
        return self.leading + self.type.size


@dataclass(frozen=True, slots=True)
class FieldPlacement:
    field: FieldDescriptor
    offset: int


@dataclass(frozen=True, slots=True)
class TypeLayoutDescriptor:
    """ The ordered fields of one dataclass, in declaration order, which is also the encode/decode order.

    It is built once when the class is declared and is only used for generating the codec and for introspection.
    """
    cls: type
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return self.cls.__qualname__

    @property
    def size(self) -> int:
        return sum(field.size for field in self.fields)

    @property
    def has_validate_hook(self) -> bool:
        return callable(getattr(self.cls, 'validate', None))

    def placements(self) -> Iterator[FieldPlacement]:
        """Yield each field with the offset of its first byte, after its leading bytes."""
        offset = 0
        for field in self.fields:
            offset += field.leading
            yield FieldPlacement(field, offset)
            offset += field.type.size

    def pod_violations(self) -> list[str]:
        """Reasons why this layout cannot be reinterpreted as raw bytes in one step, empty if it can."""
        violations = []
        for field in self.fields:
            if not field.type.is_pod:
                violations.append(f'field {field.name!r} ({field.type.describe()}) is not POD')
            if field.skip:
                violations.append(f'field {field.name!r} declares skipped bytes')
            if field.padding:
                violations.append(f'field {field.name!r} is preceded by alignment padding')
            if field.checks:
                violations.append(f'field {field.name!r} declares a check')
            if field.condition is not None:
                violations.append(f'field {field.name!r} is conditional')
        if self.has_validate_hook:
            violations.append('the class defines a validate() hook')
        return violations
