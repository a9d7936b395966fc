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

from typing import TYPE_CHECKING, Any, TypeVar

from typing_extensions import override

from bytelayout.codec.codec import Codec
from bytelayout.layout import FieldDescriptor, TypeLayoutDescriptor
from bytelayout.runtime import decoded_fields, expect_instance
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.types import Buffer

if TYPE_CHECKING:
    from bytelayout.codegen import Procedures

T = TypeVar('T')


class StructCodec(Codec[T]):
    """ Codec of a `@layout`/`@pod` dataclass, it delegates to the procedures generated for the class.

    The fields are only consulted for deep checks and JSON conversion, never for encoding or decoding.
    """

    __slots__ = ('_layout', '_procedures', '_fields', '_pod')

    _layout: TypeLayoutDescriptor
    _procedures: Procedures[T]
    _fields: tuple[tuple[FieldDescriptor, Codec[Any]], ...]
    _pod: bool

    def __init__(self, type_layout: TypeLayoutDescriptor, procedures: Procedures[T], *, pod: bool) -> None:
        from bytelayout.codec import codec_for_field_type
        self._layout = type_layout
        self._procedures = procedures
        self._fields = tuple((field, codec_for_field_type(field.type)) for field in type_layout.fields)
        self._pod = pod

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._layout.name})'

    @property
    def layout(self) -> TypeLayoutDescriptor:
        return self._layout

    @property
    def procedures(self) -> Procedures[T]:
        return self._procedures

    @property
    @override
    def size(self) -> int:
        return self._layout.size

    @property
    @override
    def is_pod(self) -> bool:
        return self._pod

    @override
    def _check_value(self, value: T, /, *, deep: bool) -> None:
        expect_instance(value, self._layout.cls)
        if deep:
            for field, codec in self._fields:
                if field.condition is not None and not field.condition.predicate(value):
                    continue
                codec._check_value(getattr(value, field.name), deep=True)

    @override
    def _serialize(self, serializer: Serializer, value: T, /) -> None:
        self._procedures.encode(value, serializer)

    @override
    def _deserialize(self, deserializer: Deserializer, /) -> T:
        return self._procedures.decode(deserializer)

    @override
    def _pack_into(self, buffer: bytearray | memoryview, offset: int, value: T, /) -> None:
        assert self._procedures.pack_into is not None
        self._procedures.pack_into(buffer, offset, value)

    @override
    def _unpack_from(self, buffer: Buffer, offset: int, /) -> T:
        assert self._procedures.unpack_from is not None
        return self._procedures.unpack_from(buffer, offset)

    @override
    def _json_to_value(self, json_value: Codec.Json, /) -> T:
        if not isinstance(json_value, dict):
            raise ValueError('expected dict')
        names = {field.name for field, _ in self._fields}
        if set(json_value) != names:
            raise ValueError(f'expected exactly the keys {sorted(names)}')
        kwargs: dict[str, Any] = {}
        for field, codec in self._fields:
            if field.condition is not None and not field.condition.predicate(decoded_fields(**kwargs)):
                kwargs[field.name] = field.condition.default
            else:
                kwargs[field.name] = codec.json_to_value(json_value[field.name])
        return self._layout.cls(**kwargs)

    @override
    def _value_to_json(self, value: T, /) -> Codec.Json:
        json_value: dict[str, Codec.Json] = {}
        for field, codec in self._fields:
            if field.condition is not None and not field.condition.predicate(value):
                # absent conditional fields are null, whatever their default
                json_value[field.name] = None
            else:
                json_value[field.name] = codec.value_to_json(getattr(value, field.name))
        return json_value
