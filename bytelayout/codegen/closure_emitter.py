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

from typing import Any

from structlog import get_logger
from typing_extensions import override

from bytelayout.codec import Codec, codec_for_field_type
from bytelayout.codegen.emitter import CodeEmitter, Procedures
from bytelayout.layout import FieldDescriptor, TypeLayoutDescriptor
from bytelayout.runtime import (
    check_available,
    check_decode,
    check_encode,
    construct,
    decoded_fields,
    expect_instance,
    packing,
    run_validate,
)
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.encoding.fixed_bytes import encode_zeros, skip_bytes
from bytelayout.serialization.types import Buffer

logger = get_logger()


class ClosureEmitter(CodeEmitter):
    """ Builds the procedures by composing the codec of every field into closures, no source is generated.
    """

    name = 'closure'

    @override
    def emit(self, type_layout: TypeLayoutDescriptor, *, pod: bool) -> Procedures:
        fields = tuple((field, codec_for_field_type(field.type)) for field in type_layout.fields)
        if pod:
            procedures = self._emit_pod(type_layout, fields)
        else:
            procedures = self._emit_fields(type_layout, fields)
        logger.debug('codec generated', type=type_layout.name, backend=self.name, pod=pod)
        return procedures

    def _emit_fields(self, type_layout: TypeLayoutDescriptor,
                     fields: tuple[tuple[FieldDescriptor, Codec[Any]], ...]) -> Procedures:
        cls = type_layout.cls
        has_validate_hook = type_layout.has_validate_hook

        def encode(value: Any, serializer: Serializer) -> None:
            expect_instance(value, cls)
            for field, codec in fields:
                field_value = getattr(value, field.name)
                encode_zeros(serializer, field.leading)
                if field.condition is not None and not field.condition.predicate(value):
                    encode_zeros(serializer, codec.size)
                    continue
                for check in field.checks:
                    check_encode(check, field_value, f'{type_layout.name}.{field.name}')
                codec.serialize(serializer, field_value)

        def decode(deserializer: Deserializer) -> Any:
            kwargs: dict[str, Any] = {}
            for field, codec in fields:
                skip_bytes(deserializer, field.leading)
                if field.condition is not None and not field.condition.predicate(decoded_fields(**kwargs)):
                    skip_bytes(deserializer, codec.size)
                    kwargs[field.name] = field.condition.default
                    continue
                field_value = codec.deserialize(deserializer)
                for check in field.checks:
                    check_decode(check, field_value, f'{type_layout.name}.{field.name}')
                kwargs[field.name] = field_value
            value = construct(cls, **kwargs)
            if has_validate_hook:
                run_validate(value)
            return value

        return Procedures(encode=encode, decode=decode)

    def _emit_pod(self, type_layout: TypeLayoutDescriptor,
                  fields: tuple[tuple[FieldDescriptor, Codec[Any]], ...]) -> Procedures:
        cls = type_layout.cls
        size = type_layout.size
        codecs = dict((field.name, codec) for field, codec in fields)
        placed = tuple((p.field.name, codecs[p.field.name], p.offset) for p in type_layout.placements())

        def pack_into(buffer: bytearray | memoryview, offset: int, value: Any) -> None:
            expect_instance(value, cls)
            check_available(buffer, offset, size)
            with packing():
                for name, codec, field_offset in placed:
                    codec.pack_into(buffer, offset + field_offset, getattr(value, name))

        def pack(value: Any) -> bytes:
            buffer = bytearray(size)
            pack_into(buffer, 0, value)
            return bytes(buffer)

        def unpack_from(buffer: Buffer, offset: int = 0) -> Any:
            check_available(buffer, offset, size)
            return construct(cls, **{name: codec.unpack_from(buffer, offset + field_offset)
                                     for name, codec, field_offset in placed})

        def encode(value: Any, serializer: Serializer) -> None:
            serializer.write_bytes(pack(value))

        def decode(deserializer: Deserializer) -> Any:
            return unpack_from(deserializer.read_bytes(size), 0)

        return Procedures(encode=encode, decode=decode, pack=pack, pack_into=pack_into, unpack_from=unpack_from)
