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
Code emitter that generates Python source for the procedures of a type.

The generated functions reference helpers and constants through module level names with the `_bl_` prefix, every one
of them is a `Binding` that knows both its value (for compiling in-process) and an expression that recreates it (for
rendering a standalone module). For a big-endian `u32` followed by a `u8` the non-POD encoder looks like:

    def encode_Header(value, serializer):
        _bl_rt.expect_instance(value, _bl_Header_0)
        f_magic = value.magic
        _bl_rt.check_primitive_value(f_magic, _bl_endian.U32)
        serializer.write_bytes(_bl_rt.pack_value(_bl_s0, f_magic))
        f_version = value.version
        _bl_rt.check_primitive_value(f_version, _bl_endian.U8)
        serializer.write_bytes(_bl_rt.pack_value(_bl_s1, f_version))
"""

from __future__ import annotations

import math
import re
import struct
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from structlog import get_logger
from typing_extensions import override

from bytelayout import endian, runtime
from bytelayout.codegen.emitter import CodeEmitter, Procedures
from bytelayout.conf.get_settings import get_global_settings
from bytelayout.endian import PrimitiveKind
from bytelayout.exceptions import NotImportableError
from bytelayout.layout import (
    ArrayType,
    CompositeType,
    EnumType,
    FieldType,
    FixedBytesType,
    PrimitiveType,
    TypeLayoutDescriptor,
    get_record,
)

logger = get_logger()

_INDENT = '    '

_PRELUDE_NAMES: dict[str, tuple[Any, str]] = {
    '_bl_struct': (struct, 'import struct as _bl_struct'),
    '_bl_endian': (endian, 'from bytelayout import endian as _bl_endian'),
    '_bl_rt': (runtime, 'from bytelayout import runtime as _bl_rt'),
}


@dataclass(frozen=True, slots=True)
class Binding:
    """A module level name used by generated code, `source_expr` is None when the value cannot be imported."""
    name: str
    value: Any
    source_expr: str | None


@dataclass(slots=True)
class _TypeNames:
    encode: str
    decode: str
    pack: str
    pack_into: str
    unpack_from: str


@dataclass
class _Unit:
    """ The source being generated: bindings and functions for one type, or for a type and all of its nested types.

    With `standalone=False` the nested composites are bound to their already generated procedures, otherwise their
    functions are generated too, so the rendered module does not need them declared anywhere.
    """
    standalone: bool
    bindings: dict[str, Binding] = field(default_factory=dict)
    functions: list[str] = field(default_factory=list)
    _binding_keys: dict[Any, str] = field(default_factory=dict)
    _type_names: dict[type, _TypeNames] = field(default_factory=dict)
    _used_slugs: set[str] = field(default_factory=set)

    # bindings

    def bind_struct(self, fmt: str) -> str:
        key = ('struct', fmt)
        if key not in self._binding_keys:
            name = f'_bl_s{sum(1 for k in self._binding_keys if k[0] == "struct")}'
            self._add_binding(key, Binding(name, struct.Struct(fmt), f'_bl_struct.Struct({fmt!r})'))
        return self._binding_keys[key]

    def bind_object(self, obj: Any) -> str:
        key = ('object', id(obj))
        if key not in self._binding_keys:
            label = re.sub(r'\W', '_', getattr(obj, '__name__', 'obj'))
            name = f'_bl_{label}_{len(self._binding_keys)}'
            source_expr = _import_expr(obj)
            if source_expr is None and self.standalone:
                raise NotImportableError(
                    f'{obj!r} cannot be imported by its module and qualified name, a rendered module cannot refer to it'
                )
            self._add_binding(key, Binding(name, obj, source_expr))
        return self._binding_keys[key]

    def value_expr(self, value: Any) -> str:
        """An expression for a constant, literals are inlined and anything else is bound like an object."""
        if isinstance(value, Enum):
            return f'{self.bind_object(type(value))}[{value.name!r}]'
        if value is None or type(value) in (bool, int, str, bytes):
            return repr(value)
        if type(value) is float and math.isfinite(value):
            return repr(value)
        if type(value) is tuple:
            return '(' + ''.join(f'{self.value_expr(item)}, ' for item in value) + ')'
        return self.bind_object(value)

    def bind_procedure(self, name: str, value: Callable[..., Any]) -> None:
        if name not in self.bindings:
            self.bindings[name] = Binding(name, value, None)

    def _add_binding(self, key: Any, binding: Binding) -> None:
        self._binding_keys[key] = binding.name
        self.bindings[binding.name] = binding

    # types

    def names_for(self, cls: type) -> _TypeNames:
        if cls not in self._type_names:
            slug = re.sub(r'\W', '_', cls.__qualname__)
            candidate, n = slug, 1
            while candidate in self._used_slugs:
                candidate, n = f'{slug}_{n}', n + 1
            self._used_slugs.add(candidate)
            self._type_names[cls] = _TypeNames(
                encode=f'encode_{candidate}',
                decode=f'decode_{candidate}',
                pack=f'pack_{candidate}',
                pack_into=f'pack_into_{candidate}',
                unpack_from=f'unpack_from_{candidate}',
            )
        return self._type_names[cls]

    def add_type(self, type_layout: TypeLayoutDescriptor, *, pod: bool) -> _TypeNames:
        names = self.names_for(type_layout.cls)
        for nested in _nested_composites(type_layout):
            if nested.cls in self._type_names:
                continue
            if self.standalone:
                self.add_type(nested.layout, pod=nested.pod)
            else:
                self._bind_nested(nested)
        if pod:
            self.functions.extend(_PodWriter(self, type_layout, names).functions())
        else:
            self.functions.extend(_FieldWriter(self, type_layout, names).functions())
        return names

    def _bind_nested(self, nested: CompositeType) -> None:
        record = get_record(nested.cls)
        assert record is not None
        procedures = record.codec.procedures
        names = self.names_for(nested.cls)
        self.bind_procedure(names.encode, procedures.encode)
        self.bind_procedure(names.decode, procedures.decode)
        if nested.pod:
            self.bind_procedure(names.pack_into, procedures.pack_into)
            self.bind_procedure(names.unpack_from, procedures.unpack_from)

    # output

    def body(self) -> str:
        return '\n\n'.join(self.functions)

    def namespace(self) -> dict[str, Any]:
        namespace = {name: value for name, (value, _) in _PRELUDE_NAMES.items()}
        namespace.update((binding.name, binding.value) for binding in self.bindings.values())
        return namespace

    def module_source(self, header: str) -> str:
        lines = [header, '']
        lines.extend(import_line for _, import_line in _PRELUDE_NAMES.values())
        lines.append('')
        for binding in self.bindings.values():
            assert binding.source_expr is not None
            lines.append(f'{binding.name} = {binding.source_expr}')
        lines.extend(['', ''])
        return '\n'.join(lines) + '\n\n\n'.join(self.functions) + '\n'


class _Writer:
    def __init__(self, unit: _Unit, type_layout: TypeLayoutDescriptor, names: _TypeNames) -> None:
        self.unit = unit
        self.layout = type_layout
        self.names = names
        self.cls_name = unit.bind_object(type_layout.cls)
        self.lines: list[str] = []

    def emit(self, depth: int, line: str) -> None:
        self.lines.append(_INDENT * depth + line)

    def flush(self) -> str:
        text = '\n'.join(self.lines)
        self.lines = []
        return text

    def where(self, field_name: str) -> str:
        return f'{self.layout.name}.{field_name}'

    def primitive_ref(self, primitive_type: PrimitiveType) -> str:
        if primitive_type.primitive.kind is PrimitiveKind.BOOL:
            return '_bl_endian.BOOL'
        return f'_bl_endian.{primitive_type.primitive.name.upper()}'


class _FieldWriter(_Writer):
    """Field by field procedures, used by every type that is not POD."""

    def functions(self) -> list[str]:
        return [self._encode(), self._decode()]

    def _encode(self) -> str:
        self.emit(0, f'def {self.names.encode}(value, serializer):')
        self.emit(1, f'_bl_rt.expect_instance(value, {self.cls_name})')
        for fd in self.layout.fields:
            local = f'f_{fd.name}'
            self.emit(1, f'{local} = value.{fd.name}')
            if fd.leading:
                self.emit(1, f'serializer.write_bytes({bytes(fd.leading)!r})')
            depth = 1
            if fd.condition is not None:
                self.emit(1, f'if {self.unit.bind_object(fd.condition.predicate)}(value):')
                depth = 2
            for check in fd.checks:
                where = self.where(fd.name)
                self.emit(depth, f'_bl_rt.check_encode({self.unit.bind_object(check)}, {local}, {where!r})')
            self._encode_value(fd.type, local, depth, 1)
            if fd.condition is not None:
                self.emit(1, 'else:')
                self.emit(2, f'serializer.write_bytes({bytes(fd.type.size)!r})')
        return self.flush()

    def _encode_value(self, field_type: FieldType, expr: str, depth: int, level: int) -> None:
        match field_type:
            case PrimitiveType(primitive=primitive) if primitive.kind is PrimitiveKind.BOOL:
                self.emit(depth, f'_bl_rt.check_primitive_value({expr}, {self.primitive_ref(field_type)})')
                self.emit(depth, f'serializer.write_byte(1 if {expr} else 0)')
            case PrimitiveType():
                packer = self.unit.bind_struct(field_type.struct_format())
                self.emit(depth, f'_bl_rt.check_primitive_value({expr}, {self.primitive_ref(field_type)})')
                self.emit(depth, f'serializer.write_bytes(_bl_rt.pack_value({packer}, {expr}))')
            case EnumType(enum_type=enum_type, representation=representation):
                packer = self.unit.bind_struct(representation.struct_format())
                enum_name = self.unit.bind_object(enum_type)
                raw = f'_bl_rt.enum_to_value({expr}, {enum_name}, {self.primitive_ref(representation)})'
                self.emit(depth, f'serializer.write_bytes(_bl_rt.pack_value({packer}, {raw}))')
            case FixedBytesType(length=length):
                self.emit(depth, f'serializer.write_bytes(_bl_rt.check_fixed_bytes({expr}, {length}))')
            case ArrayType(element=element, length=length):
                item = f'e{level}'
                self.emit(depth, f'_bl_rt.check_array({expr}, {length})')
                self.emit(depth, f'for {item} in {expr}:')
                self._encode_value(element, item, depth + 1, level + 1)
            case CompositeType(cls=cls):
                self.emit(depth, f'{self.unit.names_for(cls).encode}({expr}, serializer)')
            case _:
                raise TypeError(f'unexpected field type {field_type!r}')

    def _decode(self) -> str:
        self.emit(0, f'def {self.names.decode}(deserializer):')
        for index, fd in enumerate(self.layout.fields):
            local = f'f_{fd.name}'
            if fd.leading:
                self.emit(1, f'deserializer.read_bytes({fd.leading})')
            depth = 1
            if fd.condition is not None:
                decoded = ', '.join(f'{prev.name}=f_{prev.name}' for prev in self.layout.fields[:index])
                predicate = self.unit.bind_object(fd.condition.predicate)
                self.emit(1, f'if {predicate}(_bl_rt.decoded_fields({decoded})):')
                depth = 2
            self.emit(depth, f'{local} = {self._decode_expr(fd.type)}')
            for check in fd.checks:
                where = self.where(fd.name)
                self.emit(depth, f'_bl_rt.check_decode({self.unit.bind_object(check)}, {local}, {where!r})')
            if fd.condition is not None:
                self.emit(1, 'else:')
                self.emit(2, f'deserializer.read_bytes({fd.type.size})')
                self.emit(2, f'{local} = {self.unit.value_expr(fd.condition.default)}')
        kwargs = ''.join(f', {fd.name}=f_{fd.name}' for fd in self.layout.fields)
        self.emit(1, f'value = _bl_rt.construct({self.cls_name}{kwargs})')
        if self.layout.has_validate_hook:
            self.emit(1, '_bl_rt.run_validate(value)')
        self.emit(1, 'return value')
        return self.flush()

    def _decode_expr(self, field_type: FieldType) -> str:
        match field_type:
            case PrimitiveType(primitive=primitive) if primitive.kind is PrimitiveKind.BOOL:
                return '_bl_rt.bool_from_byte(deserializer.read_byte())'
            case PrimitiveType(primitive=primitive):
                packer = self.unit.bind_struct(field_type.struct_format())
                return f'{packer}.unpack(deserializer.read_bytes({primitive.size}))[0]'
            case EnumType(enum_type=enum_type, representation=representation):
                packer = self.unit.bind_struct(representation.struct_format())
                enum_name = self.unit.bind_object(enum_type)
                raw = f'{packer}.unpack(deserializer.read_bytes({representation.size}))[0]'
                return f'_bl_rt.enum_from_value({enum_name}, {raw})'
            case FixedBytesType(length=length):
                return f'bytes(deserializer.read_bytes({length}))'
            case ArrayType(element=element, length=length):
                return f'tuple({self._decode_expr(element)} for _ in range({length}))'
            case CompositeType(cls=cls):
                return f'{self.unit.names_for(cls).decode}(deserializer)'
            case _:
                raise TypeError(f'unexpected field type {field_type!r}')


class _PodWriter(_Writer):
    """Reinterpretation procedures: every field is read or written at a static offset of one buffer."""

    def functions(self) -> list[str]:
        size = self.layout.size
        functions = [self._pack_into(), self._unpack_from()]
        self.emit(0, f'def {self.names.pack}(value):')
        self.emit(1, f'buffer = bytearray({size})')
        self.emit(1, f'{self.names.pack_into}(buffer, 0, value)')
        self.emit(1, 'return bytes(buffer)')
        functions.append(self.flush())
        self.emit(0, f'def {self.names.encode}(value, serializer):')
        self.emit(1, f'serializer.write_bytes({self.names.pack}(value))')
        functions.append(self.flush())
        self.emit(0, f'def {self.names.decode}(deserializer):')
        self.emit(1, f'return {self.names.unpack_from}(deserializer.read_bytes({size}), 0)')
        functions.append(self.flush())
        return functions

    def _pack_into(self) -> str:
        self.emit(0, f'def {self.names.pack_into}(buffer, offset, value):')
        self.emit(1, f'_bl_rt.expect_instance(value, {self.cls_name})')
        self.emit(1, f'_bl_rt.check_available(buffer, offset, {self.layout.size})')
        self.emit(1, 'with _bl_rt.packing():')
        for placement in self.layout.placements():
            fd = placement.field
            self.emit(2, f'f_{fd.name} = value.{fd.name}')
            self._pack_value(fd.type, f'f_{fd.name}', _offset('offset', placement.offset), 2, 1)
        if not self.layout.fields:
            self.emit(2, 'pass')
        return self.flush()

    def _pack_value(self, field_type: FieldType, expr: str, offset: str, depth: int, level: int) -> None:
        match field_type:
            case PrimitiveType():
                packer = self.unit.bind_struct(field_type.struct_format())
                self.emit(depth, f'_bl_rt.check_primitive_value({expr}, {self.primitive_ref(field_type)})')
                self.emit(depth, f'{packer}.pack_into(buffer, {offset}, {expr})')
            case FixedBytesType(length=length):
                packer = self.unit.bind_struct(f'{length}s')
                checked = f'bytes(_bl_rt.check_fixed_bytes({expr}, {length}))'
                self.emit(depth, f'{packer}.pack_into(buffer, {offset}, {checked})')
            case ArrayType(element=PrimitiveType() as element, length=length):
                packer = self.unit.bind_struct(element.struct_format(length))
                self.emit(depth, f'_bl_rt.check_primitive_values({expr}, {length}, {self.primitive_ref(element)})')
                self.emit(depth, f'{packer}.pack_into(buffer, {offset}, *{expr})')
            case ArrayType(element=element, length=length):
                index, item = f'i{level}', f'e{level}'
                self.emit(depth, f'_bl_rt.check_array({expr}, {length})')
                self.emit(depth, f'for {index}, {item} in enumerate({expr}):')
                self._pack_value(element, item, f'{offset} + {element.size} * {index}', depth + 1, level + 1)
            case CompositeType(cls=cls):
                self.emit(depth, f'{self.unit.names_for(cls).pack_into}(buffer, {offset}, {expr})')
            case _:
                raise TypeError(f'{field_type.describe()} cannot be reinterpreted')

    def _unpack_from(self) -> str:
        self.emit(0, f'def {self.names.unpack_from}(buffer, offset=0):')
        self.emit(1, f'_bl_rt.check_available(buffer, offset, {self.layout.size})')
        self.emit(1, 'return _bl_rt.construct(')
        self.emit(2, f'{self.cls_name},')
        for placement in self.layout.placements():
            fd = placement.field
            expr = self._unpack_expr(fd.type, _offset('offset', placement.offset), 1)
            self.emit(2, f'{fd.name}={expr},')
        self.emit(1, ')')
        return self.flush()

    def _unpack_expr(self, field_type: FieldType, offset: str, level: int) -> str:
        match field_type:
            case PrimitiveType():
                packer = self.unit.bind_struct(field_type.struct_format())
                return f'{packer}.unpack_from(buffer, {offset})[0]'
            case FixedBytesType(length=length):
                packer = self.unit.bind_struct(f'{length}s')
                return f'{packer}.unpack_from(buffer, {offset})[0]'
            case ArrayType(element=PrimitiveType() as element, length=length):
                packer = self.unit.bind_struct(element.struct_format(length))
                return f'{packer}.unpack_from(buffer, {offset})'
            case ArrayType(element=element, length=length):
                index = f'i{level}'
                inner = self._unpack_expr(element, f'{offset} + {element.size} * {index}', level + 1)
                return f'tuple({inner} for {index} in range({length}))'
            case CompositeType(cls=cls):
                return f'{self.unit.names_for(cls).unpack_from}(buffer, {offset})'
            case _:
                raise TypeError(f'{field_type.describe()} cannot be reinterpreted')


class SourceEmitter(CodeEmitter):
    """ Generates Python source for the procedures and compiles it in-process.

    `render_module()` renders the same procedures as a standalone module, that only imports `bytelayout.runtime`,
    `bytelayout.endian` and the declared types themselves.
    """

    name = 'source'

    @override
    def emit(self, type_layout: TypeLayoutDescriptor, *, pod: bool) -> Procedures:
        log = logger.new(type=type_layout.name, backend=self.name)
        unit = _Unit(standalone=False)
        names = unit.add_type(type_layout, pod=pod)
        source = unit.body()
        if get_global_settings().LOG_GENERATED_SOURCE:
            log.debug('generated source', source=source)
        namespace = unit.namespace()
        code = compile(source, f'<bytelayout {type_layout.cls.__module__}.{type_layout.name}>', 'exec')
        exec(code, namespace)
        log.debug('codec generated', pod=pod, size=type_layout.size)
        if pod:
            return Procedures(
                encode=namespace[names.encode],
                decode=namespace[names.decode],
                pack=namespace[names.pack],
                pack_into=namespace[names.pack_into],
                unpack_from=namespace[names.unpack_from],
                source=source,
            )
        return Procedures(encode=namespace[names.encode], decode=namespace[names.decode], source=source)

    def render_module(self, cls: type, *, header: str | None = None) -> str:
        """ Render the procedures of the declared class `cls`, and of every composite it contains, as a module.

        Raises `NotImportableError` when a type or a field check it refers to cannot be imported by name.
        """
        record = get_record(cls)
        if record is None:
            raise TypeError(f'{cls!r} is not declared with @layout or @pod')
        if header is None:
            header = get_global_settings().GENERATED_SOURCE_HEADER
        unit = _Unit(standalone=True)
        unit.add_type(record.layout, pod=record.pod)
        return unit.module_source(header)


def _offset(base: str, delta: int) -> str:
    return f'{base} + {delta}' if delta else base


def _nested_composites(type_layout: TypeLayoutDescriptor) -> list[CompositeType]:
    found: list[CompositeType] = []

    def visit(field_type: FieldType) -> None:
        match field_type:
            case ArrayType(element=element):
                visit(element)
            case CompositeType():
                if all(c.cls is not field_type.cls for c in found):
                    found.append(field_type)

    for fd in type_layout.fields:
        visit(fd.type)
    return found


def _import_expr(obj: Any) -> str | None:
    module_name = getattr(obj, '__module__', None)
    qualname = getattr(obj, '__qualname__', None)
    if not module_name or not qualname or '<' in qualname or module_name == '__main__':
        return None
    module = sys.modules.get(module_name)
    if module is None:
        return None
    target: Any = module
    for part in qualname.split('.'):
        target = getattr(target, part, None)
        if target is None:
            return None
    if target is not obj:
        return None
    return f'_bl_rt.import_object({module_name!r}, {qualname!r})'
