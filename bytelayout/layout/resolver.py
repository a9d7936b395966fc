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

import dataclasses
import inspect
import math
import sys
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Callable, NamedTuple, get_origin, get_type_hints

from structlog import get_logger

from bytelayout.endian import ByteOrder, Primitive, PrimitiveKind
from bytelayout.exceptions import MissingByteOrderError, RecursiveLayoutError, UnsupportedFieldTypeError
from bytelayout.layout.descriptor import (
    ArrayType,
    CompositeType,
    EnumType,
    FieldDescriptor,
    FieldType,
    FixedBytesType,
    PrimitiveType,
    TypeLayoutDescriptor,
)
from bytelayout.types import Align, ArraySpec, Check, Cond, EnumSpec, FixedBytes, Skip

logger = get_logger()

RECORD_ATTR = '__bytelayout__'


class ResolvedAnnotation(NamedTuple):
    type: FieldType
    byte_order: ByteOrder | None
    skip: int
    alignment: int
    checks: tuple[Callable[[Any], bool], ...]
    condition: Cond | None


def build_layout(cls: type, *, byte_order: ByteOrder | None = None,
                 localns: Mapping[str, Any] | None = None) -> TypeLayoutDescriptor:
    """ Resolve every field of the dataclass `cls`, in declaration order.

    `byte_order` is the default used by multi-byte primitives that do not declare one, without it those fields are
    rejected with `MissingByteOrderError`. `localns` holds the names visible where the class is declared, for classes
    declared inside a function.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise UnsupportedFieldTypeError(f'{cls!r} is not a dataclass')
    namespace = _owner_namespace(cls, localns)
    hints = _get_type_hints(cls, namespace)
    _check_init_parameters(cls)
    fields = []
    offset = 0
    for ordinal, field in enumerate(dataclasses.fields(cls)):
        where = f'{cls.__qualname__}.{field.name}'
        if not field.init:
            raise UnsupportedFieldTypeError(f'{where}: fields with init=False cannot be decoded')
        resolved = resolve_annotation(hints[field.name], owner=cls, where=where, default_byte_order=byte_order,
                                      localns=namespace)
        offset += resolved.skip
        padding = -offset % resolved.alignment
        fields.append(FieldDescriptor(
            name=field.name,
            type=resolved.type,
            byte_order=resolved.byte_order,
            ordinal=ordinal,
            skip=resolved.skip,
            padding=padding,
            alignment=resolved.alignment,
            checks=resolved.checks,
            condition=resolved.condition,
        ))
        offset += padding + resolved.type.size
    type_layout = TypeLayoutDescriptor(cls, tuple(fields))
    logger.debug('layout built', type=cls.__qualname__, fields=len(fields), size=type_layout.size)
    return type_layout


def resolve_annotation(
    annotation: Any,
    *,
    owner: type | None = None,
    where: str | None = None,
    default_byte_order: ByteOrder | None = None,
    localns: Mapping[str, Any] | None = None,
) -> ResolvedAnnotation:
    """ Resolve a single annotation into a `FieldType` plus the field options it carries.

    >>> from bytelayout.types import Be, Array, u16
    >>> resolve_annotation(Be[Array[u16, 3]]).type.describe()
    '[u16 big; 3]'
    >>> resolve_annotation(Be[Array[u16, 3]]).type.size
    6
    """
    where = where or repr(annotation)
    if isinstance(annotation, str):
        annotation = _eval_forward_ref(annotation, owner=owner, where=where, localns=localns)

    base, metadata = annotation, ()
    if get_origin(annotation) is Annotated:
        base, metadata = annotation.__origin__, annotation.__metadata__

    kinds: list[Primitive | ArraySpec | FixedBytes | EnumSpec] = []
    byte_order: ByteOrder | None = None
    skip = 0
    alignment = 1
    checks: list[Callable[[Any], bool]] = []
    condition: Cond | None = None
    for item in metadata:
        match item:
            case Primitive() | ArraySpec() | FixedBytes() | EnumSpec():
                kinds.append(item)
            case ByteOrder():
                if byte_order is not None and byte_order is not item:
                    raise UnsupportedFieldTypeError(f'{where}: conflicting byte orders {byte_order.value} and '
                                                    f'{item.value}')
                byte_order = item
            case Skip(count=count):
                skip += count
            case Align(alignment=value):
                alignment = math.lcm(alignment, value)
            case Check(predicate=predicate):
                checks.append(predicate)
            case Cond():
                if condition is not None:
                    raise UnsupportedFieldTypeError(f'{where}: a field can only have one Cond')
                condition = item
            case _:
                # metadata of other libraries is not ours to judge
                pass

    if len(kinds) > 1:
        raise UnsupportedFieldTypeError(f'{where}: {annotation!r} declares more than one layout type')

    effective_order = byte_order or default_byte_order
    field_type: FieldType
    match kinds:
        case [Primitive() as primitive]:
            field_type = _resolve_primitive(primitive, effective_order, where=where)
        case [ArraySpec(element=element, length=length)]:
            field_type = _resolve_array(element, length, owner=owner, where=where, byte_order=effective_order,
                                        localns=localns)
        case [FixedBytes(length=length)]:
            if byte_order is not None:
                raise UnsupportedFieldTypeError(f'{where}: a byte order does not apply to bytes')
            field_type = FixedBytesType(length)
        case [EnumSpec(enum_type=enum_type, representation=representation)]:
            field_type = _resolve_enum(enum_type, representation, owner=owner, where=where,
                                       byte_order=effective_order, localns=localns)
        case _:
            field_type = _resolve_composite(base, owner=owner, where=where)
            if byte_order is not None:
                raise UnsupportedFieldTypeError(f'{where}: a byte order cannot be applied to the composite '
                                                f'{field_type.describe()}, it declares its own field orders')

    declared_order = effective_order if _uses_byte_order(field_type) else None
    return ResolvedAnnotation(field_type, declared_order, skip, alignment, tuple(checks), condition)


def get_record(cls: type) -> Any:
    """Return the record that `@layout`/`@pod` attached to `cls`, or None. Subclasses do not inherit it."""
    if not isinstance(cls, type):
        return None
    return cls.__dict__.get(RECORD_ATTR)


def _uses_byte_order(field_type: FieldType) -> bool:
    match field_type:
        case PrimitiveType(primitive=primitive):
            return primitive.needs_byte_order
        case EnumType(representation=representation):
            return representation.primitive.needs_byte_order
        case ArrayType(element=element):
            return _uses_byte_order(element)
        case _:
            return False


def _resolve_primitive(primitive: Primitive, byte_order: ByteOrder | None, *, where: str) -> PrimitiveType:
    if primitive.needs_byte_order and byte_order is None:
        raise MissingByteOrderError(
            f'{where}: {primitive.name} needs an explicit byte order, wrap it with Be[...], Le[...] or Native[...] '
            'or declare a default with @layout(byte_order=...)'
        )
    return PrimitiveType(primitive, byte_order if primitive.needs_byte_order else None)


def _resolve_array(element: Any, length: int, *, owner: type | None, where: str, byte_order: ByteOrder | None,
                   localns: Mapping[str, Any] | None) -> ArrayType:
    resolved = resolve_annotation(element, owner=owner, where=f'{where}[]', default_byte_order=byte_order,
                                  localns=localns)
    if resolved.skip or resolved.alignment != 1 or resolved.checks or resolved.condition is not None:
        raise UnsupportedFieldTypeError(f'{where}: Skip, Align, Check and Cond apply to fields, not to array elements')
    return ArrayType(resolved.type, length)


def _resolve_enum(enum_type: type[Enum], representation: Any, *, owner: type | None, where: str,
                  byte_order: ByteOrder | None, localns: Mapping[str, Any] | None) -> EnumType:
    resolved = resolve_annotation(representation, owner=owner, where=where, default_byte_order=byte_order,
                                  localns=localns)
    repr_type = resolved.type
    if not (isinstance(repr_type, PrimitiveType)
            and repr_type.primitive.kind in (PrimitiveKind.UNSIGNED, PrimitiveKind.SIGNED)):
        raise UnsupportedFieldTypeError(f'{where}: the representation of an enum must be an integer primitive')
    lower, upper = repr_type.primitive.lower_bound, repr_type.primitive.upper_bound
    assert lower is not None and upper is not None
    for member in enum_type:
        value = member.value
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnsupportedFieldTypeError(f'{where}: {member!r} does not have an int value')
        if not lower <= value <= upper:
            raise UnsupportedFieldTypeError(f'{where}: {member!r} does not fit in {repr_type.primitive.name}')
    return EnumType(enum_type, repr_type)


def _resolve_composite(base: Any, *, owner: type | None, where: str) -> CompositeType:
    if owner is not None and base is owner:
        raise RecursiveLayoutError(f'{where}: {owner.__qualname__} cannot contain itself')
    record = get_record(base)
    if record is not None:
        return CompositeType(base, record.layout, record.pod)
    if isinstance(base, type) and dataclasses.is_dataclass(base):
        raise UnsupportedFieldTypeError(f'{where}: the dataclass {base.__qualname__} must be declared with @layout '
                                        'or @pod before it is used as a field')
    raise UnsupportedFieldTypeError(f'{where}: {base!r} has no fixed-size binary layout')


def _owner_namespace(cls: type, localns: Mapping[str, Any] | None) -> dict[str, Any]:
    namespace = dict(localns or {})
    # the class name is not bound where it is declared while the decorator runs, this makes a self reference resolvable
    namespace[cls.__name__] = cls
    return namespace


def _owner_globals(owner: type | None) -> dict[str, Any]:
    if owner is None:
        return {}
    module = sys.modules.get(owner.__module__)
    return vars(module) if module is not None else {}


def _get_type_hints(cls: type, namespace: dict[str, Any]) -> dict[str, Any]:
    try:
        return get_type_hints(cls, localns=namespace, include_extras=True)
    except NameError as e:
        raise UnsupportedFieldTypeError(f'cannot resolve the annotations of {cls.__qualname__}: {e}') from e


def _check_init_parameters(cls: type) -> None:
    """Decoded values are built with `cls(**fields)`, any other required parameter of `__init__` makes that fail."""
    names = {field.name for field in dataclasses.fields(cls)}
    for parameter in inspect.signature(cls).parameters.values():
        if parameter.name in names or parameter.default is not inspect.Parameter.empty:
            continue
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        raise UnsupportedFieldTypeError(f'{cls.__qualname__}.{parameter.name}: the init-only parameter has no default, '
                                        'decoded values could not be constructed')


def _eval_forward_ref(annotation: str, *, owner: type | None, where: str,
                      localns: Mapping[str, Any] | None) -> Any:
    """Evaluate a string annotation nested in layout metadata, with the names `get_type_hints` gives the fields."""
    namespace = _owner_namespace(owner, localns) if owner is not None else dict(localns or {})

    def holder() -> None:
        pass

    holder.__annotations__ = {'value': annotation}
    try:
        return get_type_hints(holder, _owner_globals(owner), namespace, include_extras=True)['value']
    except NameError as e:
        raise UnsupportedFieldTypeError(f'{where}: cannot resolve {annotation!r}: {e}') from e
