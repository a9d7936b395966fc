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
import sys
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, overload

from structlog import get_logger

from bytelayout.codec import StructCodec
from bytelayout.codegen import CodeEmitter, get_emitter
from bytelayout.endian import ByteOrder
from bytelayout.exceptions import PodRejectedError, UnsupportedFieldTypeError
from bytelayout.layout import RECORD_ATTR, TypeLayoutDescriptor, build_layout, get_record

logger = get_logger()

T = TypeVar('T')


@dataclass(frozen=True, slots=True)
class LayoutRecord(Generic[T]):
    """What `@layout`/`@pod` attach to a class, as `cls.__bytelayout__`."""
    layout: TypeLayoutDescriptor
    codec: StructCodec[T]
    pod: bool
    backend: str


@overload
def layout(cls: type[T], /) -> type[T]:
    ...


@overload
def layout(*, byte_order: ByteOrder | None = ..., backend: CodeEmitter | str | None = ...
           ) -> Callable[[type[T]], type[T]]:
    ...


def layout(cls: type[T] | None = None, /, *, byte_order: ByteOrder | None = None,
           backend: CodeEmitter | str | None = None) -> Any:
    """ Declare the binary layout of a dataclass and generate its encode/decode procedures.

    Must be applied on top of `@dataclass`. Every problem with the field annotations is raised here, as a
    `GenerationError`, never while encoding or decoding.
    """
    namespace = _caller_namespace()

    def wrap(cls: type[T]) -> type[T]:
        return _declare(cls, pod=False, byte_order=byte_order, backend=backend, namespace=namespace)

    if cls is None:
        return wrap
    return wrap(cls)


@overload
def pod(cls: type[T], /) -> type[T]:
    ...


@overload
def pod(*, byte_order: ByteOrder | None = ..., backend: CodeEmitter | str | None = ...
        ) -> Callable[[type[T]], type[T]]:
    ...


def pod(cls: type[T] | None = None, /, *, byte_order: ByteOrder | None = None,
        backend: CodeEmitter | str | None = None) -> Any:
    """ Like `@layout`, and also declare that any bit pattern of the right size is a legal value.

    The layout is verified: every field must be POD (nested composites must be declared with `@pod` too), no field can
    declare `Skip`, `Align` padding, `Check` or `Cond` and the class cannot define a `validate()` hook. Otherwise
    `PodRejectedError` is raised. POD values can be reinterpreted with `as_bytes()`/`from_bytes()` and are encoded with a single write.
    """
    namespace = _caller_namespace()

    def wrap(cls: type[T]) -> type[T]:
        return _declare(cls, pod=True, byte_order=byte_order, backend=backend, namespace=namespace)

    if cls is None:
        return wrap
    return wrap(cls)


def get_layout_record(cls: type[T]) -> LayoutRecord[T]:
    record = get_record(cls)
    if record is None:
        raise TypeError(f'{cls!r} is not declared with @layout or @pod')
    return record


def _declare(cls: type[T], *, pod: bool, byte_order: ByteOrder | None, backend: CodeEmitter | str | None,
             namespace: dict[str, Any] | None) -> type[T]:
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise UnsupportedFieldTypeError(f'{cls!r} must be a dataclass, apply @dataclass before @layout/@pod')
    log = logger.new(type=cls.__qualname__)
    type_layout = build_layout(cls, byte_order=byte_order, localns=namespace)
    if pod:
        violations = type_layout.pod_violations()
        if violations:
            raise PodRejectedError(f'{type_layout.name} cannot be declared POD: ' + '; '.join(violations))
    emitter = get_emitter(backend)
    procedures = emitter.emit(type_layout, pod=pod)
    record = LayoutRecord(layout=type_layout, codec=StructCodec(type_layout, procedures, pod=pod), pod=pod,
                          backend=emitter.name)
    setattr(cls, RECORD_ATTR, record)
    log.debug('declared', pod=pod, backend=emitter.name, size=type_layout.size)
    return cls


def _caller_namespace() -> dict[str, Any] | None:
    """The local names where `@layout`/`@pod` is used, None at module level where the module globals apply."""
    frame = sys._getframe(2)
    if frame.f_back is None or frame.f_locals is frame.f_globals:
        return None
    return dict(frame.f_locals)
