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
from typing import Callable, Generic, TypeVar

from bytelayout.layout import TypeLayoutDescriptor
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.types import Buffer

T = TypeVar('T')


@dataclass(frozen=True, slots=True)
class Procedures(Generic[T]):
    """ The procedures generated for one composite type.

    `pack`, `pack_into` and `unpack_from` are only generated for POD types. `source` is the Python source the
    procedures were compiled from, when the backend generates source.
    """
    encode: Callable[[T, Serializer], None]
    decode: Callable[[Deserializer], T]
    pack: Callable[[T], bytes] | None = None
    pack_into: Callable[[bytearray | memoryview, int, T], None] | None = None
    unpack_from: Callable[[Buffer, int], T] | None = None
    source: str | None = None


class CodeEmitter(ABC):
    """ Backend that turns a `TypeLayoutDescriptor` into encode/decode procedures.

    Implementations must produce byte-identical encodings and raise the same errors, they only differ in how the
    procedures are built.
    """

    name: str

    @abstractmethod
    def emit(self, type_layout: TypeLayoutDescriptor, *, pod: bool) -> Procedures:
        """ Generate the procedures of `type_layout.cls`.

        Nested composites must already be declared, their own procedures are called by the generated ones. With
        `pod=True` the layout has been verified to be POD and the reinterpretation procedures are generated too.
        """
        raise NotImplementedError
