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


class BytelayoutError(Exception):
    """Base class for exceptions in bytelayout."""
    pass


class ConversionError(BytelayoutError):
    """Base class for errors of the byte-reinterpretation operations (`bytelayout.reinterpret`)."""
    pass


class LengthMismatchError(ConversionError, ValueError):
    """The buffer length is not exactly the static size of the requested type."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f'expected exactly {expected} bytes, got {actual}')
        self.expected = expected
        self.actual = actual


class NotPodError(ConversionError, TypeError):
    """A byte-reinterpretation operation was used on a value or type that is not POD."""
    pass


class GenerationError(BytelayoutError):
    """Base class for errors raised while building a layout or generating its codec.

    These are always raised when a type is declared (decorated), never while encoding or decoding a value.
    """
    pass


class UnsupportedFieldTypeError(GenerationError, TypeError):
    """A field's annotation does not resolve to a primitive, enum, fixed bytes, fixed array or composite."""
    pass


class MissingByteOrderError(GenerationError):
    """A multi-byte primitive has no explicit byte order and its type declares no default."""
    pass


class RecursiveLayoutError(GenerationError):
    """A composite contains itself, directly or through other composites."""
    pass


class PodRejectedError(GenerationError):
    """A type was declared POD but its layout does not qualify."""
    pass


class NotImportableError(GenerationError):
    """A standalone codec module was requested for a type (or field check) that cannot be imported by path."""
    pass
