"""Typed fields that track and convert a single chunk's value."""

import logging
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

from ..chunks import ChunkCompleter, ChunkState
from .models import ConversionError, FieldNotReadyError

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

# Values a decoded chunk can carry
RawValue = Union[None, bool, int, float, str, list["RawValue"], dict[str, "RawValue"]]
Converter = Callable[[RawValue], T]


class ChunkField(Generic[T]):
    """
    One chunk's value, converted to ``T``.

    Conversion takes one of two explicit paths: a ``converter`` callable, or a
    strict check of the raw value against ``expected_type`` (pydantic strict
    mode). Without either, the raw value is stored as is. A failed conversion
    puts the field in the error state.
    """

    def __init__(
        self,
        chunk_id: str,
        converter: Optional[Converter[T]] = None,
        expected_type: Any = None,
    ):
        self.chunk_id = chunk_id
        self.converter = converter
        self.expected_type = expected_type
        self._adapter = (
            TypeAdapter(expected_type)
            if converter is None and expected_type is not None
            else None
        )
        self._completer: ChunkCompleter[T] = ChunkCompleter()

    @property
    def state(self) -> ChunkState:
        return self._completer.state

    @property
    def is_resolved(self) -> bool:
        return self.state is ChunkState.LOADED

    @property
    def has_error(self) -> bool:
        return self.state is ChunkState.ERROR

    @property
    def error(self) -> Optional[BaseException]:
        return self._completer.error

    @property
    def completer(self) -> ChunkCompleter[T]:
        return self._completer

    @property
    def value(self) -> T:
        """The converted value; raises FieldNotReadyError unless loaded."""
        if not self.is_resolved:
            raise FieldNotReadyError(self.chunk_id, self.error)
        return self._completer.value

    @property
    def value_or_none(self) -> Optional[T]:
        return self._completer.value

    async def wait(self) -> T:
        """Wait for the converted value (raises the error if conversion failed)."""
        return await self._completer.wait()

    def convert(self, raw: RawValue) -> T:
        """
        Convert a raw chunk value without changing the field's state.

        Raises:
            ConversionError: If the converter or strict check rejects ``raw``
        """
        if self.converter is not None:
            try:
                return self.converter(raw)
            except ConversionError:
                raise
            except Exception as e:
                raise ConversionError(
                    f"Cannot convert chunk '{self.chunk_id}': {e}", raw
                ) from e

        if self._adapter is not None:
            try:
                return self._adapter.validate_python(raw, strict=True)
            except ValidationError as e:
                raise ConversionError(
                    f"Chunk '{self.chunk_id}' is {type(raw).__name__}, expected "
                    f"{self.expected_type!r}; provide a converter",
                    raw,
                ) from e

        return raw

    def resolve(self, raw: RawValue) -> bool:
        """
        Push the raw chunk value into the field.

        Returns:
            True if the field is now loaded by this call
        """
        if self._completer.is_completed:
            return False

        try:
            value = self.convert(raw)
        except ConversionError as e:
            logger.warning(f"Field for chunk '{self.chunk_id}' failed conversion: {e}")
            self.reject(e)
            return False

        return self._completer.complete(value)

    def reject(self, error: BaseException) -> bool:
        """Put the field in the error state unless already settled."""
        return self._completer.complete_error(error)

    def reset(self) -> None:
        """Return to pending with a fresh wait-handle."""
        self._completer = ChunkCompleter()

    def __repr__(self) -> str:
        if self.state is ChunkState.LOADED:
            return f"ChunkField(loaded: {self.value_or_none!r})"
        if self.state is ChunkState.ERROR:
            return f"ChunkField(error: {self.error!r})"
        return f"ChunkField(pending: ${self.chunk_id})"


def _to_string(raw: RawValue) -> str:
    if raw is None:
        raise ConversionError("Cannot convert null to str", raw)
    return raw if isinstance(raw, str) else str(raw)


def _to_int(raw: RawValue) -> int:
    if isinstance(raw, bool):
        raise ConversionError(f"Cannot parse {raw!r} as int", raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError as e:
            raise ConversionError(f"Cannot parse {raw!r} as int", raw) from e
    raise ConversionError(f"Cannot parse {raw!r} as int", raw)


def _to_float(raw: RawValue) -> float:
    if isinstance(raw, bool):
        raise ConversionError(f"Cannot parse {raw!r} as float", raw)
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError as e:
            raise ConversionError(f"Cannot parse {raw!r} as float", raw) from e
    raise ConversionError(f"Cannot parse {raw!r} as float", raw)


def _to_bool(raw: RawValue) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() == "true"
    if isinstance(raw, int):
        return raw != 0
    raise ConversionError(f"Cannot parse {raw!r} as bool", raw)


class ChunkFields:
    """Factories for commonly typed chunk fields."""

    @staticmethod
    def string(chunk_id: str) -> ChunkField[str]:
        return ChunkField(chunk_id, _to_string)

    @staticmethod
    def integer(chunk_id: str) -> ChunkField[int]:
        return ChunkField(chunk_id, _to_int)

    @staticmethod
    def decimal(chunk_id: str) -> ChunkField[float]:
        return ChunkField(chunk_id, _to_float)

    @staticmethod
    def boolean(chunk_id: str) -> ChunkField[bool]:
        return ChunkField(chunk_id, _to_bool)

    @staticmethod
    def list_of(chunk_id: str, item_converter: Callable[[RawValue], U]) -> ChunkField[list[U]]:
        """Field holding a JSON array, each item converted by ``item_converter``."""

        def convert(raw: RawValue) -> list[U]:
            if not isinstance(raw, list):
                raise ConversionError(f"Expected list, got {type(raw).__name__}", raw)
            return [item_converter(item) for item in raw]

        return ChunkField(chunk_id, convert)

    @staticmethod
    def object_of(chunk_id: str, deserializer: Callable[[dict[str, Any]], U]) -> ChunkField[U]:
        """Field holding a JSON object passed to ``deserializer``."""

        def convert(raw: RawValue) -> U:
            if not isinstance(raw, dict):
                raise ConversionError(f"Expected dict, got {type(raw).__name__}", raw)
            return deserializer(raw)

        return ChunkField(chunk_id, convert)

    @staticmethod
    def strict(chunk_id: str, expected_type: Any) -> ChunkField[Any]:
        """Field that accepts only raw values already of ``expected_type``."""
        return ChunkField(chunk_id, expected_type=expected_type)
