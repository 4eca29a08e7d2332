"""
Conversion of browsing results to JSON-ready data.

The output is plain data (`dict`, `list`, `str`, numbers, `bool`, `None`)
that `json.dumps` accepts as-is:

- `ObjectId` and `ByteText` become strings;
- enums become their value names (`"Blob"`, `"Local"`);
- `StatusFlag` becomes the list of set flag names;
- `datetime` becomes ISO-8601 text;
- `bytes` become a list of integers;
- blob content becomes `{"Binary": [...]}` or `{"Text": "..."}`;
- dataclasses become objects of their public fields;
- other sequences become arrays, mappings become objects.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum, Flag
from pathlib import PurePath
from typing import (
    Any, Generic, Mapping, Optional, Protocol, Sequence, TypeAlias, TypeVar,
)

from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.models import BinaryContent, StatusEntry, TextContent


def is_sequence(obj):
    return isinstance(obj, Sequence) and not isinstance(obj, (str, bytes))

def is_mapping(obj):
    return isinstance(obj, Mapping)

JsonAtomic: TypeAlias = None|str|int|float|bool
"JSON Atomic Datatypes"
JsonArray: TypeAlias = list['JsonData']
"JSON Array"
JsonObject: TypeAlias = dict[str,'JsonData']
"JSON Object"
JsonData: TypeAlias = JsonAtomic|JsonArray|JsonObject
"JSON Data"


class JsonMaxDepthError(ValueError):
    '''
    The object nests deeper than the describer's `max_depth`.
    '''


H = TypeVar('H', bound='JsonData', covariant=True)
class JsonHandler(Generic[H], Protocol):
    def __call__(self, x: Any, describer: 'JsonDescriber', /) -> H:
        ...


def _binary_content(x: BinaryContent, describer: 'JsonDescriber') -> JsonObject:
    return {'Binary': describer.to_json(x.data)}

def _text_content(x: TextContent, describer: 'JsonDescriber') -> JsonObject:
    return {'Text': str.__str__(x.text)}

def _status_entry(x: StatusEntry, describer: 'JsonDescriber') -> JsonObject:
    return {
        'path': describer.to_json(x.path),
        'status': describer.to_json(x.status),
        'status_bits': x.status_bits,
    }


DEFAULT_SPECIAL_TYPES: dict[type, JsonHandler] = {
    BinaryContent: _binary_content,
    TextContent: _text_content,
    StatusEntry: _status_entry,
}
'''
Handlers for types whose JSON shape is not just their fields.
'''


@dataclass
class JsonDescriber:
    max_depth: int = 100
    special_types: dict[type,JsonHandler] = field(default_factory=dict)
    include_private: bool = False
    _current_depth: int = -1
    """
    Recursion level.

    VALUES:
    - 0 or >0: The current recursion level.
    - -1: Not currently converting an object.
    """

    @property
    @contextmanager
    def depth(self):
        old_depth = self._current_depth
        self._current_depth = old_depth + 1
        if self._current_depth >= self.max_depth:
            self._current_depth = old_depth
            raise JsonMaxDepthError(f"Maximum depth {self.max_depth} exceeded")
        try:
            yield self._current_depth
        finally:
            self._current_depth = old_depth

    def valid_key(self, k: str) -> bool:
        """
        Check if a key is valid for conversion to JSON.

        The default method rejects keys that start with an underscore,
        unless `include_private` is set to `True`.
        """
        return self.include_private or not k.startswith('_')

    def _handler(self, obj: Any) -> Optional[JsonHandler]:
        for t in type(obj).__mro__:
            handler = self.special_types.get(t) or DEFAULT_SPECIAL_TYPES.get(t)
            if handler is not None:
                return handler
        return None

    def to_json(self, obj: Any) -> JsonData:
        """
        Perform the conversion to JSON.

        You probably want the `to_json` function instead. To change how a
        type is converted, add a handler to `special_types` rather than
        overriding this method.
        """
        handler = self._handler(obj)
        if handler is not None:
            with self.depth:
                return handler(obj, self)
        match obj:
            case ObjectId():
                return str(obj)
            case ByteText():
                return str.__str__(obj)
            case Flag():
                return list(obj.names()) if hasattr(obj, 'names') else obj.name
            case Enum():
                return obj.value if isinstance(obj.value, str) else obj.name
            case bool() | int() | float() | str() | None:
                return obj
            case datetime():
                return obj.isoformat()
            case PurePath():
                return str(obj)
            case bytes() | bytearray() | memoryview():
                return list(bytes(obj))
            case obj if is_dataclass(obj) and not isinstance(obj, type):
                with self.depth:
                    return {
                        f.name: self.to_json(getattr(obj, f.name))
                        for f in fields(obj)
                        if self.valid_key(f.name)
                    }
            case obj if is_mapping(obj):
                with self.depth:
                    return {str(k): self.to_json(v) for k, v in obj.items()}
            case obj if is_sequence(obj):
                with self.depth:
                    return [self.to_json(v) for v in obj]
            case _:
                raise TypeError(f"Cannot convert {type(obj).__name__} to JSON")


def to_json(obj: Any,
            describer: Optional[JsonDescriber] = None,
            max_levels: int = 100,
            special_types: dict[type,JsonHandler] = {},
            include_private: bool = False,
        ) -> JsonData:
    """
    Create a JSON representation of a browsing result.

    PARAMETERS:
    - obj: Any
        The object to convert.
    - describer: Optional[JsonDescriber]
        A describer object to use for the conversion. If not supplied,
        a new one is created with the following parameters.
    - max_levels: int = 100
        The maximum number of levels to recurse into the object.
    - special_types: dict[type,JsonHandler] = {}
        A mapping of types to functions that will handle the conversion of the
        object to JSON, taking precedence over the built-in handlers.
    - include_private: bool = False
        Whether to include private fields in the output.
    """
    if describer is None:
        describer = JsonDescriber(
            max_depth=max_levels,
            special_types=dict(special_types),
            include_private=include_private,
            )
    return describer.to_json(obj)
