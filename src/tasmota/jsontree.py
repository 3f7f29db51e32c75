"""
=============================================================================
JSON TREE
=============================================================================

An owned, navigable tree for device JSON responses.

The standard json module gives back dicts, which lose two things the device
API cares about: duplicate member names and a clear type tag per value
(bool is an int subclass, 1.0 and 1 print differently). This module parses
with json.loads and converts the result into tagged nodes:

    {"StatusSNS": {"ENERGY": {"Power": 12, "Factor": 0.91}}}

    JsonNode(OBJECT)
    └── "StatusSNS" → JsonNode(OBJECT)
        └── "ENERGY" → JsonNode(OBJECT)
            ├── "Power"  → JsonNode(INTEGER, 12)
            └── "Factor" → JsonNode(DOUBLE, 0.91)

Every node holds its value (or children) by value. The JsonDocument owns
the whole tree and releases it explicitly:

    with parse_json(response.content) as doc:
        entry = doc.root.find("Power")
    # doc.root now raises ValueError

=============================================================================
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Tuple, Union


NameComparator = Callable[[str, str], bool]


class JsonParseError(ValueError):
    """Raised when a byte buffer is not valid JSON."""


class JsonType(Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    NULL = "null"


SCALAR_TYPES = frozenset({
    JsonType.STRING, JsonType.INTEGER, JsonType.DOUBLE, JsonType.BOOLEAN, JsonType.NULL,
})


@dataclass
class JsonNode:
    """
    One value in the tree.

    Attributes:
        type: The JSON type tag.
        value: Scalar payload (str, int, float, bool or None).
        members: Object members as (name, node) pairs, in document order.
        items: Array elements, in order.
    """
    type: JsonType
    value: Any = None
    members: List[Tuple[str, "JsonNode"]] = field(default_factory=list)
    items: List["JsonNode"] = field(default_factory=list)

    @property
    def is_object(self) -> bool:
        return self.type == JsonType.OBJECT

    @property
    def is_array(self) -> bool:
        return self.type == JsonType.ARRAY

    @property
    def is_scalar(self) -> bool:
        return self.type in SCALAR_TYPES

    def __len__(self) -> int:
        if self.is_object:
            return len(self.members)
        if self.is_array:
            return len(self.items)
        return 0

    def __getitem__(self, index: int) -> "JsonNode":
        """Indexed access into an array."""
        if not self.is_array:
            raise TypeError(f"Cannot index a JSON {self.type.value}")
        return self.items[index]

    def named_values(self) -> Iterator[Tuple[str, "JsonNode"]]:
        """Iterate an object's (name, value) pairs; nothing for non-objects."""
        if self.is_object:
            yield from self.members

    def find(self, name: str, comparator: Optional[NameComparator] = None) -> Optional["JsonNode"]:
        """
        First member whose name matches.

        Args:
            name: Name to look for.
            comparator: Optional (member_name, name) -> bool; exact match if None.
        """
        for member_name, node in self.named_values():
            if comparator is None:
                if member_name == name:
                    return node
            elif comparator(member_name, name):
                return node
        return None

    def to_python(self) -> Any:
        """Convert back to plain dicts/lists (duplicate names: last one wins)."""
        if self.is_object:
            return {name: node.to_python() for name, node in self.members}
        if self.is_array:
            return [node.to_python() for node in self.items]
        return self.value

    def value_as_string(self) -> str:
        """
        Text form of the value, as the device API reports it.

            string  → as is          integer → decimal
            double  → "%f"           boolean → true / false
            null    → "null"         object/array → compact JSON
        """
        if self.type == JsonType.STRING:
            return self.value
        if self.type == JsonType.INTEGER:
            return str(self.value)
        if self.type == JsonType.DOUBLE:
            return "%f" % self.value
        if self.type == JsonType.BOOLEAN:
            return "true" if self.value else "false"
        if self.type == JsonType.NULL:
            return "null"
        return json.dumps(self.to_python(), separators=(",", ":"))

    def clear(self) -> None:
        """Drop all children recursively."""
        for _, node in self.members:
            node.clear()
        for node in self.items:
            node.clear()
        self.members.clear()
        self.items.clear()
        self.value = None


class JsonDocument:
    """Owner of a parsed JSON tree."""

    def __init__(self, root: JsonNode):
        self._root: Optional[JsonNode] = root

    @property
    def released(self) -> bool:
        return self._root is None

    @property
    def root(self) -> JsonNode:
        if self._root is None:
            raise ValueError("JSON document has been released")
        return self._root

    def named_values(self) -> List[Tuple[str, JsonNode]]:
        """Top-level (name, value) pairs of an object document."""
        return list(self.root.named_values())

    def release(self) -> None:
        """Free the tree. Further access to root raises ValueError."""
        if self._root is not None:
            self._root.clear()
            self._root = None

    def __enter__(self) -> "JsonDocument":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def _pairs_hook(pairs: List[Tuple[str, Any]]) -> JsonNode:
    # Objects are converted bottom-up while decoding, so member values
    # arrive here already converted (or as raw scalars/lists)
    return JsonNode(JsonType.OBJECT, members=[(name, _to_node(value)) for name, value in pairs])


def _to_node(value: Any) -> JsonNode:
    if isinstance(value, JsonNode):
        return value
    if isinstance(value, list):
        return JsonNode(JsonType.ARRAY, items=[_to_node(item) for item in value])
    if isinstance(value, bool):
        return JsonNode(JsonType.BOOLEAN, value)
    if isinstance(value, int):
        return JsonNode(JsonType.INTEGER, value)
    if isinstance(value, float):
        return JsonNode(JsonType.DOUBLE, value)
    if isinstance(value, str):
        return JsonNode(JsonType.STRING, value)
    return JsonNode(JsonType.NULL)


def parse_json(data: Union[bytes, str]) -> JsonDocument:
    """
    Parse a buffer into a JsonDocument.

    Raises:
        JsonParseError: Not valid UTF-8 / JSON.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        value = json.loads(text, object_pairs_hook=_pairs_hook)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonParseError(f"Invalid JSON: {e}") from e

    return JsonDocument(_to_node(value))
