"""
Schema registry indexed by descriptor kind and protocol generation.

The registry is built once and is read-only afterwards, so a single instance
can be shared by any number of concurrent decode calls.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .model import DescriptorKind, FieldSchema, ProtocolGeneration, generation_label


class UnsupportedCombination(LookupError):
    """No schema exists for a descriptor kind in a protocol generation."""

    def __init__(self, kind: DescriptorKind, generation: ProtocolGeneration):
        self.kind = kind
        self.generation = generation
        super().__init__(
            f"{generation_label(generation)} {kind.display_name}: not yet supported")


class SchemaRegistry:
    """Read-only mapping of (kind, generation) to field schema."""

    def __init__(self, schemas: Mapping[tuple[DescriptorKind, ProtocolGeneration], FieldSchema]):
        self._schemas = MappingProxyType(dict(schemas))

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, key: tuple[DescriptorKind, ProtocolGeneration]) -> bool:
        return key in self._schemas

    def lookup(self, kind: DescriptorKind,
               generation: ProtocolGeneration) -> Optional[FieldSchema]:
        """Return the schema for ``kind`` in ``generation``, or None if undefined."""
        return self._schemas.get((kind, generation))

    def require(self, kind: DescriptorKind, generation: ProtocolGeneration) -> FieldSchema:
        """Like lookup(), but raise UnsupportedCombination when undefined."""
        schema = self.lookup(kind, generation)
        if schema is None:
            raise UnsupportedCombination(kind, generation)
        return schema

    def generations(self, kind: DescriptorKind) -> list[ProtocolGeneration]:
        """Protocol generations that define ``kind``."""
        return [gen for gen in ProtocolGeneration if (kind, gen) in self._schemas]

    def support_matrix(self) -> Iterator[tuple[DescriptorKind, dict[ProtocolGeneration, bool]]]:
        """Yield each kind with a generation -> supported map."""
        for kind in DescriptorKind:
            yield kind, {gen: (kind, gen) in self._schemas for gen in ProtocolGeneration}
