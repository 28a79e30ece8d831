#!/usr/bin/env python3
"""Entity-relationship graph types."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ErFieldRole(str, Enum):
    PRIMARY_KEY = "primary-key"
    FOREIGN_KEY = "foreign-key"
    REQUIRED = "required"
    PLAIN = "plain"


class ErEntityType(str, Enum):
    HEADER = "header"
    DETAIL = "detail"
    EXTERNAL = "external"


class ErLineStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"


ONE_TO_MANY = "1:N"


@dataclass(frozen=True)
class ErField:
    name: str
    data_type: str = "Char"
    role: ErFieldRole = ErFieldRole.PLAIN
    lov_name: str = ""


@dataclass(frozen=True)
class ErEntity:
    id: str
    block_name: str
    table_name: str = ""
    entity_type: ErEntityType = ErEntityType.DETAIL
    fields: Tuple[ErField, ...] = ()


@dataclass(frozen=True)
class ErRelationship:
    id: str
    source_entity_id: str
    target_entity_id: str
    cardinality: str = ONE_TO_MANY
    line_style: ErLineStyle = ErLineStyle.SOLID
    label: str = ""


@dataclass
class ErDiagramData:
    entities: List[ErEntity] = field(default_factory=list)
    relationships: List[ErRelationship] = field(default_factory=list)
    form_name: str = ""
    show_external_refs: bool = False

    def entity(self, entity_id: str) -> Optional[ErEntity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def to_dict(self) -> dict:
        return _enum_values(asdict(self))


@dataclass(frozen=True)
class NodePosition:
    id: str
    x: float
    y: float
    width: float
    height: float


@dataclass
class ErLayout:
    """Positioned graph handed to a diagram renderer."""

    nodes: List[NodePosition] = field(default_factory=list)
    edges: List[ErRelationship] = field(default_factory=list)
    skipped_edges: List[str] = field(default_factory=list)

    def position(self, node_id: str) -> Optional[NodePosition]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def positions(self) -> Dict[str, Tuple[float, float]]:
        return {n.id: (n.x, n.y) for n in self.nodes}

    def to_dict(self) -> dict:
        return _enum_values(asdict(self))


def _enum_values(node):
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, dict):
        return {k: _enum_values(v) for k, v in node.items()}
    if isinstance(node, (list, tuple)):
        return [_enum_values(v) for v in node]
    return node
