"""
Example Synthesizer - Renders annotated example bodies for schema entities

Produces JSON-like text with inline `//` comments, e.g.:

    {
      "id": "integer", //primary key
      //owning user
      "user": {
        "name": "string"
      },
      "tags": ["string"]
    }

References are resolved depth-first on an explicit stack of frames, one per
entity being rendered, so arbitrarily deep reference chains never hit the
interpreter's recursion limit. Each frame carries its own tuple of visited
entity names, so a cycle is cut with `{}` at its first repeat while an entity
reached through two unrelated branches (a diamond) is rendered in full at
both sites.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from gateway_docs.introspection.schema_graph import EntitySpec, FieldKind, FieldSpec

logger = logging.getLogger(__name__)

INDENT = "  "
EMPTY_OBJECT = "{}"


@dataclass
class _Frame:
    """An entity whose opening brace is written and whose fields are in progress"""
    specs: List[FieldSpec]
    visited: Tuple[str, ...]
    depth: int
    index: int = 0
    resume: str = ""  # written once the child entity being rendered is closed


class ExampleSynthesizer:
    """Renders example bodies from an entity graph"""

    def render(self, entity_name: str, graph: Dict[str, EntitySpec]) -> str:
        """
        Render the example body of one entity

        Args:
            entity_name: Root entity name
            graph: Entity map from SchemaGraph.parse

        Returns:
            Example text; empty string if the entity is unknown
        """
        return self._render_entity(entity_name, graph, (entity_name,), 0)

    def render_all(self, graph: Dict[str, EntitySpec]) -> Dict[str, str]:
        """
        Render every entity of the graph once

        Returns:
            Mapping of entity name to example body
        """
        bodies = {name: self.render(name, graph) for name in graph}
        logger.debug(f"Rendered {len(bodies)} example bodies")
        return bodies

    def _render_entity(
        self,
        entity_name: str,
        graph: Dict[str, EntitySpec],
        visited: Tuple[str, ...],
        depth: int,
    ) -> str:
        out: List[str] = []
        root = self._open(entity_name, graph, visited, depth, out)
        stack = [root] if root is not None else []

        while stack:
            frame = stack[-1]
            if frame.index == len(frame.specs):
                out.append("\n" + INDENT * frame.depth + "}")
                stack.pop()
                if stack:
                    out.append(stack[-1].resume)
                continue

            spec = frame.specs[frame.index]
            frame.index += 1
            child = self._write_field(spec, graph, frame, out)
            if child is not None:
                stack.append(child)

        return "".join(out)

    def _open(
        self,
        entity_name: str,
        graph: Dict[str, EntitySpec],
        visited: Tuple[str, ...],
        depth: int,
        out: List[str],
    ) -> Optional[_Frame]:
        """
        Start rendering an entity

        Returns:
            A frame for an entity with fields, or None when the entity was
            written whole (`{}`) or is unknown (nothing written)
        """
        entity = graph.get(entity_name)
        if entity is None:
            return None
        if entity.opaque or not entity.fields:
            out.append(EMPTY_OBJECT)
            return None

        specs = []
        for spec in entity.fields.values():
            if spec.kind == FieldKind.UNKNOWN:
                logger.debug(f"Skipping field {spec.name} with unsupported type {spec.type}")
                continue
            specs.append(spec)

        out.append("{")
        return _Frame(specs=specs, visited=visited, depth=depth)

    def _write_field(
        self,
        spec: FieldSpec,
        graph: Dict[str, EntitySpec],
        frame: _Frame,
        out: List[str],
    ) -> Optional[_Frame]:
        """
        Write one field of the frame's entity

        Returns:
            The frame of a referenced entity still to be rendered, if any
        """
        field_depth = frame.depth + 1
        pad = INDENT * field_depth
        separator = "," if frame.index < len(frame.specs) else ""
        kind = spec.kind
        out.append("\n")

        if kind in (FieldKind.SCALAR, FieldKind.OBJECT):
            value = f'"{spec.type}"' if kind == FieldKind.SCALAR else EMPTY_OBJECT
            line = f'{pad}"{spec.name}": {value}{separator}'
            if spec.description:
                line += f" //{spec.description}"
            out.append(line)
            return None

        if spec.description:
            out.append(f"{pad}//{spec.description}\n")
        out.append(f'{pad}"{spec.name}": ')

        target = spec.target
        if kind == FieldKind.ARRAY:
            if target is None:
                out.append((f'["{spec.item_type}"]' if spec.item_type else "[]") + separator)
                return None
            if target not in graph:
                out.append("[]" + separator)
                return None
            out.append("[\n" + INDENT * (field_depth + 1))
            frame.resume = f"\n{pad}]{separator}"
            child_depth = field_depth + 1
        else:
            frame.resume = separator
            child_depth = field_depth

        if target in frame.visited:
            out.append(EMPTY_OBJECT + frame.resume)
            return None

        child = self._open(target, graph, frame.visited + (target,), child_depth, out)
        if child is None:
            out.append(frame.resume)
        return child
