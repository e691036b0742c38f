"""Link analysis: entities and the relationships between them.

The capability proposes nodes and edges; node ids are then rebuilt from
the node labels so they are stable and safe to use as graph keys, and
edges are remapped onto the rebuilt ids.
"""

import re

from ..llm import CapabilityInvoker, get_capability_invoker
from ..logging import get_logger
from .messages import stage_failure
from .models import (
    EntityNode,
    EntityRelationship,
    FindEntityRelationshipsInput,
    FindEntityRelationshipsOutput,
    FindEntityRelationshipsReply,
)
from .prompts import FIND_RELATIONSHIPS_PROMPT
from .stages import BaseStage

logger = get_logger(__name__)

MAX_ENTITIES = 100
NO_ENTITIES = "No input entities were provided for link analysis."
DEFAULT_SUMMARY = "Analysis completed."

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")


def normalize_entity_graph(
    reply: FindEntityRelationshipsReply,
) -> tuple[list[EntityNode], list[EntityRelationship]]:
    """Rebuild node ids from labels and remap relationships onto them.

    Ids are the label with every character outside ``[A-Za-z0-9_]``
    replaced by ``_``. An id already taken gets the first free ``_2``,
    ``_3``... suffix.
    Relationship endpoints are resolved by original id first, then by
    label. Relationships whose endpoints match no node are dropped.
    """
    assigned: set[str] = set()
    nodes: list[EntityNode] = []
    by_original_id: dict[str, str] = {}
    by_label: dict[str, str] = {}

    for entity in reply.identified_entities:
        base_id = _UNSAFE_ID_CHARS.sub("_", entity.label)
        new_id = base_id
        suffix = 2
        while new_id in assigned:
            new_id = f"{base_id}_{suffix}"
            suffix += 1
        assigned.add(new_id)

        nodes.append(
            EntityNode(
                id=new_id,
                label=entity.label,
                type=entity.type,
                properties=entity.properties or {},
            )
        )
        by_original_id[entity.id] = new_id
        by_label[entity.label] = new_id

    node_ids = {node.id for node in nodes}
    relationships: list[EntityRelationship] = []
    for rel in reply.relationships:
        source = by_original_id.get(rel.source) or by_label.get(rel.source) or rel.source
        target = by_original_id.get(rel.target) or by_label.get(rel.target) or rel.target
        if source not in node_ids or target not in node_ids:
            logger.debug(f"Dropping relationship {rel.source} -> {rel.target}: unknown endpoint")
            continue
        relationships.append(
            EntityRelationship(
                source=source,
                target=target,
                label=rel.label,
                type=rel.type,
                direction=rel.direction,
                strength=rel.strength,
                properties=rel.properties or {},
            )
        )

    return nodes, relationships


class FindRelationshipsStage(
    BaseStage[FindEntityRelationshipsInput, FindEntityRelationshipsReply, FindEntityRelationshipsOutput]
):
    name = "link_analysis"
    prompt = FIND_RELATIONSHIPS_PROMPT

    def has_input(self, stage_input: FindEntityRelationshipsInput) -> bool:
        return bool(stage_input.entities)

    def failure_payload(
        self, cause: str, stage_input: FindEntityRelationshipsInput
    ) -> FindEntityRelationshipsOutput:
        return FindEntityRelationshipsOutput(
            identified_entities=[],
            relationships=[],
            analysis_summary=stage_failure(cause),
        )

    def complete(
        self, reply: FindEntityRelationshipsReply, stage_input: FindEntityRelationshipsInput
    ) -> FindEntityRelationshipsOutput:
        nodes, relationships = normalize_entity_graph(reply)
        return FindEntityRelationshipsOutput(
            identified_entities=nodes,
            relationships=relationships,
            analysis_summary=reply.analysis_summary or DEFAULT_SUMMARY,
        )


async def find_entity_relationships(
    link_input: FindEntityRelationshipsInput,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> FindEntityRelationshipsOutput:
    """Identify entities and relationships from a raw entity list.

    Only the first ``MAX_ENTITIES`` entities are analyzed; the summary
    says so when the list was truncated.
    """
    if not link_input.entities:
        return FindEntityRelationshipsOutput(analysis_summary=NO_ENTITIES)

    notice = ""
    if len(link_input.entities) > MAX_ENTITIES:
        notice = (
            f"NOTICE: the entity list provided ({len(link_input.entities)}) exceeded the limit "
            f"of {MAX_ENTITIES}. The analysis was performed on the first {MAX_ENTITIES} items. "
        )
        link_input = link_input.model_copy(update={"entities": link_input.entities[:MAX_ENTITIES]})

    invoker = invoker or get_capability_invoker()
    outcome = await FindRelationshipsStage(invoker).run(link_input, timeout=timeout)
    output = outcome.payload
    output.analysis_summary = notice + output.analysis_summary
    return output
