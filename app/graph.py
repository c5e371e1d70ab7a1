"""Connection graph for the facilitator's force-directed map."""

from __future__ import annotations

import networkx as nx
from networkx.readwrite import json_graph

from app.directory import effective_group
from app.models import Room

HUB_ID = "facilitator"


def build_graph(room: Room) -> nx.Graph:
    """Participants around a facilitator hub, linked by their Connections.

    Every participant hangs off the hub so newcomers are visible before their
    first session. Connection edges carry the number of common traits as
    weight; triples add an edge per member pair.
    """
    graph = nx.Graph()
    graph.add_node(HUB_ID, kind="hub", label=room.name)

    for p in room.participants.values():
        graph.add_node(
            p.id,
            kind="participant",
            label=p.name,
            affiliation=p.affiliation,
            score=p.score,
            in_session=effective_group(room, p.id) is not None,
        )
        graph.add_edge(HUB_ID, p.id, kind="hub", weight=1)

    for conn in room.connections:
        present = [mid for mid in conn.member_ids if mid in room.participants]
        for i, id_a in enumerate(present):
            for id_b in present[i + 1 :]:
                graph.add_edge(
                    id_a,
                    id_b,
                    kind="connection",
                    connection_id=conn.id,
                    weight=max(len(conn.common_traits), 1),
                    traits=conn.common_traits[:2],
                )

    return graph


def graph_data(room: Room) -> dict:
    return json_graph.node_link_data(build_graph(room), edges="links")
