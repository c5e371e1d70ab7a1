"""Read-only views of a Room: snapshot, leaderboard, connections, text export."""

from __future__ import annotations

from app.directory import effective_group, is_profile_complete
from app.models import Connection, Participant, Room


def _name(room: Room, participant_id: str) -> str:
    participant = room.participants.get(participant_id)
    return participant.name if participant else "?"


def participant_display(room: Room, participant: Participant) -> dict:
    group = effective_group(room, participant.id) or []
    return {
        "id": participant.id,
        "name": participant.name,
        "affiliation": participant.affiliation,
        "online": participant.online,
        "ready": is_profile_complete(participant),
        "score": participant.score,
        "met_count": len(participant.met),
        "partners": [
            {"id": pid, "name": _name(room, pid)}
            for pid in group
            if pid != participant.id
        ],
    }


def connection_display(room: Room, conn: Connection) -> dict:
    return {
        "id": conn.id,
        "members": [{"id": mid, "name": _name(room, mid)} for mid in conn.member_ids],
        "group_size": conn.group_size,
        "common_traits": conn.common_traits,
        "individual_traits": conn.individual_traits,
        "submitted_by": conn.submitted_by,
        "complete": conn.is_complete,
        "created_at": conn.created_at,
    }


def leaderboard(room: Room) -> list[dict]:
    """Participants by score, highest first; ties keep join order."""
    ranked = sorted(room.participants.values(), key=lambda p: -p.score)
    return [
        {
            "rank": rank,
            "id": p.id,
            "name": p.name,
            "affiliation": p.affiliation,
            "score": p.score,
        }
        for rank, p in enumerate(ranked, start=1)
    ]


def room_snapshot(room: Room) -> dict:
    participants = list(room.participants.values())
    return {
        "room": {
            "id": room.id,
            "name": room.name,
            "status": room.status,
            "timer_end": room.timer_end,
        },
        "participants": [participant_display(room, p) for p in participants],
        "counts": {
            "total": len(participants),
            "ready": sum(1 for p in participants if is_profile_complete(p)),
            "online": sum(1 for p in participants if p.online),
            "in_session": sum(
                1 for p in participants if effective_group(room, p.id) is not None
            ),
            "connections": len(room.connections),
        },
    }


def export_text(room: Room) -> str:
    lines = [f"{room.name} ({room.status})", "", "Final standings"]
    for row in leaderboard(room):
        lines.append(
            f"{row['rank']:>3}. {row['name']} [{row['affiliation']}] - {row['score']} pts"
        )

    lines += ["", f"Connections ({len(room.connections)})"]
    for conn in room.connections:
        names = ", ".join(_name(room, mid) for mid in conn.member_ids)
        lines.append(f"- {names}")
        lines.append(f"  common: {', '.join(conn.common_traits) or '-'}")
        for submitter_id, traits in conn.individual_traits.items():
            lines.append(f"  {_name(room, submitter_id)}: {', '.join(traits)}")
    return "\n".join(lines) + "\n"


def status_payload(room: Room) -> dict:
    return {"status": room.status, "timer_end": room.timer_end}
