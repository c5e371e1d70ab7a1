"""Tests for trait submission, connection ids and scoring."""

import pytest

from app.connections import connections_for, submit_traits
from app.directory import assign_group, effective_group
from app.errors import InvalidTransition, NotMatched, ValidationFailed
from app.models import RoomStatus, Unmatched
from app.scoring import connection_id, make_group_key, score_delta, shared_tags
from tests.conftest import make_participant, make_room


def tags_with(shared: list[str], own: str) -> list[str]:
    return shared + [f"{own}-{i}" for i in range(10 - len(shared))]


# --- Scoring ---


class TestScoring:
    def test_pair_delta(self):
        assert score_delta(3, 2) == 30

    def test_triple_delta(self):
        assert score_delta(3, 3) == 45

    def test_triple_rounds_down(self):
        assert score_delta(1, 3) == 15
        assert score_delta(0, 3) == 0

    def test_group_key_is_order_independent(self):
        assert make_group_key(["a", "b", "c"]) == make_group_key(["c", "a", "b"])
        assert connection_id(["b", "a"]) == "conn:a:b"

    def test_shared_tags_intersection(self):
        a = make_participant("a", tags=tags_with(["coffee", "cats"], "a"))
        b = make_participant("b", tags=tags_with(["cats", "coffee", "jazz"], "b"))
        c = make_participant("c", tags=tags_with(["coffee", "jazz"], "c"))

        assert shared_tags([a, b]) == ["coffee", "cats"]
        assert shared_tags([a, b, c]) == ["coffee"]
        assert shared_tags([]) == []


# --- Submission ---


class TestSubmitTraits:
    def _paired_room(self, shared=("hiking", "tea")):
        x = make_participant("x", tags=tags_with(list(shared), "x"))
        y = make_participant("y", tags=tags_with(list(shared), "y"))
        room = make_room([x, y])
        assign_group(room, ["x", "y"])
        return room

    def test_pair_flow(self):
        room = self._paired_room()

        first = submit_traits(room, ["x", "y"], "x", ["t1", "t2", "t3"])
        assert first.applied and not first.finalized
        assert first.delta == 30

        second = submit_traits(room, ["y", "x"], "y", ["t4", "t5", "t6"])
        assert second.finalized
        assert sorted(second.released) == ["x", "y"]

        assert len(room.connections) == 1
        conn = room.connections[0]
        assert conn.common_traits == ["hiking", "tea", "t1", "t2", "t3", "t4", "t5", "t6"]
        assert conn.individual_traits == {"x": ["t1", "t2", "t3"], "y": ["t4", "t5", "t6"]}
        assert sorted(conn.submitted_by) == ["x", "y"]
        assert room.participants["x"].score == 60
        assert room.participants["y"].score == 60
        assert isinstance(room.participants["x"].match, Unmatched)
        assert room.participants["x"].met == {"y"}
        assert room.participants["y"].met == {"x"}

    def test_duplicate_traits_are_merged(self):
        room = self._paired_room(shared=("tea",))
        submit_traits(room, ["x", "y"], "x", ["tea", "cats", "jazz"])
        submit_traits(room, ["x", "y"], "y", ["cats", "dogs", "jazz"])

        conn = room.connections[0]
        assert conn.common_traits == ["tea", "cats", "jazz", "dogs"]
        assert conn.individual_traits["y"] == ["cats", "dogs", "jazz"]
        # Score counts what was submitted, not what was new
        assert room.participants["x"].score == 60

    def test_triple_scores_every_member(self):
        room = make_room([make_participant(pid) for pid in "abc"])
        assign_group(room, ["a", "b", "c"])

        outcome = submit_traits(room, ["a", "b", "c"], "b", ["p", "q", "r"])
        assert outcome.delta == 45
        assert [room.participants[pid].score for pid in "abc"] == [45, 45, 45]
        assert not outcome.finalized

        submit_traits(room, ["a", "b", "c"], "a", ["s", "t", "u"])
        final = submit_traits(room, ["a", "b", "c"], "c", ["v", "w", "z"])
        assert final.finalized
        assert [room.participants[pid].score for pid in "abc"] == [135, 135, 135]
        assert room.participants["a"].met == {"b", "c"}

    def test_repeat_submission_is_noop(self):
        room = self._paired_room()
        submit_traits(room, ["x", "y"], "x", ["t1", "t2", "t3"])
        before = room.model_dump()

        again = submit_traits(room, ["x", "y"], "x", ["t1", "t2", "t3"])
        assert not again.applied
        assert again.delta == 0
        assert room.model_dump() == before

    def test_retry_after_finalized_is_noop(self):
        room = self._paired_room()
        submit_traits(room, ["x", "y"], "x", ["t1", "t2", "t3"])
        submit_traits(room, ["x", "y"], "y", ["t4", "t5", "t6"])
        before = room.model_dump()

        again = submit_traits(room, ["x", "y"], "y", ["t4", "t5", "t6"])
        assert not again.applied and again.finalized
        assert room.model_dump() == before

    def test_same_group_via_any_order_hits_same_record(self):
        room = make_room([make_participant(pid) for pid in "abc"])
        assign_group(room, ["c", "a", "b"])
        submit_traits(room, ["a", "b", "c"], "a", ["1", "2", "3"])
        submit_traits(room, ["c", "a", "b"], "c", ["4", "5", "6"])

        assert len(room.connections) == 1
        assert room.connections[0].id == "conn:a:b:c"
        assert len(connections_for(room, "b")) == 1

    def test_repeat_meeting_after_finalized_releases_group(self):
        room = self._paired_room()
        submit_traits(room, ["x", "y"], "x", ["t1", "t2", "t3"])
        submit_traits(room, ["x", "y"], "y", ["t4", "t5", "t6"])

        # Forced repeat puts them back together
        assign_group(room, ["x", "y"])
        outcome = submit_traits(room, ["x", "y"], "x", ["n1", "n2", "n3"])

        assert not outcome.applied
        assert sorted(outcome.released) == ["x", "y"]
        assert room.participants["x"].score == 60
        assert effective_group(room, "x") is None

    def test_traits_are_stripped(self):
        room = self._paired_room()
        submit_traits(room, ["x", "y"], "x", [" t1 ", "t2", "t3 "])
        assert room.connections[0].individual_traits["x"] == ["t1", "t2", "t3"]

    @pytest.mark.parametrize(
        "traits",
        [["a", "b"], ["a", "b", "c", "d"], ["a", "", "c"], ["a", "  ", "c"]],
    )
    def test_bad_traits_rejected_without_writes(self, traits):
        room = self._paired_room()
        before = room.model_dump()
        with pytest.raises(ValidationFailed):
            submit_traits(room, ["x", "y"], "x", traits)
        assert room.model_dump() == before

    def test_submitter_outside_group_rejected(self):
        room = self._paired_room()
        with pytest.raises(ValidationFailed):
            submit_traits(room, ["x", "y"], "z", ["a", "b", "c"])

    def test_unmatched_group_rejected(self):
        room = make_room([make_participant("x"), make_participant("y")])
        with pytest.raises(NotMatched):
            submit_traits(room, ["x", "y"], "x", ["a", "b", "c"])
        assert room.connections == []

    def test_closed_room_rejects_new_submissions(self):
        room = self._paired_room()
        room.status = RoomStatus.COMPLETED
        with pytest.raises(InvalidTransition):
            submit_traits(room, ["x", "y"], "x", ["a", "b", "c"])

    def test_removed_member_is_skipped_when_scoring(self):
        room = make_room([make_participant(pid) for pid in "abc"])
        assign_group(room, ["a", "b", "c"])
        submit_traits(room, ["a", "b", "c"], "a", ["1", "2", "3"])

        del room.participants["c"]
        # c's pointer is gone, so a and b are no longer an effective group
        with pytest.raises(NotMatched):
            submit_traits(room, ["a", "b", "c"], "b", ["4", "5", "6"])
        assert room.participants["a"].score == 45
