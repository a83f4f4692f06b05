"""
Meet lock and draft-status gate.

Validates:
- One editor at a time; expired locks are free again
- Every mutation without the lock is rejected with 409 and changes nothing
- Every mutation on a PUBLISHED meet is rejected with 400 and changes nothing
"""

from datetime import datetime, timedelta

import pytest

from meetpair.models.meet import MEET_STATUS_PUBLISHED, Meet
from tests.factories import (
    EDITOR,
    OTHER_EDITOR,
    bout_snapshot,
    editor_headers,
    lock_meet,
    make_bouts,
    seed_dual_meet,
)


def _mutations(meet_id: int, wrestlers, bout_ids):
    """(method, path, json) for every bout/mat mutation route."""
    return [
        ("post", f"/api/meets/{meet_id}/pairings/generate", {"clear_existing": True}),
        ("post", f"/api/meets/{meet_id}/pairings/add", {"red_id": wrestlers[4].id, "green_id": wrestlers[5].id}),
        ("delete", f"/api/meets/{meet_id}/bouts/{bout_ids[0]}", None),
        ("post", f"/api/meets/{meet_id}/mats/assign", {}),
        ("post", f"/api/meets/{meet_id}/bouts/{bout_ids[0]}/move", {"mat": 2, "index": 0}),
        ("post", f"/api/meets/{meet_id}/mats/reorder", {"seed": 1}),
        ("post", f"/api/meets/{meet_id}/bouts/reorder", {"mats": {"1": list(reversed(bout_ids)), "2": []}}),
        ("put", f"/api/meets/{meet_id}/wrestlers/{wrestlers[0].id}/status", {"status": "ABSENT"}),
        ("patch", f"/api/meets/{meet_id}/settings", {"rest_gap": 1}),
        ("post", f"/api/meets/{meet_id}/excluded-pairs", {"a_id": wrestlers[0].id, "b_id": wrestlers[1].id}),
        ("post", f"/api/meets/{meet_id}/publish", None),
    ]


def _send(client, method, path, body, editor=None):
    headers = editor_headers(editor) if editor else {}
    if method == "delete":
        return client.delete(path, headers=headers)
    return getattr(client, method)(path, json=body, headers=headers)


@pytest.fixture(name="seeded")
def seeded_fixture(session):
    meet, wrestlers = seed_dual_meet(session)
    ids = make_bouts(
        session, meet,
        {1: [(wrestlers[0].id, wrestlers[1].id), (wrestlers[2].id, wrestlers[3].id)]},
    )
    return meet, wrestlers, ids[1]


class TestLockLifecycle:
    def test_acquire_and_report(self, client, session, seeded):
        meet, _, _ = seeded
        resp = lock_meet(client, meet.id)
        assert resp.json()["locked_by"] == EDITOR

        status = client.get(f"/api/meets/{meet.id}/lock").json()
        assert status["locked"] is True
        assert status["locked_by"] == EDITOR

    def test_second_editor_rejected(self, client, session, seeded):
        meet, _, _ = seeded
        lock_meet(client, meet.id)
        resp = client.post(f"/api/meets/{meet.id}/lock", headers=editor_headers(OTHER_EDITOR))
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "MEET_LOCKED"
        assert resp.json()["detail"]["locked_by"] == EDITOR

    def test_holder_can_refresh(self, client, session, seeded):
        meet, _, _ = seeded
        first = lock_meet(client, meet.id).json()["lock_expires_at"]
        second = lock_meet(client, meet.id).json()["lock_expires_at"]
        assert second >= first

    def test_only_holder_releases(self, client, session, seeded):
        meet, _, _ = seeded
        lock_meet(client, meet.id)
        resp = client.delete(f"/api/meets/{meet.id}/lock", headers=editor_headers(OTHER_EDITOR))
        assert resp.status_code == 409

        resp = client.delete(f"/api/meets/{meet.id}/lock", headers=editor_headers(EDITOR))
        assert resp.status_code == 200
        assert client.get(f"/api/meets/{meet.id}/lock").json()["locked"] is False

    def test_expired_lock_is_free(self, client, session, seeded):
        meet, _, _ = seeded
        lock_meet(client, meet.id)
        stored = session.get(Meet, meet.id)
        session.refresh(stored)
        stored.lock_expires_at = datetime.utcnow() - timedelta(seconds=1)
        session.add(stored)
        session.commit()

        resp = lock_meet(client, meet.id, OTHER_EDITOR)
        assert resp.json()["locked_by"] == OTHER_EDITOR

    def test_editor_header_required(self, client, session, seeded):
        meet, _, _ = seeded
        assert client.post(f"/api/meets/{meet.id}/lock").status_code == 401

    def test_unknown_meet(self, client, session):
        assert client.post("/api/meets/999/lock", headers=editor_headers()).status_code == 404


class TestMutationGate:
    def test_without_lock_nothing_changes(self, client, session, seeded):
        meet, wrestlers, bout_ids = seeded
        before = bout_snapshot(session, meet.id)
        for method, path, body in _mutations(meet.id, wrestlers, bout_ids):
            resp = _send(client, method, path, body, editor=EDITOR)
            assert resp.status_code == 409, path
            assert resp.json()["detail"]["error"] == "MEET_LOCK_REQUIRED"
        assert bout_snapshot(session, meet.id) == before

    def test_lock_held_by_other_editor(self, client, session, seeded):
        meet, wrestlers, bout_ids = seeded
        lock_meet(client, meet.id, OTHER_EDITOR)
        before = bout_snapshot(session, meet.id)
        for method, path, body in _mutations(meet.id, wrestlers, bout_ids):
            resp = _send(client, method, path, body, editor=EDITOR)
            assert resp.status_code == 409, path
            assert resp.json()["detail"]["error"] == "MEET_LOCKED"
        assert bout_snapshot(session, meet.id) == before

    def test_published_meet_is_read_only(self, client, session, seeded):
        meet, wrestlers, bout_ids = seeded
        lock_meet(client, meet.id)
        stored = session.get(Meet, meet.id)
        session.refresh(stored)
        stored.status = MEET_STATUS_PUBLISHED
        session.add(stored)
        session.commit()

        before = bout_snapshot(session, meet.id)
        for method, path, body in _mutations(meet.id, wrestlers, bout_ids):
            resp = _send(client, method, path, body, editor=EDITOR)
            assert resp.status_code == 400, path
            assert resp.json()["detail"].startswith("MEET_NOT_DRAFT")
        assert bout_snapshot(session, meet.id) == before

    def test_reads_need_no_lock(self, client, session, seeded):
        meet, wrestlers, _ = seeded
        assert client.get(f"/api/meets/{meet.id}/mats").status_code == 200
        assert client.get(f"/api/meets/{meet.id}/bouts").status_code == 200
        resp = client.get(f"/api/meets/{meet.id}/candidates", params={"wrestler_id": wrestlers[0].id})
        assert resp.status_code == 200

    def test_publish_with_lock(self, client, session, seeded):
        meet, _, _ = seeded
        lock_meet(client, meet.id)
        resp = client.post(f"/api/meets/{meet.id}/publish", headers=editor_headers())
        assert resp.status_code == 200
        assert resp.json()["status"] == "PUBLISHED"
