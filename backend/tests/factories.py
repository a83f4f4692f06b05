"""
Shared builders for route tests: teams, wrestlers, meets and bouts.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from meetpair.models.bout import Bout
from meetpair.models.meet import Meet, MeetTeam
from meetpair.models.team import Team
from meetpair.models.wrestler import Wrestler

EDITOR = "coach-a"
OTHER_EDITOR = "coach-b"


def editor_headers(editor: str = EDITOR) -> Dict[str, str]:
    return {"X-Editor-Id": editor}


def make_team(session: Session, name: str = "Hawks", **kwargs) -> Team:
    team = Team(name=name, **kwargs)
    session.add(team)
    session.flush()
    return team


def make_wrestler(
    session: Session,
    team: Team,
    first: str,
    weight: float,
    experience_years: int = 0,
    birthdate: date = date(2015, 6, 1),
    skill: int = 0,
) -> Wrestler:
    w = Wrestler(
        team_id=team.id,
        first=first,
        last=team.name,
        weight=weight,
        birthdate=birthdate,
        experience_years=experience_years,
        skill=skill,
    )
    session.add(w)
    session.flush()
    return w


def make_meet(session: Session, teams: Iterable[Team], name: str = "Dual Meet", **settings) -> Meet:
    teams = list(teams)
    meet = Meet(name=name, meet_date=date(2026, 1, 10), **settings)
    session.add(meet)
    session.flush()
    for team in teams:
        session.add(MeetTeam(meet_id=meet.id, team_id=team.id))
    session.flush()
    return meet


def seed_dual_meet(session: Session, per_team: int = 6, **settings) -> Tuple[Meet, List[Wrestler]]:
    """Two teams of first-years with interleaved weights, committed."""
    home = make_team(session, "Hawks")
    away = make_team(session, "Owls")
    wrestlers = []
    for i in range(per_team):
        wrestlers.append(make_wrestler(session, home, f"H{i}", 60 + 4 * i))
        wrestlers.append(make_wrestler(session, away, f"A{i}", 61 + 4 * i))
    settings.setdefault("num_mats", 2)
    settings.setdefault("rest_gap", 2)
    meet = make_meet(session, [home, away], home_team_id=home.id, **settings)
    session.commit()
    return meet, wrestlers


def make_bouts(session: Session, meet: Meet, layout: Dict[int, List[Tuple[int, int]]]) -> Dict[int, List[int]]:
    """layout: {mat: [(red_id, green_id), ...]}; returns {mat: [bout ids]}."""
    ids: Dict[int, List[int]] = {}
    for mat, pairs in layout.items():
        for order, (red, green) in enumerate(pairs, start=1):
            bout = Bout(meet_id=meet.id, red_id=red, green_id=green, mat=mat, order=order)
            session.add(bout)
            session.flush()
            ids.setdefault(mat, []).append(bout.id)
    session.commit()
    return ids


def bout_snapshot(session: Session, meet_id: int) -> List[Tuple[int, int, int, Optional[int], Optional[int]]]:
    """Stored bouts as plain tuples, read fresh from the database."""
    session.expire_all()
    bouts = session.exec(select(Bout).where(Bout.meet_id == meet_id).order_by(Bout.id)).all()
    return [(b.id, b.red_id, b.green_id, b.mat, b.order) for b in bouts]


def mat_orders(session: Session, meet_id: int) -> Dict[int, List[int]]:
    orders: Dict[int, List[int]] = {}
    for bout_id, _, _, mat, order in sorted(bout_snapshot(session, meet_id), key=lambda r: (r[3] or 0, r[4] or 0)):
        orders.setdefault(mat, []).append(bout_id)
    return orders


def lock_meet(client, meet_id: int, editor: str = EDITOR):
    resp = client.post(f"/api/meets/{meet_id}/lock", headers=editor_headers(editor))
    assert resp.status_code == 200, resp.text
    return resp
