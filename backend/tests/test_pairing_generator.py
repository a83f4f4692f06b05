"""
Tests for bulk pairing generation.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta

from meetpair.services.eligibility import PairingRules, WrestlerProfile, is_eligible, normalize_pair
from meetpair.services.pairing_generator import generate_pairings

BIRTH = date(2015, 6, 1)


@dataclass
class _Bout:
    red_id: int
    green_id: int


def _w(wid: int, weight: float, exp: int = 0, team_id: int = 1, days_older: int = 0, status: str = "COMING"):
    return WrestlerProfile(
        id=wid,
        team_id=team_id,
        weight=weight,
        birthdate=BIRTH - timedelta(days=days_older),
        experience_years=exp,
        status=status,
    )


def _roster(n: int = 24):
    """Two teams of mixed wrestlers spread over a realistic weight range."""
    return [
        _w(i, 60 + (i * 7) % 50, exp=(i % 4), team_id=1 + i % 2, days_older=(i * 37) % 500)
        for i in range(1, n + 1)
    ]


def _counts(bouts):
    counts = {}
    for b in bouts:
        counts[b.red_id] = counts.get(b.red_id, 0) + 1
        counts[b.green_id] = counts.get(b.green_id, 0) + 1
    return counts


class TestQuartetScenario:
    A, B, C, D = _w(1, 100), _w(2, 102), _w(3, 150, exp=3), _w(4, 101)
    RULES = PairingRules(
        max_weight_diff_pct=12,
        first_year_only_with_first_year=True,
        allow_same_team_matches=True,
        matches_per_wrestler=1,
        max_matches_per_wrestler=2,
    )

    def test_two_first_year_bouts_and_c_unpaired(self):
        result = generate_pairings([self.A, self.B, self.C, self.D], [], self.RULES)
        pairs = {normalize_pair(b.red_id, b.green_id) for b in result.bouts}

        assert result.created == 2
        assert pairs == {(1, 4), (2, 4)}
        assert all(self.C.id not in p for p in pairs)

    def test_c_reported_under_target(self):
        result = generate_pairings([self.A, self.B, self.C, self.D], [], self.RULES)
        assert result.under_target == {self.C.id: 0}
        assert result.under_target_count == 1
        assert result.total_wrestlers == 4


class TestInvariants:
    RULES = PairingRules(matches_per_wrestler=2, max_matches_per_wrestler=3, max_weight_diff_pct=15)

    def test_no_duplicate_or_self_pairs(self):
        result = generate_pairings(_roster(), [], self.RULES)
        keys = [normalize_pair(b.red_id, b.green_id) for b in result.bouts]
        assert len(keys) == len(set(keys))
        assert all(b.red_id != b.green_id for b in result.bouts)

    def test_every_bout_is_eligible(self):
        roster = _roster()
        by_id = {w.id: w for w in roster}
        result = generate_pairings(roster, [], self.RULES)
        assert result.bouts
        for b in result.bouts:
            assert is_eligible(by_id[b.red_id], by_id[b.green_id], self.RULES)

    def test_cap_respected(self):
        result = generate_pairings(_roster(), [], self.RULES)
        assert max(_counts(result.bouts).values()) <= self.RULES.effective_max_matches

    def test_scores_and_notes_filled(self):
        result = generate_pairings(_roster(), [], self.RULES)
        for b in result.bouts:
            assert b.pairing_score >= 0
            assert b.notes.startswith("wDiff=")

    def test_existing_bouts_count_toward_totals(self):
        roster = [_w(1, 100, team_id=1), _w(2, 101, team_id=2), _w(3, 102, team_id=1), _w(4, 103, team_id=2)]
        rules = PairingRules(matches_per_wrestler=1, max_matches_per_wrestler=1)
        existing = [_Bout(1, 2)]
        result = generate_pairings(roster, existing, rules)
        pairs = {normalize_pair(b.red_id, b.green_id) for b in result.bouts}
        assert pairs == {(3, 4)}

    def test_clear_existing_ignores_old_bouts(self):
        roster = [_w(1, 100, team_id=1), _w(2, 101, team_id=2)]
        rules = PairingRules(matches_per_wrestler=1, max_matches_per_wrestler=1)
        result = generate_pairings(roster, [_Bout(1, 2)], rules, clear_existing=True)
        assert [normalize_pair(b.red_id, b.green_id) for b in result.bouts] == [(1, 2)]

    def test_existing_pair_not_repeated(self):
        roster = [_w(1, 100, team_id=1), _w(2, 101, team_id=2)]
        rules = PairingRules(matches_per_wrestler=2, max_matches_per_wrestler=2)
        result = generate_pairings(roster, [_Bout(2, 1)], rules)
        assert result.created == 0
        assert result.under_target == {1: 1, 2: 1}

    def test_excluded_pairs_respected(self):
        roster = [_w(1, 100, team_id=1), _w(2, 101, team_id=2), _w(3, 104, team_id=2)]
        rules = PairingRules(matches_per_wrestler=1, max_matches_per_wrestler=1)
        result = generate_pairings(roster, [], rules, excluded={(1, 2)})
        assert [normalize_pair(b.red_id, b.green_id) for b in result.bouts] == [(1, 3)]

    def test_not_attending_wrestlers_left_out(self):
        roster = [
            _w(1, 100, team_id=1),
            _w(2, 101, team_id=2, status="NOT_COMING"),
            _w(3, 102, team_id=2, status="ABSENT"),
            _w(4, 103, team_id=2, status="LATE"),
        ]
        rules = PairingRules(matches_per_wrestler=1, max_matches_per_wrestler=1)
        result = generate_pairings(roster, [], rules)
        assert [normalize_pair(b.red_id, b.green_id) for b in result.bouts] == [(1, 4)]
        assert result.total_wrestlers == 2

    def test_nobody_to_pair_is_not_an_error(self):
        roster = [_w(1, 100, team_id=1), _w(2, 101, team_id=1)]
        result = generate_pairings(roster, [], PairingRules())
        assert result.created == 0
        assert set(result.under_target) == {1, 2}

    def test_deterministic(self):
        first = generate_pairings(_roster(), [], self.RULES)
        second = generate_pairings(_roster(), [], self.RULES)
        assert [(b.red_id, b.green_id) for b in first.bouts] == [(b.red_id, b.green_id) for b in second.bouts]


def test_first_year_rule_can_be_relaxed():
    rookie = _w(1, 100, team_id=1)
    veteran = _w(2, 101, exp=3, team_id=2)
    strict = generate_pairings([rookie, veteran], [], PairingRules(matches_per_wrestler=1))
    relaxed = generate_pairings(
        [rookie, veteran], [], replace(PairingRules(matches_per_wrestler=1), first_year_only_with_first_year=False)
    )
    assert strict.created == 0
    assert relaxed.created == 1
