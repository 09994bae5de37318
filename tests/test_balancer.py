"""Tests for the balancer core.

Covers:
- Reference scenarios (away filtering, ties, scale)
- Away-list bound at construction
- Duplicate agent ids and empty agent lists
- Count properties: bounds, conservation, unmatched customers
- Caller inputs are never mutated
"""

from __future__ import annotations

import copy
import time

import pytest
from pydantic import ValidationError

from balancer import (
    TIE_SENTINEL,
    Balancer,
    BalancingError,
    DuplicateAgentIdError,
    NoAvailableAgentsError,
    TooManyUnavailableAgentsError,
)
from models import Agent, Customer


# ── Helpers ──────────────────────────────────────────────────────────────────


def build_scores(scores: list[int]) -> list[dict]:
    """Number entries 1..n in the order given."""
    return [{"id": index + 1, "score": score} for index, score in enumerate(scores)]


SHARED_CUSTOMERS = [10, 10, 10, 20, 20, 30, 30, 30, 20, 60]


# ── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_away_agents_are_skipped(self):
        balancer = Balancer(
            build_scores([60, 20, 95, 75]),
            build_scores([90, 20, 70, 40, 60, 10]),
            [2, 4],
        )
        assert balancer.execute() == 1

    def test_shared_maximum_returns_sentinel(self):
        balancer = Balancer(
            build_scores([11, 21, 31, 3, 4, 5]),
            build_scores(SHARED_CUSTOMERS),
            [],
        )
        assert balancer.execute() == TIE_SENTINEL == 0

    def test_large_input_finishes_quickly(self):
        balancer = Balancer(
            build_scores(list(range(1, 1000))),
            build_scores([998] * 10_000),
            [999],
        )
        started = time.perf_counter()
        result = balancer.execute()
        assert time.perf_counter() - started < 1.0
        assert result == 998

    def test_all_agents_below_every_customer_is_a_tie(self):
        balancer = Balancer(
            build_scores([1, 2, 3, 4, 5, 6]),
            build_scores(SHARED_CUSTOMERS),
            [],
        )
        assert balancer.execute() == 0

    def test_single_dominant_agent(self):
        balancer = Balancer(
            build_scores([100, 2, 3, 6, 4, 5]),
            build_scores(SHARED_CUSTOMERS),
            [],
        )
        assert balancer.execute() == 1

    def test_away_list_leaves_only_empty_handed_agents(self):
        balancer = Balancer(
            build_scores([100, 99, 88, 3, 4, 5]),
            build_scores(SHARED_CUSTOMERS),
            [1, 3, 2],
        )
        assert balancer.execute() == 0

    def test_lowest_eligible_agent_claims_everyone(self):
        balancer = Balancer(
            build_scores([100, 99, 88, 3, 4, 5]),
            build_scores(SHARED_CUSTOMERS),
            [4, 5, 6],
        )
        assert balancer.execute() == 3
        assert balancer.match_counts() == {3: 10, 2: 0, 1: 0}

    def test_input_order_does_not_matter(self):
        balancer = Balancer(
            build_scores([60, 40, 95, 75]),
            build_scores([90, 70, 20, 40, 60, 10]),
            [2, 4],
        )
        assert balancer.execute() == 1


# ── Construction ─────────────────────────────────────────────────────────────


class TestConstruction:
    def test_too_many_away_agents_rejected(self):
        with pytest.raises(TooManyUnavailableAgentsError) as exc_info:
            Balancer(build_scores([10, 20, 30]), build_scores([5]), [1, 2])
        assert exc_info.value.away_count == 2
        assert exc_info.value.max_away == 1

    def test_away_count_equal_to_half_is_allowed(self):
        balancer = Balancer(build_scores([10, 20, 30, 40]), build_scores([5]), [1, 2])
        assert balancer.max_away == 2
        assert balancer.execute() == 3

    def test_repeated_away_ids_count_once(self):
        balancer = Balancer(build_scores([10, 20]), build_scores([5]), [2, 2, 2])
        assert balancer.away_ids == frozenset({2})
        assert balancer.execute() == 1

    def test_errors_share_a_base_class(self):
        with pytest.raises(BalancingError):
            Balancer(build_scores([10]), [], [1])
        assert issubclass(TooManyUnavailableAgentsError, ValueError)

    def test_duplicate_agent_id_rejected(self):
        with pytest.raises(DuplicateAgentIdError) as exc_info:
            Balancer([{"id": 7, "score": 10}, {"id": 7, "score": 20}], [], [])
        assert exc_info.value.agent_id == 7

    def test_non_positive_agent_id_rejected(self):
        with pytest.raises(ValidationError):
            Balancer([{"id": 0, "score": 10}], [], [])

    def test_accepts_models_and_mappings(self):
        balancer = Balancer(
            [Agent(id=1, score=50), {"id": 2, "score": 10}],
            [Customer(score=5), {"score": 40}],
        )
        assert balancer.match_counts() == {2: 1, 1: 1}
        assert all(isinstance(a, Agent) for a in balancer.agents)
        assert all(isinstance(c, Customer) for c in balancer.customers)

    def test_empty_agent_list_has_no_winner(self):
        balancer = Balancer([], build_scores([10]), [])
        assert balancer.match_counts() == {}
        with pytest.raises(NoAvailableAgentsError):
            balancer.ensure_available()
        with pytest.raises(NoAvailableAgentsError):
            balancer.execute()

    def test_ensure_available_passes_with_agents_left(self):
        Balancer(build_scores([10, 20]), [], [1]).ensure_available()

    @pytest.mark.parametrize("away_ids", [[2.9], ["2"], [True]])
    def test_away_ids_must_be_integers(self, away_ids):
        with pytest.raises(ValidationError):
            Balancer(build_scores([10, 20, 30]), [], away_ids)


# ── Properties ───────────────────────────────────────────────────────────────


class TestProperties:
    def test_repeated_runs_agree(self):
        balancer = Balancer(
            build_scores([60, 20, 95, 75]),
            build_scores([90, 20, 70, 40, 60, 10]),
            [2, 4],
        )
        assert {balancer.execute() for _ in range(5)} == {1}

    def test_caller_inputs_untouched(self):
        agents = build_scores([60, 20, 95, 75])
        customers = build_scores([90, 20, 70, 40, 60, 10])
        away = [2, 4]
        before = copy.deepcopy((agents, customers, away))

        Balancer(agents, customers, away).execute()

        assert (agents, customers, away) == before

    def test_away_agent_never_wins(self):
        # Agent 2 would take every customer if it were available
        balancer = Balancer(
            build_scores([5, 100, 1]),
            build_scores([50, 60, 70]),
            [2],
        )
        assert balancer.execute() != 2
        assert 2 not in balancer.match_counts()

    def test_counts_are_bounded_and_conserved(self):
        customers = build_scores([1, 5, 9, 15, 22, 40, 41, 80, 99, 500])
        balancer = Balancer(build_scores([10, 40, 3, 90, 25]), customers, [5])
        counts = balancer.match_counts()

        assert all(0 <= c <= len(customers) for c in counts.values())
        assert sum(counts.values()) <= len(customers)
        assert counts == {3: 1, 1: 2, 2: 3, 4: 2}
        assert balancer.execute() == 2

    def test_customers_above_every_agent_stay_unmatched(self):
        result = Balancer(build_scores([10]), build_scores([5, 50, 60])).run()
        assert result.match_counts == {1: 1}
        assert result.unmatched_customers == 2
        assert result.winner_id == 1
        assert not result.tied

    def test_equal_score_counts_as_match(self):
        balancer = Balancer(build_scores([30, 20]), build_scores([20, 30]))
        assert balancer.match_counts() == {2: 1, 1: 1}
        assert balancer.execute() == 0

    def test_no_customers_is_a_tie_between_all_agents(self):
        result = Balancer(build_scores([10, 20]), []).run()
        assert result.tied
        assert result.winner_id == 0
        assert result.unmatched_customers == 0

    def test_single_agent_with_no_customers_wins(self):
        assert Balancer(build_scores([10]), []).execute() == 1
