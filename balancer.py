"""
Customer-success balancing: find the agent who would serve the most customers.

Each available agent, in ascending score order, claims every still-unclaimed
customer whose score is at or below their own. The agent with the highest claim
count wins; a shared maximum yields TIE_SENTINEL.
"""

import logging
from bisect import bisect_right
from operator import attrgetter
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple, Union

from pydantic import StrictInt, TypeAdapter

from models import Agent, BalanceResult, Customer

logger = logging.getLogger(__name__)

# Agent ids are positive, so 0 never names a real agent
TIE_SENTINEL = 0

AgentLike = Union[Agent, Mapping[str, Any]]
CustomerLike = Union[Customer, Mapping[str, Any]]

_away_ids_adapter = TypeAdapter(List[StrictInt])


class BalancingError(ValueError):
    """Base class for invalid balancing input."""


class TooManyUnavailableAgentsError(BalancingError):
    def __init__(self, away_count: int, max_away: int):
        self.away_count = away_count
        self.max_away = max_away
        super().__init__(
            f"{away_count} agents marked away; at most {max_away} may be unavailable"
        )


class DuplicateAgentIdError(BalancingError):
    def __init__(self, agent_id: int):
        self.agent_id = agent_id
        super().__init__(f"Duplicate agent id {agent_id}")


class NoAvailableAgentsError(BalancingError):
    def __init__(self):
        super().__init__("No agents available after removing away agents")


def _as_agent(item: AgentLike) -> Agent:
    return item if isinstance(item, Agent) else Agent.model_validate(item)


def _as_customer(item: CustomerLike) -> Customer:
    return item if isinstance(item, Customer) else Customer.model_validate(item)


def _pick_winner(counts: Dict[int, int]) -> Tuple[int, int]:
    """Return (winner_id, number of agents sharing the max) in a single pass."""
    best_id, best_count, holders = TIE_SENTINEL, -1, 0
    for agent_id, count in counts.items():
        if count > best_count:
            best_id, best_count, holders = agent_id, count, 1
        elif count == best_count:
            holders += 1
    if holders > 1:
        return TIE_SENTINEL, holders
    return best_id, holders


class Balancer:
    """One balance computation over agents, customers, and the away list.

    Inputs are copied on construction; the caller's sequences are never
    sorted or mutated.
    """

    def __init__(
        self,
        agents: Iterable[AgentLike],
        customers: Iterable[CustomerLike],
        away_ids: Iterable[int] = (),
    ):
        agent_list = tuple(_as_agent(a) for a in agents)
        away = frozenset(_away_ids_adapter.validate_python(list(away_ids)))

        max_away = len(agent_list) // 2
        if len(away) > max_away:
            raise TooManyUnavailableAgentsError(len(away), max_away)

        seen = set()
        for agent in agent_list:
            if agent.id in seen:
                raise DuplicateAgentIdError(agent.id)
            seen.add(agent.id)

        self._agents: Tuple[Agent, ...] = agent_list
        self._customers: Tuple[Customer, ...] = tuple(_as_customer(c) for c in customers)
        self._away_ids: FrozenSet[int] = away
        self._max_away = max_away

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return self._agents

    @property
    def customers(self) -> Tuple[Customer, ...]:
        return self._customers

    @property
    def away_ids(self) -> FrozenSet[int]:
        return self._away_ids

    @property
    def max_away(self) -> int:
        return self._max_away

    def ensure_available(self) -> None:
        """Raise NoAvailableAgentsError if the away list leaves nobody to assign."""
        if not any(a.id not in self._away_ids for a in self._agents):
            raise NoAvailableAgentsError()

    def match_counts(self) -> Dict[int, int]:
        """Number of customers each available agent claims, keyed by agent id."""
        available = sorted(
            (a for a in self._agents if a.id not in self._away_ids),
            key=attrgetter("score"),
        )
        pool = sorted(c.score for c in self._customers)

        counts: Dict[int, int] = {}
        claimed = 0
        for agent in available:
            # Agents are ascending, so everything before `claimed` is already taken
            upto = bisect_right(pool, agent.score, lo=claimed)
            counts[agent.id] = upto - claimed
            claimed = upto
        return counts

    def run(self) -> BalanceResult:
        """Compute counts and the winner."""
        self.ensure_available()
        counts = self.match_counts()
        winner_id, holders = _pick_winner(counts)
        unmatched = len(self._customers) - sum(counts.values())
        logger.debug(
            "Balanced %d agents / %d customers: winner=%s holders=%d unmatched=%d",
            len(counts), len(self._customers), winner_id, holders, unmatched,
        )
        return BalanceResult(
            winner_id=winner_id,
            tied=holders > 1,
            match_counts=counts,
            unmatched_customers=unmatched,
        )

    def execute(self) -> int:
        """Return the winning agent id, or TIE_SENTINEL if no agent wins outright."""
        return self.run().winner_id
