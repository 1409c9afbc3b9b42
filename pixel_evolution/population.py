"""
pixel_evolution/population.py - Vote-driven pool of generator Parameters
"""
import itertools
import logging
import random
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .ast_nodes import IExpr
from .exceptions import PoolUnderflowError
from .generator import DEFAULT_MAX_DEPTH, DEFAULT_MIN_DEPTH
from .parameters import Parameters

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
BREED_CHANCE = 0.2


@dataclass
class PoolEntry:
    """One Parameters bundle and its vote tally"""
    identifier: int
    parameters: Parameters = field(default_factory=Parameters)
    # seeded at 1/1 so the score starts at 0.5 and is always defined
    upvotes: int = 1
    downvotes: int = 1

    @property
    def score(self) -> float:
        return self.upvotes / (self.upvotes + self.downvotes)


class ParameterPool:
    """Bounded population of Parameters ranked by user votes.

    Every public method takes the pool lock, so a vote together with the
    breeding and eviction it triggers is seen by other threads as one step.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, breed_chance: float = BREED_CHANCE,
                 max_depth: int = DEFAULT_MAX_DEPTH, min_depth: int = DEFAULT_MIN_DEPTH,
                 initial: Optional[Parameters] = None, rng=None):
        if capacity < 1:
            raise ValueError("Pool capacity must be at least 1")
        self.capacity = capacity
        self.breed_chance = breed_chance
        self.max_depth = max_depth
        self.min_depth = min_depth
        self.rng = rng or random
        self.generation = 0

        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._entries: Dict[int, PoolEntry] = {}
        self._add(initial or Parameters())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identifier: int) -> bool:
        with self._lock:
            return identifier in self._entries

    @property
    def entries(self) -> List[PoolEntry]:
        """Snapshot of the current entries"""
        with self._lock:
            return [PoolEntry(e.identifier, e.parameters, e.upvotes, e.downvotes)
                    for e in self._entries.values()]

    def get(self, identifier: int) -> Optional[PoolEntry]:
        with self._lock:
            entry = self._entries.get(identifier)
            return replace(entry) if entry else None

    # --- selection ---

    def _ranked(self) -> List[PoolEntry]:
        return sorted(self._entries.values(), key=lambda e: e.score)

    def _bound(self) -> int:
        # uniform in [1, len]: larger bounds let weaker entries through
        return 1 + self.rng.randrange(len(self._entries))

    def _select_high_voted(self) -> PoolEntry:
        ranked = self._ranked()
        bound = self._bound()
        return ranked[len(ranked) - 1 - self.rng.randrange(bound)]

    def _select_low_voted(self) -> PoolEntry:
        ranked = self._ranked()
        bound = self._bound()
        return ranked[self.rng.randrange(bound)]

    def select_high_voted(self) -> PoolEntry:
        """Uniform pick among the best b entries, b uniform in [1, size]"""
        with self._lock:
            return self._select_high_voted()

    def select_low_voted(self) -> PoolEntry:
        """Uniform pick among the worst b entries, b uniform in [1, size]"""
        with self._lock:
            return self._select_low_voted()

    def select_for_generation(self) -> Tuple[int, IExpr]:
        """Generate a tree from a high-voted entry.

        Returns the entry's identifier with the tree so that a later vote can
        be credited to the Parameters that produced it.
        """
        with self._lock:
            entry = self._select_high_voted()
            parameters = entry.parameters
        # Parameters are immutable, so generation can run outside the lock
        expr = parameters.generate_expression(self.max_depth, self.min_depth, self.rng)
        return entry.identifier, expr

    # --- mutation ---

    def _add(self, parameters: Parameters) -> PoolEntry:
        entry = PoolEntry(next(self._ids), parameters)
        self._entries[entry.identifier] = entry
        return entry

    def _evict(self) -> PoolEntry:
        if len(self._entries) <= 1:
            raise PoolUnderflowError("Cannot evict the last entry of the pool")
        victim = self._select_low_voted()
        del self._entries[victim.identifier]
        logger.info("Evicted entry %d (score %.3f, %d up / %d down)",
                    victim.identifier, victim.score, victim.upvotes, victim.downvotes)
        return victim

    def _breed(self) -> PoolEntry:
        parent1 = self._select_high_voted()
        parent2 = self._select_high_voted()
        child = parent1.parameters.breed(parent2.parameters, self.rng)

        # make room first so the pool never exceeds capacity
        if len(self._entries) >= self.capacity and len(self._entries) > 1:
            self._evict()
        entry = self._add(child)
        if len(self._entries) > self.capacity:
            # capacity 1: the only entry could not be evicted beforehand
            self._evict()
        self.generation += 1
        logger.info("Bred entry %d from %d and %d (pool size %d)",
                    entry.identifier, parent1.identifier, parent2.identifier, len(self._entries))
        return entry

    def evict(self) -> PoolEntry:
        """Remove a low-voted entry; the last entry can never be removed"""
        with self._lock:
            return self._evict()

    def breed(self) -> PoolEntry:
        """Add a child of two high-voted entries, evicting one entry if full"""
        with self._lock:
            return self._breed()

    def record_vote(self, identifier: int, approved: bool) -> None:
        """Count a vote and, with probability breed_chance, breed a new entry"""
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                # the entry was evicted after its image was shown
                logger.warning("Ignoring vote for unknown entry %s", identifier)
                return
            if approved:
                entry.upvotes += 1
            else:
                entry.downvotes += 1
            if self.rng.random() < self.breed_chance:
                self._breed()

    def get_stats(self) -> Dict[str, Any]:
        """Get population statistics"""
        with self._lock:
            scores = [e.score for e in self._entries.values()]
            votes = [e.upvotes + e.downvotes - 2 for e in self._entries.values()]
            return {
                'generation': self.generation,
                'population_size': len(self._entries),
                'score': {
                    'min': min(scores),
                    'max': max(scores),
                    'mean': float(np.mean(scores)),
                    'std': float(np.std(scores))
                },
                'votes': sum(votes),
            }
