"""
Match strategies for smart albums.

Every smart album is evaluated by exactly one strategy: semantic search
when its specification carries a free-text query, metadata search
otherwise. The choice is made once, when the specification is turned into
a query, and never mixes filters of the two kinds.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from smartalbums.core.config import SystemConfig, require_feature
from smartalbums.core.enums import Feature, OrderDirection
from smartalbums.core.errors import FeatureDisabled, InfrastructureUnavailable
from smartalbums.domain.matching import MetadataQuery, SearchQuery, SemanticQuery
from smartalbums.repositories.interfaces import SearchBackend, TextEncoder
from smartalbums.schemas.search_spec import SearchSpecification

logger = logging.getLogger(__name__)


class QueryEmbeddings:
    """Encodes album queries for one evaluation run.

    Identical queries are encoded once. The first FeatureDisabled or encoder
    outage is remembered and raised for every later query of the run, so a
    configuration problem stops all semantic albums together.
    """

    def __init__(self, encoder: TextEncoder, config: SystemConfig):
        self.encoder = encoder
        self.config = config
        self._cache: Dict[str, List[float]] = {}
        self._failure: Optional[Exception] = None
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def failure(self) -> Optional[Exception]:
        return self._failure

    async def embed(self, text: str) -> List[float]:
        # one lock per text: different queries encode concurrently
        async with self._locks.setdefault(text, asyncio.Lock()):
            if self._failure is not None:
                raise self._failure
            if text in self._cache:
                return self._cache[text]
            ml = self.config.machine_learning
            try:
                require_feature(self.config, Feature.smart_search)
                embedding = await self.encoder.encode_text(ml.url, text, ml.clip_model_name)
            except (FeatureDisabled, InfrastructureUnavailable) as e:
                self._failure = e
                raise
            self._cache[text] = embedding
            return embedding


@dataclass
class MatchContext:
    config: SystemConfig
    embeddings: QueryEmbeddings


class MatchStrategy(ABC):
    name: str

    def __init__(self, search: SearchBackend):
        self.search = search

    @abstractmethod
    async def find(self, query: SearchQuery, owner_id: str, ctx: MatchContext) -> List[str]:
        """Return one page of matching asset ids for the owner."""


class SemanticStrategy(MatchStrategy):
    name = "semantic"

    async def find(self, query: SemanticQuery, owner_id: str, ctx: MatchContext) -> List[str]:
        embedding = await ctx.embeddings.embed(query.text)
        # ranked by the backend, kept in that order
        return await self.search.search_smart(
            query.page, owner_ids=[owner_id], embedding=embedding, people=query.people
        )


class MetadataStrategy(MatchStrategy):
    name = "metadata"

    async def find(self, query: MetadataQuery, owner_id: str, ctx: MatchContext) -> List[str]:
        return await self.search.search_metadata(
            query.page,
            owner_ids=[owner_id],
            filters=query.filters,
            people=query.people,
            order_direction=OrderDirection.desc,
        )


class MatchStrategySelector:
    def __init__(self, search: SearchBackend):
        self.semantic = SemanticStrategy(search)
        self.metadata = MetadataStrategy(search)

    def select(self, spec: SearchSpecification, config: SystemConfig) -> tuple[MatchStrategy, SearchQuery]:
        query = spec.to_query(config.semantic_page_size, config.metadata_page_size)
        if isinstance(query, SemanticQuery):
            return self.semantic, query
        return self.metadata, query

    async def find_candidates(self, spec: SearchSpecification, owner_id: str, ctx: MatchContext) -> List[str]:
        strategy, query = self.select(spec, ctx.config)
        logger.debug("Matching owner %s with %s strategy", owner_id, strategy.name)
        return await strategy.find(query, owner_id, ctx)
