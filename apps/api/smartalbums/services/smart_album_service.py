import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Mapping, Optional, Sequence, TypeVar, Union

from smartalbums.core.config import ConfigProvider
from smartalbums.core.enums import EvaluationState, JobStatus, Permission, PipelineStage
from smartalbums.core.errors import FeatureDisabled, InfrastructureUnavailable, NotFound
from smartalbums.domain.models import Album
from smartalbums.jobs.barrier import CompletionBarrier
from smartalbums.repositories.interfaces import AccessControl, AlbumStore, AssetStore, SearchBackend, TextEncoder
from smartalbums.schemas.jobs import MatchSmartAlbumsJob
from smartalbums.schemas.search_spec import SearchSpecification, parse_search_spec
from smartalbums.services.reconciler import MembershipReconciler
from smartalbums.services.strategies import MatchContext, MatchStrategySelector, QueryEmbeddings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AlbumOutcome:
    album_id: str
    strategy: Optional[str] = None
    candidates: List[str] = field(default_factory=list)
    added: frozenset[str] = frozenset()
    error: Optional[Exception] = None

    @property
    def skipped(self) -> bool:
        return isinstance(self.error, (FeatureDisabled, NotFound))

    @property
    def failed(self) -> bool:
        return self.error is not None and not self.skipped


@dataclass
class EvaluationReport:
    asset_id: str
    status: JobStatus = JobStatus.success
    state: EvaluationState = EvaluationState.idle
    albums: List[AlbumOutcome] = field(default_factory=list)
    history: List[EvaluationState] = field(default_factory=lambda: [EvaluationState.idle])

    def outcome(self, album_id: str) -> Optional[AlbumOutcome]:
        return next((o for o in self.albums if o.album_id == album_id), None)


def resolve_album_name(names: Sequence[str], together: bool = False) -> str:
    if len(names) > 2:
        *head, last = names
        return f"{', '.join(head)} and {last}" + (" together" if together else "")
    return (" with " if together else " and ").join(names)


class SmartAlbumService:
    """Keeps smart album membership in line with each album's stored search."""

    def __init__(
        self,
        assets: AssetStore,
        albums: AlbumStore,
        search: SearchBackend,
        encoder: TextEncoder,
        barrier: CompletionBarrier,
        config_provider: ConfigProvider,
        access: Optional[AccessControl] = None,
        reconciler: Optional[MembershipReconciler] = None,
    ):
        self.assets = assets
        self.albums = albums
        self.encoder = encoder
        self.barrier = barrier
        self.config_provider = config_provider
        self.access = access
        self.selector = MatchStrategySelector(search)
        self.reconciler = reconciler or MembershipReconciler(albums)

    async def handle_match_smart_albums(self, job: Union[MatchSmartAlbumsJob, str]) -> JobStatus:
        asset_id = job.asset_id if isinstance(job, MatchSmartAlbumsJob) else job
        report = await self.evaluate(asset_id)
        return report.status

    async def evaluate(self, asset_id: str) -> EvaluationReport:
        """Run one trigger: wait for upstream stages, match every smart album of the owner, merge results."""
        report = EvaluationReport(asset_id=asset_id)
        try:
            self._transition(report, EvaluationState.waiting_for_upstream)
            await self.barrier.wait_for_completion(*PipelineStage.upstream_of_matching())

            asset = await self.assets.get_by_id(asset_id)
            if asset is None:
                logger.info("Asset %s no longer exists, skipping smart album match", asset_id)
                report.status = JobStatus.skipped
                self._transition(report, EvaluationState.done)
                return report

            self._transition(report, EvaluationState.evaluating)
            config = self.config_provider.get_config()
            albums = await self.albums.get_smart_albums_owned_by(asset.owner_id)
            ctx = MatchContext(config=config, embeddings=QueryEmbeddings(self.encoder, config))
            limit = asyncio.Semaphore(config.max_concurrent_albums)
            report.albums = list(await asyncio.gather(
                *(self._bounded(limit, self._match(album, asset.owner_id, ctx)) for album in albums)
            ))

            self._transition(report, EvaluationState.reconciling)
            await asyncio.gather(
                *(self._bounded(limit, self._reconcile(outcome)) for outcome in report.albums if outcome.error is None)
            )
        except BaseException:
            self._transition(report, EvaluationState.failed)
            raise

        infra = next((o.error for o in report.albums if isinstance(o.error, InfrastructureUnavailable)), None)
        if infra is not None:
            # siblings are already committed; let the job system retry the rest
            self._transition(report, EvaluationState.failed)
            raise infra

        report.status = JobStatus.failed if any(o.failed for o in report.albums) else JobStatus.success
        self._transition(report, EvaluationState.done)
        logger.info(
            "Smart album match for asset %s: %d albums, %d updated, %d skipped, %d failed",
            asset_id,
            len(report.albums),
            sum(1 for o in report.albums if o.added),
            sum(1 for o in report.albums if o.skipped),
            sum(1 for o in report.albums if o.failed),
        )
        return report

    async def add_people(self, user_id: str, album_id: str, person_ids: Sequence[str],
                         together: bool = False) -> frozenset[str]:
        """Fill an album with every asset showing the given people and keep it following them."""
        await self._require(user_id, Permission.album_read, album_id)
        await self._find_or_fail(album_id)
        spec = self._people_only(person_ids, together)

        matched = await self.assets.get_all_by_person_ids(user_id, list(spec.person_ids), together)
        added = await self.reconciler.reconcile(album_id, [a.asset_id for a in matched])
        names = {}
        for asset in matched:
            for face in asset.faces:
                if face.person_id in spec.person_ids and face.person_name:
                    names.setdefault(face.person_id, face.person_name)
        ordered = [names[pid] for pid in spec.person_ids if pid in names]
        # the spec is saved even with no matches so later ingests fill the album
        await self.albums.update(album_id, album_name=resolve_album_name(ordered, together) or None, search=spec)
        return added

    async def define_search(self, user_id: str, album_id: str,
                            data: Union[Mapping[str, Any], SearchSpecification]) -> Album:
        await self._require(user_id, Permission.album_update, album_id)
        spec = parse_search_spec(data)
        await self._find_or_fail(album_id)
        return await self.albums.update(album_id, search=spec)

    async def _match(self, album: Album, owner_id: str, ctx: MatchContext) -> AlbumOutcome:
        outcome = AlbumOutcome(album_id=album.album_id)
        try:
            strategy, query = self.selector.select(album.search, ctx.config)
            outcome.strategy = strategy.name
            outcome.candidates = await strategy.find(query, owner_id, ctx)
        except FeatureDisabled as e:
            outcome.error = e
            logger.warning("Skipping album %s: %s", album.album_id, e)
        except InfrastructureUnavailable as e:
            outcome.error = e
            logger.error("Matching album %s failed: %s", album.album_id, e)
        except Exception as e:
            outcome.error = e
            logger.exception("Matching album %s failed", album.album_id)
        return outcome

    async def _reconcile(self, outcome: AlbumOutcome) -> None:
        try:
            outcome.added = await self.reconciler.reconcile(outcome.album_id, outcome.candidates)
        except NotFound as e:
            outcome.error = e
            logger.info("Album %s vanished before reconciliation", outcome.album_id)
        except InfrastructureUnavailable as e:
            outcome.error = e
            logger.error("Updating album %s failed: %s", outcome.album_id, e)
        except Exception as e:
            outcome.error = e
            logger.exception("Updating album %s failed", outcome.album_id)

    async def _bounded(self, limit: asyncio.Semaphore, work: Awaitable[T]) -> T:
        async with limit:
            return await work

    async def _require(self, user_id: str, permission: Permission, album_id: str) -> None:
        if self.access is not None:
            await self.access.require_permission(user_id, permission, album_id)

    async def _find_or_fail(self, album_id: str) -> Album:
        album = await self.albums.get_by_id(album_id)
        if album is None:
            raise NotFound("album", album_id)
        return album

    def _people_only(self, person_ids: Sequence[str], together: bool) -> SearchSpecification:
        return parse_search_spec({"personIds": list(dict.fromkeys(person_ids)), "peopleTogether": together})

    def _transition(self, report: EvaluationReport, state: EvaluationState) -> None:
        logger.debug("Asset %s: %s -> %s", report.asset_id, report.state, state)
        report.state = state
        report.history.append(state)
