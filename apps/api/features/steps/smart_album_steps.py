# features/steps/smart_album_steps.py
import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone

import parse
from behave import given, register_type, then, when
from sqlalchemy import insert

from smartalbums.core.enums import PipelineStage
from smartalbums.core.errors import InfrastructureUnavailable
from smartalbums.repositories.tables import albums, albums_assets, assets, embeddings, faces, people

@parse.with_pattern(r'\[.*?\]')  # matches a list-like string
def _parse_list(s: str):
    """Convert comma separated string in brackets to list of strings."""
    s = s.strip()[1:-1]
    return [item.strip() for item in s.split(",") if item.strip()]

register_type(List=_parse_list)

def _insert(ctx, table, **row):
    with ctx.Session.begin() as db:
        db.execute(insert(table).values(**row))

def _add_face(ctx, asset_id: str, person_id: str):
    _insert(ctx, faces, face_id=str(uuid.uuid4()), asset_id=asset_id, person_id=person_id)

# ---------------- Background ----------------
@given('a catalog owned by "{owner_id}"') # type: ignore[no-untyped-def]
def step_catalog(ctx, owner_id):
    ctx.owner_id = owner_id
    ctx.asset_count = 0

@given('person "{person_id}" named "{name}"') # type: ignore[no-untyped-def]
def step_person(ctx, person_id, name):
    _insert(ctx, people, person_id=person_id, name=name, owner_id=ctx.owner_id)

# ---------------- Setup ----------------
@given('a smart album "{album_id}" with search {search}') # type: ignore[no-untyped-def]
def step_smart_album(ctx, album_id, search):
    _insert(ctx, albums, album_id=album_id, owner_id=ctx.owner_id, smart_search=json.loads(search))

@given('a smart album "{album_id}" holding {asset_ids:List} with search {search}') # type: ignore[no-untyped-def]
def step_smart_album_holding(ctx, album_id, asset_ids, search):
    step_smart_album(ctx, album_id, search)
    for aid in asset_ids:
        _insert(ctx, albums_assets, album_id=album_id, asset_id=aid)

@given('asset "{asset_id}" with embedding {vector} showing people {person_ids:List}') # type: ignore[no-untyped-def]
def step_asset(ctx, asset_id, vector, person_ids):
    ctx.asset_count += 1
    taken = datetime(2024, 6, 1, 18, tzinfo=timezone.utc) + timedelta(minutes=ctx.asset_count)
    _insert(ctx, assets, asset_id=asset_id, owner_id=ctx.owner_id, taken_at=taken, created_at=taken, updated_at=taken)
    _insert(ctx, embeddings, asset_id=asset_id, embedding=json.loads(vector))
    for pid in person_ids:
        _add_face(ctx, asset_id, pid)

@given('facial recognition is still tagging "{person_id}" on asset "{asset_id}"') # type: ignore[no-untyped-def]
def step_pending_recognition(ctx, person_id, asset_id):
    async def start():
        await ctx.queue.enqueue(PipelineStage.facial_recognition)
        await ctx.queue.start(PipelineStage.facial_recognition)

    async def finish():
        await asyncio.sleep(0.05)
        _add_face(ctx, asset_id, person_id)
        await ctx.queue.finish(PipelineStage.facial_recognition)

    asyncio.run(start())
    ctx.pending_jobs.append(finish)

@given('smart search is disabled') # type: ignore[no-untyped-def]
def step_disable_smart_search(ctx):
    ctx.smart_search_enabled = False

# ---------------- Trigger ----------------
@when('asset "{asset_id}" finishes ingestion') # type: ignore[no-untyped-def]
def step_trigger(ctx, asset_id):
    svc = ctx.build_service()

    async def run():
        jobs = [job() for job in ctx.pending_jobs]
        ctx.pending_jobs = []
        status, *_ = await asyncio.gather(svc.handle_match_smart_albums(asset_id), *jobs)
        return status

    try:
        ctx.last_status = asyncio.run(run())
    except InfrastructureUnavailable as e:
        ctx.last_error = e

# ---------------- Assertions ----------------
@then('the job status is "{status}"') # type: ignore[no-untyped-def]
def step_status(ctx, status):
    assert ctx.last_error is None, f"run failed: {ctx.last_error}"
    assert ctx.last_status == status, f"expected {status}, got {ctx.last_status}"

@then('album "{album_id}" contains exactly {asset_ids:List}') # type: ignore[no-untyped-def]
def step_album_contains(ctx, album_id, asset_ids):
    members = asyncio.run(ctx.albums.get_asset_ids(album_id))
    assert sorted(members) == sorted(asset_ids), f"album {album_id} holds {sorted(members)}"

@then('the text encoder was not called') # type: ignore[no-untyped-def]
def step_encoder_idle(ctx):
    assert ctx.encoder.calls == [], f"encoder called with {ctx.encoder.calls}"
