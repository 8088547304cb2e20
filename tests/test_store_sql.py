import asyncio

from slidegen.plugins.slides_generate.impl import SlidesPipeline
from slidegen.plugins.slides_generate.images import ImageResolver
from slidegen.services.db import init_models, make_engine, make_sessionmaker
from slidegen.services.projects import SqlProjectStore
from fakes import FakeLLM, OUTLINE, fenced, probe_transport, sample_slides


def _run(tmp_path, scenario):
    async def main():
        engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'slidegen.db'}")
        try:
            await init_models(engine)
            return await scenario(SqlProjectStore(make_sessionmaker(engine)))
        finally:
            await engine.dispose()
    return asyncio.run(main())


def test_store_contract(tmp_path):
    async def scenario(store):
        await store.upsert_user("usr_1", subscription_active=True)
        pid = await store.create_project("usr_1", OUTLINE, title="Deck")
        assert await store.get_user("usr_1") == {"exists": True, "subscriptionActive": True}
        assert await store.get_user("nobody") == {"exists": False, "subscriptionActive": False}
        assert await store.get_project(pid) == {"exists": True, "isDeleted": False}
        assert await store.get_outlines(pid) == {"outlines": OUTLINE}
        assert await store.get_outlines("missing") == {"outlines": []}

        await store.save_slides(pid, [{"id": "s1"}], "Midnight")
        assert await store.get_slides(pid) == {"slides": [{"id": "s1"}], "themeName": "Midnight"}

        assert await store.soft_delete(pid) is True
        assert await store.get_project(pid) == {"exists": True, "isDeleted": True}

    _run(tmp_path, scenario)


def test_pipeline_against_sql_store(tmp_path):
    async def scenario(store):
        await store.upsert_user("usr_1")
        pid = await store.create_project("usr_1", OUTLINE)
        llm = FakeLLM({"layouts": fenced(sample_slides())})
        pipeline = SlidesPipeline(llm, store, ImageResolver(llm, transport=probe_transport(200)))
        res = await pipeline.generate_layouts(pid, "Default", user_id="usr_1")
        saved = await store.get_slides(pid)
        return res, saved

    res, saved = _run(tmp_path, scenario)
    assert res.status == 200
    assert saved == {"slides": res.data, "themeName": "Default"}


def test_inactive_subscription_against_sql_store(tmp_path):
    async def scenario(store):
        await store.upsert_user("usr_2", subscription_active=False)
        pid = await store.create_project("usr_2", OUTLINE)
        llm = FakeLLM()
        res = await SlidesPipeline(llm, store).generate_layouts(pid, "Default", user_id="usr_2")
        return res, llm.calls

    res, calls = _run(tmp_path, scenario)
    assert res.status == 403
    assert calls == []


def test_init_db_releases_pool_before_server_loop(tmp_path, monkeypatch):
    from slidegen import main as entry

    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}")
    monkeypatch.setattr(entry, "get_engine", lambda: engine)
    asyncio.run(entry._init_db())
    assert engine.sync_engine.pool.checkedin() == 0

    async def serve():
        try:
            store = SqlProjectStore(make_sessionmaker(engine))
            await store.upsert_user("usr_1")
            return await store.get_user("usr_1")
        finally:
            await engine.dispose()

    assert asyncio.run(serve()) == {"exists": True, "subscriptionActive": True}
