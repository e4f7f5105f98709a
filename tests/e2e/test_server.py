"""Tests for the FastAPI view binding."""

import pytest
import httpx

from figma_steps.export import CSS_FILENAME, TSX_FILENAME
from figma_steps.server import create_app, fastapi_app
from figma_steps.session_manager import SessionManager

FIGMA_URL = "https://www.figma.com/design/abc123/Landing-Page"


@pytest.fixture
def manager():
    return SessionManager()


@pytest.fixture
def client(collaborators, manager):
    """Create an async test client for an app wired to mocked collaborators."""
    app = create_app(collaborators=collaborators, manager=manager, export_dir=None)
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


async def _new_session(c) -> str:
    resp = await c.post("/sessions")
    assert resp.status_code == 201
    return resp.json()["session_id"]


async def _run_step(c, manager, session_id, step, **body):
    resp = await c.post(f"/sessions/{session_id}/steps/{step}", json=body or None)
    assert resp.status_code == 202
    await manager.get_session(session_id).task
    return (await c.get(f"/sessions/{session_id}")).json()


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        async with client as c:
            resp = await c.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.get(f"/sessions/{session_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["session_id"] == session_id
        assert data["busy"] is False
        assert len(data["revision"]) == 64
        assert data["state"]["step_status"] == {
            "step1": "idle",
            "step2": "idle",
            "step3": "idle",
            "step4": "idle",
        }
        assert data["state"]["ui_state"]["progress"]["total"] == 4

    @pytest.mark.asyncio
    async def test_get_not_found(self, client):
        async with client as c:
            resp = await c.get("/sessions/nonexistent-id")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_list_sessions(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.get("/sessions")
        assert resp.status_code == 200
        assert [s["session_id"] for s in resp.json()] == [session_id]

    @pytest.mark.asyncio
    async def test_delete(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.delete(f"/sessions/{session_id}")
            missing = await c.get(f"/sessions/{session_id}")
        assert resp.status_code == 204
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unconfigured_collaborators_503(self, manager, monkeypatch):
        for var in ("FIGMA_DOCUMENT_SOURCE", "FIGMA_MARKUP_TRANSFORMER", "FIGMA_CODEGEN_ENGINE"):
            monkeypatch.delenv(var, raising=False)
        app = create_app(manager=manager)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            resp = await c.post("/sessions")
        assert resp.status_code == 503


class TestEditing:
    @pytest.mark.asyncio
    async def test_patch_step_data(self, client):
        async with client as c:
            session_id = await _new_session(c)
            before = (await c.get(f"/sessions/{session_id}")).json()["revision"]
            resp = await c.patch(
                f"/sessions/{session_id}/data",
                json={"figma_url": FIGMA_URL, "access_token": "figd_token"},
            )
        data = resp.json()
        assert resp.status_code == 200
        assert data["state"]["step_data"]["access_token"] == "figd_token"
        assert data["revision"] != before

    @pytest.mark.asyncio
    async def test_patch_rejects_outputs(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.patch(f"/sessions/{session_id}/data", json={"final_css_code": "x"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_toggle_block(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.post(f"/sessions/{session_id}/blocks/block2/toggle")
        assert resp.json()["state"]["ui_state"]["expanded_blocks"]["block2"] is True

    @pytest.mark.asyncio
    async def test_toggle_unknown_block(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.post(f"/sessions/{session_id}/blocks/block7/toggle")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_preview_mode(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.patch(f"/sessions/{session_id}/ui", json={"preview_mode": True})
        assert resp.json()["state"]["ui_state"]["preview_mode"] is True


class TestSteps:
    @pytest.mark.asyncio
    async def test_step1_chains_into_step2(self, client, manager):
        async with client as c:
            session_id = await _new_session(c)
            await c.patch(f"/sessions/{session_id}/data", json={"access_token": "figd_token"})
            data = await _run_step(c, manager, session_id, 1)
        status = data["state"]["step_status"]
        assert status["step1"] == "success"
        assert status["step2"] == "success"
        assert status["step3"] == "idle"
        assert data["state"]["step_data"]["figma_data"]["file_id"] == "abc123"

    @pytest.mark.asyncio
    async def test_step1_validation_error(self, client, manager):
        async with client as c:
            session_id = await _new_session(c)
            data = await _run_step(c, manager, session_id, 1)
        assert data["state"]["step_status"]["step1"] == "idle"
        assert data["state"]["ui_state"]["errors"]["step1"]

    @pytest.mark.asyncio
    async def test_step2_with_body(self, client, manager, sample_svg):
        async with client as c:
            session_id = await _new_session(c)
            data = await _run_step(c, manager, session_id, 2, svg_content=sample_svg)
        assert data["state"]["step_data"]["svg_code"] == sample_svg
        assert data["state"]["step_status"]["step2"] == "success"

    @pytest.mark.asyncio
    async def test_invalid_step_number(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.post(f"/sessions/{session_id}/steps/5")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_step_on_missing_session(self, client):
        async with client as c:
            resp = await c.post("/sessions/nope/steps/1")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_loading_step_conflict(self, client, manager):
        async with client as c:
            session_id = await _new_session(c)
            manager.get_session(session_id).store.set_step_status(step4="loading")
            resp = await c.post(f"/sessions/{session_id}/steps/4")
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_full_pipeline_and_exports(self, client, manager):
        async with client as c:
            session_id = await _new_session(c)
            await c.patch(
                f"/sessions/{session_id}/data",
                json={
                    "figma_url": FIGMA_URL,
                    "access_token": "figd_token",
                    "css_code": ".figma-component { display: flex; }",
                    "jsx_code": '<button className="cta">Buy</button>',
                },
            )
            await _run_step(c, manager, session_id, 1)
            await _run_step(c, manager, session_id, 3)
            data = await _run_step(c, manager, session_id, 4)

            tsx = await c.get(f"/sessions/{session_id}/exports/{TSX_FILENAME}")
            css = await c.get(f"/sessions/{session_id}/exports/{CSS_FILENAME}")

        assert data["state"]["step_status"]["step4"] == "success"
        assert tsx.status_code == 200
        assert tsx.headers["content-type"].startswith("text/plain")
        assert TSX_FILENAME in tsx.headers["content-disposition"]
        assert "<React.Fragment>" in tsx.text
        assert css.status_code == 200
        assert "/* Responsive Utilities */" in css.text

    @pytest.mark.asyncio
    async def test_export_not_ready(self, client):
        async with client as c:
            session_id = await _new_session(c)
            resp = await c.get(f"/sessions/{session_id}/exports/{TSX_FILENAME}")
        assert resp.status_code == 404


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_restores_initial(self, client, manager):
        async with client as c:
            session_id = await _new_session(c)
            initial = (await c.get(f"/sessions/{session_id}")).json()
            await c.patch(f"/sessions/{session_id}/data", json={"access_token": "figd_token"})
            await _run_step(c, manager, session_id, 1)
            resp = await c.post(f"/sessions/{session_id}/reset")
        data = resp.json()
        assert data["state"] == initial["state"]
        assert data["revision"] == initial["revision"]


def test_module_level_app_exists():
    assert fastapi_app.title == "Figma Steps"
