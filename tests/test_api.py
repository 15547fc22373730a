"""Test the FastAPI endpoints."""
import asyncio
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
import api.app as app_module
from api.app import DEFAULT_GRID, app
from engine.engine import CombatEngine
from engine.grid import make_state, parse_grid
from runtime.runner import BattleRunner


@pytest_asyncio.fixture(autouse=True)
async def stop_battle():
    """Keep a live battle from leaking into the next test's event loop."""
    yield
    await app_module.shutdown()
    app_module.runner = None


def client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_simulate():
    """Test running one battle to the end."""
    async with client() as ac:
        response = await ac.post("/simulate", json={"grid": DEFAULT_GRID})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ended"
    assert data["rounds"] == 47
    assert data["score"] == 27730


@pytest.mark.asyncio
async def test_simulate_aborted():
    async with client() as ac:
        response = await ac.post("/simulate", json={"grid": DEFAULT_GRID, "abort_on_elf_death": True})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "aborted"
    assert data["faction"] == "ELF"
    assert data["score"] is None


@pytest.mark.asyncio
async def test_search():
    async with client() as ac:
        response = await ac.post("/search", json={"grid": DEFAULT_GRID})
    assert response.status_code == 200
    assert response.json() == {"power": 15, "rounds": 29, "hp_sum": 172, "score": 4988}


@pytest.mark.asyncio
async def test_grid_without_both_factions_is_rejected():
    async with client() as ac:
        response = await ac.post("/simulate", json={"grid": "#####\n#G..#\n#####"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_state_before_start():
    async with client() as ac:
        response = await ac.get("/battle/local/state")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_start_battle():
    """Test starting a new battle."""
    async with client() as ac:
        response = await ac.post("/battle/start", json={"elf_power": 15})
    assert response.status_code == 200
    assert response.json() == {"battle_id": "local"}


@pytest.mark.asyncio
async def test_get_state():
    """Test getting battle state."""
    async with client() as ac:
        await ac.post("/battle/start", json={})
        response = await ac.get("/battle/local/state")

    assert response.status_code == 200
    data = response.json()
    assert "rounds" in data
    assert len(data["units"]) == 6  # G1-G4, E1, E2
    assert len(data["picture"]) == 7


@pytest.mark.asyncio
async def test_battle_runs_to_the_end():
    """Test that the live battle plays out and logs its events."""
    async with client() as ac:
        await ac.post("/battle/start", json={})
        await ac.post("/battle/local/time-control", params={"time_compression": 1000})
        for _ in range(200):
            if app_module.runner.finished:
                break
            await asyncio.sleep(0.01)
        state = (await ac.get("/battle/local/state")).json()
        response = await ac.get("/battle/local/events?since=0&limit=100000")

    assert state["status"] == "ended"
    assert state["rounds"] == 47
    assert response.status_code == 200
    data = response.json()
    assert data["next_offset"] == data["total"] == len(data["events"])
    assert data["events"][-1]["kind"] == "CombatEnded"
    assert data["events"][-1]["data"]["score"] == 27730


@pytest.mark.asyncio
async def test_time_control():
    async with client() as ac:
        await ac.post("/battle/start", json={})
        response = await ac.post("/battle/local/time-control", params={"time_compression": 5000})
        assert response.json() == {"time_compression": 1000.0}
        response = await ac.get("/battle/local/time-control")
    assert response.json() == {"time_compression": 1000.0}


@pytest.mark.asyncio
async def test_restart_after_failed_battle():
    """A battle that died on an invariant must not block the next start."""
    eng = CombatEngine(make_state(parse_grid("#####\n#G#E#\n#####")), max_rounds=3)
    app_module.runner = BattleRunner(eng, tick_ms=1)
    await app_module.runner.start()
    for _ in range(200):
        if app_module.runner.error is not None:
            break
        await asyncio.sleep(0.01)

    async with client() as ac:
        state = (await ac.get("/battle/local/state")).json()
        response = await ac.post("/battle/start", json={})
        fresh = (await ac.get("/battle/local/state")).json()

    assert state["status"] == "failed"
    assert "3 rounds" in state["error"]
    assert response.status_code == 200
    assert fresh["error"] is None
    assert len(fresh["units"]) == 6
