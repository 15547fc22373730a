from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from engine.engine import CombatEngine, simulate
from engine.grid import make_state, parse_grid, render
from engine.model import Aborted, Scenario, State
from engine.search import find_min_power
from runtime.runner import BattleRunner
from .schemas import (EventsResponse, SearchRequest, SearchResponse, SimulateRequest,
                      SimulateResponse, StartRequest)

app = FastAPI(title="Grid Skirmish API")
runner: BattleRunner | None = None

# Enable CORS for development (React runs on different port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:5174", "http://localhost:5175"],  # Vite dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DEFAULT_GRID = """\
#######
#.G...#
#...EG#
#.#.#G#
#..G#E#
#.....#
#######
"""

def _scenario(text: str) -> Scenario:
    """Decode a grid from a request, rejecting ones that cannot host a battle."""
    try:
        scenario = parse_grid(text)
    except ValueError as e:
        raise HTTPException(422, str(e))
    factions = {faction for faction, _ in scenario.spawns}
    if factions != {"GOBLIN", "ELF"}:
        raise HTTPException(422, "Grid needs at least one goblin (G) and one elf (E)")
    return scenario

def _make_runner(scenario: Scenario, elf_power: int) -> BattleRunner:
    eng = CombatEngine(make_state(scenario, elf_power))
    return BattleRunner(eng, tick_ms=500, time_compression=30.0)

def _state_json(s: State) -> dict:
    return {
        "rounds": s.rounds,
        "width": s.grid.width,
        "height": s.grid.height,
        "picture": render(s).splitlines(),
        "units": {
            uid: {
                "id": u.id,
                "faction": u.faction,
                "pos": list(u.pos),
                "hp": u.hp,
                "power": u.power,
                "alive": u.alive,
            } for uid, u in s.units.items()
        },
    }

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": "Grid Skirmish API",
        "docs": "/docs",
        "version": "1.0"
    }

@app.post("/simulate", response_model=SimulateResponse)
def run_simulation(req: SimulateRequest):
    """Play one battle to the end."""
    scenario = _scenario(req.grid)
    result = simulate(scenario, elf_power=req.elf_power, abort_on_elf_death=req.abort_on_elf_death)
    print(f"[API] simulate elf_power={req.elf_power}: {result}")
    if isinstance(result, Aborted):
        return SimulateResponse(status="aborted", rounds=result.rounds,
                                faction=result.faction, unit_id=result.unit_id)
    return SimulateResponse(status="ended", rounds=result.rounds,
                            hp_sum=result.hp_sum, score=result.score)

@app.post("/search", response_model=SearchResponse)
def run_search(req: SearchRequest):
    """Find the lowest elf power that wins without elf losses."""
    scenario = _scenario(req.grid)
    found = find_min_power(scenario, starting_power=req.starting_power)
    return SearchResponse(power=found.power, rounds=found.outcome.rounds,
                          hp_sum=found.outcome.hp_sum, score=found.score)

@app.on_event("startup")
async def startup():
    """Start the sample battle on app startup."""
    global runner
    runner = _make_runner(parse_grid(DEFAULT_GRID), 3)
    await runner.start()

@app.on_event("shutdown")
async def shutdown():
    """Stop the live battle on app shutdown."""
    global runner
    if runner:
        await runner.stop()

@app.post("/battle/start")
async def start_battle(req: StartRequest):
    """Start a new live battle, replacing the current one."""
    scenario = _scenario(req.grid if req.grid is not None else DEFAULT_GRID)
    await shutdown()
    global runner
    runner = _make_runner(scenario, req.elf_power)
    await runner.start()
    return {"battle_id": "local"}

@app.get("/battle/local/state")
async def get_state():
    """Get current battle state snapshot."""
    if not runner:
        raise HTTPException(400, "Battle not started")
    s = await runner.snapshot()
    data = _state_json(s)
    data["status"] = "failed" if runner.error else runner.engine.status
    data["error"] = str(runner.error) if runner.error else None
    return data

@app.get("/battle/local/events")
async def get_events(since: int = 0, limit: int = 500):
    """Get events since offset."""
    if not runner:
        raise HTTPException(400, "Battle not started")
    evts, next_offset = runner.events.since(since, limit)
    return EventsResponse(
        next_offset=next_offset,
        total=len(runner.events),
        events=[{"kind": e.kind, "round": e.round, "data": e.data} for e in evts]
    )

@app.post("/battle/local/time-control")
async def set_time_control(time_compression: float):
    """Set simulation time compression (1.0 = real-time, higher = faster)."""
    if not runner:
        raise HTTPException(400, "Battle not started")
    runner.set_time_compression(time_compression)
    return {"time_compression": runner.time_compression}

@app.get("/battle/local/time-control")
async def get_time_control():
    """Get current time compression setting."""
    if not runner:
        raise HTTPException(400, "Battle not started")
    return {"time_compression": runner.time_compression}
