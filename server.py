"""
Pong Web Server — Layer 3 (FastAPI + WebSocket)

Serves the canvas frontend and runs the frame driver,
streaming field snapshots to browser clients over WebSocket and
feeding pointer / button input back into the controller.
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controller import PongController
from driver import FrameDriver
from physics import is_finite

STATIC_DIR = Path(__file__).resolve().parent / "static"

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = PongController()

# ── Client state ────────────────────────────────────────────────────────────

clients: list[WebSocket] = []


async def broadcast_frame():
    """Drain this frame's events and push them to every client."""
    frame_msg = _build_frame_message()
    if not clients:
        return
    dead: list[WebSocket] = []
    for ws in clients:
        try:
            await ws.send_text(frame_msg)
        except Exception:
            dead.append(ws)
    for ws in dead:
        if ws in clients:
            clients.remove(ws)


driver = FrameDriver(ctrl, on_frame=broadcast_frame)


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    driver.start()
    yield
    await driver.stop()


app = FastAPI(lifespan=lifespan)


def _build_frame_message() -> str:
    """Serialize this frame's snapshot and notifications into a JSON message."""
    snapshot = None
    events = []
    for ev in ctrl.sink.drain():
        if ev["type"] == "render":
            snapshot = ev["snapshot"]    # only the latest render matters
        else:
            events.append(ev)

    sounds = []
    for ev in ctrl.physics_events:
        sounds.append({
            "type": ev.get("type", ""),
            "speed": round(float(ev.get("speed", 0.0)), 3),
        })
    ctrl.physics_events.clear()

    frame = {
        "type": "frame",
        "snapshot": snapshot,
        "events": events,
        "sounds": sounds,
        "phase": ctrl.phase.value,
        "winner": ctrl.winner.value if ctrl.winner else None,
        "score": {"player": ctrl.score.player, "ai": ctrl.score.ai},
    }
    return json.dumps(frame, separators=(',', ':'))


def _init_message() -> str:
    cfg = ctrl.config
    return json.dumps({
        "type": "init",
        "width": cfg.width,
        "height": cfg.height,
        "paddle_width": cfg.paddle_width,
        "paddle_height": cfg.paddle_height,
        "ball_radius": cfg.ball_radius,
        "player_x": cfg.player_x,
        "ai_x": cfg.ai_x,
        "win_score": cfg.win_score,
        "tick_dt": ctrl.TICK_DT,
        "state": ctrl.get_state(),
    })


# ── Input adapter ───────────────────────────────────────────────────────────

def _handle_command(msg: dict) -> dict | None:
    """Apply one client command. Returns a direct reply, if any."""
    cmd = msg.get("cmd", "")
    if cmd == "pointer":
        y = msg.get("y")
        if is_finite(y):
            ctrl.set_player_paddle_target(float(y))
    elif cmd == "pause":
        ctrl.request_pause_toggle()
    elif cmd == "restart":
        ctrl.request_restart()
    elif cmd == "get_state":
        return {"type": "state", "data": ctrl.get_state()}
    return None


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)
    print(f"[WS] client connected ({len(clients)} total)")

    await ws.send_text(_init_message())

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            reply = _handle_command(msg)
            if reply is not None:
                await ws.send_text(json.dumps(reply))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        print(f"[WS] client disconnected ({len(clients)} left)")


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(STATIC_DIR / "index.html")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
