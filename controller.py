"""
PongController — Layer 2 (Game Logic)

Owns all mutable game state for one session: paddles, ball, score, phase.
Reports to Layer 3 through a sink object:
  - sink.render(snapshot)               — once per tick while Playing/Paused
  - sink.on_score_changed(player, ai)   — once per point and on restart
  - sink.on_game_ended(winner)          — once per game, entering ENDED

Layer 3 calls:
  ctrl.step(dt)                         — advance by wall-clock time
  ctrl.set_player_paddle_target(y)      — pointer input (paddle centre y)
  ctrl.request_pause_toggle()           — pause button
  ctrl.request_restart()                — restart button
"""

import enum
import random
from collections import deque
from dataclasses import dataclass, asdict

from physics import (
    PhysicsEngine, PlayfieldConfig, Ball, Paddle, Score, ScoreEvent, Side, is_finite,
)


class GamePhase(enum.Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True)
class FieldSnapshot:
    """What the renderer needs to draw one frame."""
    player_y: float
    ai_y: float
    ball_x: float
    ball_y: float
    paused: bool

    def to_dict(self) -> dict:
        return {k: (round(v, 3) if isinstance(v, float) else v)
                for k, v in asdict(self).items()}


class EventQueueSink:
    """Default sink: queues dict events for the renderer to drain each frame.

    The queue keeps only the newest MAX_PENDING events, so a headless session
    that never drains it stays bounded.
    """

    MAX_PENDING = 256

    def __init__(self):
        self.pending_events: deque[dict] = deque(maxlen=self.MAX_PENDING)
        self.last_snapshot: FieldSnapshot | None = None

    def render(self, snapshot: FieldSnapshot) -> None:
        self.last_snapshot = snapshot
        self.pending_events.append({"type": "render", "snapshot": snapshot.to_dict()})

    def on_score_changed(self, player_score: int, ai_score: int) -> None:
        self.pending_events.append({"type": "score", "player": player_score, "ai": ai_score})

    def on_game_ended(self, winner: Side) -> None:
        self.pending_events.append({
            "type": "game_over", "winner": winner.value, "msg": f"{winner.value} wins!",
        })

    def drain(self) -> list[dict]:
        events = list(self.pending_events)
        self.pending_events.clear()
        return events


def update_ai_paddle(ai_paddle: Paddle, ball: Ball, config: PlayfieldConfig) -> None:
    """Close a fixed fraction of the distance to the ball each tick.

    First-order tracker: with reactivity in (0, 1] it never overshoots. It
    follows the ball whichever way the ball is moving.
    """
    target = ball.y - config.paddle_height / 2
    ai_paddle.y = ai_paddle.y + (target - ai_paddle.y) * config.ai_reactivity


class PongController:
    """Layer 2: phase machine + physics orchestration for one game session."""

    # ── Class-level constants ─────────────────────────────────────────────────
    TICK_DT             = 1.0 / 60.0
    MAX_FRAME_DT        = 0.05
    MAX_TICKS_PER_FRAME = 4

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, config: PlayfieldConfig = None, rng: random.Random = None,
                 sink=None):
        self.config = config or PlayfieldConfig()
        self.rng = rng or random.Random()
        self.sink = sink if sink is not None else EventQueueSink()
        self.engine = PhysicsEngine(self.config, self.rng)

        self.player = Paddle.for_side(Side.PLAYER, self.config)
        self.ai = Paddle.for_side(Side.AI, self.config)
        self.ball = self.engine.make_ball()
        self.score = Score()

        self.phase = GamePhase.PLAYING
        self.winner: Side | None = None

        self.tick_count = 0
        self._accum = 0.0

        # Collision events from the last physics tick (sound cues for L3)
        self.physics_events: list[dict] = []

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt_frame: float) -> int:
        """Advance by ``dt_frame`` seconds of wall time. Returns ticks run.

        Intervals are clamped to [0, MAX_FRAME_DT] and converted to whole
        ticks through an accumulator, so irregular frame timing neither
        speeds up nor stalls the simulation.
        """
        self.physics_events.clear()
        if not is_finite(dt_frame) or dt_frame < 0:
            dt_frame = 0.0
        self._accum += min(float(dt_frame), self.MAX_FRAME_DT)

        ticks = 0
        while self._accum >= self.TICK_DT and ticks < self.MAX_TICKS_PER_FRAME:
            self._accum -= self.TICK_DT
            self.tick()
            ticks += 1
        if ticks == self.MAX_TICKS_PER_FRAME:
            self._accum = min(self._accum, self.TICK_DT)
        return ticks

    def tick(self) -> None:
        """One logical tick: AI, then physics, then render."""
        if self.phase is GamePhase.ENDED:
            return
        if self.phase is GamePhase.PAUSED:
            self.sink.render(self.snapshot())
            return

        self.tick_count += 1
        update_ai_paddle(self.ai, self.ball, self.config)
        event = self.engine.advance(self.ball, self.player, self.ai, self.score)
        self.physics_events.extend(self.engine.events)
        if event is not None:
            self._on_score(event)
        if self.phase is GamePhase.PLAYING:
            self.sink.render(self.snapshot())

    def _on_score(self, event: ScoreEvent) -> None:
        self.sink.on_score_changed(event.player_score, event.ai_score)
        winner = self.score.leader(self.config.win_score)
        if winner is not None:
            self._end_game(winner)

    def _end_game(self, winner: Side) -> None:
        self.phase = GamePhase.ENDED
        self.winner = winner
        print(f"[GAME] {winner.value} wins {self.score.player}-{self.score.ai}")
        self.sink.on_game_ended(winner)

    # ──────────────────────────────────────────────────────────────────────────
    # Input source
    # ──────────────────────────────────────────────────────────────────────────

    def set_player_paddle_target(self, y: float) -> None:
        """Centre the player paddle on ``y`` (clamped to the field)."""
        if self.phase is GamePhase.ENDED or not is_finite(y):
            return
        self.player.y = float(y) - self.config.paddle_height / 2

    def request_pause_toggle(self) -> None:
        if self.phase is GamePhase.PLAYING:
            self.phase = GamePhase.PAUSED
        elif self.phase is GamePhase.PAUSED:
            self.phase = GamePhase.PLAYING

    def request_restart(self) -> None:
        """Full reset: scores, paddles, ball, winner. Works from any phase."""
        self.score.reset()
        self.player.y = self.config.centered_paddle_y
        self.ai.y = self.config.centered_paddle_y
        self.engine.serve(self.ball)
        self.winner = None
        self.phase = GamePhase.PLAYING
        self._accum = 0.0
        self.physics_events = []
        print("[GAME] restart")
        self.sink.on_score_changed(0, 0)
        self.sink.render(self.snapshot())

    # ──────────────────────────────────────────────────────────────────────────
    # Read-only views
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def is_paused(self) -> bool:
        return self.phase is GamePhase.PAUSED

    def snapshot(self) -> FieldSnapshot:
        return FieldSnapshot(
            player_y=self.player.y,
            ai_y=self.ai.y,
            ball_x=self.ball.x,
            ball_y=self.ball.y,
            paused=self.phase is GamePhase.PAUSED,
        )

    def get_state(self) -> dict:
        """Full session state for a newly connected client."""
        cfg = self.config
        return {
            "phase": self.phase.value,
            "winner": self.winner.value if self.winner else None,
            "score": {"player": self.score.player, "ai": self.score.ai},
            "snapshot": self.snapshot().to_dict(),
            "ball_velocity": [round(float(v), 3) for v in self.ball.velocity],
            "config": {
                "width": cfg.width,
                "height": cfg.height,
                "paddle_width": cfg.paddle_width,
                "paddle_height": cfg.paddle_height,
                "ball_radius": cfg.ball_radius,
                "player_x": cfg.player_x,
                "ai_x": cfg.ai_x,
                "win_score": cfg.win_score,
            },
        }
