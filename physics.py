"""
Pong Physics Engine
Layer 1: ball integration, wall/paddle reflection with spin, scoring
"""

import enum
import math
import random
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

# ──────────────────────────────────────────────
# Constants (pixels, pixels per tick)
# ──────────────────────────────────────────────
FIELD_WIDTH: float = 800.0
FIELD_HEIGHT: float = 500.0

PADDLE_WIDTH: float = 12.0
PADDLE_HEIGHT: float = 90.0
PADDLE_MARGIN: float = 12.0
PADDLE_SPEED: float = 6.0  # max travel per tick; physics never reads it

BALL_RADIUS: float = 10.0

AI_REACTIVITY: float = 0.09  # lower = easier AI
WIN_SCORE: int = 10

# Serve and spin
SERVE_SPEED_X: float = 6.0
SERVE_SPEED_Y: float = 4.0
SPIN_FACTOR: float = 3.0  # vy delta at the paddle's extreme edge


class Side(enum.Enum):
    PLAYER = "Player"
    AI = "AI"


@dataclass(frozen=True)
class PlayfieldConfig:
    """Immutable field geometry and tuning for one game session."""
    width: float = FIELD_WIDTH
    height: float = FIELD_HEIGHT
    paddle_width: float = PADDLE_WIDTH
    paddle_height: float = PADDLE_HEIGHT
    paddle_margin: float = PADDLE_MARGIN
    ball_radius: float = BALL_RADIUS
    paddle_speed: float = PADDLE_SPEED
    ai_reactivity: float = AI_REACTIVITY
    win_score: int = WIN_SCORE
    serve_speed_x: float = SERVE_SPEED_X
    serve_speed_y: float = SERVE_SPEED_Y
    spin: float = SPIN_FACTOR

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"field must have positive size, got {self.width}x{self.height}")
        if not 0 < self.paddle_height <= self.height:
            raise ValueError(f"paddle_height must be in (0, {self.height}], got {self.paddle_height}")
        if self.paddle_width <= 0 or self.paddle_margin < 0:
            raise ValueError("paddle_width must be positive and paddle_margin non-negative")
        if self.ball_radius <= 0 or 2 * self.ball_radius > self.height:
            raise ValueError(f"ball_radius out of range: {self.ball_radius}")
        if not 0 < self.ai_reactivity <= 1:
            raise ValueError(f"ai_reactivity must be in (0, 1], got {self.ai_reactivity}")
        if self.win_score < 1:
            raise ValueError(f"win_score must be >= 1, got {self.win_score}")

    @property
    def player_x(self) -> float:
        return self.paddle_margin

    @property
    def ai_x(self) -> float:
        return self.width - self.paddle_width - self.paddle_margin

    @property
    def max_paddle_y(self) -> float:
        return self.height - self.paddle_height

    @property
    def centered_paddle_y(self) -> float:
        return (self.height - self.paddle_height) / 2


class Paddle:
    """Vertical paddle; ``y`` is the top edge and is clamped on every write."""

    def __init__(self, x: float, y: float, width: float, height: float, field_height: float):
        self.x = float(x)
        self.width = float(width)
        self.height = float(height)
        self.field_height = float(field_height)
        self._y = 0.0
        self.y = y

    @classmethod
    def for_side(cls, side: Side, config: PlayfieldConfig) -> "Paddle":
        x = config.player_x if side is Side.PLAYER else config.ai_x
        return cls(x, config.centered_paddle_y, config.paddle_width,
                   config.paddle_height, config.height)

    @property
    def y(self) -> float:
        return self._y

    @y.setter
    def y(self, value: float) -> None:
        self._y = max(0.0, min(float(value), self.field_height - self.height))

    @property
    def center_y(self) -> float:
        return self._y + self.height / 2

    def spans(self, y: float) -> bool:
        """Open interval test: a ball exactly on an end of the paddle misses."""
        return self._y < y < self._y + self.height


@dataclass
class Ball:
    """Ball with 2D position and per-tick velocity."""
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    radius: float = BALL_RADIUS

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


@dataclass
class Score:
    player: int = 0
    ai: int = 0

    def add(self, side: Side) -> None:
        if side is Side.PLAYER:
            self.player += 1
        else:
            self.ai += 1

    def of(self, side: Side) -> int:
        return self.player if side is Side.PLAYER else self.ai

    def reset(self) -> None:
        self.player = 0
        self.ai = 0

    def leader(self, threshold: int) -> Optional[Side]:
        """Side whose score has reached ``threshold``, if any."""
        if self.player >= threshold:
            return Side.PLAYER
        if self.ai >= threshold:
            return Side.AI
        return None


@dataclass(frozen=True)
class ScoreEvent:
    scorer: Side
    player_score: int
    ai_score: int


class PhysicsEngine:
    """Per-tick ball simulation over a fixed playfield."""

    def __init__(self, config: PlayfieldConfig = None, rng: random.Random = None):
        self.config = config or PlayfieldConfig()
        self.rng = rng or random.Random()
        self.events: List[dict] = []

    # ──────────────────────────────────────────
    # Serve
    # ──────────────────────────────────────────
    def _coin(self) -> int:
        return 1 if self.rng.random() > 0.5 else -1

    def serve(self, ball: Ball, direction: Optional[int] = None) -> None:
        """
        Put the ball at the field centre and launch it.

        Args:
            ball: The ball to serve.
            direction: +1 (rightward) or -1 (leftward). None picks one at random.
        """
        cfg = self.config
        if direction is None:
            direction = self._coin()
        ball.position = np.array([cfg.width / 2, cfg.height / 2])
        ball.velocity = np.array([cfg.serve_speed_x * (1 if direction > 0 else -1),
                                  cfg.serve_speed_y * self._coin()])

    def make_ball(self, direction: Optional[int] = None) -> Ball:
        ball = Ball(radius=self.config.ball_radius)
        self.serve(ball, direction)
        return ball

    # ──────────────────────────────────────────
    # Collisions
    # ──────────────────────────────────────────
    def _check_walls(self, ball: Ball) -> None:
        R = ball.radius
        h = self.config.height
        if ball.position[1] - R < 0:
            ball.position[1] = R
            ball.velocity[1] = -ball.velocity[1]
            self.events.append({"type": "wall", "edge": "top", "speed": ball.speed})
        if ball.position[1] + R > h:
            ball.position[1] = h - R
            ball.velocity[1] = -ball.velocity[1]
            self.events.append({"type": "wall", "edge": "bottom", "speed": ball.speed})

    def _apply_spin(self, ball: Ball, paddle: Paddle) -> None:
        """Impact offset in [-1, 1] from paddle centre maps linearly to a vy delta."""
        offset = (ball.position[1] - paddle.center_y) / (paddle.height / 2)
        ball.velocity[1] += self.config.spin * offset

    def _check_paddles(self, ball: Ball, player: Paddle, ai: Paddle) -> None:
        R = ball.radius

        # Player paddle (left), facing edge x + width
        if ball.position[0] - R < player.x + player.width and player.spans(ball.position[1]):
            ball.position[0] = player.x + player.width + R
            ball.velocity[0] = -ball.velocity[0]
            self._apply_spin(ball, player)
            self.events.append({"type": "paddle", "side": Side.PLAYER.value, "speed": ball.speed})

        # AI paddle (right), facing edge x
        if ball.position[0] + R > ai.x and ai.spans(ball.position[1]):
            ball.position[0] = ai.x - R
            ball.velocity[0] = -ball.velocity[0]
            self._apply_spin(ball, ai)
            self.events.append({"type": "paddle", "side": Side.AI.value, "speed": ball.speed})

    def _check_goal(self, ball: Ball) -> Optional[Side]:
        if ball.position[0] < 0:
            return Side.AI
        if ball.position[0] > self.config.width:
            return Side.PLAYER
        return None

    # ──────────────────────────────────────────
    # Main update
    # ──────────────────────────────────────────
    def advance(self, ball: Ball, player: Paddle, ai: Paddle,
                score: Score) -> Optional[ScoreEvent]:
        """
        Advance the ball by one tick.

        Integration is a single explicit Euler step with no substepping, so a
        ball faster than a paddle is wide can pass through it.

        Returns:
            ScoreEvent when the ball left the field this tick, else None.
            The ball is re-served toward the side that conceded unless the
            scorer has reached the winning score.
        """
        self.events.clear()

        ball.position = ball.position + ball.velocity
        self._check_walls(ball)
        self._check_paddles(ball, player, ai)

        scorer = self._check_goal(ball)
        if scorer is None:
            return None

        score.add(scorer)
        self.events.append({"type": "score", "side": scorer.value})
        if score.of(scorer) < self.config.win_score:
            # AI scoring means the player conceded on the left: serve leftward.
            self.serve(ball, -1 if scorer is Side.AI else 1)
        return ScoreEvent(scorer, score.player, score.ai)


def is_finite(value) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
