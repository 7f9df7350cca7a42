"""
Physics Engine Tests — integration, wall/paddle reflection, spin, scoring.

All tests use the default 800×500 field: paddles 12×90 with a 12 px margin
(player face at x=24, AI face at x=776), ball radius 10, serve speed (6, 4),
spin factor 3.
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from physics import (
    Ball, Paddle, PhysicsEngine, PlayfieldConfig, Score, ScoreEvent, Side,
    SPIN_FACTOR, SERVE_SPEED_X, SERVE_SPEED_Y,
)


# ── Helpers ──────────────────────────────────────────────

class SequenceRandom:
    """Stand-in random source returning preset values from ``random()``."""

    def __init__(self, *values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def make_field(config: PlayfieldConfig = None, rng=None):
    cfg = config or PlayfieldConfig()
    engine = PhysicsEngine(cfg, rng or SequenceRandom(*([0.9] * 10)))
    player = Paddle.for_side(Side.PLAYER, cfg)
    ai = Paddle.for_side(Side.AI, cfg)
    return engine, player, ai, Score()


def place(x, y, vx, vy) -> Ball:
    return Ball(position=[x, y], velocity=[vx, vy])


# ── Config ───────────────────────────────────────────────

class TestPlayfieldConfig:

    def test_defaults_match_classic_layout(self):
        cfg = PlayfieldConfig()
        assert (cfg.width, cfg.height) == (800.0, 500.0)
        assert cfg.player_x == 12.0
        assert cfg.ai_x == 776.0
        assert cfg.max_paddle_y == 410.0
        assert cfg.centered_paddle_y == 205.0

    @pytest.mark.parametrize("kwargs", [
        {"win_score": 0},
        {"ai_reactivity": 0.0},
        {"ai_reactivity": 1.5},
        {"paddle_height": 600.0},
        {"width": -1.0},
        {"ball_radius": 0.0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            PlayfieldConfig(**kwargs)

    def test_reactivity_of_one_allowed(self):
        assert PlayfieldConfig(ai_reactivity=1.0).ai_reactivity == 1.0


# ── Paddle ───────────────────────────────────────────────

class TestPaddleClamp:

    @pytest.mark.parametrize("value, expected", [
        (-500.0, 0.0),
        (5000.0, 410.0),
        (0.0, 0.0),
        (410.0, 410.0),
        (123.5, 123.5),
    ])
    def test_y_clamped_on_write(self, value, expected):
        paddle = Paddle.for_side(Side.PLAYER, PlayfieldConfig())
        paddle.y = value
        assert paddle.y == expected

    def test_constructor_clamps_too(self):
        paddle = Paddle(x=0, y=-20, width=12, height=90, field_height=500)
        assert paddle.y == 0.0

    def test_span_is_open_interval(self):
        paddle = Paddle(x=0, y=100, width=12, height=90, field_height=500)
        assert not paddle.spans(100.0)
        assert not paddle.spans(190.0)
        assert paddle.spans(100.001)
        assert paddle.spans(189.999)


# ── Integration ──────────────────────────────────────────

class TestIntegration:

    def test_single_euler_step(self):
        engine, player, ai, score = make_field()
        ball = place(400, 250, 6, -4)
        assert engine.advance(ball, player, ai, score) is None
        np.testing.assert_allclose(ball.position, [406, 246])
        np.testing.assert_allclose(ball.velocity, [6, -4])

    def test_events_cleared_each_advance(self):
        engine, player, ai, score = make_field()
        engine.advance(place(400, 12, 0, -4), player, ai, score)
        assert engine.events
        engine.advance(place(400, 250, 6, 0), player, ai, score)
        assert engine.events == []


# ── Walls ────────────────────────────────────────────────

class TestWallReflection:

    def test_top_wall(self):
        engine, player, ai, score = make_field()
        ball = place(400, 12, 0, -4)
        engine.advance(ball, player, ai, score)
        assert ball.y == 10.0
        assert ball.velocity[1] == 4.0

    def test_bottom_wall(self):
        engine, player, ai, score = make_field()
        ball = place(400, 488, 0, 4)
        engine.advance(ball, player, ai, score)
        assert ball.y == 490.0
        assert ball.velocity[1] == -4.0

    def test_horizontal_velocity_untouched(self):
        engine, player, ai, score = make_field()
        ball = place(400, 12, 6, -7.5)
        engine.advance(ball, player, ai, score)
        assert ball.velocity[0] == 6.0
        assert ball.velocity[1] == 7.5

    def test_wall_event_recorded(self):
        engine, player, ai, score = make_field()
        ball = place(400, 12, 0, -4)
        engine.advance(ball, player, ai, score)
        assert [ev["type"] for ev in engine.events] == ["wall"]
        assert engine.events[0]["edge"] == "top"


# ── Paddles ──────────────────────────────────────────────

class TestPaddleCollision:

    def test_player_centre_hit_no_spin(self):
        engine, player, ai, score = make_field()
        ball = place(36, 250, -6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.x == 34.0          # face 24 + radius 10
        assert ball.velocity[0] == 6.0
        assert ball.velocity[1] == 0.0

    def test_ai_hit_reflects_left(self):
        engine, player, ai, score = make_field()
        ball = place(762, 250, 6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.x == 766.0         # face 776 - radius 10
        assert ball.velocity[0] == -6.0

    def test_speed_preserved_on_hit(self):
        engine, player, ai, score = make_field()
        ball = place(762, 250, 9, 0)
        engine.advance(ball, player, ai, score)
        assert abs(ball.velocity[0]) == 9.0

    def test_spin_linear_in_offset(self):
        """Quarter paddle height below centre → half the spin factor."""
        engine, player, ai, score = make_field()
        ball = place(36, 272.5, -6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.velocity[1] == pytest.approx(SPIN_FACTOR * 0.5)

    def test_spin_near_edges_approaches_factor(self):
        engine, player, ai, score = make_field()
        top = place(36, player.y + 1e-6, -6, 0)
        engine.advance(top, player, ai, score)
        assert top.velocity[1] == pytest.approx(-SPIN_FACTOR, abs=1e-6)

        bottom = place(36, player.y + player.height - 1e-6, -6, 0)
        engine.advance(bottom, player, ai, score)
        assert bottom.velocity[1] == pytest.approx(SPIN_FACTOR, abs=1e-6)

    def test_spin_adds_to_existing_vy(self):
        engine, player, ai, score = make_field()
        ball = place(36, 276.5, -6, 4)   # lands on 280.5: offset 30.5/45
        engine.advance(ball, player, ai, score)
        assert ball.velocity[1] == pytest.approx(4 + SPIN_FACTOR * 30.5 / 45)

    def test_ball_exactly_on_paddle_top_misses(self):
        engine, player, ai, score = make_field()
        ball = place(36, 205, -6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.x == 30.0
        assert ball.velocity[0] == -6.0

    def test_ball_outside_span_passes(self):
        engine, player, ai, score = make_field()
        ai.y = 0
        ball = place(762, 250, 6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.x == 768.0
        assert ball.velocity[0] == 6.0

    def test_paddle_event_names_side(self):
        engine, player, ai, score = make_field()
        ball = place(762, 250, 6, 0)
        engine.advance(ball, player, ai, score)
        assert engine.events == [{"type": "paddle", "side": "AI", "speed": 6.0}]


# ── Scoring ──────────────────────────────────────────────

class TestScoring:

    def test_left_exit_scores_for_ai(self):
        engine, player, ai, score = make_field()
        ball = place(4, 100, -6, 0)
        event = engine.advance(ball, player, ai, score)
        assert event == ScoreEvent(Side.AI, 0, 1)
        assert (score.player, score.ai) == (0, 1)

    def test_left_exit_serves_toward_player(self):
        engine, player, ai, score = make_field()
        ball = place(4, 100, -6, 0)
        engine.advance(ball, player, ai, score)
        np.testing.assert_array_equal(ball.position, [400, 250])
        assert ball.velocity[0] == -SERVE_SPEED_X

    def test_right_exit_scores_for_player_and_serves_toward_ai(self):
        engine, player, ai, score = make_field()
        ball = place(796, 100, 6, 0)
        event = engine.advance(ball, player, ai, score)
        assert event.scorer is Side.PLAYER
        assert (score.player, score.ai) == (1, 0)
        assert ball.velocity[0] == SERVE_SPEED_X

    def test_serve_vertical_sign_from_rng(self):
        engine, player, ai, score = make_field(rng=SequenceRandom(0.9))
        ball = place(4, 100, -6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.velocity[1] == SERVE_SPEED_Y

        engine, player, ai, score = make_field(rng=SequenceRandom(0.1))
        ball = place(4, 100, -6, 0)
        engine.advance(ball, player, ai, score)
        assert ball.velocity[1] == -SERVE_SPEED_Y

    def test_ball_approaching_right_edge(self):
        """Ball at x=780 moving right with the AI paddle out of the way."""
        engine, player, ai, score = make_field()
        ai.y = 0
        ball = place(780, 250, 6, 0)

        assert engine.advance(ball, player, ai, score) is None
        assert ball.x == 786.0
        events = [engine.advance(ball, player, ai, score) for _ in range(3)]
        assert events[:2] == [None, None]
        assert events[2].scorer is Side.PLAYER
        assert (score.player, score.ai) == (1, 0)
        np.testing.assert_array_equal(ball.position, [400, 250])
        assert ball.velocity[0] == 6.0

    def test_winning_point_does_not_reserve(self):
        engine, player, ai, score = make_field(PlayfieldConfig(win_score=3))
        score.ai = 2
        ball = place(4, 100, -6, 0)
        event = engine.advance(ball, player, ai, score)
        assert event.ai_score == 3
        assert ball.x == -2.0
        assert score.leader(3) is Side.AI

    def test_score_event_recorded(self):
        engine, player, ai, score = make_field()
        ball = place(4, 100, -6, 0)
        engine.advance(ball, player, ai, score)
        assert engine.events[-1] == {"type": "score", "side": "AI"}


# ── Serve ────────────────────────────────────────────────

class TestServe:

    def test_random_direction_both_branches(self):
        engine = PhysicsEngine(rng=SequenceRandom(0.9, 0.1))
        ball = engine.make_ball()
        np.testing.assert_array_equal(ball.velocity, [SERVE_SPEED_X, -SERVE_SPEED_Y])

        engine = PhysicsEngine(rng=SequenceRandom(0.1, 0.9))
        ball = engine.make_ball()
        np.testing.assert_array_equal(ball.velocity, [-SERVE_SPEED_X, SERVE_SPEED_Y])

    def test_explicit_direction_centres_ball(self):
        engine = PhysicsEngine(rng=SequenceRandom(0.9))
        ball = place(10, 10, 0, 0)
        engine.serve(ball, direction=-1)
        np.testing.assert_array_equal(ball.position, [400, 250])
        assert ball.velocity[0] == -SERVE_SPEED_X
        assert ball.radius == 10.0


class TestScore:

    def test_leader(self):
        s = Score()
        assert s.leader(1) is None
        s.add(Side.PLAYER)
        assert s.leader(1) is Side.PLAYER
        s.reset()
        assert (s.player, s.ai) == (0, 0)
