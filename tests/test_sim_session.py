import pytest

from pendulum_lab.constants import GRAVITY_PRESETS, MANUAL_STEP_DT, MAX_DT
from pendulum_lab.sim_session import LabSession


@pytest.fixture
def lab() -> LabSession:
    return LabSession()


def test_defaults(lab):
    assert lab.number_of_pendulums == 1
    assert len(lab.bodies) == 2
    assert lab.active_bodies == [lab.bodies[0]]
    assert lab.bodies[0].is_visible
    assert not lab.bodies[1].is_visible
    assert lab.environment.gravity == GRAVITY_PRESETS["earth"]
    assert lab.period_tracker.body is lab.bodies[0]


def test_invalid_construction():
    with pytest.raises(ValueError):
        LabSession(number_of_pendulums=3)
    with pytest.raises(ValueError):
        LabSession(play_speed="fast")


def test_step_clamps_frame_time(lab):
    lab.step(1.0)
    assert lab.sim_time == pytest.approx(MAX_DT)


def test_slow_motion_scales_time(lab):
    lab.set_play_speed("slow")
    lab.step(0.04)
    assert lab.sim_time == pytest.approx(0.005)
    with pytest.raises(ValueError):
        lab.set_play_speed("warp")


def test_paused_session_does_not_advance(lab):
    lab.bodies[0].angle = 0.4
    lab.is_playing = False
    lab.step(0.02)
    assert lab.sim_time == 0.0
    assert lab.bodies[0].angle == 0.4

    lab.step_manually()
    assert lab.sim_time == pytest.approx(MANUAL_STEP_DT)
    assert lab.bodies[0].angle < 0.4


def test_only_active_bodies_are_stepped(lab):
    lab.bodies[1].angle = 0.4
    lab.step(0.02)
    assert lab.bodies[1].angle == 0.4

    lab.set_number_of_pendulums(2)
    lab.step(0.02)
    assert lab.bodies[1].angle < 0.4


def test_user_controlled_body_is_skipped(lab):
    body = lab.bodies[0]
    body.is_user_controlled = True
    body.angle = 0.7
    lab.step(0.02)
    assert body.angle == 0.7


def test_number_of_pendulums(lab):
    lab.set_number_of_pendulums(2)
    assert lab.bodies[1].is_visible
    assert len(lab.active_bodies) == 2

    second = lab.bodies[1]
    second.angle = 0.5
    lab.period_tracker.select(1)

    lab.set_number_of_pendulums(1)

    assert not second.is_visible
    assert second.angle == 0.0
    assert lab.period_tracker.selected_index == 0
    with pytest.raises(ValueError):
        lab.set_number_of_pendulums(0)


def test_gravity_preset_refreshes_bodies(lab):
    body = lab.bodies[0]
    body.angle = 0.5
    earth_pe = body.potential_energy

    lab.set_gravity_preset("moon")

    assert lab.environment.gravity == GRAVITY_PRESETS["moon"]
    assert lab.environment.preset == "moon"
    assert body.potential_energy == pytest.approx(earth_pe * GRAVITY_PRESETS["moon"] / GRAVITY_PRESETS["earth"])
    with pytest.raises(ValueError):
        lab.set_gravity_preset("pluto")


def test_custom_gravity(lab):
    lab.set_gravity(5.0)
    assert lab.environment.gravity == 5.0
    assert lab.environment.preset == "custom"


def test_friction_produces_heat(lab):
    lab.set_friction(0.1)
    body = lab.bodies[0]
    body.angle = 0.8
    for _ in range(60):
        lab.step(1.0 / 60.0)
    assert body.thermal_energy > 0


def test_energy_drift_readout(lab):
    body = lab.bodies[0]
    body.is_user_controlled = True
    body.angle = 0.5
    body.is_user_controlled = False
    assert lab.energy_ref[0] == pytest.approx(body.total_energy)

    for _ in range(120):
        lab.step(1.0 / 60.0)

    assert lab.energy_error(0) < 1e-9


def test_stopwatch_follows_model_time(lab):
    lab.step(0.02)
    assert lab.stopwatch.elapsed_time == 0.0
    lab.stopwatch.start()
    lab.step(0.02)
    lab.step(0.02)
    assert lab.stopwatch.elapsed_time == pytest.approx(0.04)
    lab.stopwatch.pause()
    lab.step(0.02)
    assert lab.stopwatch.elapsed_time == pytest.approx(0.04)


def test_period_readout(lab):
    body = lab.bodies[0]
    body.angle = 0.05
    assert lab.period_readout() is None

    lab.period_tracker.start()
    for _ in range(300):
        lab.step(1.0 / 60.0)

    assert lab.period_readout() == pytest.approx(body.get_approximate_period(), rel=0.01)


def test_reset(lab):
    lab.set_number_of_pendulums(2)
    lab.set_gravity_preset("jupiter")
    lab.set_friction(0.05)
    lab.set_play_speed("slow")
    lab.bodies[0].angle = 0.6
    lab.bodies[1].length = 0.3
    lab.stopwatch.start()
    lab.period_tracker.select(1)
    lab.period_tracker.start()
    for _ in range(30):
        lab.step(1.0 / 60.0)

    lab.reset()

    assert lab.number_of_pendulums == 1
    assert lab.environment.gravity == GRAVITY_PRESETS["earth"]
    assert lab.environment.friction == 0.0
    assert lab.play_speed == "normal"
    assert lab.sim_time == 0.0
    assert lab.bodies[0].angle == 0.0
    assert lab.bodies[0].thermal_energy == 0.0
    assert lab.bodies[1].length == 1.0
    assert not lab.bodies[1].is_visible
    assert lab.stopwatch.elapsed_time == 0.0
    assert lab.period_tracker.selected_index == 0
    assert not lab.period_tracker.is_running


def test_length_and_mass_changes_move_energy_reference(lab):
    body = lab.bodies[0]
    body.is_user_controlled = True
    body.angle = 0.5
    body.is_user_controlled = False
    for _ in range(30):
        lab.step(1.0 / 60.0)

    lab.set_length(0, 0.9)
    assert body.length == 0.9
    assert lab.energy_error(0) == 0.0

    lab.set_mass(0, 1.5)
    assert body.mass == 1.5
    assert lab.energy_error(0) == 0.0

    for _ in range(60):
        lab.step(1.0 / 60.0)
    assert lab.energy_error(0) < 1e-9
