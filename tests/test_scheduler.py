import pytest

from commons_sim.model.scheduler import FIXED_DT, SPEED_OPTIONS, FixedStepScheduler
from commons_sim.model.state import SchedulerState


def make_scheduler():
    updates, renders = [], []
    scheduler = FixedStepScheduler(clock=lambda: 0.0)
    scheduler.set_callbacks(lambda dt, elapsed: updates.append((dt, elapsed)),
                            renders.append)
    return scheduler, updates, renders


def drive(scheduler, frames, frame_dt):
    scheduler.start()
    return sum(scheduler.tick(i * frame_dt) for i in range(1, frames + 1))


def test_tick_before_start_does_nothing():
    scheduler, updates, renders = make_scheduler()
    assert scheduler.tick(1.0) == 0
    assert updates == [] and renders == []


def test_updates_match_accumulated_time():
    scheduler, updates, renders = make_scheduler()
    total = drive(scheduler, 120, 1 / 60)
    assert abs(total - 120) <= 1
    assert len(updates) == total
    assert len(renders) == 120
    assert all(dt == FIXED_DT for dt, _ in updates)


def test_elapsed_is_exact_multiple_of_fixed_dt():
    scheduler, updates, _ = make_scheduler()
    total = drive(scheduler, 90, 0.037)
    assert scheduler.elapsed == total * FIXED_DT
    assert [elapsed for _, elapsed in updates] == [i * FIXED_DT for i in range(total)]


def test_large_frame_gaps_are_capped():
    scheduler, _, _ = make_scheduler()
    scheduler.start()
    updates = scheduler.tick(5.0)
    assert 11 <= updates <= 12


def test_render_alpha_is_fraction_of_a_step():
    scheduler, _, renders = make_scheduler()
    drive(scheduler, 50, 0.023)
    assert all(0.0 <= alpha < 1.0 for alpha in renders)


def test_identical_timestamps_replay_identically():
    first, updates_a, renders_a = make_scheduler()
    second, updates_b, renders_b = make_scheduler()
    drive(first, 200, 0.013)
    drive(second, 200, 0.013)
    assert updates_a == updates_b
    assert renders_a == renders_b


def test_pause_still_renders_but_does_not_advance():
    scheduler, updates, renders = make_scheduler()
    scheduler.start()
    scheduler.tick(0.1)
    steps = scheduler.steps
    scheduler.pause()
    assert scheduler.tick(0.2) == 0
    assert scheduler.steps == steps
    assert renders[-1] == 0.0

    scheduler.play()
    assert scheduler.tick(0.3) > 0


def test_speed_scales_simulated_time():
    normal, _, _ = make_scheduler()
    fast, _, _ = make_scheduler()
    fast.set_speed(2)
    slow_total = drive(normal, 10, 0.1)
    fast_total = drive(fast, 10, 0.1)
    assert abs(slow_total - 60) <= 1
    assert abs(fast_total - 120) <= 1


def test_speed_controls():
    scheduler, _, _ = make_scheduler()
    scheduler.set_speed(3)
    assert scheduler.speed == 1

    for _ in range(10):
        scheduler.faster()
    assert scheduler.speed == SPEED_OPTIONS[-1]
    for _ in range(10):
        scheduler.slower()
    assert scheduler.speed == SPEED_OPTIONS[0]


def test_state_change_notifications():
    seen = []
    scheduler = FixedStepScheduler(clock=lambda: 0.0)
    scheduler.set_callbacks(lambda dt, elapsed: None, lambda alpha: None, seen.append)
    scheduler.pause()
    scheduler.set_speed(0.5)
    scheduler.toggle_play()
    assert seen == [
        SchedulerState(is_playing=False, speed=1, elapsed=0.0),
        SchedulerState(is_playing=False, speed=0.5, elapsed=0.0),
        SchedulerState(is_playing=True, speed=0.5, elapsed=0.0),
    ]


def test_reset_zeroes_time_but_keeps_controls():
    scheduler, _, _ = make_scheduler()
    scheduler.set_speed(2)
    drive(scheduler, 10, 0.05)
    scheduler.pause()
    scheduler.reset()
    assert scheduler.elapsed == 0.0
    assert scheduler.accumulator == 0.0
    assert scheduler.speed == 2
    assert not scheduler.is_playing


def test_run_loop_with_injected_clock():
    times = iter(i * 0.02 for i in range(100))
    updates = []
    scheduler = FixedStepScheduler(clock=lambda: next(times))
    scheduler.set_callbacks(lambda dt, elapsed: updates.append(elapsed), lambda alpha: None)
    frames = scheduler.run(frame_interval=0.0, max_frames=5, sleep=lambda s: None)
    assert frames == 5
    assert not scheduler.is_running
    assert len(updates) == pytest.approx(6, abs=1)
