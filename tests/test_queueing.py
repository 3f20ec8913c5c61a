import math

import pytest

from commons_sim.model.queueing import MM1Queue, PacketManager, PacketState


def test_overloaded_queue_fills_buffer_and_drops(rng):
    queue = MM1Queue(capacity=10, buffer_size=5, rng=rng)
    result = queue.update(1.0, 100)
    assert result.served == 10
    assert result.dropped > 0
    assert result.queue_length == 5
    assert queue.get_queue_length() == 5
    assert queue.get_packet_loss_rate() > 0

    for _ in range(5):
        result = queue.update(1.0, 100)
    assert result.dropped > 0
    assert queue.get_queue_length() == 5


def test_underloaded_queue_stays_empty(rng):
    queue = MM1Queue(capacity=100, buffer_size=50, rng=rng)
    for _ in range(60):
        result = queue.update(0.1, 50)
        assert result.dropped == 0
    assert queue.get_queue_length() == 0
    assert queue.get_packet_loss_rate() == 0.0
    assert queue.get_stats()['packets_served'] == pytest.approx(300)


def test_theoretical_values():
    queue = MM1Queue(capacity=100, buffer_size=50)
    assert queue.get_packet_loss_rate() == 0.0
    assert queue.get_average_latency() == 0.0

    queue.arrival_rate = 50
    assert queue.get_utilization() == pytest.approx(0.5)
    assert queue.get_theoretical_queue_length() == pytest.approx(1.0)
    assert queue.get_theoretical_latency() == pytest.approx(0.02)

    queue.arrival_rate = 150
    assert queue.get_utilization() == 1.0
    assert queue.get_theoretical_queue_length() == 50
    assert math.isinf(queue.get_theoretical_latency())


def test_shrinking_buffer_drops_overflow(rng):
    queue = MM1Queue(capacity=10, buffer_size=50, rng=rng)
    queue.update(1.0, 40)
    assert queue.get_queue_length() == 30
    queue.set_params(10, 20)
    assert queue.get_queue_length() == 20
    assert queue.get_stats()['packets_dropped'] == pytest.approx(10)


def test_fractional_arrivals_keep_the_mean(rng):
    queue = MM1Queue(rng=rng)
    samples = [queue._sample_arrivals(2.5) for _ in range(20000)]
    assert set(samples) == {2, 3}
    assert sum(samples) / len(samples) == pytest.approx(2.5, abs=0.03)


def test_reset_clears_counters(rng):
    queue = MM1Queue(capacity=10, buffer_size=5, rng=rng)
    queue.update(1.0, 100)
    queue.reset()
    assert queue.get_stats() == {
        'utilization': 0.0,
        'queue_length': 0.0,
        'packet_loss': 0.0,
        'latency': 0.0,
        'packets_served': 0.0,
        'packets_dropped': 0.0,
    }


def test_packet_pool_evicts_oldest_terminal_packet():
    packets = PacketManager(max_packets=3)
    first, second, third = (packets.create_packet(i, 1.0, 0.0) for i in range(3))
    assert packets.create_packet(3, 1.0, 0.0) is None

    assert packets.update_packet(second.id, state=PacketState.DELIVERED)
    fourth = packets.create_packet(3, 1.0, 0.5)
    assert fourth is not None
    assert fourth.id == 3
    assert [p.id for p in packets.get_packets()] == [first.id, third.id, fourth.id]


def test_update_packet_validation():
    packets = PacketManager()
    packet = packets.create_packet(0, 1.0, 0.0)
    assert packets.update_packet(999, position=0.5) is False
    with pytest.raises(ValueError):
        packets.update_packet(packet.id, colour='red')
    with pytest.raises(ValueError):
        packets.update_packet(packet.id, id=7)


def test_advance_delivers_packets():
    packets = PacketManager()
    packet = packets.create_packet(0, 1.0, 0.0)
    dropped = packets.create_packet(1, 1.0, 0.0)
    packets.update_packet(dropped.id, state=PacketState.DROPPED)

    assert packets.advance(0.25, 2.0) == []
    assert packet.state == PacketState.TRANSMITTING
    assert packet.position == pytest.approx(0.5)

    assert packets.advance(0.25, 2.0) == [packet]
    assert packet.state == PacketState.DELIVERED
    assert packets.get_active_packets() == []

    assert packets.remove_delivered() == [packet]
    assert packets.remove_dropped() == [dropped]
    assert packets.get_packets() == []


def test_remove_dropped_keeps_recent_drops():
    packets = PacketManager()
    old = packets.create_packet(0, 1.0, 0.0)
    recent = packets.create_packet(0, 1.0, 1.0)
    for packet in (old, recent):
        packets.update_packet(packet.id, state=PacketState.DROPPED)

    assert packets.remove_dropped(before=0.5) == [old]
    assert packets.get_packets() == [recent]
