"""
M/M/1 queue approximation and a bounded pool of visual packets.

    lambda: arrival rate (packets/sec)
    mu:     service rate (capacity, packets/sec)
    rho:    utilization = lambda / mu

Closed form (rho < 1): L = rho / (1 - rho), W = 1 / (mu - lambda).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueStepResult:
    served: int
    dropped: float
    queue_length: float


class MM1Queue:
    """
    Single-server queue with a bounded buffer, simulated in discrete steps.

    Arrivals per step are floor(lambda*dt) plus one more with probability
    frac(lambda*dt): the right mean, not an exact Poisson sample. Overflow
    beyond ``buffer_size`` is dropped and counted.
    """

    def __init__(self, capacity: float = 100, buffer_size: float = 50,
                 rng: Optional[np.random.Generator] = None):
        self.capacity = capacity
        self.buffer_size = buffer_size
        self.rng = rng if rng is not None else np.random.default_rng()
        self.arrival_rate = 0.0
        self.queue_length = 0.0
        self.packets_served = 0.0
        self.packets_dropped = 0.0
        self.total_latency = 0.0

    def set_params(self, capacity: float, buffer_size: float) -> None:
        self.capacity = capacity
        self.buffer_size = buffer_size
        # A smaller buffer drops whatever no longer fits
        if self.queue_length > buffer_size:
            self.packets_dropped += self.queue_length - buffer_size
            self.queue_length = buffer_size

    def get_utilization(self) -> float:
        if self.capacity <= 0:
            return 1.0
        return min(1.0, self.arrival_rate / self.capacity)

    def get_theoretical_queue_length(self) -> float:
        rho = self.get_utilization()
        if rho >= 1:
            return float(self.buffer_size)  # Saturated
        return rho / (1 - rho)

    def get_theoretical_latency(self) -> float:
        if self.arrival_rate >= self.capacity:
            return math.inf
        return 1 / (self.capacity - self.arrival_rate)

    def get_queue_length(self) -> float:
        return self.queue_length

    def get_packet_loss_rate(self) -> float:
        """Dropped / (served + dropped); 0 before any traffic."""
        total = self.packets_served + self.packets_dropped
        if total == 0:
            return 0.0
        return self.packets_dropped / total

    def get_average_latency(self) -> float:
        if self.packets_served == 0:
            return 0.0
        return self.total_latency / self.packets_served

    def _sample_arrivals(self, expected: float) -> int:
        base = math.floor(expected)
        frac = expected - base
        return base + (1 if self.rng.random() < frac else 0)

    def update(self, dt: float, arrival_rate: float) -> QueueStepResult:
        """Simulate one step at the given arrival rate."""
        self.arrival_rate = arrival_rate

        arrivals = self._sample_arrivals(max(0.0, arrival_rate * dt))

        max_service = max(0.0, self.capacity * dt)
        served = min(self.queue_length + arrivals, max_service)

        new_length = self.queue_length + arrivals - served

        dropped = 0.0
        if new_length > self.buffer_size:
            dropped = new_length - self.buffer_size
            self.queue_length = float(self.buffer_size)
        else:
            self.queue_length = max(0.0, new_length)

        self.packets_served += served
        self.packets_dropped += dropped

        # Queueing delay seen by this batch
        latency = self.queue_length / max(1.0, self.capacity)
        self.total_latency += served * latency

        return QueueStepResult(
            served=math.floor(served),
            dropped=dropped,
            queue_length=self.queue_length
        )

    def reset(self) -> None:
        self.queue_length = 0.0
        self.packets_served = 0.0
        self.packets_dropped = 0.0
        self.total_latency = 0.0
        self.arrival_rate = 0.0

    def get_stats(self) -> Dict[str, float]:
        return {
            'utilization': self.get_utilization(),
            'queue_length': self.queue_length,
            'packet_loss': self.get_packet_loss_rate(),
            'latency': self.get_average_latency(),
            'packets_served': self.packets_served,
            'packets_dropped': self.packets_dropped,
        }


class PacketState(Enum):
    QUEUED = "queued"
    TRANSMITTING = "transmitting"
    DELIVERED = "delivered"
    DROPPED = "dropped"

    @property
    def is_terminal(self) -> bool:
        return self in (PacketState.DELIVERED, PacketState.DROPPED)


@dataclass
class Packet:
    id: int
    source: int
    size: float
    created_at: float
    position: float = 0.0  # 0-1 along the link
    state: PacketState = PacketState.QUEUED


class PacketManager:
    """
    Bounded pool of packet tokens with monotonically increasing ids.

    When the pool is full, creating a packet evicts the oldest delivered or
    dropped one; if every packet is still in flight, creation fails.
    """

    def __init__(self, max_packets: int = 2000):
        self.max_packets = max_packets
        self.packets: List[Packet] = []
        self.next_id = 0

    def create_packet(self, source: int, size: float, time: float) -> Optional[Packet]:
        if len(self.packets) >= self.max_packets:
            idx = next((i for i, p in enumerate(self.packets) if p.state.is_terminal), None)
            if idx is None:
                logger.debug("Packet pool exhausted (%d in flight)", len(self.packets))
                return None
            del self.packets[idx]

        packet = Packet(id=self.next_id, source=source, size=size, created_at=time)
        self.next_id += 1
        self.packets.append(packet)
        return packet

    def get_packets(self) -> List[Packet]:
        return self.packets

    def get_active_packets(self) -> List[Packet]:
        return [p for p in self.packets if not p.state.is_terminal]

    def get_packet(self, packet_id: int) -> Optional[Packet]:
        return next((p for p in self.packets if p.id == packet_id), None)

    def update_packet(self, packet_id: int, **changes) -> bool:
        """Apply attribute changes to a packet; return False if absent."""
        packet = self.get_packet(packet_id)
        if packet is None:
            return False
        for name, value in changes.items():
            if not hasattr(packet, name) or name == 'id':
                raise ValueError(f"Cannot update packet field: {name}")
            setattr(packet, name, value)
        return True

    def advance(self, dt: float, speed: float = 2.0) -> List[Packet]:
        """Move active packets along the link; return newly delivered ones."""
        delivered = []
        for packet in self.get_active_packets():
            packet.state = PacketState.TRANSMITTING
            packet.position = min(1.0, packet.position + dt * speed)
            if packet.position >= 1.0:
                packet.state = PacketState.DELIVERED
                delivered.append(packet)
        return delivered

    def remove_delivered(self) -> List[Packet]:
        return self._remove_state(PacketState.DELIVERED)

    def remove_dropped(self, before: Optional[float] = None) -> List[Packet]:
        """Remove dropped packets, only those created before ``before`` if given."""
        return self._remove_state(PacketState.DROPPED, before)

    def _remove_state(self, state: PacketState,
                      before: Optional[float] = None) -> List[Packet]:
        def doomed(p: Packet) -> bool:
            return p.state == state and (before is None or p.created_at < before)

        removed = [p for p in self.packets if doomed(p)]
        self.packets = [p for p in self.packets if not doomed(p)]
        return removed

    def reset(self) -> None:
        self.packets = []
        self.next_id = 0
