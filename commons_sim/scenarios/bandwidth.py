"""Bandwidth: users saturate a shared network link."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from ..model.queueing import MM1Queue, PacketManager, PacketState
from ..model.state import RenderState
from .base import ParamDescriptor, Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

USER_RING_RADIUS = 15.0
MAX_VISUAL_PACKETS = 100  # Above this many in flight, stop adding tokens
MAX_TOKENS_PER_STEP = 5
PACKET_SPEED = 2.0  # Link lengths per second
EXTENT = 20.0
DROP_LINGER = 0.5  # Seconds a dropped token stays on screen
DROP_POSITION = 0.9  # Dropped tokens sit at the router end of the link


@dataclass
class User:
    id: int
    position: np.ndarray  # (x, z) in world units
    data_rate: float


class BandwidthScenario(Scenario):
    """
    Every user pushes traffic through one router. Below capacity the queue
    stays short; past it the buffer fills and packets start dropping for
    everyone.
    """

    metadata = ScenarioMetadata(
        id='bandwidth',
        title='Network Bandwidth',
        subtitle='Users congest a shared link',
        description=('Each user gains from sending more data, but a shared link '
                     'slows and drops packets for all once it saturates.'),
        category='abstract',
        resource_metric='delivery_rate',
        metric_labels={'utilization': 'Utilization (%)', 'queue_length': 'Queue',
                       'packet_loss': 'Packet loss (%)', 'latency': 'Latency (s)',
                       'delivery_rate': 'Delivered (%)'},
    )

    PARAMS = [
        ParamDescriptor('bandwidth', 'Link Bandwidth (pkt/s)', 'number',
                        100, min=20, max=500, step=10, folder='Resource'),
        ParamDescriptor('buffer_size', 'Router Buffer Size', 'number',
                        50, min=10, max=200, step=10, folder='Resource'),
        ParamDescriptor('user_count', 'Number of Users', 'number',
                        8, min=1, max=20, step=1, folder='Agents'),
        ParamDescriptor('user_data_rate', 'Data Rate per User (pkt/s)', 'number',
                        10, min=1, max=50, step=1, folder='Agents'),
    ]

    def setup(self) -> None:
        self.queue = MM1Queue(self.params['bandwidth'], self.params['buffer_size'],
                              rng=self.rng)
        self.packets = PacketManager(2000)
        self.users: List[User] = []
        self._saturated = False
        self._place_users()

    def _place_users(self) -> None:
        """Users sit evenly spaced on a ring around the router."""
        count = int(self.params['user_count'])
        self.users = []
        for i in range(count):
            angle = i / count * 2 * math.pi
            self.users.append(User(
                id=i,
                position=np.array([math.cos(angle) * USER_RING_RADIUS,
                                   math.sin(angle) * USER_RING_RADIUS]),
                data_rate=self.params['user_data_rate']
            ))

    def total_demand(self) -> float:
        return sum(u.data_rate for u in self.users)

    def update(self, dt: float, elapsed: float) -> None:
        if len(self.users) != int(self.params['user_count']):
            self._place_users()
        for user in self.users:
            user.data_rate = self.params['user_data_rate']

        self.queue.set_params(self.params['bandwidth'], self.params['buffer_size'])
        result = self.queue.update(dt, self.total_demand())

        # Visual tokens only; the queue above carries the actual accounting
        if self.users and len(self.packets.get_active_packets()) <= MAX_VISUAL_PACKETS:
            for _ in range(min(result.served, MAX_TOKENS_PER_STEP)):
                source = int(self.rng.integers(0, len(self.users)))
                self.packets.create_packet(source, 1.0, elapsed)

        for _ in range(min(math.floor(result.dropped), MAX_TOKENS_PER_STEP)):
            source = int(self.rng.integers(0, len(self.users))) if self.users else 0
            packet = self.packets.create_packet(source, 1.0, elapsed)
            if packet is not None:
                self.packets.update_packet(packet.id, state=PacketState.DROPPED,
                                           position=DROP_POSITION)

        self.packets.advance(dt, PACKET_SPEED)
        self.packets.remove_delivered()
        self.packets.remove_dropped(before=elapsed - DROP_LINGER)

        self._check_saturation()

    def _check_saturation(self) -> None:
        saturated = self.queue.get_utilization() >= 1.0
        if saturated != self._saturated:
            self._saturated = saturated
            if saturated:
                logger.info("Link saturated: demand %.0f pkt/s over capacity %.0f",
                            self.total_demand(), self.params['bandwidth'])
            else:
                logger.info("Link recovered below capacity")

    def get_metrics(self) -> Dict[str, float]:
        stats = self.queue.get_stats()
        loss = stats['packet_loss'] * 100
        return {
            'utilization': stats['utilization'] * 100,
            'queue_length': stats['queue_length'],
            'packet_loss': loss,
            'latency': stats['latency'],
            'delivery_rate': 100 - loss,
        }

    def get_render_state(self) -> RenderState:
        points = [u.position for u in self.users]
        for packet in self.packets.get_packets():
            if packet.state == PacketState.DELIVERED:
                continue
            if packet.source < len(self.users):
                # Packets travel from their user toward the router at the origin
                points.append(self.users[packet.source].position * (1 - packet.position))
        return RenderState(
            field=None,
            field_label='Traffic',
            points=np.array(points) if points else np.zeros((0, 2)),
            extent=(-EXTENT, EXTENT, -EXTENT, EXTENT)
        )

    def on_param_change(self, key, value) -> None:
        if key == 'user_count':
            self._place_users()

    def reset(self) -> None:
        logger.info("Resetting %s", self.metadata.id)
        self.queue.reset()
        self.packets.reset()
        self._saturated = False
        self._place_users()

    def dispose(self) -> None:
        self.packets.reset()
        self.users = []
