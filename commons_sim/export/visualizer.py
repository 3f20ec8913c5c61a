"""Snapshot and animation export for Commons runs."""

import io
from pathlib import Path
from typing import List

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from PIL import Image

from ..model.state import FrameSnapshot


class Visualizer:
    """
    Draws a scenario's primary field as a heatmap with its agents on top.

    Supports:
    - Single PNG snapshots
    - Animated GIF compilation
    """

    COLORS = {
        'background': '#ECF0F1',
        'agent': '#E74C3C',
        'agent_edge': '#FFFFFF',
    }
    CMAP = 'viridis'

    def __init__(self, title: str):
        self.title = title
        self.frames: List[Image.Image] = []

    def _create_figure(self, snapshot: FrameSnapshot) -> plt.Figure:
        render = snapshot.render
        fig, ax = plt.subplots(figsize=(7, 6))
        ax.set_facecolor(self.COLORS['background'])

        xmin, xmax, ymin, ymax = render.extent
        if render.field is not None:
            vmin, vmax = render.field_range
            image = ax.imshow(render.field, origin='lower', aspect='equal',
                              extent=[xmin, xmax, ymin, ymax],
                              cmap=self.CMAP, vmin=vmin, vmax=vmax)
            fig.colorbar(image, ax=ax, label=render.field_label, shrink=0.8)

        points = np.asarray(render.points)
        if len(points):
            ax.scatter(points[:, 0], points[:, 1], s=12,
                       c=self.COLORS['agent'], edgecolors=self.COLORS['agent_edge'],
                       linewidths=0.3)

        ax.set_xlim(xmin, xmax)
        ax.set_ylim(ymin, ymax)
        ax.set_aspect('equal')

        summary = ' | '.join(f'{k}: {v:.1f}' for k, v in list(snapshot.metrics.items())[:3])
        ax.set_title(f'{self.title} | t={snapshot.elapsed:.1f}s\n{summary}', fontsize=10)
        ax.set_xlabel('X')
        ax.set_ylabel('Y')

        plt.tight_layout()
        return fig

    def buffer_frame(self, snapshot: FrameSnapshot) -> None:
        """Store frame for GIF generation."""
        fig = self._create_figure(snapshot)

        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=80)
        buf.seek(0)
        img = Image.open(buf).copy()
        self.frames.append(img)
        buf.close()
        plt.close(fig)

    def save_snapshot(self, snapshot: FrameSnapshot, output_path: Path) -> None:
        """Save single PNG image of the given frame."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig = self._create_figure(snapshot)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 10) -> None:
        """Compile buffered frames into animated GIF."""
        if not self.frames:
            return

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        duration = int(1000 / fps)  # milliseconds per frame

        self.frames[0].save(
            output_path,
            save_all=True,
            append_images=self.frames[1:],
            duration=duration,
            loop=0
        )

    def clear_frames(self) -> None:
        self.frames.clear()
