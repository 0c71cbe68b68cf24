"""
Camera-to-Depth Projection

Maps camera-space joint positions onto depth-image pixel coordinates.
The segmenter only needs an object with a ``project`` method, so a
sensor SDK's own mapper can be injected in place of the pinhole model.

Usage:
    from depth_gestures.data.projection import PinholeProjector

    projector = PinholeProjector.from_config(config.sensor)
    u, v = projector.project((0.1, 0.2, 1.5))
"""

import numpy as np
from typing import Optional, Sequence, Tuple

from ..utils.config import SensorConfig


class PinholeProjector:
    """
    Pinhole projection with the depth camera's intrinsics.

    Camera space has y pointing up while image rows grow downwards,
    hence the sign flip on the vertical axis.
    """

    def __init__(self, fx: float, fy: float, cx: float, cy: float):
        """
        Args:
            fx, fy: Focal lengths in pixels
            cx, cy: Principal point in pixels
        """
        self.fx = fx
        self.fy = fy
        self.cx = cx
        self.cy = cy

    @classmethod
    def from_config(cls, sensor: SensorConfig) -> 'PinholeProjector':
        return cls(sensor.fx, sensor.fy, sensor.cx, sensor.cy)

    def project(self, position: Sequence[float]) -> Optional[Tuple[float, float]]:
        """
        Project a camera-space point to depth-image coordinates.

        Args:
            position: (x, y, z) in metres

        Returns:
            (u, v) pixel coordinates, or None if the point is not in
            front of the sensor
        """
        x, y, z = (float(c) for c in position[:3])
        if not np.isfinite(z) or z <= 0:
            return None

        u = self.cx + self.fx * x / z
        v = self.cy - self.fy * y / z
        return (u, v)

    def unproject(self, u: float, v: float, depth_mm: float) -> Tuple[float, float, float]:
        """
        Inverse projection of a depth pixel.

        Args:
            u, v: Pixel coordinates
            depth_mm: Depth in millimetres

        Returns:
            (x, y, z) camera-space position in metres
        """
        z = depth_mm / 1000.0
        x = (u - self.cx) * z / self.fx
        y = (self.cy - v) * z / self.fy
        return (x, y, z)
