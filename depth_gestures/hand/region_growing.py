"""
Region Growing

Iterative 4-connected flood fill over a boolean admission grid. Used by
the segmenter (seeded at the hand joint) and by finger extraction
(seeded at every unvisited pixel outside the palm disk).

The caller may pass a ``visited`` scratch array that is reused across
calls; it is updated in place.
"""

import numpy as np
from collections import deque
from typing import Optional, Tuple

# 4-neighbourhood offsets (dy, dx)
NEIGHBOURS_4 = ((0, -1), (0, 1), (-1, 0), (1, 0))


def grow_region(
    admissible: np.ndarray,
    seed: Tuple[int, int],
    visited: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Grow a connected region from a seed pixel.

    Args:
        admissible: Boolean array (H, W); True where a pixel may join
        seed: (x, y) start pixel
        visited: Optional boolean array (H, W) of pixels already claimed

    Returns:
        Array of shape (N, 2) with the (y, x) coordinates of the grown
        region. Empty if the seed is out of bounds, inadmissible or
        already visited.
    """
    height, width = admissible.shape
    if visited is None:
        visited = np.zeros((height, width), dtype=bool)

    x0, y0 = int(seed[0]), int(seed[1])
    if not (0 <= x0 < width and 0 <= y0 < height):
        return np.zeros((0, 2), dtype=np.intp)
    if visited[y0, x0] or not admissible[y0, x0]:
        return np.zeros((0, 2), dtype=np.intp)

    visited[y0, x0] = True
    queue = deque([(y0, x0)])
    pixels = []

    while queue:
        y, x = queue.popleft()
        pixels.append((y, x))

        for dy, dx in NEIGHBOURS_4:
            ny, nx = y + dy, x + dx
            if 0 <= ny < height and 0 <= nx < width \
                    and not visited[ny, nx] and admissible[ny, nx]:
                visited[ny, nx] = True
                queue.append((ny, nx))

    return np.array(pixels, dtype=np.intp).reshape(-1, 2)
