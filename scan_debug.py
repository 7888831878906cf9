"""Scan debug visualization - saves intermediate results to disk."""

import os

import cv2
import numpy as np

from finder_detect import FinderPatternDetector
from rect_detect import RectangleBoundaryDetector
from reader_errors import NotFoundError


def _save_img(debug_dir, name, data):
    """Save image to debug_dir."""
    path = os.path.join(debug_dir, name)
    if data.dtype == bool:
        cv2.imwrite(path, np.where(data, 0, 255).astype(np.uint8))
    else:
        cv2.imwrite(path, data)
    return path


def draw_geometry(bitmap, blocks=None, corners=None):
    """Bitmap in BGR with finder blocks (red) and region corners (yellow) drawn on top."""
    vis = cv2.cvtColor(bitmap.to_gray(), cv2.COLOR_GRAY2BGR)
    for i, p in enumerate(blocks or []):
        cx, cy = int(p.x), int(p.y)
        r = max(3, int(p.estimated_module_size))
        cv2.circle(vis, (cx, cy), r, (0, 0, 255), 2)
        cv2.putText(vis, f"{i}:{p.count}", (cx+8, cy-8), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 255), 1)
    if corners:
        pts = [(int(p.x), int(p.y)) for p in corners]
        labels = ['TL', 'TR', 'BR', 'BL']
        for i in range(4):
            cv2.line(vis, pts[i], pts[(i+1) % 4], (0, 255, 255), 2)
            cv2.circle(vis, pts[i], 6, (0, 255, 255), -1)
            cv2.putText(vis, labels[i], (pts[i][0]+10, pts[i][1]-10),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 255), 2)
    return vis


def save_debug_all(debug_dir, bitmap, results=None, error=None):
    """Save the bitmap, located geometry and decode outcome to debug_dir."""
    if not debug_dir:
        return
    os.makedirs(debug_dir, exist_ok=True)

    # 1: the thresholded input
    _save_img(debug_dir, "1_bitmap.png", bitmap.bits)

    # 2: geometry, each detector on its own so one failing does not hide the other
    lines = []
    try:
        blocks = FinderPatternDetector(bitmap).detect()
        lines.append("Finder patterns:")
        lines.extend(f"  {p!r}" for p in blocks)
    except NotFoundError as e:
        blocks = None
        lines.append(f"Finder patterns: {e}")
    try:
        corners = RectangleBoundaryDetector(bitmap).detect()
        lines.append(f"Region corners (TL, TR, BR, BL): {corners}")
    except NotFoundError as e:
        corners = None
        lines.append(f"Region corners: {e}")
    _save_img(debug_dir, "2_geometry.png", draw_geometry(bitmap, blocks, corners))

    # 3: info + result
    lines.append(f"\nBitmap: {bitmap.width}x{bitmap.height}")
    if results:
        lines.append("\nResults:")
        lines.extend(f"  {r.format.name}: {r.text}" for r in results)
    if error is not None:
        lines.append(f"\nError: {error}")
    with open(os.path.join(debug_dir, "3_info.txt"), 'w') as f:
        f.write('\n'.join(lines) + '\n')
