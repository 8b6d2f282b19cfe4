from __future__ import annotations


def fix_confidence(distance_m: float, zoom: float, altitude_m: float, fov_deg: float) -> float:
    """
    Multiplicative score for a computed target fix, capped at 1.0.

    Farther targets, high vantage points and wide FOV lower the score; high
    zoom and narrow FOV raise it. No lower clamp is applied.
    """
    conf = 1.0

    if distance_m > 1000:
        conf *= 0.7
    elif distance_m > 500:
        conf *= 0.85
    elif distance_m > 100:
        conf *= 0.95

    if zoom > 3.0:
        conf *= 1.1
    elif zoom > 2.0:
        conf *= 1.05

    if altitude_m > 100:
        conf *= 0.9

    if fov_deg < 30:
        conf *= 1.1
    elif fov_deg > 60:
        conf *= 0.9

    return min(conf, 1.0)
