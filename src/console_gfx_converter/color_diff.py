"""Perceptual color difference (CIEDE2000) between 8-bit RGB colors."""

# Reference: "The CIEDE2000 Color-Difference Formula: Implementation Notes,
# Supplementary Test Data, and Mathematical Observations" (Sharma, Wu, Dalal).
# Equation numbers in the comments below follow that paper.

from __future__ import annotations

import math
from typing import NamedTuple, Sequence, Tuple

RGB = Tuple[int, int, int]
Lab = Tuple[float, float, float]

# Observer = 2 degrees, Illuminant = D65
REFERENCE_WHITE = (95.047, 100.000, 108.883)

_POW25_7 = 25.0**7


class ClosestPair(NamedTuple):
    index1: int
    index2: int
    diff: float


def _linearize(component: int) -> float:
    value = component / 255
    if value > 0.04045:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92


def rgb_to_xyz(rgb: RGB) -> Tuple[float, float, float]:
    r, g, b = (_linearize(c) * 100 for c in rgb)
    x = r * 0.4124 + g * 0.3576 + b * 0.1805
    y = r * 0.2126 + g * 0.7152 + b * 0.0722
    z = r * 0.0193 + g * 0.1192 + b * 0.9505
    return x, y, z


def _lab_f(t: float) -> float:
    if t > 0.008856:
        return t ** (1 / 3)
    return 7.787 * t + 16 / 116


def xyz_to_lab(xyz: Tuple[float, float, float]) -> Lab:
    ref_x, ref_y, ref_z = REFERENCE_WHITE
    fx = _lab_f(xyz[0] / ref_x)
    fy = _lab_f(xyz[1] / ref_y)
    fz = _lab_f(xyz[2] / ref_z)
    return 116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)


def rgb_to_lab(rgb: RGB) -> Lab:
    return xyz_to_lab(rgb_to_xyz(rgb))


def _hue_angle(b: float, a_prime: float) -> float:  # (7)
    if b == 0 and a_prime == 0:
        return 0.0
    angle = math.degrees(math.atan2(b, a_prime))
    return angle if angle >= 0 else angle + 360


def _hue_difference(c1p: float, c2p: float, h1p: float, h2p: float) -> float:  # (10)
    if c1p * c2p == 0:
        return 0.0
    delta = h2p - h1p
    if abs(delta) <= 180:
        return delta
    if delta > 180:
        return delta - 360
    return delta + 360


def _mean_hue(c1p: float, c2p: float, h1p: float, h2p: float) -> float:  # (14)
    if c1p * c2p == 0:
        return h1p + h2p
    if abs(h1p - h2p) <= 180:
        return (h1p + h2p) / 2
    if h1p + h2p < 360:
        return (h1p + h2p + 360) / 2
    return (h1p + h2p - 360) / 2


def ciede2000_lab(lab1: Lab, lab2: Lab) -> float:
    """Return the CIEDE2000 difference of two CIELAB colors (kL = kC = kH = 1)."""

    l1, a1, b1 = lab1
    l2, a2, b2 = lab2

    # Step 1: C'i and h'i
    c1 = math.hypot(a1, b1)  # (2)
    c2 = math.hypot(a2, b2)
    mean_c = (c1 + c2) / 2  # (3)
    g = 0.5 * (1 - math.sqrt(mean_c**7 / (mean_c**7 + _POW25_7)))  # (4)
    a1p = (1 + g) * a1  # (5)
    a2p = (1 + g) * a2
    c1p = math.hypot(a1p, b1)  # (6)
    c2p = math.hypot(a2p, b2)
    h1p = _hue_angle(b1, a1p)  # (7)
    h2p = _hue_angle(b2, a2p)

    # Step 2: delta L', delta C', delta H'
    delta_lp = l2 - l1  # (8)
    delta_cp = c2p - c1p  # (9)
    delta_hp = _hue_difference(c1p, c2p, h1p, h2p)  # (10)
    delta_big_hp = 2 * math.sqrt(c1p * c2p) * math.sin(math.radians(delta_hp) / 2)  # (11)

    # Step 3: weighting functions and rotation term
    mean_lp = (l1 + l2) / 2  # (12)
    mean_cp = (c1p + c2p) / 2  # (13)
    mean_hp = _mean_hue(c1p, c2p, h1p, h2p)  # (14)
    t = (
        1
        - 0.17 * math.cos(math.radians(mean_hp - 30))
        + 0.24 * math.cos(math.radians(2 * mean_hp))
        + 0.32 * math.cos(math.radians(3 * mean_hp + 6))
        - 0.20 * math.cos(math.radians(4 * mean_hp - 63))
    )  # (15)
    delta_theta = 30 * math.exp(-(((mean_hp - 275) / 25) ** 2))  # (16)
    r_c = 2 * math.sqrt(mean_cp**7 / (mean_cp**7 + _POW25_7))  # (17)
    s_l = 1 + (0.015 * (mean_lp - 50) ** 2) / math.sqrt(20 + (mean_lp - 50) ** 2)  # (18)
    s_c = 1 + 0.045 * mean_cp  # (19)
    s_h = 1 + 0.015 * mean_cp * t  # (20)
    r_t = -math.sin(math.radians(2 * delta_theta)) * r_c  # (21)

    term_l = delta_lp / s_l
    term_c = delta_cp / s_c
    term_h = delta_big_hp / s_h
    return math.sqrt(term_l**2 + term_c**2 + term_h**2 + r_t * term_c * term_h)  # (22)


def ciede2000(rgb1: RGB, rgb2: RGB) -> float:
    """Return the CIEDE2000 difference between two 8-bit sRGB colors."""

    return ciede2000_lab(rgb_to_lab(rgb1), rgb_to_lab(rgb2))


def closest_pair(colors: Sequence[RGB]) -> ClosestPair | None:
    """Find the two most similar colors in ``colors``.

    Every unordered pair ``i < j`` is compared in order. Pairs with a zero
    difference are ignored and the first pair found wins on ties. ``None`` is
    returned when no pair with a non-zero difference exists.
    """

    labs = [rgb_to_lab(color) for color in colors]
    best: ClosestPair | None = None
    for i in range(len(labs)):
        for j in range(i + 1, len(labs)):
            diff = ciede2000_lab(labs[i], labs[j])
            if diff and (best is None or diff < best.diff):
                best = ClosestPair(i, j, diff)
    return best
