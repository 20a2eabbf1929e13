"""
Dipolar coupling calculator for dipolar-nmr.

Converts an internuclear distance, an internuclear angle and the identities of
the two nuclei into a dipolar coupling magnitude in Hz.
"""

import logging

import numpy as np

from .data import (
    ANGSTROM_TO_METER,
    DEG_TO_RAD,
    MU_0,
    PLANCK_CONSTANT,
    get_gyromagnetic_ratio,
)
from .exceptions import InvalidGeometryError

logger = logging.getLogger(__name__)

# Prefactor -(mu0 * h) / (8 pi^3), in SI units
DIPOLAR_PREFACTOR: float = -(MU_0 * PLANCK_CONSTANT) / (8 * np.pi ** 3)


def calculate_dipolar_coupling(distance: float, angle: float, nucleus1: str, nucleus2: str) -> float:
    """
    Calculate the dipolar coupling between two nuclei.

    ### EDUCATIONAL NOTE - The Dipolar Coupling:
    --------------------------------------------
    Two nuclear spins act like tiny bar magnets. The field of one perturbs
    the other, splitting its NMR line by

        D = -(mu0 * h / 8 pi^3) * (gamma1 * gamma2 / r^3) * (3 cos^2(theta) - 1) / 2

    1. r^-3: The coupling falls off steeply with distance. An amide N-H
       (1.04 A) couples at ~21.6 kHz, two protons 3.5 A apart at ~5.5 kHz.
    2. (3 cos^2(theta) - 1) / 2: theta is the angle between the internuclear
       vector and the magnetic field. At theta = 54.74 deg (the "magic angle")
       the term vanishes, which is why Magic-Angle Spinning (MAS) removes
       dipolar broadening. At 90 deg the coupling is half the 0 deg value.

    In an oriented sample the field axis is the laboratory z axis, so theta
    is only meaningful when the structure has been aligned to it.

    Args:
        distance: Internuclear distance in Angstroms (> 0).
        angle: Angle between the internuclear vector and the field, in degrees.
        nucleus1: Isotope symbol of the first nucleus (e.g. "1H").
        nucleus2: Isotope symbol of the second nucleus (e.g. "15N").

    Returns:
        Coupling magnitude in Hz. The sign is discarded.

    Raises:
        UnknownNucleusError: If either nucleus is not supported.
        InvalidGeometryError: If the distance is not positive and finite, or
            the angle is not finite.
    """
    gamma1 = get_gyromagnetic_ratio(nucleus1)
    gamma2 = get_gyromagnetic_ratio(nucleus2)

    if not np.isfinite(distance) or distance <= 0:
        raise InvalidGeometryError(f"Distance must be positive and finite, got {distance}")
    if not np.isfinite(angle):
        raise InvalidGeometryError(f"Angle must be finite, got {angle}")

    angle_rad = angle * DEG_TO_RAD
    dist_m = distance * ANGSTROM_TO_METER

    d = (gamma1 * gamma2) / dist_m ** 3
    dc_dist = DIPOLAR_PREFACTOR * d
    dc_angle = (3 * np.cos(angle_rad) ** 2 - 1) / 2

    return float(abs(dc_dist * dc_angle))
