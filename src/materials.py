"""
FDM filament catalog.

Densities used to turn an estimated support volume into a weight that the
pricing side can charge for. PLA is the default support material.
"""

from dataclasses import dataclass

MM3_PER_CM3 = 1000.0


@dataclass
class PrintMaterial:
    """A filament available for printing supports."""

    name: str
    density_g_per_cm3: float

    @property
    def density_g_per_mm3(self) -> float:
        return self.density_g_per_cm3 / MM3_PER_CM3


MATERIALS = {
    "pla": PrintMaterial(name="PLA", density_g_per_cm3=1.24),
    "petg": PrintMaterial(name="PETG", density_g_per_cm3=1.27),
    "abs": PrintMaterial(name="ABS", density_g_per_cm3=1.04),
    "asa": PrintMaterial(name="ASA", density_g_per_cm3=1.07),
    "tpu": PrintMaterial(name="TPU", density_g_per_cm3=1.21),
}

DEFAULT_MATERIAL_KEY = "pla"

# Approx 1.24 g/cm^3
PLA_DENSITY_G_PER_MM3 = MATERIALS[DEFAULT_MATERIAL_KEY].density_g_per_mm3


def support_weight_g(volume_mm3: float, material_key: str = DEFAULT_MATERIAL_KEY) -> float:
    """Weight in grams of *volume_mm3* of support in the given material."""
    if material_key not in MATERIALS:
        raise KeyError(
            f"Unknown material '{material_key}'. Known: {', '.join(sorted(MATERIALS))}"
        )
    return max(0.0, float(volume_mm3)) * MATERIALS[material_key].density_g_per_mm3
