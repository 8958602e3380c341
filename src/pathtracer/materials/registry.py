"""Helpers shared by the per-kind material registries.

Each material kind keeps its parameters in fixed-size Taichi fields plus a
0-d counter field. These helpers validate parameters on the Python side and
hand out the next free slot.
"""

from collections.abc import Sequence


def check_unit_interval(name: str, value: float) -> None:
    """Raise ValueError unless ``value`` lies in [0, 1]."""
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1]")


def check_albedo(albedo: Sequence[float]) -> None:
    """Reject albedos that are not RGB triples within [0, 1].

    An albedo above 1 would make a surface reflect more light than it
    receives.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo needs 3 components, got {len(albedo)}")
    for channel, value in zip("rgb", albedo):
        check_unit_interval(f"albedo.{channel}", value)


def claim_slot(counter, capacity: int, kind: str) -> int:
    """Reserve the next slot of a registry whose size lives in ``counter``.

    Args:
        counter: 0-d Taichi field holding the number of used slots.
        capacity: Number of slots the registry fields were allocated with.
        kind: Material kind, for the error message.

    Raises:
        RuntimeError: Every slot is already used.
    """
    slot = int(counter[None])
    if slot >= capacity:
        raise RuntimeError(f"No room for another {kind} material (capacity {capacity})")
    counter[None] = slot + 1
    return slot
