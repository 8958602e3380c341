"""Seedable random number streams for Monte Carlo sampling.

Every pixel owns one stream: a 32-bit LCG state stored in a Taichi field and
advanced on each draw, with a PCG-style output permutation. Because a stream
is only ever touched by the task rendering its pixel, no locking is needed
and a fixed root seed reproduces an image bit for bit regardless of how many
threads the backend uses.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.sampler import seed_streams, rand
    >>> seed_streams(1234)
    >>> # Inside a Taichi kernel: xi = rand(stream)
"""

import numpy as np
import taichi as ti

# One stream per pixel of the largest supported render target
MAX_STREAMS = 2048 * 2048

# LCG multiplier and increment (mod 2^32, full period)
_LCG_MUL = 747796405
_LCG_INC = 1013904223

# Output permutation multiplier (PCG RXS-M-XS)
_PCG_MUL = 277803737

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _advance(state: ti.u32) -> ti.u32:
    """Step the LCG state once."""
    return state * ti.u32(_LCG_MUL) + ti.u32(_LCG_INC)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """Scramble an LCG state into a well-distributed output word."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(_PCG_MUL)
    return (word >> ti.u32(22)) ^ word


@ti.func
def hash_u32(x: ti.u32) -> ti.u32:
    """Hash a 32-bit integer (one PCG step followed by the permutation)."""
    return _permute(_advance(x))


@ti.func
def rand(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from the given stream.

    Args:
        stream: Index of the stream to advance (one per pixel).

    Returns:
        A uniformly distributed value in [0, 1).
    """
    state = _advance(_rng_state[stream])
    _rng_state[stream] = state
    # Keep the top 24 bits so the float conversion is exact and < 1
    return ti.cast(_permute(state) >> ti.u32(8), ti.f32) * (1.0 / 16777216.0)


@ti.kernel
def _seed_streams_kernel(seed: ti.u32, count: ti.i32):
    root = hash_u32(seed)
    for k in range(count):
        _rng_state[k] = hash_u32(ti.cast(k, ti.u32) ^ root)


def entropy_seed() -> int:
    """Draw a 32-bit root seed from system entropy."""
    return int(np.random.SeedSequence().generate_state(1, dtype=np.uint32)[0])


def seed_streams(seed: int | None = None, count: int = MAX_STREAMS) -> int:
    """Initialize the random streams from a root seed.

    Args:
        seed: Root seed. If None, a seed is drawn from system entropy.
        count: Number of streams to initialize (at most MAX_STREAMS).

    Returns:
        The root seed actually used, so a render can be reproduced later.

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} is outside [1, {MAX_STREAMS}]")
    if seed is None:
        seed = entropy_seed()
    seed = int(seed) & 0xFFFFFFFF
    _seed_streams_kernel(seed, count)
    return seed
