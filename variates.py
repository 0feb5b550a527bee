import math
import random
from functools import lru_cache

# Lanczos coefficients (g=7, n=9)
_LANCZOS_G = 7
_LANCZOS = [
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
]


def _open_uniform(rng) -> float:
    """Uniform sample strictly inside (0, 1)."""
    u = 0.0
    while u == 0.0:
        u = rng.random()
    return u


def standard_normal(rng=random) -> float:
    """Box-Muller: one N(0, 1) sample."""
    u = _open_uniform(rng)
    v = _open_uniform(rng)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def gamma(z: float) -> float:
    """Lanczos approximation of the Gamma function, reflected below 0.5."""
    if z < 0.5:
        return math.pi / (math.sin(math.pi * z) * gamma(1.0 - z))
    z -= 1.0
    x = _LANCZOS[0]
    for i in range(1, len(_LANCZOS)):
        x += _LANCZOS[i] / (z + i)
    t = z + _LANCZOS_G + 0.5
    return math.sqrt(2.0 * math.pi) * t ** (z + 0.5) * math.exp(-t) * x


@lru_cache(maxsize=8)
def mantegna_sigma(alpha: float) -> float:
    num = gamma(1.0 + alpha) * math.sin(math.pi * alpha / 2.0)
    den = gamma((1.0 + alpha) / 2.0) * alpha * 2.0 ** ((alpha - 1.0) / 2.0)
    return (num / den) ** (1.0 / alpha)


def stable_levy(alpha: float = 1.5, rng=random) -> float:
    """
    Symmetric alpha-stable sample via Mantegna's algorithm.

    Lower alpha = heavier tails. At alpha=2 this degenerates to a Gaussian,
    at 1.5 the variance is already infinite so rare moves are huge.
    """
    sigma = mantegna_sigma(alpha)
    u = standard_normal(rng)
    v = 0.0
    while v == 0.0:
        v = standard_normal(rng)
    return (u * sigma) / abs(v) ** (1.0 / alpha)
