"""
occupancy/scale.py - Scale Factor and Normalization

The recurrence multiplies the total mass by N every layer. Multiplying each
layer by scale = N**((N-3)/(1-N)) keeps the mass bounded: after all N-1
layers the closed-form total (N*scale)**(N-1) equals N**2.

Pure functions.
"""

from .constants import RESCALE_BATCH


def compute_scale(n: int) -> float:
    """
    Per-layer scale factor for alphabet size n.

    Args:
        n: Alphabet size (>= 1)

    Returns:
        float: N**((N-3)/(1-N)); 1.0 for the degenerate N == 1
    """
    if n <= 1:
        return 1.0
    return float(n) ** ((n - 3.0) / (1.0 - n))


def compute_scale8(scale: float) -> float:
    """Scale applied once per batch of RESCALE_BATCH layers."""
    return scale ** RESCALE_BATCH


def count_scaled_layers(n: int, batch_rescale: bool = False) -> int:
    """
    Number of scale multiplications reaching the final vector.

    Args:
        n: Alphabet size
        batch_rescale: True if scale**8 is applied every 8th layer

    Returns:
        int: Exponent of scale in the final mass
    """
    layers = max(n - 1, 0)
    if batch_rescale:
        return layers - layers % RESCALE_BATCH
    return layers


def compute_norm(n: int, scale: float, batch_rescale: bool = False) -> float:
    """
    Closed-form total mass the recurrence must reproduce.

    Per-layer:  (N*scale)**(N-1)
    Batched:    (N*scale)**((N-1) - (N-1)%8) * N**((N-1)%8)

    Args:
        n: Alphabet size
        scale: Per-layer scale factor
        batch_rescale: True for the batched cadence

    Returns:
        float: Expected sum of the final vector
    """
    if n <= 1:
        return 1.0
    layers = n - 1
    if batch_rescale:
        tail = layers % RESCALE_BATCH
        return (float(n) * scale) ** (layers - tail) * float(n) ** tail
    return (float(n) * scale) ** layers
