import numpy as np


def gen_linear_sweep_list(low: int | float, high: int | float, num_steps: int):
    """Evenly spaced float32 set-points from low to high, both included.

    A single step yields just `low`.
    """
    return np.linspace(low, high, num_steps, dtype=np.float32)
