"""Mathematical primitives for pool pricing.

- Bfp: 18-decimal fixed-point arithmetic (Balancer-style)
"""

from sor.math.fixed_point import ONE_18, Bfp

__all__ = ["Bfp", "ONE_18"]
