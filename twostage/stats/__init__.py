"""
Statistical methods for two-stage binary designs.

This module follows the same separation as the rest of the package:

1. **Common** (twostage.stats.common):
   Scheme-independent numeric primitives (binomial probabilities, Beta
   quantiles, exact binomial coefficients, argument checks).

2. **Schemes** (twostage.stats.schemes):
   The two-stage binary design itself, its sample space and the inference
   built on top of it.

Example:
--------
>>> from twostage.stats.common.binomial import binomial_coefficient
>>> binomial_coefficient(5, 2)
10.0
"""
