"""
twostage.reporting
==================

Tabular (Polars) views over designs and simulation output.
"""
