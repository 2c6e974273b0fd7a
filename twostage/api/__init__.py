"""
twostage.api
============

Hand-off points for external collaborators, most notably the optimizer that
searches a `SampleSpace` for a score-minimizing design.

Examples
--------
>>> from twostage.api.solver import candidate_grid, design_from_assignment
"""
