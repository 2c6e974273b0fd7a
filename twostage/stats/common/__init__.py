"""
twostage.stats.common
=====================

Generic, scheme-independent numeric building blocks.
"""
