"""
twostage.core
=============

Shared building blocks: typed names, the error hierarchy and the
diagnostics ledger.
"""
