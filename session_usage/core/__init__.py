"""
Core computations for Session Usage.

This package turns parsed session logs into window statistics, model
identities and calendar colors.
"""
