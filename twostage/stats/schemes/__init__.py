"""
Problem-specific implementations.

Available schemes:
- `binary_two_stage`: single-arm two-stage designs with a binary endpoint
"""
