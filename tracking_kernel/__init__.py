"""
Tracking Kernel - Production Batch & Step-Progression Engine

A pure, in-memory engine for serialized production units with:
- Configuration-driven step sequences per production-line type
- Zero-padded serial number sequencing
- Derived completion state computed from per-step status
- Atomic bulk status transitions over selected units
- Disjoint in-progress / completed / shipped projections
"""

__version__ = "0.1.0"
