"""
Demo data generator for csfassess.

Usage:
    from csfassess.demo import generate_demo_data

    summary = generate_demo_data(manager, profile="growing", seed=42)

    # Then look at the results
    csfassess score
    csfassess trends
"""

from csfassess.demo.generator import (
    DemoConfig,
    DemoGenerator,
    DemoProfile,
    generate_demo_data,
)

__all__ = [
    "DemoConfig",
    "DemoGenerator",
    "DemoProfile",
    "generate_demo_data",
]
