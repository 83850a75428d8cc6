"""
Pipeline Module
===============

Topology generation plus room type assignment with seeded retries.

Usage:
    from dungeonfloor.pipeline import FloorConfig, FloorGenerator

    plan = FloorGenerator(FloorConfig(
        seed=7,
        spawn_room_type='spawn',
        boss_room_type='boss',
        default_room_type='combat',
    )).generate()
"""

from dungeonfloor.pipeline.floor_pipeline import (
    FloorConfig,
    FloorPlan,
    FloorGenerator,
    generate_floor,
)

__all__ = [
    'FloorConfig',
    'FloorPlan',
    'FloorGenerator',
    'generate_floor',
]
