"""Initial particle layouts."""

from .seeding import (
    create_rest_state,
    create_random_cloud,
    create_grid_drop,
    random_cloud_seeder,
    SCENARIOS
)

__all__ = [
    'create_rest_state',
    'create_random_cloud',
    'create_grid_drop',
    'random_cloud_seeder',
    'SCENARIOS'
]
