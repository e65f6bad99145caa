"""Planning layer exports: manual-order inbound map and the monthly stock simulator."""

from .inbound import InboundMap, build_inbound_map, partition_orders
from .simulation import (
    Requirement,
    SimulationParams,
    attach_months_cover,
    calculate_requirement,
    can_place_order,
    run_simulation,
    simulate_month,
)

__all__ = [
    "InboundMap",
    "build_inbound_map",
    "partition_orders",
    "Requirement",
    "SimulationParams",
    "attach_months_cover",
    "calculate_requirement",
    "can_place_order",
    "run_simulation",
    "simulate_month",
]
