"""Read/write interfaces between the engine and its backing store."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from ..domain.models import FetchedInputs, SimulationMonthResult, SystemOrder


class InputFetcher(Protocol):
    """Protocol describing the read side: one snapshot of all inputs for a SKU/country."""

    def fetch_all(self, sku: str, country: str) -> FetchedInputs:  # pragma: no cover - interface definition
        ...


class ResultWriter(Protocol):
    """Protocol describing the write side: purge previous outputs, persist new ones."""

    def purge_old_data(
        self,
        system_orders: Sequence[Mapping[str, Any]],
        old_future_inventory: Sequence[Mapping[str, Any]],
    ) -> None:  # pragma: no cover - interface definition
        ...

    def write_results(
        self,
        results: Sequence[SimulationMonthResult],
        system_orders: Sequence[SystemOrder],
        sku: str,
        country: str,
        tins_per_carton: float,
    ) -> None:  # pragma: no cover - interface definition
        ...
