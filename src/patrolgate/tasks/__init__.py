"""PatrolGate lease maintenance."""

from patrolgate.tasks.sweep import (
    evict_stale_leases,
    maybe_evict,
    start_lease_sweep,
    stop_lease_sweep,
)

__all__ = ["evict_stale_leases", "maybe_evict", "start_lease_sweep", "stop_lease_sweep"]
