"""PatrolGate HTTP API."""

from patrolgate.api.router import router

__all__ = ["router"]
