"""PatrolGate - lease-coordinated review queue for content changes."""

__version__ = "0.1.0"
