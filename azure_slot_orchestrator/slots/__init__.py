"""Slot orchestration: resource inventory, idle-slot detection and teardown."""
