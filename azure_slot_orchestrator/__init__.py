"""Blue/green deployment-slot orchestration for Azure scale-set stamps."""

__version__ = "0.1.0"
