"""Utility modules for sphereindex."""

from sphereindex.utils.cancellation import OperationStopped, StopToken, StopTrigger

__all__ = ["OperationStopped", "StopToken", "StopTrigger"]
