from .channels import BroadcastChannel, DurableChannel

__all__ = ["BroadcastChannel", "DurableChannel"]
