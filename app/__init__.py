"""Care facility notification service."""
