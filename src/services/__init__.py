"""Domain services: cached reads and invalidating writes against the backend."""

from silvererp.services.container import Services, build_services

__all__ = ["Services", "build_services"]
