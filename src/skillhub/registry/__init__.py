"""Durable registry of managed skills for skillhub."""

from skillhub.registry.store import RegistryError, SkillStore

__all__ = [
    "RegistryError",
    "SkillStore",
]
