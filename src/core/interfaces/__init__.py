"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones y los tests
  aportan fakes.
"""


from core.interfaces.cache import CacheRepository, is_stale
from core.interfaces.repository_client import RepositoryClient

__all__ = ["CacheRepository", "RepositoryClient", "is_stale"]
