"""Contrato del almacenamiento de objetos (bucket de imágenes publicadas)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStorage(Protocol):
    """Almacenamiento clave -> bytes.

    Las claves tienen la forma `<author>/<name>.tar`. Cualquier fallo se
    reporta como `core.domain.errors.StorageError`.
    """

    def put(self, key: str, data: bytes) -> None: ...

    def get(self, key: str) -> bytes: ...

    def list(self, prefix: str = "") -> list[str]: ...
