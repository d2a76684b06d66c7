"""Contrato del motor de contenedores.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el adaptador Docker CLI sea intercambiable por un fake en tests
  (o por otro motor compatible, p.ej. podman).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from core.domain.models import ContainerRunOptions


@dataclass(frozen=True)
class EngineOutcome:
    """Resultado de una invocación del motor.

    `output` es la salida combinada (stdout + stderr) tal cual, para
    diagnóstico. `image` lo rellena `load`; `container_id` lo rellena `run`
    en modo detached.
    """

    ok: bool
    output: str = ""
    image: str | None = None
    container_id: str | None = None


@runtime_checkable
class ContainerEngine(Protocol):
    """Operaciones mínimas que el pipeline y la CLI necesitan del motor.

    Reglas de diseño:
    - Todas las llamadas son bloqueantes y sin timeout interno.
    - Un fallo del comando se devuelve como `ok=False`; la traducción a
      errores tipados la hace el Core.
    """

    def is_available(self) -> bool: ...

    def build(self, context_dir: Path, tag: str) -> EngineOutcome: ...

    def save(self, tag: str, dest: Path) -> EngineOutcome: ...

    def load(self, src: Path) -> EngineOutcome: ...

    def run(self, tag: str, options: ContainerRunOptions) -> EngineOutcome: ...
