"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- El manifest `mcp.json` se decodifica directamente a `ServerDescriptor`.

Nota:
- Estos modelos describen *qué* es un servidor MCP empaquetado, no *cómo* se
  construye la imagen.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


def _none_to_default(value: Any, default: Any) -> Any:
    return default if value is None else value


class Repository(BaseModel):
    """Repositorio de origen declarado en el manifest (ambos campos opcionales)."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(default="", description="Tipo de VCS (p.ej. 'git').")
    url: str = Field(default="", description="URL del repositorio.")

    @field_validator("type", "url", mode="before")
    @classmethod
    def _empty_if_null(cls, value: Any) -> Any:
        return _none_to_default(value, "")


class RunSpec(BaseModel):
    """Cómo se arranca el servidor dentro del contenedor."""

    model_config = ConfigDict(extra="ignore")

    command: str = Field(
        default="",
        description="Ejecutable principal (node, python, go, ...).",
    )
    args: list[str] = Field(
        default_factory=list,
        description="Argumentos, en orden, pasados al comando.",
    )
    port: int = Field(
        default=0,
        ge=0,
        le=65535,
        strict=True,
        description="Puerto expuesto; 0 significa 'no expuesto'. Entero JSON estricto.",
    )

    @field_validator("command", mode="before")
    @classmethod
    def _command_default(cls, value: Any) -> Any:
        return _none_to_default(value, "")

    @field_validator("args", mode="before")
    @classmethod
    def _args_default(cls, value: Any) -> Any:
        return _none_to_default(value, [])

    @field_validator("port", mode="before")
    @classmethod
    def _port_default(cls, value: Any) -> Any:
        return _none_to_default(value, 0)


class ServerDescriptor(BaseModel):
    """Manifest `mcp.json` ya parseado.

    Invariante (la aplica `core.services.manifest_parser`): `name` y
    `run.command` no vacíos.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", description="Identificador del servidor.")
    version: str = Field(default="", description="Versión libre (semver o no).")
    description: str = Field(default="")
    author: str = Field(default="", description="Autor; namespace en el storage.")
    license: str = Field(default="")
    keywords: list[str] = Field(
        default_factory=list,
        description="Palabras clave (conjunto; el orden no importa).",
    )
    repository: Repository = Field(default_factory=Repository)
    run: RunSpec = Field(default_factory=RunSpec)

    @field_validator("name", "version", "description", "author", "license", mode="before")
    @classmethod
    def _text_default(cls, value: Any) -> Any:
        return _none_to_default(value, "")

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords_default(cls, value: Any) -> Any:
        return _none_to_default(value, [])

    @field_validator("keywords")
    @classmethod
    def _dedupe_keywords(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("repository", "run", mode="before")
    @classmethod
    def _nested_default(cls, value: Any) -> Any:
        return _none_to_default(value, {})

    @property
    def image_tag(self) -> str:
        """Tag de la imagen: el `name` en minúsculas."""

        return self.name.lower()


class BuildResult(BaseModel):
    """Salida inmutable de una ejecución del pipeline.

    Por qué inmutable:
    - Se crea una sola vez por ejecución y la consume la CLI (upload, render).
    - El Core nunca la persiste.
    """

    model_config = ConfigDict(frozen=True)

    extracted_path: Path = Field(..., description="Árbol extraído (absoluto).")
    descriptor_path: Path = Field(..., description="Dockerfile generado (absoluto).")
    archive_path: Path = Field(..., description="Imagen exportada .tar (absoluto).")
    image_tag: str = Field(..., min_length=1)
    descriptor: ServerDescriptor
    success: bool = True
    message: str | None = None
    run_id: str = Field(..., min_length=1)


class ContainerRunOptions(BaseModel):
    """Opciones explícitas para arrancar un contenedor (sin flags globales)."""

    model_config = ConfigDict(frozen=True)

    detached: bool = Field(default=True)
    port_mapping: str | None = Field(
        default=None,
        description="Mapeo de puertos 'host:contenedor' (p.ej. 8080:8080).",
    )
    container_name: str | None = Field(
        default=None,
        description="Nombre del contenedor; por defecto el tag de la imagen.",
    )


class ImageReference(BaseModel):
    """Referencia `author/name` de una imagen publicada."""

    model_config = ConfigDict(frozen=True)

    author: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @classmethod
    def parse(cls, value: str) -> "ImageReference":
        parts = value.strip().split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise ValueError(f"invalid reference {value!r}; use author/name")
        return cls(author=parts[0].strip(), name=parts[1].strip())

    @property
    def object_key(self) -> str:
        return f"{self.author}/{self.name}.tar"

    def __str__(self) -> str:
        return f"{self.author}/{self.name}"
