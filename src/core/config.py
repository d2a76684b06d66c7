"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (Docker/S3/HTTP) lean config de forma consistente.
- El pipeline no lee esta clase directamente: recibe `PipelineOptions`
  explícitas construidas a partir de ella.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MANIFEST_FILENAME = "mcp.json"
DESCRIPTOR_FILENAME = "Dockerfile"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "mcphub"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "mcphub"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mcphub"
    return Path.home() / ".config" / "mcphub"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario.

    Los valores `None` se ignoran (no borran lo existente).
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# mcphub user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MCPHUB_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    # Pipeline
    work_root: Path = Field(
        default=Path("extracted"),
        description="Raíz de los directorios de extracción y de las imágenes exportadas.",
    )
    manifest_filename: str = Field(
        default=MANIFEST_FILENAME,
        min_length=1,
        description="Nombre exacto del manifest a buscar en el árbol extraído.",
    )
    descriptor_filename: str = Field(
        default=DESCRIPTOR_FILENAME,
        min_length=1,
        description="Nombre del Dockerfile generado junto al manifest.",
    )
    isolate_runs: bool = Field(
        default=True,
        description="Aislar cada ejecución bajo <work_root>/<run_id>/.",
    )
    max_archive_bytes: int = Field(
        default=100 * 1024 * 1024,
        gt=0,
        description="Tamaño máximo aceptado para el zip de `push`.",
    )

    # Motor de contenedores
    engine_binary: str = Field(
        default="docker",
        min_length=1,
        description="Binario del motor (docker o compatible).",
    )
    engine_probe_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout del chequeo de disponibilidad (`docker info`).",
    )

    # Almacenamiento de objetos (S3 compatible)
    storage_bucket: str = Field(
        default="mcp-servers",
        min_length=1,
        description="Bucket donde se publican las imágenes.",
    )
    storage_region: str | None = Field(
        default=None,
        description="Región AWS; None usa la cadena por defecto de boto3.",
    )
    storage_endpoint_url: str | None = Field(
        default=None,
        description="Endpoint S3 compatible (MinIO, R2, ...); None usa AWS.",
    )
    default_author: str = Field(
        default="anonymous",
        min_length=1,
        description="Namespace usado cuando el manifest no declara `author`.",
    )
    download_dir: Path = Field(
        default=Path("downloaded"),
        description="Directorio local para las imágenes descargadas con `pull`.",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout para los chequeos HTTP del doctor (segundos).",
    )
