"""Adaptador del motor de contenedores vía la CLI de Docker.

Por qué subprocess y no el SDK:
- El motor es un colaborador externo; basta con el binario `docker` (o uno
  compatible como `podman`) en el PATH.
- La salida combinada (stdout + stderr) se devuelve tal cual para diagnóstico.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from core.config import AppSettings
from core.domain.errors import EngineUnavailable
from core.domain.models import ContainerRunOptions
from core.interfaces.engine import ContainerEngine, EngineOutcome

logger = logging.getLogger(__name__)

_LOADED_IMAGE_MARKER = "Loaded image:"


def parse_loaded_image(output: str) -> str | None:
    """Extract the image reference from `docker load` output."""

    for line in reversed(output.splitlines()):
        if _LOADED_IMAGE_MARKER in line:
            image = line.split(_LOADED_IMAGE_MARKER, 1)[1].strip()
            return image or None
    return None


def run_arguments(tag: str, options: ContainerRunOptions) -> list[str]:
    args = ["run", "-d" if options.detached else "-it"]
    args += ["--name", options.container_name or tag]
    if options.port_mapping:
        args += ["-p", options.port_mapping]
    args.append(tag)
    return args


class DockerCLIEngine(ContainerEngine):
    """`ContainerEngine` implemented by shelling out to the docker binary."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or AppSettings()
        self._binary = self._settings.engine_binary

    def _capture(self, args: Sequence[str], *, cwd: Path | None = None) -> EngineOutcome:
        command = [self._binary, *args]
        logger.debug("engine: %s (cwd=%s)", " ".join(command), cwd or ".")
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise EngineUnavailable(f"{self._binary} is not installed or not executable: {exc}") from exc
        logger.debug("engine: %s exited with %d", args[0], completed.returncode)
        return EngineOutcome(ok=completed.returncode == 0, output=completed.stdout or "")

    def is_available(self) -> bool:
        try:
            completed = subprocess.run(
                [self._binary, "info"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self._settings.engine_probe_timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("engine probe failed: %s", exc)
            return False
        return completed.returncode == 0

    def build(self, context_dir: Path, tag: str) -> EngineOutcome:
        return self._capture(["build", "-t", tag, "."], cwd=context_dir)

    def save(self, tag: str, dest: Path) -> EngineOutcome:
        return self._capture(["save", "-o", str(dest), tag])

    def load(self, src: Path) -> EngineOutcome:
        outcome = self._capture(["load", "-i", str(src)])
        if not outcome.ok:
            return outcome
        return EngineOutcome(
            ok=True,
            output=outcome.output.strip(),
            image=parse_loaded_image(outcome.output),
        )

    def run(self, tag: str, options: ContainerRunOptions) -> EngineOutcome:
        args = run_arguments(tag, options)
        if options.detached:
            outcome = self._capture(args)
            if not outcome.ok:
                return outcome
            container_id = outcome.output.strip().splitlines()[-1] if outcome.output.strip() else None
            return EngineOutcome(ok=True, output=outcome.output, container_id=container_id)

        # Foreground: the container owns the terminal.
        logger.debug("engine: %s %s (interactive)", self._binary, " ".join(args))
        try:
            completed = subprocess.run([self._binary, *args], check=False)
        except OSError as exc:
            raise EngineUnavailable(f"{self._binary} is not installed or not executable: {exc}") from exc
        return EngineOutcome(
            ok=completed.returncode == 0,
            output="" if completed.returncode == 0 else f"container exited with {completed.returncode}",
        )
