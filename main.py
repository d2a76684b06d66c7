"""Entry point de desarrollo para mcphub (sin instalar el paquete).

Uso:
- `python main.py push server.zip`
- `python -m main doctor run`

El código vive en `src/`; sin `pip install -e .` Python no encuentra
`cli`, `core` ni `adapters`, así que se antepone `src/` a `sys.path`.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    # Consolas Windows (cp1252) no imprimen el banner de Rich.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
