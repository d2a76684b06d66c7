"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2), los
  errores tipados y las directivas del Dockerfile.
- El dominio no conoce Docker, S3 ni la CLI: solo conceptos del problema.
"""
