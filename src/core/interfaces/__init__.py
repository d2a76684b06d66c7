"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos
  (Docker CLI, S3).
- Permite invertir dependencias: el Core depende de abstracciones y los tests
  usan fakes en memoria.
"""
