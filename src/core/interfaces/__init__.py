"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el router depende del contrato del
  catálogo, no de python-irodsclient.
"""
