"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce el SDK del catálogo ni la CLI: solo rutas, AVUs,
  ACLs y consultas compiladas.
"""
