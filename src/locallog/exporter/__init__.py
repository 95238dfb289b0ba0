"""Pacote exporter: contadores internos de diagnóstico (Prometheus)."""

from .diagnostics import render, snapshot

__all__ = ["render", "snapshot"]
