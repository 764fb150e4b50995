"""
tasketa.domain — Canonical data models and enumerations.

This package defines the source-of-truth types shared across every layer
of the service. Nothing in here imports from other tasketa sub-packages
except ``tasketa.core``.
"""
