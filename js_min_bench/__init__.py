"""Benchmark for JavaScript minifiers and compilers."""

from .schemas import ExperimentConfiguration, ExperimentResult, Measurement, Observation

__all__ = [
    "ExperimentConfiguration",
    "ExperimentResult",
    "Measurement",
    "Observation",
]
