"""Calibration tooling: labeled corpora and detector benchmarks."""
