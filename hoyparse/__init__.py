"""Decoders for Hoymiles micro-inverter response payloads: statistics, device info, alarm log, grid profile, power limit and power command status."""

__version__ = "0.1.0"