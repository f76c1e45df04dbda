"""Geometry types shared with the fake arithmetic services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Circle:
    radius: float
    center_x: float = 0.0
    center_y: float = 0.0
