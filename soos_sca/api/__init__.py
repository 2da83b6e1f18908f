"""SOOS API clients and wire schemas."""
