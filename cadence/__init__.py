"""Cadence: periodic and on-demand reporting of recorded metric samples."""
