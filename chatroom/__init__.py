"""Chat presence backend: participants, messages and the inactivity reaper."""

__version__ = '1.0.0'
