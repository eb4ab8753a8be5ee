"""Draw a pitch curve and shift audio along it in time with the host tempo."""

__version__ = "0.1.0"
__all__ = ["draw_grid", "pitch_delay", "pitch_shift", "processor", "interface"]