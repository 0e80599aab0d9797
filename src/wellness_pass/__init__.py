"""wellness-pass: client intake and wellness tracking for coaches."""

__version__ = "0.1.0"
