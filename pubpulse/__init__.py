"""MAX30102 pulse-oximeter driver with heart-rate and SpO2 algorithms."""

__version__ = "1.0.0"