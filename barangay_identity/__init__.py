"""Identity and privilege boundary for the barangay information portal."""

__version__ = "0.1.0"
