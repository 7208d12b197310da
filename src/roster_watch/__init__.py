"""Live player roster dashboard with shift assignments."""

__version__ = "0.1.0"
