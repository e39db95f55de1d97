"""nbstack - orchestrated installer for the nb_ frontend stack."""

__version__ = "0.1.0"
