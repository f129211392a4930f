"""Build-time git revision info: reproducible properties files and generated constants."""

__version__ = "1.0.0"
