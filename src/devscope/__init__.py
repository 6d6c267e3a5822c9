"""devscope - AI-assisted GitHub repository and profile analysis."""

__version__ = "0.3.0"
