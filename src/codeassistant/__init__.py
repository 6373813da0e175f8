"""codeassistant - AI-powered coding assistant with recorded sessions."""

__version__ = "0.1.0"
