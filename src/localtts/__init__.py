"""local-tts: local text-to-speech tools over the Model Context Protocol."""

__version__ = "1.2.3"
