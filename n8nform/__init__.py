"""n8nform - declarative management of n8n credentials."""

__version__ = "0.1.0"
