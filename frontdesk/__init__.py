"""frontdesk: call-turn routing and tenant policy compilation."""

__version__ = "0.1.0"
