"""
WhatsApp Gateway

Multi-tenant WhatsApp session and messaging backend.
Protocol work is delegated to an external provider process (Baileys sidecar
or Meta Cloud API) over HTTP.
"""

__version__ = "1.0.0"
