"""
Gateway API Docs - documentation and invocation statistics for gateway services.

Turns the Swagger documents published by backend services into:
- Annotated example bodies for every definition
- Per-endpoint documentation with permission codes
- A service -> version -> controller -> endpoint tree (cache-aside)
- Ranked daily invocation series
"""

__version__ = "0.1.0"
