"""HTTP client package for srccli.

Layers, bottom up:

- :mod:`srccli.client.retry` -- pure classification and retry decisions.
- :class:`Transport` -- the side-effecting driver around :class:`httpx.Client`.
- :class:`SourceCraftAPI` -- one typed method per REST endpoint.

Example::

    from srccli.client import SourceCraftAPI, Transport

    with Transport(config) as transport:
        repos = SourceCraftAPI(transport).list_repositories("acme")
"""

from srccli.client.resources import SourceCraftAPI
from srccli.client.transport import Transport

__all__ = ["SourceCraftAPI", "Transport"]
