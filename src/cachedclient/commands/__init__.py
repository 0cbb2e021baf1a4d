"""Built-in CLI commands for cachedclient.

Each sub-module defines a Typer command or sub-app that is registered on
the root application in :mod:`cachedclient.app`:

- :mod:`~cachedclient.commands.request` -- ``cachedclient get``, a single
  request through :class:`~cachedclient.client.Client`.
- :mod:`~cachedclient.commands.watch` -- ``cachedclient watch``, register an
  endpoint on a :class:`~cachedclient.cache.CachedClient` and print each
  refreshed value.
- :mod:`~cachedclient.commands.config` -- ``cachedclient config show``.
"""
