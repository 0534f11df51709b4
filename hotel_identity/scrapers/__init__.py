"""Platform source adapters. Use ``scrapers.registry.build_adapters`` to construct them."""
