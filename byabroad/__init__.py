"""ByAbroad landed-cost engine.

Estimates what a product bought abroad really costs once delivered to Israel:
product price converted to shekels, forwarder shipping, import duty, VAT and
customs handling.

The package follows a modular architecture with separate concerns for:
- Exchange rates, duty rules and shipping quotes (services)
- Landed cost calculation and forwarder comparison (services)
- Store resolution and product extraction from URLs (scrapers)
- Multi-engine product search normalization (services.search)
"""

__version__ = "0.1.0"
