"""Business logic services package.

Contains the landed-cost engine services: exchange rates, duty and VAT rules,
forwarder shipping quotes, landed cost calculation and comparison, product
search, and the HTTP transport they share.
"""
