"""Storefront service: catalog sync, order capture, payment and shipping glue."""
