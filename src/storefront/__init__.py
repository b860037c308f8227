"""Storefront ordering & scheduling engine.

Cart and stock adjudication, delivery fee resolution, time-slot generation and
order assembly for multi-tenant delivery, pickup, dine-in and booking storefronts.
"""
