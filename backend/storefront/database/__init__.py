"""
Database package.

- base: declarative base, mixins and time helpers
- connection: the injected ``Database`` object owning engine and sessions
- models: ORM models for orders, catalog, reviews, contact and notifications
"""
