"""
Application catalog app.

Resolves the owning application's lifecycle status and ownership for an
account. Resolvers always answer; an unrecognized application comes back
with status Unknown instead of an error.
"""

default_app_config = "apps.catalog.apps.CatalogConfig"
