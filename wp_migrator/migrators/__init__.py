"""
WordPress REST API migrators and helpers.

This subpackage talks to the destination (and, for media, the source)
site: it builds proxied request URLs and normalizes failed responses,
copies featured images, resolves categories and tags by slug, and creates
posts and pages from the assembled payload.
"""
