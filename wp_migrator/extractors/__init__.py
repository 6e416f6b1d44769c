"""
Retrieval of content from the source WordPress site.

This subpackage reads whole post or page collections through the REST
API, with related author, media and terms embedded, and parses them into
:class:`wp_migrator.models.ContentItem` instances.
"""
