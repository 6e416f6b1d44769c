"""
Top-level package for the WordPress → WordPress content migrator.

The package moves posts and pages, with their featured images and
taxonomy terms, from one WordPress site to another using nothing but the
public REST API of each site and HTTP Basic (application password)
credentials.  Modules are split into subpackages:

* :mod:`wp_migrator.models` – pydantic models for connections, content and statuses
* :mod:`wp_migrator.extractors` – paginated retrieval from the source site
* :mod:`wp_migrator.migrators` – REST transport, media, taxonomy and item transfer
* :mod:`wp_migrator.utils` – error kinds, reports, logging and pre-flight checks

:mod:`wp_migrator.batch` drives sequential transfers with per-item status,
and :mod:`wp_migrator.migration_tool` wires everything to configuration.
"""

__version__ = "0.1.0"
