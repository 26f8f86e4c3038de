"""Looking glass configuration: sources and UI settings.

See ``lg_sources.config.loader.load_config`` for the entry point.
"""
