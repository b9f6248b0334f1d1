"""Configuration package for the roomchat server.

Components:
- server_config.json: overrides for the server, logging and chat sections.
  Values not present keep the defaults in utils.config_loader.
"""
