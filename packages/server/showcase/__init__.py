"""
Speech Showcase server.

Hosts the speech demo pages and the sign-in flow, and guards both behind an
environment validation layer that decides whether the process is fit to serve.
"""

__version__ = "0.1.0"
