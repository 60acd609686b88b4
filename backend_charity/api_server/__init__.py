"""
API server package: HTTP interface for the charity auction front end.

Proxies the LLM assistant, audits charity documents and serves the ledger
read replica kept by the shared pollers. The ASGI app is built in app.py;
import create_app from server for tests and custom wiring.
"""
