"""auth/ -- Accounts, session tokens, and request authentication for NodeVault.

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/, node/, or vault/.
api/ and node/ import from auth/, not the other way around.
The one exception is dependencies.py, which reaches the lifecycle through
request.app.state at call time and never imports node/.
"""
