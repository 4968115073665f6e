"""vault/ -- Password-derived cryptography for NodeVault.

kdf.py derives keys, cipher.py seals and opens secret blobs, and
credentials.py wraps both together with seed phrases and login hashes.

Layer rule: vault/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/, auth/, or node/, and it does no I/O.
"""
