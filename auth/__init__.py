"""auth/ -- Identity package for the MediChain backend.

Credential hashing, session tokens, the user store and the identity service.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
