"""auth/ -- Authentication and session issuance for LoginKeep.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or cache/ -- stores are injected into
AuthService by whoever assembles the app.
api/ imports from auth/, not the other way around.
"""
