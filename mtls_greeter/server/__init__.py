# mtls_greeter/server/__init__.py
