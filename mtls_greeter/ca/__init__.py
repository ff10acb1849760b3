# mtls_greeter/ca/__init__.py
