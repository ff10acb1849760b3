# mtls_greeter/client/__init__.py
