"""
Social Login Server Application
===============================

FastAPI service that signs browsers in with Google or Facebook and keeps
the resulting identity in a server-side session.
"""
