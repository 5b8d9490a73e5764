# src/remote/__init__.py — v1
