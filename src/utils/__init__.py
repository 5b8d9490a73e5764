# src/utils/__init__.py — v1
