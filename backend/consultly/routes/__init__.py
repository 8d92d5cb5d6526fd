# backend/consultly/routes/__init__.py
