"""Grounded question answering over uploaded PDF documents."""
