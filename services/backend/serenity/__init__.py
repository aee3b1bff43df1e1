"""Serenity mental-wellness companion backend."""
