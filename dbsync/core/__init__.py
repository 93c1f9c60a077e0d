"""Configuración y logging del job."""
