"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
