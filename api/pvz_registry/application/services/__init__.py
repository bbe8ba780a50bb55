"""
Servicios de aplicacion.

Piezas de larga vida del sync: acceso a settings, scheduler y el
contenedor que los agrupa.
"""
