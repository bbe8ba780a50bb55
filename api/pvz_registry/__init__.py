"""
Registro de PVZ: backend del registro de puntos de entrega y su
sincronización periódica desde Google Sheets.
"""
