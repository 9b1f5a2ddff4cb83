"""The Inventario project: classroom inventory and loan tracking."""
