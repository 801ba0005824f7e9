"""Resources app package.

Catalog of reservable dormitory resources (rooms, equipment). The
catalog is read-mostly: administrators create, update and soft-deactivate
entries, the booking engine only reads them.
"""
