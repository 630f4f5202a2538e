"""
Catalog package: book models, the catalog store, the ranking feed client,
the sync job and the read/admin service.
"""
