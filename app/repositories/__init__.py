# Repositories package.
#
# Thin storage adapters over an AsyncSession, one per aggregate:
#
#   user_repository    : lookup by id / email, insert
#   article_repository : lookup by id / title, insert, partial update,
#                         delete, paginated + sorted listing
#
# Repositories flush but never commit; the ``get_db`` dependency owns the
# transaction.  Unique-constraint violations are re-raised as
# ``ConflictError`` so no raw IntegrityError leaves this package.
