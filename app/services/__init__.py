# Services package.
#
# Each module exposes one service class that encapsulates the business rules
# of a single concern:
#
#   article_service : CRUD + pagination + cache invalidation for Article
#   auth_service    : signup / signin (password hashing, token issuance)
#
# Services receive their collaborators (repositories, hasher, token issuer,
# cache) through the constructor; ``app.dependencies`` builds them per
# request around the session yielded by ``get_db``.
