"""Base service class for domain services."""


class Service:
    """Base class for domain services.

    Domain services hold reconciliation rules that span accounts and
    identities rather than belonging to either entity.
    """

    pass
