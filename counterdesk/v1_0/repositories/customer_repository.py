from counterdesk.v1_0.models import Customer
from .base_repository import BaseRepository

class CustomerRepository(BaseRepository[Customer]):
    """Customers are read-only here; only joins and lookups go through this."""

    def __init__(self):
        super().__init__(Customer)
