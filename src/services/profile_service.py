"""Maps the signed-in user to the store they own."""

from models.profile import Profile
from repositories.ledger_store import LedgerStore
from repositories.schema import PROFILES
from utils.error_handling import NotFoundError
from utils.validators import ensure_present


class ProfileService:
    """Store profile lookups used by the API layer."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def resolve_store(self, user_id: str) -> Profile:
        """Return the profile (store) owned by `user_id`."""
        ensure_present(user_id, "user_id")
        row = self.store.select_one(PROFILES, {"user_id": user_id})
        if row is None:
            raise NotFoundError("No store profile for this user")
        return Profile.model_validate(row)
