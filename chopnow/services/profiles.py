"""
ChopNow Storefront — Profiles (self-service edits, admin user directory)
"""
import logging
from datetime import datetime, timezone

from chopnow.core.exceptions import NotFound
from chopnow.db.data_access import DataAccess, Filter, Ordering
from chopnow.models.user import Role
from chopnow.schemas.profile import ProfileRecord, ProfileUpdate

logger = logging.getLogger(__name__)

# legacy rows store customers as "user"
ROLE_VALUES: dict[Role, tuple[str, ...]] = {
    Role.CUSTOMER: (Role.CUSTOMER.value, "user"),
    Role.VENDOR: (Role.VENDOR.value,),
    Role.ADMIN: (Role.ADMIN.value,),
}


async def get_profile(data: DataAccess, user_id: str) -> ProfileRecord:
    rows = await data.query_rows("profiles", [Filter.eq("id", user_id)], limit=1)
    if not rows:
        raise NotFound("profile", user_id)
    return ProfileRecord.model_validate(rows[0])


async def update_profile(data: DataAccess, user_id: str, payload: ProfileUpdate) -> ProfileRecord:
    patch = payload.model_dump(exclude_unset=True)
    # a name can be changed but never cleared
    if patch.get("full_name") is None:
        patch.pop("full_name", None)
    if not patch:
        return await get_profile(data, user_id)
    if not await data.count_rows("profiles", [Filter.eq("id", user_id)]):
        raise NotFound("profile", user_id)
    row = await data.update_row(
        "profiles", user_id, {**patch, "updated_at": datetime.now(tz=timezone.utc)}
    )
    logger.info("Profile %s updated (%s)", user_id, ", ".join(sorted(patch)))
    return ProfileRecord.model_validate(row)


async def list_profiles(data: DataAccess, role: Role | None = None) -> list[ProfileRecord]:
    """Every profile, newest first."""
    filters = [Filter("role", "in", list(ROLE_VALUES[role]))] if role else []
    rows = await data.query_rows("profiles", filters, ordering=(Ordering("created_at", descending=True),))
    return [ProfileRecord.model_validate(r) for r in rows]
