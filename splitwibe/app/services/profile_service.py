"""
services/profile_service.py — Profile business logic.

Accounts, passwords and token issuance belong to the external identity
provider. This service only keeps the application-side profile for the
authenticated user id it is given.

Layer rules:
  - No Flask imports. Receives the caller's user_id as a plain int.
  - Commits are the route's responsibility; services only flush.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitwibe.app.errors import AppError, ErrorCode
from splitwibe.app.models.profile import Profile
from splitwibe.app.services.group_service import get_profile_or_404


def _serialize_profile(profile: Profile) -> dict:
    return {
        "id": profile.id,
        "email": profile.email,
        "display_name": profile.display_name,
        "name": profile.name,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


def _require_email_available(email: str, user_id: int, session: Session) -> None:
    """Raises DUPLICATE_EMAIL (409) if another profile already uses `email`."""
    owner_id = session.execute(
        select(Profile.id).where(Profile.email == email)
    ).scalar_one_or_none()

    if owner_id is not None and owner_id != user_id:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "That email address is already in use.",
            409,
            field="email",
        )


def get_profile(user_id: int, session: Session) -> dict:
    """Returns the caller's profile or raises PROFILE_NOT_FOUND (404)."""
    return _serialize_profile(get_profile_or_404(user_id, session))


def upsert_profile(user_id: int, data: dict, session: Session) -> tuple[dict, bool]:
    """
    Creates the caller's profile, or updates the fields present in `data`.

    Returns:
        (profile dict, created) where created is True for a first save.

    Raises:
        AppError(MISSING_FIELD, 400)   — first save without an email
        AppError(DUPLICATE_EMAIL, 409) — email belongs to another profile
    """
    profile = session.get(Profile, user_id)
    created = profile is None

    if created and not data.get("email"):
        raise AppError(
            ErrorCode.MISSING_FIELD,
            "email is required when creating a profile.",
            400,
            field="email",
        )

    if "email" in data:
        email = data["email"].strip().lower()
        # Checked before the new row is added so autoflush cannot insert it early.
        _require_email_available(email, user_id, session)
        if created:
            profile = Profile(id=user_id, email=email)
            session.add(profile)
        else:
            profile.email = email

    if "display_name" in data:
        profile.display_name = (data["display_name"] or "").strip() or None

    session.flush()
    session.refresh(profile)
    return _serialize_profile(profile), created
