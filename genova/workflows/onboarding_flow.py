"""Five-step expert onboarding wizard."""

import logging
from typing import Optional

from ..backend import Backend
from ..errors import InvalidTransition, ValidationError
from ..models.common import new_id, to_iso, utcnow
from ..models.identity import CallerIdentity, Role
from ..models.onboarding import (
    CREDENTIAL_MIME_PREFIXES,
    EXPERTISE_AREAS,
    MAX_UPLOAD_BYTES,
    SECTORS,
    Attachment,
    LeadTime,
    OnboardingDraft,
    OnboardingStep,
)
from ..models.profile import Profile
from .analytics import AnalyticsTracker

logger = logging.getLogger(__name__)

_TEXT_FIELDS = {
    "personal_details": ("full_name", "title", "location", "biography"),
    "experience": ("career_history",),
}


class OnboardingFlow:
    """
    Linear wizard over PersonalDetails, Experience, Expertise, Availability
    and Completion.

    The draft lives only in this object until ``submit()`` writes a
    Profile. Moving forward validates the current step; moving back never
    does. Completion is a one-way exit.
    """

    def __init__(self, backend: Backend, tracker: Optional[AnalyticsTracker] = None):
        """Start a new wizard session at step 1."""
        self.backend = backend
        self.tracker = tracker or AnalyticsTracker(backend.store)
        self.id = new_id()
        self.draft = OnboardingDraft()
        self.step = OnboardingStep.PERSONAL_DETAILS
        self.profile_id: Optional[str] = None

    @property
    def is_submitted(self) -> bool:
        return self.profile_id is not None

    def _ensure_open(self) -> None:
        if self.is_submitted:
            raise InvalidTransition("Onboarding was already submitted", current="submitted")

    # === Draft editing ===

    def update(self, section: str, /, **fields) -> None:
        """Merge text fields into a draft section."""
        self._ensure_open()
        allowed = _TEXT_FIELDS.get(section)
        if allowed is None:
            raise ValidationError(f"Unknown or non-text section: {section}", fields=[section])

        for name, value in fields.items():
            if name not in allowed:
                raise ValidationError(f"Unknown field {section}.{name}", fields=[name])
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{section}.{name} must be text", fields=[name])

        target = getattr(self.draft, section)
        for name, value in fields.items():
            setattr(target, name, value or "")

    def set_photo(self, photo: Optional[Attachment]) -> None:
        """Attach or clear the profile photo."""
        self._ensure_open()
        if photo is not None:
            if not photo.mime_type.startswith("image/"):
                raise ValidationError("Profile photo must be an image", fields=["photo"])
            if photo.size > MAX_UPLOAD_BYTES:
                raise ValidationError("Profile photo exceeds 10MB", fields=["photo"])
        self.draft.personal_details.photo = photo

    def add_credential(self, credential: Attachment) -> None:
        """Attach a credential document (PDF or image, up to 10MB)."""
        self._ensure_open()
        if not credential.mime_type.startswith(CREDENTIAL_MIME_PREFIXES):
            raise ValidationError(
                f"Unsupported credential type: {credential.mime_type}", fields=["credentials"]
            )
        if credential.size > MAX_UPLOAD_BYTES:
            raise ValidationError(f"{credential.filename} exceeds 10MB", fields=["credentials"])
        self.draft.experience.credentials.append(credential)

    def remove_credential(self, index: int) -> None:
        self._ensure_open()
        credentials = self.draft.experience.credentials
        if not 0 <= index < len(credentials):
            raise ValidationError(f"No credential at index {index}", fields=["credentials"])
        credentials.pop(index)

    def toggle_area(self, area: str) -> bool:
        """Select or deselect an expertise area. Returns True if now selected."""
        self._ensure_open()
        if area not in EXPERTISE_AREAS:
            raise ValidationError(f"Unknown expertise area: {area}", fields=["areas"])
        return self._toggle(self.draft.expertise.areas, area)

    def toggle_sector(self, sector: str) -> bool:
        """Select or deselect a sector. Returns True if now selected."""
        self._ensure_open()
        if sector not in SECTORS:
            raise ValidationError(f"Unknown sector: {sector}", fields=["sectors"])
        return self._toggle(self.draft.expertise.sectors, sector)

    @staticmethod
    def _toggle(selection: set[str], value: str) -> bool:
        if value in selection:
            selection.discard(value)
            return False
        selection.add(value)
        return True

    def set_availability(self, is_available: bool, lead_time: Optional[LeadTime] = None) -> None:
        """Record whether the expert takes projects now, and how soon."""
        self._ensure_open()
        self.draft.availability.is_available = is_available
        # Lead time only applies to available experts
        self.draft.availability.lead_time = lead_time if is_available else None

    # === Navigation ===

    def _emit(self, event_type: str, step: OnboardingStep) -> None:
        self.tracker.track(event_type, {
            "step": step.value,
            "step_name": step.label,
            "session": self.id,
        })

    def next(self) -> OnboardingStep:
        """Advance one step if the current step is complete."""
        self._ensure_open()
        if self.step.is_terminal:
            return self.step

        missing = self.draft.missing_fields(self.step)
        if missing:
            raise ValidationError(
                f"{self.step.label} is incomplete: {', '.join(missing)}", fields=missing
            )

        self._emit("onboarding_step_completed", self.step)
        self.step = OnboardingStep(self.step.value + 1)
        logger.debug("Onboarding %s advanced to %s", self.id, self.step.label)
        return self.step

    def prev(self) -> OnboardingStep:
        """Go back one step without validation; step 1 is the floor."""
        self._ensure_open()
        if self.step.is_terminal:
            raise InvalidTransition("Cannot leave the completion step", current=self.step.label)
        if self.step == OnboardingStep.PERSONAL_DETAILS:
            return self.step

        self._emit("onboarding_step_back", self.step)
        self.step = OnboardingStep(self.step.value - 1)
        return self.step

    def progress(self) -> list[dict]:
        """Progress-bar state for every step."""
        states = []
        for step in OnboardingStep:
            if step.value < self.step.value:
                state = "done"
            elif step == self.step:
                state = "current"
            else:
                state = "upcoming"
            states.append({"number": step.value, "label": step.label, "state": state})
        return states

    def summary(self) -> dict:
        """Read-only summary of the accumulated draft."""
        return self.draft.summary()

    # === Submission ===

    def submit(self, caller: CallerIdentity) -> Profile:
        """
        Persist the draft as the caller's profile.

        Uploads the photo and credentials, then creates or updates the
        caller's profile row. Only allowed from the completion step, once.
        """
        self._ensure_open()
        caller.require_role(Role.EXPERT)
        if not self.step.is_terminal:
            raise InvalidTransition(
                f"Onboarding can only be submitted from the completion step (at {self.step.label})",
                current=self.step.label,
            )

        storage = self.backend.storage
        details = self.draft.personal_details

        photo_url = None
        if details.photo is not None:
            path = storage.timestamped_path("profile-photos", caller.user_id, details.photo.filename)
            photo_url = storage.upload("profile-photos", path, details.photo.data)

        credential_refs = []
        for credential in self.draft.experience.credentials:
            path = storage.timestamped_path("credentials", caller.user_id, credential.filename)
            credential_refs.append(storage.upload("credentials", path, credential.data))

        availability = self.draft.availability
        fields = {
            "user_id": caller.user_id,
            "full_name": details.full_name.strip(),
            "title": details.title.strip(),
            "location": details.location.strip(),
            "biography": details.biography.strip(),
            "career_history": self.draft.experience.career_history.strip(),
            "credential_refs": credential_refs,
            "expertise_areas": sorted(self.draft.expertise.areas),
            "sectors": sorted(self.draft.expertise.sectors),
            "is_available": availability.is_available,
            "lead_time": availability.lead_time.value if availability.lead_time else None,
            "updated_at": to_iso(utcnow()),
        }
        if photo_url:
            fields["photo_url"] = photo_url

        store = self.backend.store
        existing = store.select("profiles", {"user_id": caller.user_id}, limit=1)
        if existing:
            row = store.update("profiles", existing[0]["id"], fields)
        else:
            row = store.insert("profiles", Profile.from_dict(fields).to_dict())

        self.profile_id = row["id"]
        self.tracker.track("onboarding_completed", {"session": self.id, "profile_id": row["id"]})
        logger.info("Onboarding %s submitted profile %s", self.id, row["id"])
        return Profile.from_dict(row)
