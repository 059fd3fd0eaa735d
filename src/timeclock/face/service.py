from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.validators import optional_str, require_fields
from ..core.actor import Actor
from ..core.constants import DEFAULT_HISTORY_LIMIT, FACE_MATCH_THRESHOLD, FACE_VERIFICATION_VERSION
from ..core.enums import EnrollmentStatus, ReviewStatus, VerificationStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.model import Profile
from ..profiles.repository import ProfileRepository
from ..storage.service import PhotoService
from .azure_client import AzureFaceClient, FaceApiError
from .matcher import compare_embeddings, validate_embedding
from .model import FaceVerification, VerificationOutcome
from .repository import FaceVerificationRepository

logger = logging.getLogger(__name__)

AZURE_VERIFICATION_VERSION = "azure-v1"


class FaceService:
    """Face enrollment, clock-photo verification and the admin review queue."""

    def __init__(
        self,
        verifications: FaceVerificationRepository,
        profiles: ProfileRepository,
        *,
        client: Optional[AzureFaceClient] = None,
        photos: Optional[PhotoService] = None,
        threshold: float = FACE_MATCH_THRESHOLD,
    ):
        self._verifications = verifications
        self._profiles = profiles
        self._client = client
        self._photos = photos
        self._threshold = threshold

    def _profile(self, company_id: str, profile_id: str) -> Profile:
        profile = self._profiles.get_in_company(company_id, profile_id)
        if not profile:
            raise NotFoundError("Employee not found")
        return profile

    # -------- enrollment --------
    def enroll(self, *, actor: Actor, profile_id: str, embedding: Any = None) -> Profile:
        """Enroll from a client-side descriptor, or from the avatar through Azure."""
        company_id = actor.require_admin()
        profile = self._profile(company_id, profile_id)

        if embedding is not None:
            vector = validate_embedding(embedding)
            self._profiles.set_face_enrollment(profile.id, status=EnrollmentStatus.ENROLLED, embedding=vector)
            logger.info("Face enrolled from descriptor for profile %s", profile.id)
            return self._profile(company_id, profile.id)

        if self._client is None:
            raise ValidationError("Face embedding is required")
        if not profile.avatar_url:
            raise ValidationError("Employee has no profile photo to enroll")

        try:
            face_id = self._client.detect(self._fetchable_url(profile.avatar_url))
        except FaceApiError:
            logger.exception("Face detection failed for profile %s", profile.id)
            face_id = None

        status = EnrollmentStatus.ENROLLED if face_id else EnrollmentStatus.FAILED
        self._profiles.set_face_enrollment(profile.id, status=status, embedding=None)
        logger.info("Face enrollment for profile %s: %s", profile.id, status.value)
        return self._profile(company_id, profile.id)

    def clear_enrollment(self, *, actor: Actor, profile_id: str) -> Profile:
        company_id = actor.require_admin()
        profile = self._profile(company_id, profile_id)
        self._profiles.set_face_enrollment(profile.id, status=EnrollmentStatus.NOT_ENROLLED, embedding=None)
        return self._profile(company_id, profile.id)

    # -------- verification --------
    def verify_face(
        self,
        *,
        time_entry_id: str,
        profile_id: str,
        company_id: str,
        clock_photo_url: Optional[str] = None,
        profile_photo_url: Optional[str] = None,
        clock_embedding: Any = None,
    ) -> tuple[FaceVerification, bool]:
        """Compare the clock photo with the enrolled face; returns (verification, created)."""
        require_fields(
            {"time_entry_id": time_entry_id, "profile_id": profile_id, "company_id": company_id},
            ("time_entry_id", "profile_id", "company_id"),
        )

        existing = self._verifications.latest_for_entry(time_entry_id)
        if existing is not None and existing.match_distance is not None:
            logger.info("Face verification already recorded for entry %s", time_entry_id)
            return existing, False

        profile = self._profile(company_id, profile_id)
        clock_photo_url = optional_str(clock_photo_url)
        profile_photo_url = optional_str(profile_photo_url) or profile.avatar_url

        version = FACE_VERIFICATION_VERSION
        if clock_embedding is not None and profile.face_embedding:
            outcome = compare_embeddings(
                profile.face_embedding, validate_embedding(clock_embedding), threshold=self._threshold
            )
        elif self._client is not None and clock_photo_url and profile_photo_url:
            version = AZURE_VERIFICATION_VERSION
            outcome = self._verify_photos(profile_photo_url, clock_photo_url)
        else:
            outcome = VerificationOutcome(VerificationStatus.SKIPPED, match_reason=self._skip_reason(profile, clock_embedding))

        verification_id = self._verifications.create(
            company_id=company_id,
            time_entry_id=time_entry_id,
            profile_id=profile.id,
            clock_photo_url=clock_photo_url,
            profile_photo_url=profile_photo_url,
            outcome=outcome,
            verification_version=version,
        )
        if outcome.status == VerificationStatus.FLAGGED:
            logger.warning(
                "[SECURITY] Face verification flagged for entry %s (profile=%s): %s",
                time_entry_id,
                profile.id,
                outcome.match_reason,
            )
        verification = self._verifications.get(company_id, verification_id)
        if verification is None:
            raise NotFoundError("Face verification not found")
        return verification, True

    @staticmethod
    def _skip_reason(profile: Profile, clock_embedding: Any) -> str:
        if profile.face_enrollment_status != EnrollmentStatus.ENROLLED:
            return "not_enrolled"
        if clock_embedding is None:
            return "no_clock_embedding"
        return "no_enrolled_embedding"

    def _fetchable_url(self, path: str) -> str:
        """Absolute URL the Face API can download; stored photos are bucket-relative."""
        if self._photos is None:
            return path
        return self._photos.signed_url(path) or path

    def _verify_photos(self, profile_photo_url: str, clock_photo_url: str) -> VerificationOutcome:
        try:
            profile_face = self._client.detect(self._fetchable_url(profile_photo_url))
            if not profile_face:
                return VerificationOutcome(VerificationStatus.FLAGGED, match_reason="no_face_in_profile_photo")
            clock_face = self._client.detect(self._fetchable_url(clock_photo_url))
            if not clock_face:
                return VerificationOutcome(VerificationStatus.FLAGGED, match_reason="no_face_in_clock_photo")
            identical, confidence = self._client.verify(profile_face, clock_face)
        except FaceApiError as exc:
            logger.error("Face API error: %s", exc)
            return VerificationOutcome(VerificationStatus.ERROR, match_reason="api_error", error_message=str(exc))

        status = VerificationStatus.PASSED if identical else VerificationStatus.FLAGGED
        return VerificationOutcome(
            status,
            match_distance=round(1.0 - confidence, 4),
            match_reason=f"confidence={confidence:.3f}",
        )

    # -------- review --------
    def list_verifications(self, *, actor: Actor, status: Optional[str] = None) -> Sequence[FaceVerification]:
        company_id = actor.require_admin()
        status_filter = None
        if status:
            try:
                status_filter = VerificationStatus(status)
            except ValueError:
                raise ValidationError("Invalid verification status")
        return self._verifications.list_for_company(company_id, status=status_filter, limit=DEFAULT_HISTORY_LIMIT)

    def review(self, *, actor: Actor, verification_id: str, review_status: str) -> FaceVerification:
        company_id = actor.require_admin()
        try:
            decision = ReviewStatus(review_status)
        except ValueError:
            raise ValidationError("review_status must be approved or rejected")
        if not self._verifications.get(company_id, verification_id):
            raise NotFoundError("Face verification not found")
        self._verifications.mark_reviewed(verification_id, reviewed_by=actor.account_id, review_status=decision)
        logger.info("[AUDIT] Face verification %s %s by %s", verification_id, decision.value, actor.account_id)
        verification = self._verifications.get(company_id, verification_id)
        if verification is None:
            raise NotFoundError("Face verification not found")
        return verification
