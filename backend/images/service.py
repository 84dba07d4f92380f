# ------------------------------ IMPORTS ------------------------------
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import Contribution, ImageContribution, ProposalStatus, VehicleImage
from core.errors import NotFoundError, PreconditionFailedError, StorageError, ValidationError
from core.events import EventBus, event_bus
from core.security.policy import Transition
from core.security.principal import Principal
from core.services.proposal_state_machine import image_state_machine
from core.services.storage_service import StagingService
from core.utils.data_helpers import utcnow
from catalog.store import CatalogStore

logger = logging.getLogger(__name__)

PROMOTE_FAILURE_REASON = "File processing error during approval"

# ------------------------------ SERVICE ------------------------------

class ImageContributionService:
    """Moderation lifecycle of image proposals.

    Runs on the same state machine as vehicle proposals; approval promotes
    the staged file and rejection or cancellation discards it.
    """

    def __init__(self, db: Session, staging: StagingService, events: EventBus = event_bus):
        self.db = db
        self.staging = staging
        self.events = events
        self.machine = image_state_machine(db)
        self.store = CatalogStore(db)
        self._promoted: List[str] = []

    # ------------------------------ SUBMIT ------------------------------

    def submit(
        self,
        actor: Principal,
        content: bytes,
        original_filename: str,
        content_type: Optional[str],
        vehicle_id: Optional[int] = None,
        contribution_id: Optional[int] = None,
        alt_text: Optional[str] = None,
        caption: Optional[str] = None,
    ) -> ImageContribution:
        """Validate and stage an upload, then record it as PENDING."""
        if not content:
            raise ValidationError("No image file provided")
        if content_type not in settings.storage.allowed_content_types:
            raise ValidationError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
        if len(content) > settings.storage.max_image_bytes:
            raise ValidationError("File too large. Maximum size is 10MB.")
        if vehicle_id is None and contribution_id is None:
            raise ValidationError("Either vehicle_id or contribution_id is required")

        if contribution_id is not None:
            linked = self.db.get(Contribution, contribution_id)
            if linked is None:
                raise NotFoundError("Contribution not found", {"id": contribution_id})
            if linked.status != ProposalStatus.PENDING:
                raise PreconditionFailedError("Contribution is not pending", {"id": contribution_id})
            if vehicle_id is None:
                vehicle_id = linked.target_vehicle_id
        if vehicle_id is not None:
            self.store.require(vehicle_id)

        key = self.staging.stage(content, original_filename, content_type)
        image = ImageContribution(
            user_id=actor.user_id,
            vehicle_id=vehicle_id,
            contribution_id=contribution_id,
            filename=key.rsplit("/", 1)[-1],
            original_filename=original_filename or "upload",
            path=key,
            alt_text=alt_text,
            caption=caption,
            file_size=len(content),
            mime_type=content_type,
            status=ProposalStatus.PENDING,
        )
        self.db.add(image)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.staging.discard(key)
            raise
        self.db.refresh(image)

        logger.info(f"Image contribution {image.id} submitted by user {actor.user_id}")
        self.events.publish("image_contribution.submitted", image_contribution_id=image.id, user_id=actor.user_id)
        return image

    # ------------------------------ READS ------------------------------

    def get(self, image_id: int) -> ImageContribution:
        return self.machine.load(image_id)

    def list_pending(self) -> List[ImageContribution]:
        return (
            self.db.query(ImageContribution)
            .filter(ImageContribution.status == ProposalStatus.PENDING)
            .order_by(ImageContribution.created_at.desc(), ImageContribution.id.desc())
            .all()
        )

    # ------------------------------ OWNER TRANSITIONS ------------------------------

    def edit(self, actor: Principal, image_id: int, alt_text: Optional[str], caption: Optional[str]) -> ImageContribution:
        image = self.machine.load(image_id)
        self.machine.authorize(actor, image, Transition.EDIT)
        self.machine.update_pending(image, {"alt_text": alt_text, "caption": caption})
        self.db.commit()
        return self.machine.load(image_id)

    def cancel(self, actor: Principal, image_id: int) -> ImageContribution:
        image = self.machine.load(image_id)
        self.machine.authorize(actor, image, Transition.CANCEL)
        staged_key = image.path
        self.machine.finalize(image, Transition.CANCEL, actor)
        self.db.commit()

        self.staging.discard(staged_key)
        self.events.publish("image_contribution.cancelled", image_contribution_id=image_id, user_id=actor.user_id)
        return self.machine.load(image_id)

    # ------------------------------ MODERATOR TRANSITIONS ------------------------------

    def approve(self, actor: Principal, image_id: int, display_order: Optional[int] = None) -> VehicleImage:
        """Promote the staged file and attach it to its vehicle."""
        image = self.machine.load(image_id)
        self.machine.authorize(actor, image, Transition.APPROVE)
        if image.vehicle_id is None:
            raise PreconditionFailedError(
                "Image is waiting for its vehicle contribution to be approved",
                {"id": image_id, "contribution_id": image.contribution_id},
            )
        vehicle_id = image.vehicle_id
        self.store.require(vehicle_id)

        try:
            vehicle_image = self._promote(image, vehicle_id, actor, display_order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.restore_promoted()
            raise
        self.forget_promoted()

        self.db.refresh(vehicle_image)
        self.events.publish(
            "image_contribution.approved",
            image_contribution_id=image_id,
            vehicle_id=vehicle_id,
            vehicle_image_id=vehicle_image.id,
        )
        return vehicle_image

    def reject(self, actor: Principal, image_id: int, comment: Optional[str]) -> ImageContribution:
        image = self.machine.load(image_id)
        self.machine.authorize(actor, image, Transition.REJECT)
        reason = self.machine.validate_rejection_comment(comment)
        staged_key = image.path
        self.machine.finalize(image, Transition.REJECT, actor, comment=reason)
        self.db.commit()

        self.staging.discard(staged_key)
        self.events.publish("image_contribution.rejected", image_contribution_id=image_id, reason=reason)
        return self.machine.load(image_id)

    def delete_vehicle_image(self, actor: Principal, vehicle_image_id: int) -> None:
        """Remove an approved image and its durable file."""
        image = self.db.get(VehicleImage, vehicle_image_id)
        if image is None:
            raise NotFoundError("Image not found", {"id": vehicle_image_id})
        durable_key = image.path
        self.db.delete(image)
        self.db.commit()

        self.staging.delete_durable(durable_key)
        logger.info(f"User {actor.user_id} deleted vehicle image {vehicle_image_id}")

    # ------------------------------ LINKED CASCADE ------------------------------

    def _linked_pending(self, contribution_id: int) -> List[ImageContribution]:
        return (
            self.db.query(ImageContribution)
            .filter(
                ImageContribution.contribution_id == contribution_id,
                ImageContribution.status == ProposalStatus.PENDING,
            )
            .order_by(ImageContribution.id.asc())
            .all()
        )

    def approve_linked(self, contribution_id: int, vehicle_id: int, actor: Principal) -> Tuple[List[int], List[int]]:
        """Approve images riding along with an approved vehicle contribution.

        A file that cannot be promoted rejects only that image. Returns the
        approved and rejected image ids. Does not commit; promoted files stay
        tracked until the caller commits or calls restore_promoted.
        """
        approved, failed = [], []
        for image in self._linked_pending(contribution_id):
            image_id = image.id
            try:
                self._promote(image, vehicle_id, actor)
                approved.append(image_id)
            except StorageError as e:
                logger.warning(f"Rejecting image contribution {image_id}: {e.message}")
                self.machine.finalize(
                    image, Transition.REJECT, actor,
                    comment=PROMOTE_FAILURE_REASON, extra={"vehicle_id": vehicle_id},
                )
                failed.append(image_id)
        return approved, failed

    def close_linked(self, contribution_id: int, transition: Transition, actor: Principal, comment: Optional[str] = None) -> List[str]:
        """Reject or cancel images of a closed contribution.

        Returns staged keys to discard once the caller has committed.
        """
        staged_keys = []
        for image in self._linked_pending(contribution_id):
            staged_keys.append(image.path)
            self.machine.finalize(image, transition, actor, comment=comment)
        return staged_keys

    def discard_files(self, staged_keys: List[str]) -> None:
        for key in staged_keys:
            self.staging.discard(key)

    def restore_promoted(self) -> None:
        """Move files promoted by a rolled-back transaction back to staging."""
        for durable_key in self._promoted:
            try:
                self.staging.demote(durable_key)
            except StorageError as e:
                logger.error(f"Durable file {durable_key} is unreferenced after rollback: {e.message}")
        self._promoted = []

    def forget_promoted(self) -> None:
        self._promoted = []

    # ------------------------------ HELPERS ------------------------------

    def _promote(
        self,
        image: ImageContribution,
        vehicle_id: int,
        actor: Principal,
        display_order: Optional[int] = None,
    ) -> VehicleImage:
        staged_key = image.path
        filename = image.filename
        durable_key = self.staging.promote(staged_key)
        self._promoted.append(durable_key)

        self.machine.finalize(
            image, Transition.APPROVE, actor,
            extra={"vehicle_id": vehicle_id, "path": durable_key},
        )
        vehicle_image = VehicleImage(
            vehicle_id=vehicle_id,
            filename=filename,
            path=durable_key,
            url=self.staging.public_url(durable_key),
            alt_text=image.alt_text,
            caption=image.caption,
            display_order=display_order if display_order is not None else self.store.next_display_order(vehicle_id),
            file_size=image.file_size,
            mime_type=image.mime_type,
            uploaded_by=image.user_id,
            is_approved=True,
            approved_by=actor.user_id,
            approved_at=utcnow(),
        )
        self.db.add(vehicle_image)
        self.db.flush()
        logger.info(f"Vehicle image {vehicle_image.id} created for vehicle {vehicle_id}")
        return vehicle_image

# ------------------------------ END OF FILE ------------------------------
